""" Tools for describing a query

These classes only represent the structure of a query.
They do not talk to the query service in any way.
"""

from .query import Query, QueryObjectDict

from .base import QueryPart
from .sort import SortQuery, SortingField, SortingDirection
from .filter import FilterQuery, FieldFilterExpression, OPERATORS
