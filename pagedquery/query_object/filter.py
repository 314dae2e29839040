""" Query: the "filter" part """

from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Any, Union

from pagedquery import exc

from .base import QueryPart


@dataclass(frozen=True)
class FilterQuery(QueryPart):
    """ Query part: the "filter" operation

    All conditions are ANDed together.

    Example:
        { done: false, priority: {$gte: 4} }
    """
    # List of field conditions
    conditions: tuple[FieldFilterExpression, ...]

    key = 'filter'

    @classmethod
    def from_query_object(cls, filter: dict):
        cls._ensure_input_type(filter, dict, 'an object')

        # Construct
        conditions = tuple(cls._parse_input_fields(filter))
        return cls(conditions=conditions)

    def export(self) -> dict:
        res: dict[str, dict[str, Any]] = {}
        for condition in self.conditions:
            res.setdefault(condition.field, {}).update(condition.export()[condition.field])
        return res

    def add(self, field: str, operator: str, value: Any) -> FilterQuery:
        """ Get a copy with one more condition """
        return FilterQuery(conditions=self.conditions + (FieldFilterExpression.make(field, operator, value),))

    @classmethod
    def _parse_input_fields(cls, condition: dict) -> abc.Iterator[FieldFilterExpression]:
        # Iterate the object
        for key, value in condition.items():
            # Boolean expressions ($and, $or, ...) are not supported: conditions are always ANDed
            if key.startswith('$'):
                raise exc.QueryObjectError(f'Boolean operator {key} is not supported: conditions are always ANDed')
            # If not, then it's a field expression
            else:
                yield from cls._parse_input_field_expressions(key, value)

    @classmethod
    def _parse_input_field_expressions(cls, field_name: str, value: Union[dict[str, Any], Any]):
        # If the value is not a dict, it's a shortcut: { key: value }
        if not isinstance(value, dict):
            yield FieldFilterExpression.make(field_name, '$eq', value)
        # If the value is a dict, every item will be an operator and an operand
        else:
            for operator, operand in value.items():
                yield FieldFilterExpression.make(field_name, operator, operand)


@dataclass(frozen=True)
class FieldFilterExpression:
    """ A filter for a field

    Example:
        { age: {$gt: 18} }
    """
    field: str
    operator: str
    value: Any

    __slots__ = 'field', 'operator', 'value'

    @classmethod
    def make(cls, field: str, operator: str, value: Any) -> FieldFilterExpression:
        """ Make an expression; accept both '$gt' and '>' operator notations """
        operator = OPERATOR_ALIASES.get(operator, operator)

        # Check operator
        if operator not in OPERATORS:
            raise exc.QueryObjectError(f'Unsupported operator: {operator}')
        if operator in ('$in', '$nin'):
            if not isinstance(value, (list, tuple)):
                raise exc.QueryObjectError(f"{operator}'s operand must be an array")
            value = tuple(value)

        return cls(field=field, operator=operator, value=value)

    def export(self) -> dict:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {self.field: {self.operator: value}}


# Supported operators
OPERATORS = frozenset(('$eq', '$ne', '$lt', '$lte', '$gt', '$gte', '$in', '$nin'))

# Operator shortcuts
OPERATOR_ALIASES = {
    '=': '$eq',
    '==': '$eq',
    '!=': '$ne',
    '<': '$lt',
    '<=': '$lte',
    '>': '$gt',
    '>=': '$gte',
    'in': '$in',
    'not in': '$nin',
}
