""" Compile a Query into an SqlAlchemy statement """

from __future__ import annotations

import operator
from collections import abc
from typing import Any, Optional

import sqlalchemy as sa

from pagedquery import exc
from pagedquery.query_object import Query, SortingDirection
from pagedquery.query_object.filter import FieldFilterExpression


def select_statement(query: Query, table: sa.Table, *, namespace_column: Optional[sa.Column], namespace: Optional[str]) -> sa.sql.Select:
    """ Make a SELECT for the query: filter and sort, but no pagination """
    stmt = sa.select(table)

    # Namespace
    if namespace_column is not None and namespace is not None:
        stmt = stmt.where(namespace_column == namespace)

    # WHERE
    conditions = [
        compile_condition(condition, table, query.kind)  # type: ignore[arg-type]
        for condition in query.filter.conditions
    ]
    if conditions:
        stmt = stmt.where(*conditions)

    # ORDER BY
    # The primary key always goes last: positions must be stable between requests
    stmt = stmt.order_by(*order_by_clauses(query, table))

    return stmt


def compile_condition(condition: FieldFilterExpression, table: sa.Table, kind: str) -> sa.sql.ColumnElement:
    """ Generate an SQL expression for a field condition: e.g. "field == value" """
    col = resolve_column_by_name(condition.field, table, kind, where='filter')
    return FILTER_OPERATORS[condition.operator](col, condition.value)


def order_by_clauses(query: Query, table: sa.Table) -> abc.Iterator[sa.sql.ColumnElement]:
    """ Generate ORDER BY clauses: sort fields, then the primary key """
    sorted_names = set()
    for field in query.sort.fields:
        col = resolve_column_by_name(field.name, table, query.kind, where='sort')  # type: ignore[arg-type]
        sorted_names.add(col.key)
        yield col.asc() if field.direction == SortingDirection.ASC else col.desc()

    for col in table.primary_key.columns:
        if col.key not in sorted_names:
            yield col.asc()


def resolve_column_by_name(name: str, table: sa.Table, kind: str, *, where: str) -> sa.Column:
    """ Get a column by name, or fail

    Raises:
        exc.InvalidColumnError
    """
    try:
        return table.columns[name]
    except KeyError:
        raise exc.InvalidColumnError(kind, name, where=where) from None


def _in(col: sa.Column, value: Any):
    return col.in_(value)


def _not_in(col: sa.Column, value: Any):
    return col.not_in(value)


# Filter operators: { operator name => function(column, value) }
FILTER_OPERATORS: dict[str, abc.Callable[[sa.Column, Any], sa.sql.ColumnElement]] = {
    '$eq': operator.eq,
    '$ne': operator.ne,
    '$lt': operator.lt,
    '$lte': operator.le,
    '$gt': operator.gt,
    '$gte': operator.ge,
    '$in': _in,
    '$nin': _not_in,
}
