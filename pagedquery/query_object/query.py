""" Query: an immutable description of what to fetch from the query service """

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional, Union, TypedDict

from pagedquery import exc
from pagedquery.cursor import Cursor
from pagedquery.more_results import MoreResultsStatus

from .filter import FilterQuery
from .sort import SortQuery, SortingDirection


class QueryObjectDict(TypedDict, total=False):
    """ Dict representation of a query """
    kind: Optional[str]
    filter: Optional[dict]
    sort: Optional[list[str]]

    # Pager
    limit: Optional[int]
    offset: Optional[int]
    start: Optional[str]
    end: Optional[str]


@dataclass(frozen=True)
class Query:
    """ Query: a parsed query object

    A Query is immutable: every builder method returns a modified copy.
    This is what makes it safe to derive continuation queries from it.

    Example:
        query = Query('Task').where('done', '=', False).order_by('priority', '-').with_limit(10)
    """
    # The kind of entities to fetch
    kind: Optional[str] = None

    # Filter conditions, ANDed
    filter: FilterQuery = dataclasses.field(default_factory=lambda: FilterQuery(conditions=()))

    # Sort order
    sort: SortQuery = dataclasses.field(default_factory=lambda: SortQuery(fields=()))

    # The max number of results to return
    limit: Optional[int] = None

    # The number of results to skip (after the start cursor)
    offset: int = 0

    # Start from this position
    start_cursor: Optional[Cursor] = None

    # Stop at this position
    end_cursor: Optional[Cursor] = None

    @classmethod
    def from_query_object(cls, query_object: QueryObjectDict) -> Query:
        """ Construct a Query from a query object dict

        Args:
            query_object: A query object dict you might've gotten from the client's request

        Raises:
            exc.QueryObjectError: Query object syntax error (wrong operator name, argument type)
        """
        kind = query_object.get('kind')
        if kind is not None and not isinstance(kind, str):
            raise exc.QueryObjectError(f'"kind" must be a string')

        filter = query_object.get('filter')
        sort = query_object.get('sort')

        return cls(
            kind=kind,
            filter=FilterQuery.from_query_object(filter=filter if filter is not None else {}),
            sort=SortQuery.from_query_object(sort=sort if sort is not None else []),
            limit=_check_limit(query_object.get('limit')),
            offset=_check_offset(query_object.get('offset')),
            start_cursor=Cursor.ensure_cursor(query_object.get('start')),
            end_cursor=Cursor.ensure_cursor(query_object.get('end')),
        )

    @classmethod
    def ensure_query(cls, input: Optional[Union[Query, QueryObjectDict]]) -> Query:
        """ Construct a Query from any valid input """
        if input is None:
            return cls()
        elif isinstance(input, Query):
            return input
        elif isinstance(input, dict):
            return cls.from_query_object(input)
        else:
            raise exc.QueryObjectError(f'Query must be an object, "{type(input).__name__}" given')

    def dict(self) -> QueryObjectDict:
        """ Convert the Query back into JSON dict """
        return QueryObjectDict(
            kind=self.kind,
            filter=self.filter.export(),
            sort=self.sort.export(),
            limit=self.limit,
            offset=self.offset,
            start=self.start_cursor.urlsafe() if self.start_cursor else None,
            end=self.end_cursor.urlsafe() if self.end_cursor else None,
        )

    # ### Builder methods
    # Every one of them returns a copy

    def where(self, field: str, operator: str, value: Any) -> Query:
        """ Add a filter condition

        Example:
            query.where('priority', '>=', 4)
            query.where('priority', '$gte', 4)
        """
        return dataclasses.replace(self, filter=self.filter.add(field, operator, value))

    def order_by(self, field: str, direction: Union[SortingDirection, str] = SortingDirection.ASC) -> Query:
        """ Add a sort field. Direction: '+' or '-' """
        try:
            direction = SortingDirection(direction)
        except ValueError as e:
            raise exc.QueryObjectError(f'Sorting direction must be "+" or "-", {direction!r} given') from e
        return dataclasses.replace(self, sort=self.sort.add(field, direction))

    def with_limit(self, limit: Optional[int]) -> Query:
        return dataclasses.replace(self, limit=_check_limit(limit))

    def with_offset(self, offset: Optional[int]) -> Query:
        return dataclasses.replace(self, offset=_check_offset(offset))

    def start(self, cursor: Optional[Union[Cursor, bytes, str]]) -> Query:
        """ Start from the given position """
        return dataclasses.replace(self, start_cursor=Cursor.ensure_cursor(cursor))

    def end(self, cursor: Optional[Union[Cursor, bytes, str]]) -> Query:
        """ Stop at the given position """
        return dataclasses.replace(self, end_cursor=Cursor.ensure_cursor(cursor))

    def continue_from(self, end_cursor: Cursor, more_results: MoreResultsStatus, returned_count: int, *, window_limit: Optional[int] = None) -> Query:
        """ Derive the query that fetches the results following a batch

        The derived query starts at the batch's end cursor and never carries an offset:
        it has already been applied by the first batch.

        What happens to the boundaries depends on why the batch has ended:
        * NOT_FINISHED: the batch did not fill the limit; the limit is reduced by the number of returned items
        * MORE_RESULTS_AFTER_LIMIT: the limit window is full; the next window gets `window_limit` again
        * MORE_RESULTS_AFTER_CURSOR: the end cursor was reached; the end cursor is dropped

        Args:
            end_cursor: The end cursor of the batch
            more_results: The status of the batch
            returned_count: The number of items the batch has returned
            window_limit: The limit of a whole window: the limit of the query that has started the traversal.
                Default: this query's limit
        """
        limit = self.limit
        end_cursor_boundary = self.end_cursor

        if more_results is MoreResultsStatus.NOT_FINISHED and limit is not None:
            limit = max(limit - returned_count, 0)
        elif more_results is MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT and window_limit is not None:
            limit = window_limit
        elif more_results is MoreResultsStatus.MORE_RESULTS_AFTER_CURSOR:
            end_cursor_boundary = None

        return dataclasses.replace(
            self,
            start_cursor=end_cursor,
            offset=0,
            limit=limit,
            end_cursor=end_cursor_boundary,
        )


def _check_limit(limit: Any) -> Optional[int]:
    if limit is None:
        return None
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
        raise exc.QueryObjectError(f'"limit" must be a non-negative integer')
    return limit


def _check_offset(offset: Any) -> int:
    if offset is None:
        return 0
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        raise exc.QueryObjectError(f'"offset" must be a non-negative integer')
    return offset
