""" Result Page: one batch of query results """

from __future__ import annotations

from collections import abc
from typing import Optional, TYPE_CHECKING

from pagedquery import exc
from pagedquery.cursor import Cursor
from pagedquery.entity import Entity
from pagedquery.more_results import MoreResultsStatus
from pagedquery import more_results as status
from pagedquery.query_object import Query

from .service import QueryBatch

if TYPE_CHECKING:
    from .continuation import ContinuationDriver


class ResultPage(abc.Sequence):
    """ A page of results: entities and their cursors, as returned by one request to the query service

    A page is a read-only sequence of entities: iterate it as many times as you like.
    Every entity has a cursor that points right after it; use cursor_for() to get it.

    To get more results, use next() to fetch the next page, or all() to walk all pages lazily:

        page = dataset.run(query)
        for task in page.all():
            ...
    """
    # Entities, in the order the service has returned them
    items: tuple[Entity, ...]

    # Cursors: `cursors[i]` belongs to `items[i]`
    cursors: tuple[Optional[Cursor], ...]

    # The position right after the last item. Absent when there are no more results
    end_cursor: Optional[Cursor]

    # Why the batch has ended
    more_results: MoreResultsStatus

    # The query that has produced this page, and the namespace it was run in
    query: Query
    namespace: Optional[str]

    # The query that has produced the first page. Continuation pages keep it
    origin_query: Query

    # The driver that fetches more pages
    driver: Optional[ContinuationDriver]

    __slots__ = 'items', 'cursors', 'end_cursor', 'more_results', 'query', 'namespace', 'origin_query', 'driver'

    def __init__(self,
                 items: abc.Iterable[Entity],
                 cursors: abc.Iterable[Optional[Cursor]],
                 end_cursor: Optional[Cursor],
                 more_results: MoreResultsStatus,
                 *,
                 query: Query,
                 namespace: Optional[str] = None,
                 origin_query: Optional[Query] = None,
                 driver: Optional[ContinuationDriver] = None):
        self.items = tuple(items)
        self.cursors = tuple(cursors)
        self.end_cursor = end_cursor
        self.more_results = MoreResultsStatus.ensure_status(more_results)
        self.query = query
        self.namespace = namespace
        self.origin_query = origin_query if origin_query is not None else query
        self.driver = driver

        if len(self.items) != len(self.cursors):
            raise ValueError(f'Every item must have a cursor: got {len(self.items)} items and {len(self.cursors)} cursors')

    @classmethod
    def from_batch(cls, batch: QueryBatch, *, query: Query, namespace: Optional[str] = None, origin_query: Optional[Query] = None, driver: Optional[ContinuationDriver] = None) -> ResultPage:
        """ Make a page from a query service batch """
        return cls(
            items=[result.entity for result in batch.entity_results],
            cursors=[result.cursor for result in batch.entity_results],
            end_cursor=batch.end_cursor,
            more_results=batch.more_results,
            query=query,
            namespace=namespace,
            origin_query=origin_query,
            driver=driver,
        )

    def __repr__(self):
        return f'{type(self).__name__}({len(self.items)} items, more_results={self.more_results.name}, end_cursor={self.end_cursor!r})'

    # ### Sequence

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self) -> abc.Iterator[Entity]:
        return iter(self.items)

    # ### Cursors

    @property
    def cursor(self) -> Optional[Cursor]:
        """ Alias for `end_cursor` """
        return self.end_cursor

    def cursor_for(self, item: Entity) -> Optional[Cursor]:
        """ Get the cursor for an item of this page

        The item is looked up by identity: it must be an object from this very page.

        Raises:
            exc.NotFoundError: the item does not belong to this page
        """
        for i, page_item in enumerate(self.items):
            if page_item is item:
                return self.cursors[i]

        raise exc.NotFoundError(f'{item!r} does not belong to this page')

    def iter_with_cursor(self) -> abc.Iterator[tuple[Entity, Optional[Cursor]]]:
        """ Iterate (item, cursor) pairs

        Example:
            keys = [(entity.key, cursor) for entity, cursor in page.iter_with_cursor()]
        """
        return zip(self.items, self.cursors)

    # ### Status

    def not_finished(self) -> bool:
        """ More results are expected: the service has cut the batch short """
        return status.is_not_finished(self.more_results)

    def more_after_limit(self) -> bool:
        """ The limit was reached; there are more results after it """
        return status.is_more_after_limit(self.more_results)

    def more_after_cursor(self) -> bool:
        """ The end cursor was reached; there are more results after it """
        return status.is_more_after_cursor(self.more_results)

    def no_more(self) -> bool:
        """ The query is exhausted """
        return status.is_exhausted(self.more_results)

    def can_continue(self) -> bool:
        """ Can a continuation request yield more results?

        Requires both: a non-terminal status, and an end cursor to continue from.
        """
        return status.is_continuable(self.more_results) and self.end_cursor is not None

    # ### Continuation
    # These are shortcuts to the driver that has produced this page.
    # A page made by hand, without a driver, has nothing to continue with.

    def has_next(self) -> bool:
        """ Is there a next page? """
        if self.driver is None:
            return False
        return self.driver.has_next(self)

    def next(self) -> ResultPage:
        """ Fetch the next page

        Raises:
            exc.IllegalContinuationError: there's no next page
        """
        if self.driver is None:
            raise exc.IllegalContinuationError('This page was not produced by a query service: cannot continue')
        return self.driver.next(self)

    def all(self, request_limit: Optional[int] = None) -> abc.Iterator[Entity]:
        """ Iterate over the items of this page and all the pages that follow

        See: ContinuationDriver.all()
        """
        if self.driver is None:
            return iter(self.items)
        return self.driver.all(self, request_limit=request_limit)

    def all_with_cursor(self, request_limit: Optional[int] = None) -> abc.Iterator[tuple[Entity, Optional[Cursor]]]:
        """ Iterate over (item, cursor) pairs of this page and all the pages that follow

        See: ContinuationDriver.all_with_cursor()
        """
        if self.driver is None:
            return self.iter_with_cursor()
        return self.driver.all_with_cursor(self, request_limit=request_limit)
