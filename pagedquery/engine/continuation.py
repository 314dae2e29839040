""" Continuation: fetch the pages that follow """

from __future__ import annotations

import logging
from collections import abc
from typing import Optional

from pagedquery import exc
from pagedquery.cursor import Cursor
from pagedquery.entity import Entity
from pagedquery.query_object import Query

from .results import ResultPage
from .service import QueryService
from .settings import PagerSettings

logger = logging.getLogger(__name__)


class ContinuationDriver:
    """ Continuation Driver: runs queries and fetches the pages that follow

    Every page it produces knows its driver, so you'd normally use the page's shortcuts:

        page = driver.run(query)
        page.has_next()
        page.next()
        page.all()

    The driver makes exactly one request to the query service per page, and only when asked to.
    It never retries: errors of the query service propagate to the caller as they are.
    """

    # The query service to make requests to
    service: QueryService

    # Pagination settings
    settings: PagerSettings

    __slots__ = 'service', 'settings'

    def __init__(self, service: QueryService, settings: Optional[PagerSettings] = None):
        self.service = service
        self.settings = settings or PagerSettings()

    def run(self, query: Query, namespace: Optional[str] = None, *, origin_query: Optional[Query] = None) -> ResultPage:
        """ Make one request to the query service, get a page

        Args:
            query: The query to run
            namespace: The namespace to run it in
            origin_query: When continuing: the query that has started it all
        """
        batch = self.service.run_query(query, namespace)
        return ResultPage.from_batch(batch, query=query, namespace=namespace, origin_query=origin_query, driver=self)

    def has_next(self, page: ResultPage) -> bool:
        """ Is there a next page?

        A page is not continued when its window has no room left: e.g. with `limit=0`
        """
        return page.can_continue() and not _window_is_spent(page)

    def next_query(self, page: ResultPage) -> Query:
        """ Derive the query that would fetch the next page

        The page's own query is not modified: a new Query starts at the page's end cursor.

        Raises:
            exc.IllegalContinuationError: there's no next page
        """
        if not self.has_next(page):
            if page.no_more():
                raise exc.IllegalContinuationError('There are no more results')
            elif page.can_continue():
                raise exc.IllegalContinuationError(f'The page ended with {page.more_results.name}, but the query window has no room left')
            else:
                raise exc.IllegalContinuationError(f'The page ended with {page.more_results.name}, but has no end cursor to continue from')

        query = page.query.continue_from(
            page.end_cursor,  # type: ignore[arg-type]
            page.more_results,
            len(page),
            window_limit=page.origin_query.limit,
        )
        return self.settings.customize_query(page, query)

    def next(self, page: ResultPage) -> ResultPage:
        """ Fetch the next page

        Raises:
            exc.IllegalContinuationError: there's no next page. No request is made.
        """
        query = self.next_query(page)
        logger.debug('Fetching the next page of %r (namespace=%r) from cursor %r', query.kind, page.namespace, query.start_cursor)
        return self.run(query, page.namespace, origin_query=page.origin_query)

    def pages(self, page: ResultPage, request_limit: Optional[int] = None) -> abc.Iterator[ResultPage]:
        """ Iterate over this page and the pages that follow

        The next page is fetched only when the iterator is advanced past the current one.
        This iterator is single-pass: it makes requests as it goes.

        Args:
            page: The page to start with. It is yielded first, as is.
            request_limit: The max number of additional requests to make.
                `None`: use the default from settings. `0`: only the given page.

        Raises:
            exc.StalledContinuationError: the service keeps returning the same empty page
        """
        if request_limit is None:
            request_limit = self.settings.request_limit

        requests_made = 0
        while True:
            yield page

            # Last page?
            if not self.has_next(page):
                return

            # Out of requests?
            if request_limit is not None and requests_made >= request_limit:
                logger.debug('Stopped after %d requests: request limit reached', requests_made)
                return

            # Fetch
            prev_page = page
            page = self.next(page)
            requests_made += 1

            _check_progress(prev_page, page)

    def all(self, page: ResultPage, request_limit: Optional[int] = None) -> abc.Iterator[Entity]:
        """ Iterate over items of this page and all the pages that follow

        Items are yielded in the order the pages were fetched, each page in its own order.
        Next pages are fetched lazily: as many as the consumer needs.

        This iterator is single-pass: it makes requests as it goes.
        Once exhausted, call all() again on the first page to start over with new requests.

        Example:
            page = dataset.run(query)
            n = sum(1 for _ in page.all())
            keys = [task.key for task in page.all()]
        """
        for p in self.pages(page, request_limit=request_limit):
            yield from p

    def all_with_cursor(self, page: ResultPage, request_limit: Optional[int] = None) -> abc.Iterator[tuple[Entity, Optional[Cursor]]]:
        """ Iterate over (item, cursor) pairs of this page and all the pages that follow

        Every cursor is the one its page has recorded for the item.
        Same traversal as all().
        """
        for p in self.pages(page, request_limit=request_limit):
            yield from p.iter_with_cursor()


def _check_progress(prev_page: ResultPage, page: ResultPage):
    """ Make sure that a continuation has moved forward

    An empty page that ends exactly where its query started, and still wants to continue,
    would make us request it again and again.
    """
    if len(page) == 0 and page.can_continue() and page.end_cursor == page.query.start_cursor == prev_page.end_cursor:
        raise exc.StalledContinuationError(
            f'The query service has returned an empty page with {page.more_results.name} '
            f'at the same cursor: {page.end_cursor!r}. Continuing would never end.'
        )


def _window_is_spent(page: ResultPage) -> bool:
    """ Would a continuation of this page ask for zero results? """
    if page.more_after_limit():
        return page.origin_query.limit == 0
    elif page.not_finished():
        return page.query.limit is not None and page.query.limit <= len(page)
    else:
        return False
