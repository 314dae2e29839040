import logging

import pytest

from pagedquery import Cursor, Dataset, Entity, Key, MoreResultsStatus, PagerSettings, Query, exc
from pagedquery.engine import QueryBatch
from pagedquery.testing import ScriptedQueryService

from .util.models import task_batch


@pytest.fixture()
def service() -> ScriptedQueryService:
    """ A query service with two pages of Task entities

    Page 1: 25 entities, NOT_FINISHED, end cursor "second-page-cursor"
    Page 2: 25 entities, NO_MORE_RESULTS
    """
    service = ScriptedQueryService()
    service.expect(
        Query('Task'),
        task_batch(1000, 25, 'result-cursor-1', MoreResultsStatus.NOT_FINISHED, b'second-page-cursor'),
    )
    service.expect(
        Query('Task').start(Cursor(b'second-page-cursor')),
        task_batch(2000, 25, 'result-cursor-2', MoreResultsStatus.NO_MORE_RESULTS),
    )
    return service


def test_paginate_with_next(service: ScriptedQueryService):
    """ Test: run a query, get a page, paginate with next() """
    dataset = Dataset(service)

    # First page
    first_entities = dataset.run(dataset.query('Task'))

    assert len(first_entities) == 25
    assert all(isinstance(entity, Entity) for entity in first_entities)
    assert first_entities.cursor_for(first_entities[0]) == Cursor(b'result-cursor-1-0')
    assert first_entities.cursor_for(first_entities[-1]) == Cursor(b'result-cursor-1-24')
    for entity, cursor in first_entities.iter_with_cursor():
        assert isinstance(entity, Entity)
        assert isinstance(cursor, Cursor)
    # can use the iterator without consuming it right away
    for key, cursor in map(lambda pair: (pair[0].key, pair[1]), first_entities.iter_with_cursor()):
        assert isinstance(key, Key)
        assert isinstance(cursor, Cursor)
    assert first_entities.cursor == Cursor(b'second-page-cursor')
    assert first_entities.end_cursor == Cursor(b'second-page-cursor')
    assert first_entities.more_results is MoreResultsStatus.NOT_FINISHED
    assert first_entities.not_finished()
    assert not first_entities.more_after_limit()
    assert not first_entities.more_after_cursor()
    assert not first_entities.no_more()

    # Only one request so far
    assert len(service.requests) == 1

    # Next page
    assert first_entities.has_next()
    next_entities = first_entities.next()

    # The request started at the end cursor
    assert len(service.requests) == 2
    assert service.requests[1][0].start_cursor == first_entities.end_cursor

    assert all(isinstance(entity, Entity) for entity in next_entities)
    assert next_entities.cursor_for(next_entities[0]) == Cursor(b'result-cursor-2-0')
    assert next_entities.cursor_for(next_entities[-1]) == Cursor(b'result-cursor-2-24')
    assert next_entities.cursor is None
    assert next_entities.end_cursor is None
    assert next_entities.more_results is MoreResultsStatus.NO_MORE_RESULTS
    assert not next_entities.not_finished()
    assert not next_entities.more_after_limit()
    assert not next_entities.more_after_cursor()
    assert next_entities.no_more()

    assert not next_entities.has_next()

    # No overlap, no gap
    ids = [e.key.id for e in first_entities] + [e.key.id for e in next_entities]
    assert ids == list(range(1000, 1025)) + list(range(2000, 2025))

    # The original query is intact
    assert first_entities.query == Query('Task')

    service.verify()


def test_next_when_exhausted(service: ScriptedQueryService):
    """ Test: next() on the last page fails, and makes no request """
    dataset = Dataset(service)
    last_page = dataset.run(Query('Task')).next()
    assert len(service.requests) == 2

    with pytest.raises(exc.IllegalContinuationError):
        last_page.next()

    assert len(service.requests) == 2


def test_next_without_end_cursor():
    """ Test: a continuation status without an end cursor is not continuable """
    service = ScriptedQueryService()
    service.expect(Query('Task'), task_batch(1, 2, 'c', MoreResultsStatus.NOT_FINISHED, None))

    page = Dataset(service).run(Query('Task'))
    assert page.not_finished()
    assert not page.has_next()

    with pytest.raises(exc.IllegalContinuationError) as e:
        page.next()
    assert 'no end cursor' in str(e.value)

    # all() just stops
    assert len(list(page.all())) == 2
    assert len(service.requests) == 1


def test_all(service: ScriptedQueryService):
    """ Test: all() walks through all pages """
    entities = Dataset(service).run(Query('Task'))

    all_entities = list(entities.all())
    assert len(all_entities) == 50
    assert all(isinstance(entity, Entity) for entity in all_entities)
    assert [e.key.id for e in all_entities] == list(range(1000, 1025)) + list(range(2000, 2025))
    service.verify()


def test_all_count(service: ScriptedQueryService):
    """ Test: all() can be counted """
    entities = Dataset(service).run(Query('Task'))
    assert sum(1 for _ in entities.all()) == 50
    service.verify()


def test_all_map(service: ScriptedQueryService):
    """ Test: all() can be mapped before being consumed """
    entities = Dataset(service).run(Query('Task'))

    keys = map(lambda entity: entity.key, entities.all())
    assert len(service.requests) == 1  # nothing fetched yet

    for key in keys:
        assert isinstance(key, Key)
    service.verify()


def test_all_with_cursor(service: ScriptedQueryService):
    """ Test: all_with_cursor() yields every item with its own page's cursor """
    entities = Dataset(service).run(Query('Task'))

    pairs = list(entities.all_with_cursor())
    assert len(pairs) == 50
    for entity, cursor in pairs:
        assert isinstance(entity, Entity)
        assert isinstance(cursor, Cursor)

    # Cursors come from the right pages
    assert pairs[0][1] == Cursor(b'result-cursor-1-0')
    assert pairs[24][1] == Cursor(b'result-cursor-1-24')
    assert pairs[25][1] == Cursor(b'result-cursor-2-0')
    assert pairs[49][1] == Cursor(b'result-cursor-2-24')
    service.verify()


def test_all_is_lazy(service: ScriptedQueryService):
    """ Test: all() fetches the next page only when the current one is exhausted """
    entities = Dataset(service).run(Query('Task'))
    it = entities.all()

    # Consume the whole first page: no requests
    for _ in range(25):
        next(it)
    assert len(service.requests) == 1

    # One more item: the second page is fetched
    entity = next(it)
    assert entity.key == Key('Task', 2000)
    assert len(service.requests) == 2

    # Stop here: no more requests, nothing to clean up
    del it
    assert len(service.requests) == 2


def test_all_is_single_pass(service: ScriptedQueryService):
    """ Test: an all() iterator is single-pass. Calling all() again makes new requests """
    entities = Dataset(service).run(Query('Task'))
    it = entities.all()

    assert len(list(it)) == 50
    assert list(it) == []

    # Start over: the first page is kept, but the second one is requested again
    service.expect(
        Query('Task').start(Cursor(b'second-page-cursor')),
        task_batch(2000, 25, 'result-cursor-2', MoreResultsStatus.NO_MORE_RESULTS),
    )
    assert len(list(entities.all())) == 50
    assert len(service.requests) == 3
    service.verify()


def test_all_request_limit(service: ScriptedQueryService):
    """ Test: request_limit caps the number of additional requests """
    entities = Dataset(service).run(Query('Task'))

    # request_limit=0: only this page
    assert len(list(entities.all(request_limit=0))) == 25
    assert len(list(entities.all_with_cursor(request_limit=0))) == 25
    assert len(service.requests) == 1

    # request_limit=1: one more page
    assert len(list(entities.all(request_limit=1))) == 50
    assert len(service.requests) == 2


def test_request_limit_setting(service: ScriptedQueryService):
    """ Test: default request_limit comes from settings """
    entities = Dataset(service, settings=PagerSettings(request_limit=0)).run(Query('Task'))
    assert len(list(entities.all())) == 25
    assert len(list(entities.all(request_limit=5))) == 50


def test_transport_error():
    """ Test: service errors pass through; items yielded before the failure stay valid """
    class TransportError(Exception):
        pass

    service = ScriptedQueryService()
    service.expect(Query('Task'), task_batch(1000, 3, 'c', MoreResultsStatus.NOT_FINISHED, b'next'))
    service.expect(Query('Task').start(b'next'), TransportError('connection reset'))

    entities = Dataset(service).run(Query('Task'))

    received = []
    with pytest.raises(TransportError):
        for entity in entities.all():
            received.append(entity)

    assert [e.key.id for e in received] == [1000, 1001, 1002]
    service.verify()


@pytest.mark.parametrize(('more_results', 'query', 'expected_next_query'), [
    # NOT_FINISHED: the limit is reduced
    (MoreResultsStatus.NOT_FINISHED,
     Query('Task').with_limit(10).with_offset(5),
     Query('Task').with_limit(7).start(b'end')),
    # MORE_RESULTS_AFTER_LIMIT: next window
    (MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT,
     Query('Task').with_limit(3),
     Query('Task').with_limit(3).start(b'end')),
    # MORE_RESULTS_AFTER_CURSOR: the end cursor is dropped
    (MoreResultsStatus.MORE_RESULTS_AFTER_CURSOR,
     Query('Task').end(b'stop'),
     Query('Task').start(b'end')),
])
def test_continuation_statuses(more_results: MoreResultsStatus, query: Query, expected_next_query: Query):
    """ Test: every continuable status leads to a request from the end cursor """
    service = ScriptedQueryService()
    service.expect(query, task_batch(1, 3, 'c', more_results, b'end'))
    service.expect(expected_next_query, task_batch(4, 2, 'd', MoreResultsStatus.NO_MORE_RESULTS))

    page = Dataset(service).run(query)
    assert page.has_next()
    assert [e.key.id for e in page.all()] == [1, 2, 3, 4, 5]
    service.verify()


def test_stalled_continuation():
    """ Test: an empty page that doesn't move forward is an error, not an infinite loop """
    service = ScriptedQueryService()
    service.expect(Query('Task'), task_batch(1, 2, 'c', MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT, b'end'))
    service.expect(Query('Task').start(b'end'), task_batch(3, 0, 'c', MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT, b'end'))

    page = Dataset(service).run(Query('Task'))
    with pytest.raises(exc.StalledContinuationError):
        list(page.all())


def test_spent_window():
    """ Test: a window with no room left is not continued """
    service = ScriptedQueryService()

    # limit=0: the next window would be empty as well
    service.expect(Query('Task').with_limit(0), task_batch(1, 0, 'c', MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT, b'end'))
    page = Dataset(service).run(Query('Task').with_limit(0))
    assert page.can_continue()
    assert not page.has_next()
    assert list(page.all()) == []
    with pytest.raises(exc.IllegalContinuationError):
        page.next()

    # NOT_FINISHED, but the limit is used up
    service.expect(Query('Task').with_limit(2), task_batch(1, 2, 'c', MoreResultsStatus.NOT_FINISHED, b'end'))
    page = Dataset(service).run(Query('Task').with_limit(2))
    assert not page.has_next()
    assert [e.key.id for e in page.all()] == [1, 2]

    service.verify()


def test_namespace():
    """ Test: continuation requests go to the same namespace """
    service = ScriptedQueryService()
    service.expect(Query('Task'), task_batch(1, 1, 'c', MoreResultsStatus.NOT_FINISHED, b'end'), namespace='todo')
    service.expect(Query('Task').start(b'end'), task_batch(2, 1, 'c', MoreResultsStatus.NO_MORE_RESULTS), namespace='todo')

    # Dataset namespace
    dataset = Dataset(service, namespace='todo')
    page = dataset.run({'kind': 'Task'})
    assert page.namespace == 'todo'
    assert page.next().namespace == 'todo'
    service.verify()

    # Explicit namespace
    service.expect(Query('Task'), QueryBatch(), namespace='other')
    assert Dataset(service).run(Query('Task'), namespace='other').namespace == 'other'


def test_customize_query():
    """ Test: PagerSettings.customize_query() customizes continuation requests """
    class CustomSettings(PagerSettings):
        def customize_query(self, page, query):
            return query.with_limit(100)

    service = ScriptedQueryService()
    service.expect(Query('Task'), task_batch(1, 1, 'c', MoreResultsStatus.NOT_FINISHED, b'end'))
    service.expect(Query('Task').start(b'end').with_limit(100), QueryBatch())

    page = Dataset(service, settings=CustomSettings()).run(Query('Task'))
    assert list(page.all()) == [page[0]]
    service.verify()


def test_pages(service: ScriptedQueryService):
    """ Test: walk page by page """
    first = Dataset(service).run(Query('Task'))

    pages = list(first.driver.pages(first))  # type: ignore[union-attr]
    assert [len(p) for p in pages] == [25, 25]
    assert pages[0] is first
    assert [p.more_results for p in pages] == [MoreResultsStatus.NOT_FINISHED, MoreResultsStatus.NO_MORE_RESULTS]


def test_logging(service: ScriptedQueryService, caplog: pytest.LogCaptureFixture):
    """ Test: continuation requests are logged """
    with caplog.at_level(logging.DEBUG, logger='pagedquery'):
        list(Dataset(service).run(Query('Task')).all())

    assert "Fetching the next page of 'Task'" in caplog.text
