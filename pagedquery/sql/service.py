""" SqlQueryService: a query service that runs queries against SqlAlchemy tables """

from __future__ import annotations

import logging
from collections import abc
from contextlib import contextmanager
from typing import Optional, Union

import sqlalchemy as sa

from pagedquery import exc
from pagedquery.cursor import Cursor, encode_opaque_cursor, decode_opaque_cursor
from pagedquery.engine.service import QueryBatch, EntityResult
from pagedquery.entity import Entity, Key
from pagedquery.more_results import MoreResultsStatus
from pagedquery.query_object import Query
from pagedquery.typing import EngineOrConnection, SARowDict

from .settings import ServiceSettings
from .statement import select_statement

logger = logging.getLogger(__name__)


class SqlQueryService:
    """ A query service that loads entities from SQL tables, one batch at a time

    Every kind is a table. Every row is an entity; its primary key becomes the entity key.

    Cursors are positions within the sorted result set: the cursor of a row points right after it.
    Batches are cut in three ways:
    * by `limit`: reported as MORE_RESULTS_AFTER_LIMIT
    * by the end cursor: reported as MORE_RESULTS_AFTER_CURSOR
    * by `batch_size`: reported as NOT_FINISHED

    Example:
        service = SqlQueryService(connection, [tasks_table], ServiceSettings(batch_size=25))
        dataset = Dataset(service)
    """

    # Where to run queries: a Connection, or an Engine to connect to for every request
    bind: EngineOrConnection

    # Tables, by kind
    tables: dict[str, sa.Table]

    # Settings
    settings: ServiceSettings

    def __init__(self,
                 bind: EngineOrConnection,
                 tables: Union[abc.Mapping[str, sa.Table], abc.Iterable[sa.Table]],
                 settings: Optional[ServiceSettings] = None):
        self.bind = bind
        self.settings = settings or ServiceSettings()

        if isinstance(tables, abc.Mapping):
            self.tables = dict(tables)
        else:
            self.tables = {table.name: table for table in tables}

    def run_query(self, query: Query, namespace: Optional[str] = None) -> QueryBatch:
        """ Run a query, return one batch """
        table = self._get_table(query.kind)
        namespace_column = table.columns.get(self.settings.namespace_column)

        # Where does the window start, where does it end
        start = self._cursor_position(query.start_cursor) + query.offset
        end = self._cursor_position(query.end_cursor) if query.end_cursor is not None else None
        limit = self.settings.get_final_limit(query.limit)

        # Decide on the batch size, and on the status we report if there are more rows after the batch.
        # If two boundaries coincide, the first one wins
        boundaries = []
        if limit is not None:
            boundaries.append((limit, MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT))
        if end is not None:
            boundaries.append((max(end - start, 0), MoreResultsStatus.MORE_RESULTS_AFTER_CURSOR))
        boundaries.append((self.settings.batch_size, MoreResultsStatus.NOT_FINISHED))
        size, status_if_more = min(boundaries, key=lambda boundary: boundary[0])

        # Query
        # We will always load one more row to check if there's more
        stmt = select_statement(query, table, namespace_column=namespace_column, namespace=namespace)
        stmt = stmt.offset(start).limit(size + 1)

        with self._connect() as connection:
            rows: list[SARowDict] = [dict(row) for row in connection.execute(stmt).mappings()]

        # Have more?
        has_more = len(rows) > size
        rows = rows[:size]

        # Results
        entity_results = [
            EntityResult(
                entity=self._make_entity(table, row, query.kind, namespace),  # type: ignore[arg-type]
                cursor=_position_cursor(start + i + 1),
            )
            for i, row in enumerate(rows)
        ]

        if has_more:
            batch = QueryBatch(entity_results, status_if_more, _position_cursor(start + size))
        else:
            batch = QueryBatch(entity_results, MoreResultsStatus.NO_MORE_RESULTS, None)

        logger.debug('Query %r (namespace=%r) from position %d: %d results, %s', query.kind, namespace, start, len(rows), batch.more_results.name)
        return batch

    def _get_table(self, kind: Optional[str]) -> sa.Table:
        if kind is None:
            raise exc.QueryServiceError('Kindless queries are not supported')

        try:
            table = self.tables[kind]
        except KeyError:
            raise exc.InvalidKindError(kind) from None

        if not table.primary_key.columns:
            raise exc.QueryServiceError(f'Table "{table.name}" has no primary key: cannot make entity keys')

        return table

    def _make_entity(self, table: sa.Table, row: SARowDict, kind: str, namespace: Optional[str]) -> Entity:
        pk = tuple(row[col.key] for col in table.primary_key.columns)
        return Entity(
            Key(kind, pk[0] if len(pk) == 1 else pk, namespace),  # type: ignore[arg-type]
            row,
        )

    def _cursor_position(self, cursor: Optional[Cursor]) -> int:
        """ Get the position a cursor points to """
        if cursor is None:
            return 0

        try:
            prefix, data = decode_opaque_cursor(cursor)
            assert prefix == CURSOR_PREFIX
            position = data['skip']
            assert isinstance(position, int) and position >= 0
        except Exception as e:
            raise exc.InvalidCursorError(f'The provided cursor is invalid: {cursor!r}') from e

        return position

    @contextmanager
    def _connect(self) -> abc.Iterator[sa.engine.Connection]:
        if isinstance(self.bind, sa.engine.Engine):
            with self.bind.connect() as connection:
                yield connection
        else:
            yield self.bind


# Prefix for cursors made by this service
CURSOR_PREFIX = 'skip'


def _position_cursor(position: int) -> Cursor:
    return encode_opaque_cursor(CURSOR_PREFIX, {'skip': position})
