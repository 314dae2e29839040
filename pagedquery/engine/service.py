""" The query service: the collaborator that executes queries, one batch at a time """

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from pagedquery.cursor import Cursor
from pagedquery.entity import Entity
from pagedquery.more_results import MoreResultsStatus
from pagedquery.query_object import Query


@dataclass
class EntityResult:
    """ One result of a query: the entity and the cursor that points right after it """
    entity: Entity
    cursor: Optional[Cursor]


@dataclass
class QueryBatch:
    """ One bounded response of the query service """
    # Results, in the order the service has returned them
    entity_results: list[EntityResult] = field(default_factory=list)

    # Why the batch has ended
    more_results: MoreResultsStatus = MoreResultsStatus.NO_MORE_RESULTS

    # The position right after the last result. Absent when there are no more results
    end_cursor: Optional[Cursor] = None


class QueryService(Protocol):
    """ Anything that can execute a query and return a batch

    The service decides how many results go into a batch.
    Errors are the service's own business: pagination lets them through as is.
    """

    def run_query(self, query: Query, namespace: Optional[str] = None) -> QueryBatch:
        """ Execute a query, return one batch of results

        Args:
            query: The query to run. Its start cursor tells where to continue from.
            namespace: The namespace to run the query in
        """
        ...
