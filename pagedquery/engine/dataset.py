""" Dataset: run queries against a query service """

from __future__ import annotations

from typing import Optional, Union

from pagedquery.query_object import Query, QueryObjectDict

from .continuation import ContinuationDriver
from .results import ResultPage
from .service import QueryService
from .settings import PagerSettings


class Dataset:
    """ Dataset: a query service bound to a namespace

    Example:
        dataset = Dataset(service, namespace='todo')
        page = dataset.run(dataset.query('Task').where('done', '=', False))

        for task in page.all():
            ...
    """

    # The driver that makes requests
    driver: ContinuationDriver

    # The default namespace to run queries in
    namespace: Optional[str]

    def __init__(self, service: QueryService, namespace: Optional[str] = None, settings: Optional[PagerSettings] = None):
        self.driver = ContinuationDriver(service, settings)
        self.namespace = namespace

    @property
    def service(self) -> QueryService:
        return self.driver.service

    def query(self, kind: Optional[str] = None) -> Query:
        """ Start building a query for the given kind """
        return Query(kind=kind)

    def run(self, query: Union[Query, QueryObjectDict], namespace: Optional[str] = None) -> ResultPage:
        """ Run a query, get the first page of results

        Args:
            query: The Query, or its dict
            namespace: The namespace to run the query in. Default: the dataset's namespace

        Raises:
            exc.QueryObjectError: Query object syntax error (wrong operator name, argument type)
        """
        query = Query.ensure_query(query)
        return self.driver.run(query, namespace if namespace is not None else self.namespace)
