from __future__ import annotations

import dataclasses
from typing import Optional, TYPE_CHECKING


if TYPE_CHECKING:
    from pagedquery.query_object import Query
    from .results import ResultPage


@dataclasses.dataclass
class PagerSettings:
    """ Settings for pagination

    This object defines additional behavior for walking through the pages of a query.
    Subclass it and override the callbacks to customize.
    """
    # The max number of additional requests that all() and all_with_cursor() may make.
    # `None`: unlimited
    request_limit: Optional[int] = None

    def __post_init__(self):
        assert self.request_limit is None or self.request_limit >= 0, 'request_limit cannot be negative'

    # ### Callbacks for ContinuationDriver

    def customize_query(self, page: ResultPage, query: Query) -> Query:
        """ Callback that customizes a continuation query

        Used by: ContinuationDriver, right before the next page is requested.
        `query` is already derived from the page: it starts at the page's end cursor.

        Default behavior: none
        """
        return query
