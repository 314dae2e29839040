from __future__ import annotations

import dataclasses
from typing import Optional


@dataclasses.dataclass
class ServiceSettings:
    """ Settings for SqlQueryService

    This object defines how the service splits results into batches
    """
    # The max number of results in one batch.
    # When a batch is cut short because of it, the service reports NOT_FINISHED
    batch_size: int = 100

    # The `limit` you get by default, if not specified
    default_limit: Optional[int] = None

    # The max number of items you get, regardless of the limit
    max_limit: Optional[int] = None

    # The column that holds the namespace. Tables without it are not namespaced
    namespace_column: str = 'namespace'

    def __post_init__(self):
        assert self.batch_size > 0, 'batch_size must be positive'

    def get_final_limit(self, limit: Optional[int]) -> Optional[int]:
        """ Callback that fine-tunes the `limit` of a query by applying default and max limits

        Used by: SqlQueryService to decide how many rows to limit the result set to.
        """
        # Apply default limit
        if limit is None:
            limit = self.default_limit

        # Apply max limit
        if limit is not None and self.max_limit:
            limit = min(limit, self.max_limit)

        # Done
        return limit
