""" More-results status: why a batch has ended, and whether there's more """

from __future__ import annotations

from enum import Enum
from typing import Union


class MoreResultsStatus(Enum):
    """ The state of a query after a batch was returned

    The service reports exactly one of these with every batch.
    """
    # The batch was cut by the service itself. More results are expected after the end cursor
    NOT_FINISHED = 'NOT_FINISHED'

    # The caller's limit was reached, but there are more results after it
    MORE_RESULTS_AFTER_LIMIT = 'MORE_RESULTS_AFTER_LIMIT'

    # The caller's end cursor was reached, but there are more results after it
    MORE_RESULTS_AFTER_CURSOR = 'MORE_RESULTS_AFTER_CURSOR'

    # No more results: the query is exhausted
    NO_MORE_RESULTS = 'NO_MORE_RESULTS'

    @classmethod
    def ensure_status(cls, value: Union[MoreResultsStatus, str]) -> MoreResultsStatus:
        """ Get a status from its name. Services may report statuses as plain strings """
        if isinstance(value, cls):
            return value
        return cls(value)


def is_not_finished(status: MoreResultsStatus) -> bool:
    return status is MoreResultsStatus.NOT_FINISHED


def is_more_after_limit(status: MoreResultsStatus) -> bool:
    return status is MoreResultsStatus.MORE_RESULTS_AFTER_LIMIT


def is_more_after_cursor(status: MoreResultsStatus) -> bool:
    return status is MoreResultsStatus.MORE_RESULTS_AFTER_CURSOR


def is_exhausted(status: MoreResultsStatus) -> bool:
    return status is MoreResultsStatus.NO_MORE_RESULTS


def is_continuable(status: MoreResultsStatus) -> bool:
    """ Can a further request with the same query yield more items? """
    return not is_exhausted(status)
