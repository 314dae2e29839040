class BasePagedQueryException(Exception):
    pass


class QueryObjectError(BasePagedQueryException):
    """ Invalid input provided by the User

    Reported when there's something wrong with the Query Object
    """

    def __init__(self, err: str):
        super().__init__(f'Query object error: {err}')


class NotFoundError(BasePagedQueryException, LookupError):
    """ An item was not found in a page

    Reported by cursor_for() when the item is not one of the page's own objects.
    Lookup is by identity: an equal copy of an item does not belong to the page.
    """


class IllegalContinuationError(BasePagedQueryException):
    """ Attempted to fetch the next page when there's none

    Reported when next() is called on a page that has no more results, or that has no end cursor
    """


class StalledContinuationError(IllegalContinuationError):
    """ A continuation request made no progress

    Reported when the service returns an empty page that ends exactly where it started:
    continuing from it would request the very same page forever.
    """


class QueryServiceError(BasePagedQueryException):
    """ The query service failed to execute a query

    Pagination never catches these: they propagate to whoever is consuming the results.
    """


class InvalidKindError(QueryServiceError):
    """ Query mentioned a kind that the service does not know """

    def __init__(self, kind: str):
        self.kind = kind

        super().__init__(f'Unknown kind "{kind}"')


class InvalidColumnError(QueryServiceError):
    """ Query mentioned an invalid column name

    Reported when a column mentioned by name is not found on the table
    """

    def __init__(self, kind: str, column_name: str, where: str):
        self.kind = kind
        self.column_name = column_name
        self.where = where

        super().__init__(f'Invalid column "{column_name}" for "{kind}" specified in {where}')


class InvalidCursorError(QueryServiceError):
    """ Query came with a cursor that the service cannot understand """
