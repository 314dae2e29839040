from __future__ import annotations

from typing import Any, Union

from pagedquery import exc


class QueryPart:
    """ A part of a Query, parsed from one key of a query object dict

    Subclasses set `key` and implement from_query_object() and export(): export() gives
    a value that from_query_object() accepts back.
    """

    # The key of the query object dict this part comes from
    key: str

    def export(self) -> Any:
        raise NotImplementedError

    @classmethod
    def _ensure_input_type(cls, value: Any, expected: Union[type, tuple[type, ...]], description: str):
        """ Fail with a QueryObjectError unless the value has the expected type """
        if not isinstance(value, expected):
            raise exc.QueryObjectError(f'"{cls.key}" must be {description}')
