""" Cursors: opaque tokens that point to a position within a result set """

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Optional, Union

from pagedquery import exc


@dataclass(frozen=True)
class Cursor:
    """ An opaque cursor: a position within a result stream

    Cursors are produced by the query service: one per returned item, plus an end cursor per batch.
    Feed a cursor back as the query's start cursor to continue from that position.

    Two cursors are equal when their bytes are equal.
    """
    # The raw cursor bytes, as the service has returned them
    value: bytes

    __slots__ = 'value',

    def __post_init__(self):
        if not isinstance(self.value, bytes):
            raise TypeError(f'Cursor value must be bytes, "{type(self.value).__name__}" given')

    def __bytes__(self) -> bytes:
        return self.value

    def __repr__(self):
        return f'Cursor({self.urlsafe()!r})'

    def urlsafe(self) -> str:
        """ Encode the cursor as a string that you can give to the outside world """
        return base64.urlsafe_b64encode(self.value).decode()

    @classmethod
    def from_urlsafe(cls, cursor: str) -> Cursor:
        """ Decode a cursor string made by urlsafe()

        Raises:
            exc.QueryObjectError: the string is not a valid cursor
        """
        try:
            return cls(base64.urlsafe_b64decode(cursor.encode()))
        except (binascii.Error, ValueError) as e:
            raise exc.QueryObjectError('The provided cursor is invalid') from e

    @classmethod
    def ensure_cursor(cls, input: Optional[Union[Cursor, bytes, str]]) -> Optional[Cursor]:
        """ Construct a Cursor from any valid input

        * Cursor: as is
        * bytes: raw service value
        * str: urlsafe() value
        * None: no cursor
        """
        if input is None or isinstance(input, Cursor):
            return input
        elif isinstance(input, bytes):
            return cls(input)
        elif isinstance(input, str):
            return cls.from_urlsafe(input)
        else:
            raise exc.QueryObjectError(f'Cursor must be a string, "{type(input).__name__}" given')


def encode_opaque_cursor(prefix: str, data: dict) -> Cursor:
    """ Encode a dict of data as an opaque cursor. Give it a nice prefix so that one can see what's up """
    return Cursor((prefix + ':').encode() + base64.b85encode(json.dumps(data).encode()))


def decode_opaque_cursor(cursor: Cursor) -> tuple[str, dict]:
    """ Decode an opaque cursor into a (prefix, data dict) tuple

    Raises:
        Exception: all sorts of errors related to bad cursor
    """
    prefix, data_encoded = cursor.value.split(b':', 1)  # ValueError
    data = json.loads(base64.b85decode(data_encoded))  # ValueError, json.decoder.JSONDecodeError
    return prefix.decode(), data
