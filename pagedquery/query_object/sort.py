""" Query: the "sort" part """

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pagedquery import exc

from .base import QueryPart


@dataclass(frozen=True)
class SortQuery(QueryPart):
    """ Query part: the "sort" operation

    Example:
        ['priority-', 'created']
    """
    # The list of fields and directions to sort with
    # Note that the list is an ordered collection: order matters here
    fields: tuple[SortingField, ...]

    key = 'sort'

    @property
    def names(self) -> frozenset[str]:
        """ Get a set of field names involved in sorting """
        return frozenset(field.name for field in self.fields)

    def __contains__(self, name: str):
        return name in self.names

    @classmethod
    def from_query_object(cls, sort: list[str]):
        cls._ensure_input_type(sort, (list, tuple), 'an array')

        # Construct
        fields = tuple(cls._parse_input_field(field) for field in sort)
        return cls(fields=fields)

    def export(self) -> list[str]:
        return [
            field.export()
            for field in self.fields
        ]

    def add(self, name: str, direction: SortingDirection) -> SortQuery:
        """ Get a copy with one more sorting field """
        return SortQuery(fields=self.fields + (SortingField(name=name, direction=direction),))

    @staticmethod
    def _parse_input_field(field: str) -> SortingField:
        """ Parse a field string into a SortingField object """
        if not isinstance(field, str) or not field:
            raise exc.QueryObjectError(f'"sort" must be an array of field names')

        # Look at the ending character
        end_c = field[-1:]

        # If there's a sorting character, use it
        if end_c == '-' or end_c == '+':
            name = field[:-1]
            direction = SortingDirection(end_c)
        # Otherwise, use default sorting
        else:
            name = field
            direction = SortingDirection.ASC

        # Construct
        return SortingField(name=name, direction=direction)


@dataclass(frozen=True)
class SortingField:
    name: str
    direction: SortingDirection

    __slots__ = 'name', 'direction'

    def export(self) -> str:
        return f'{self.name}{self.direction.value}'


class SortingDirection(Enum):
    ASC = '+'
    DESC = '-'
