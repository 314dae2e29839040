""" Entities: objects returned by queries """

from __future__ import annotations

from typing import Any, NamedTuple, Optional, Union


class Key(NamedTuple):
    """ Entity identity: kind + id, within a namespace """
    kind: str
    id: Union[int, str]
    namespace: Optional[str] = None


class Entity:
    """ An entity: a key and a dict of properties

    Entities compare by value: two entities with the same key and properties are equal.
    Therefore, a result set may contain several equal entities; use identity to tell them apart.

    Example:
        e = Entity(Key('Task', 1), {'name': 'thingamajig'})
        e['name']  #-> 'thingamajig'
    """
    key: Key
    properties: dict[str, Any]

    __slots__ = 'key', 'properties'

    def __init__(self, key: Key, properties: Optional[dict[str, Any]] = None):
        self.key = key
        self.properties = dict(properties or {})

    def __getitem__(self, name: str) -> Any:
        return self.properties[name]

    def __contains__(self, name: str) -> bool:
        return name in self.properties

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def __eq__(self, other):
        if not isinstance(other, Entity):
            return NotImplemented
        return self.key == other.key and self.properties == other.properties

    # Mutable: not hashable
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self):
        return f'{type(self).__name__}({self.key!r}, {self.properties!r})'
