"""
Read-only views over raw records.

An Entity wraps one record's attribute mapping; a Collection wraps an ordered
run of Entities. Both expose reads only. Any name that was not an attribute
of the record raises UndefinedAttribute, which is what keeps callers from
walking relations off a returned view.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, ClassVar, overload

from namedquery.errors import CannotProjectCollection, UndefinedAttribute


class Entity:
    """
    Immutable view over a single record.

    Attributes are read by name (``user.last_name``) or key
    (``user["last_name"]``). Only keys present at construction resolve, and
    they win over class members of the same name; use ``as_dict(view)``
    when a record carries its own ``to_dict`` key.

    Example:
        >>> user = Entity({"id": 1, "last_name": "Turner"})
        >>> user.last_name
        'Turner'
        >>> user.employer
        Traceback (most recent call last):
        ...
        namedquery.errors.UndefinedAttribute: ...
    """

    __slots__ = ("_attributes",)

    # Set on generated subtypes
    model_name: ClassVar[str | None] = None

    def __init__(self, attributes: Mapping[str, Any]):
        object.__setattr__(self, "_attributes", MappingProxyType(dict(attributes)))

    def __getattribute__(self, name: str) -> Any:
        # Record keys shadow class members (model_name, to_dict, properties)
        if not name.startswith("_"):
            attributes = object.__getattribute__(self, "_attributes")
            if name in attributes:
                return attributes[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if name == "_attributes" or name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._attributes[name]
        except KeyError:
            raise UndefinedAttribute(
                f"'{type(self).__name__}' has no attribute '{name}'",
                {"attribute": name},
            ) from None

    def __getitem__(self, key: str) -> Any:
        try:
            return self._attributes[key]
        except KeyError:
            raise UndefinedAttribute(
                f"'{type(self).__name__}' has no attribute '{key}'",
                {"attribute": key},
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"'{type(self).__name__}' is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"'{type(self).__name__}' is read-only")

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self._attributes == other._attributes

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self._attributes.items(), key=lambda kv: kv[0]))))

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._attributes.items())
        return f"{type(self).__name__}({fields})"

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._attributes})

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the record's attribute mapping."""
        return as_dict(self)


class Collection(Sequence[Entity]):
    """
    Immutable, ordered sequence of Entities.

    Supports ``len()``, indexing and slicing, iteration, ``first`` and
    ``last``. Relation-chaining names (``where``, ``employer`` and so on)
    raise UndefinedAttribute.
    """

    __slots__ = ("_items",)

    entity_type: ClassVar[type[Entity]] = Entity
    model_name: ClassVar[str | None] = None

    def __init__(self, records: Sequence[Mapping[str, Any] | Entity] = ()):
        items = tuple(
            record if isinstance(record, self.entity_type) else self.entity_type(_mapping(record))
            for record in records
        )
        object.__setattr__(self, "_items", items)

    def __getattr__(self, name: str) -> Any:
        if name == "_items" or name.startswith("__"):
            raise AttributeError(name)
        raise UndefinedAttribute(
            f"'{type(self).__name__}' has no attribute '{name}'",
            {"attribute": name},
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"'{type(self).__name__}' is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"'{type(self).__name__}' is read-only")

    @overload
    def __getitem__(self, index: int) -> Entity: ...

    @overload
    def __getitem__(self, index: slice) -> Collection: ...

    def __getitem__(self, index: int | slice) -> Entity | Collection:
        if isinstance(index, slice):
            return type(self)(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return type(self) is type(other) and self._items == other._items

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items)!r})"

    @property
    def first(self) -> Entity | None:
        return self._items[0] if self._items else None

    @property
    def last(self) -> Entity | None:
        return self._items[-1] if self._items else None

    def to_dict(self) -> dict[str, Any]:
        raise CannotProjectCollection()

    def to_list(self) -> list[dict[str, Any]]:
        """Return each record's attribute mapping, in order."""
        return [as_dict(item) for item in self._items]


def as_dict(view: Entity | Collection) -> dict[str, Any]:
    """
    Copy an Entity's attribute mapping.

    Works even when the record has a ``to_dict`` key of its own.

    Raises:
        CannotProjectCollection: If given a Collection
    """
    if isinstance(view, Collection):
        raise CannotProjectCollection()
    return dict(view._attributes)


def _mapping(record: Mapping[str, Any] | Entity) -> Mapping[str, Any]:
    if isinstance(record, Entity):
        return as_dict(record)
    return record
