"""
View registry - generates and caches view types, and projects raw results.

Each model gets two generated types, ``View<Model>`` (an Entity) and
``View<Model>Collection`` (a Collection whose elements are ``View<Model>``).
They are built on first use and cached under a shape key until ``reset()``.

Callers can register their own Entity or Collection subclass for a specific
identifier; registrations win over the generated default.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any

from namedquery.errors import InvalidAncestry
from namedquery.specs import QuerySpec
from namedquery.strings import camel_to_snake, snake_to_camel
from namedquery.views import Collection, Entity

logger = logging.getLogger(__name__)

# Keeps generated names clear of ORM model class names
VIEW_PREFIX = "View"

ViewType = type[Entity] | type[Collection]


def shape_key(model: str, plural: bool) -> str:
    """Cache key for a model's generated entity or collection type."""
    return f"{model}:{'collection' if plural else 'entity'}"


# =============================================================================
# Type Generation
# =============================================================================


def generate_entity_type(model: str) -> type[Entity]:
    """
    Build the default Entity subtype for a model.

    Example:
        >>> generate_entity_type("sports_car").__name__
        'ViewSportsCar'
    """
    name = f"{VIEW_PREFIX}{snake_to_camel(model)}"
    return type(
        name,
        (Entity,),
        {
            "__slots__": (),
            "__module__": __name__,
            "__doc__": f"Generated read-only view for {model}",
            "model_name": model,
        },
    )


def generate_collection_type(model: str, entity_type: type[Entity]) -> type[Collection]:
    """Build the default Collection subtype for a model."""
    name = f"{VIEW_PREFIX}{snake_to_camel(model)}Collection"
    return type(
        name,
        (Collection,),
        {
            "__slots__": (),
            "__module__": __name__,
            "__doc__": f"Generated read-only collection of {model}",
            "entity_type": entity_type,
            "model_name": model,
        },
    )


# =============================================================================
# Registry
# =============================================================================


class ViewRegistry:
    """
    Process-wide view type cache plus custom registrations.

    Lookups read plain dicts without locking. A miss takes the lock,
    re-checks, and generates; threads racing on the same key all get the
    instance stored by the winner.
    """

    def __init__(self) -> None:
        self._types: dict[str, ViewType] = {}
        self._registrations: dict[str, ViewType] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Registrations
    # -------------------------------------------------------------------------

    def register(self, key: str, view_type: ViewType) -> None:
        """
        Register a custom view type for an identifier.

        Args:
            key: Identifier, CamelCase (``UsersByLastName``) or normalized
                (``users_by_last_name``)
            view_type: Subclass of Entity or Collection
        """
        if not isinstance(view_type, type) or not issubclass(view_type, (Entity, Collection)):
            raise TypeError(f"View type for '{key}' must subclass Entity or Collection")
        normalized = camel_to_snake(key)
        with self._lock:
            self._registrations[normalized] = view_type
        logger.debug("Registered %s for %s", view_type.__name__, normalized)

    def registered(self, key: str) -> ViewType | None:
        return self._registrations.get(camel_to_snake(key))

    # -------------------------------------------------------------------------
    # Generated types
    # -------------------------------------------------------------------------

    def view_type(self, model: str, plural: bool) -> ViewType:
        """Get the generated view type for a model, generating it once."""
        key = shape_key(model, plural)
        cached = self._types.get(key)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._types.get(key)
            if cached is not None:
                return cached

            entity_key = shape_key(model, False)
            entity_type = self._types.get(entity_key)
            if entity_type is None:
                entity_type = generate_entity_type(model)
                self._types[entity_key] = entity_type
            if not plural:
                created: ViewType = entity_type
            else:
                assert issubclass(entity_type, Entity)
                created = generate_collection_type(model, entity_type)
                self._types[key] = created

        logger.debug("Generated view type %s", created.__name__)
        return created

    def resolve(self, spec: QuerySpec, caller_key: str | None = None) -> ViewType:
        """Pick the view type for a spec: registration first, then generated."""
        custom = self.registered(caller_key or spec.identifier)
        if custom is not None:
            return custom
        return self.view_type(spec.view_model, spec.is_plural)

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def project(
        self,
        raw: Mapping[str, Any] | Sequence[Mapping[str, Any]],
        spec: QuerySpec,
        caller_key: str | None = None,
    ) -> Entity | Collection:
        """
        Wrap a raw record or record sequence in its view type.

        Args:
            raw: Single record mapping or sequence of record mappings
            spec: Spec the result was fetched for
            caller_key: Identifier used to look up registrations

        Returns:
            Populated Entity or Collection
        """
        view_type = self.resolve(spec, caller_key)
        is_single = isinstance(raw, Mapping)

        if is_single and issubclass(view_type, Entity):
            return view_type(raw)
        if not is_single and issubclass(view_type, Collection):
            return view_type(raw)

        raise InvalidAncestry(
            f"View type {view_type.__name__} cannot hold a "
            f"{'single record' if is_single else 'record collection'}",
            {"identifier": spec.identifier},
        )

    def reset(self) -> None:
        """Drop all registrations and generated types."""
        with self._lock:
            self._registrations.clear()
            self._types.clear()

    def __len__(self) -> int:
        return len(self._types)


# =============================================================================
# Global Registry
# =============================================================================


_view_registry = ViewRegistry()


def get_view_registry() -> ViewRegistry:
    """Get the global view registry."""
    return _view_registry


def register_view(key: str, view_type: ViewType) -> None:
    """Register a custom view type on the global registry."""
    _view_registry.register(key, view_type)
