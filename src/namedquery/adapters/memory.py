"""
In-memory data port adapter.

Keeps records as plain dicts per model, guarded by a re-entrant lock. It
implements the whole DataPort contract, including writes and relation
traversal, and is what the test-suite runs against.

Example:
    store = MemoryStore([
        ModelSpec(
            name="user",
            unique=["email"],
            relations=[
                RelationSpec(name="employer", to_model="employer", kind=RelationKind.MANY_TO_ONE),
                RelationSpec(name="posts", to_model="post", kind=RelationKind.ONE_TO_MANY),
            ],
        ),
        ModelSpec(name="employer"),
        ModelSpec(name="post"),
    ])
    store.port_for("user").create({"email": "ada@example.com", "employer_id": 1})
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from namedquery.errors import (
    INVALID_ANCESTRY_MSG,
    ConstraintViolation,
    InvalidAncestry,
    NotFound,
    UndefinedModel,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]


# =============================================================================
# Schema
# =============================================================================


class RelationKind(StrEnum):
    """Types of relationships between models."""

    ONE_TO_MANY = "one_to_many"
    MANY_TO_ONE = "many_to_one"
    ONE_TO_ONE = "one_to_one"


class RelationSpec(BaseModel):
    """
    Relationship from one model to another.

    Examples:
        - Many-to-one: User belongs to Employer (FK ``employer_id`` on user)
          RelationSpec(name="employer", to_model="employer", kind="many_to_one")

        - One-to-many: Employer has many Users (FK ``employer_id`` on user)
          RelationSpec(name="users", to_model="user", kind="one_to_many")
    """

    name: str = Field(description="Relation name, used as a traversal hop")
    to_model: str = Field(description="Target model")
    kind: RelationKind = Field(description="Relationship type")
    foreign_key: str | None = Field(
        default=None, description="FK attribute; inferred when omitted"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_to_one(self) -> bool:
        """FK lives on the source model."""
        return self.kind in (RelationKind.MANY_TO_ONE, RelationKind.ONE_TO_ONE)

    def foreign_key_for(self, from_model: str) -> str:
        if self.foreign_key:
            return self.foreign_key
        if self.is_to_one:
            return f"{self.name}_id"
        return f"{from_model}_id"


class ModelSpec(BaseModel):
    """Model stored by the memory adapter."""

    name: str = Field(description="Model name (snake_case, singular)")
    primary_key: str = Field(default="id", description="Primary key attribute")
    fields: list[str] | None = Field(
        default=None, description="Known attributes; filters on others are rejected"
    )
    unique: list[str] = Field(default_factory=list, description="Unique attributes")
    relations: list[RelationSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"Model name '{v}' is not a valid identifier")
        return v

    def relation(self, name: str) -> RelationSpec | None:
        for relation in self.relations:
            if relation.name == name:
                return relation
        return None


# =============================================================================
# Store
# =============================================================================


class MemoryStore:
    """
    Process-local record store implementing PortProvider.

    Rows are returned as copies, so callers can never mutate stored state.
    """

    def __init__(self, models: Iterable[ModelSpec] = ()):
        self._lock = threading.RLock()
        self._models: dict[str, ModelSpec] = {}
        self._tables: dict[str, dict[Any, Record]] = {}
        self._sequences: dict[str, itertools.count[int]] = {}
        for model in models:
            self.add_model(model)

    def add_model(self, model: ModelSpec) -> None:
        with self._lock:
            self._models[model.name] = model
            self._tables.setdefault(model.name, {})
            self._sequences.setdefault(model.name, itertools.count(1))

    def model(self, name: str) -> ModelSpec:
        try:
            return self._models[name]
        except KeyError:
            raise UndefinedModel(f"Unknown model '{name}'", {"model": name}) from None

    def port_for(self, model: str) -> MemoryPort:
        return MemoryPort(self, self.model(model))

    def seed(self, model: str, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        """Create several records at once; returns the stored copies."""
        port = self.port_for(model)
        return [port.create(record) for record in records]

    def count(self, model: str) -> int:
        return len(self._table(model))

    def clear(self) -> None:
        with self._lock:
            for name in self._tables:
                self._tables[name] = {}
                self._sequences[name] = itertools.count(1)

    # -------------------------------------------------------------------------
    # Internals shared with MemoryPort
    # -------------------------------------------------------------------------

    def _table(self, model: str) -> dict[Any, Record]:
        self.model(model)
        return self._tables[model]

    def _ordered(self, model: str) -> list[Record]:
        """Rows ordered by primary key, newest first."""
        spec = self.model(model)
        rows = list(self._table(model).values())
        try:
            return sorted(rows, key=lambda row: row[spec.primary_key], reverse=True)
        except TypeError:
            # Mixed key types: fall back to reverse insertion order
            return rows[::-1]

    def _lookup(self, model: str, key: Any) -> Record:
        row = self._table(model).get(key)
        if row is None:
            raise NotFound(f"Couldn't find {model} with key={key!r}", {"model": model})
        return row

    def _follow(self, model: ModelSpec, relation: RelationSpec, row: Record) -> Any:
        target = self.model(relation.to_model)
        fk = relation.foreign_key_for(model.name)

        if relation.is_to_one:
            fk_value = row.get(fk)
            if fk_value is None:
                return None
            return self._table(target.name).get(fk_value)

        key = row.get(model.primary_key)
        return [r for r in self._ordered(target.name) if r.get(fk) == key]

    def _check_unique(self, model: ModelSpec, row: Record, exclude_key: Any = None) -> None:
        table = self._table(model.name)
        for field in model.unique:
            value = row.get(field)
            if value is None:
                continue
            for key, other in table.items():
                if key != exclude_key and other.get(field) == value:
                    raise ConstraintViolation(
                        f"A {model.name} with this {field} already exists",
                        field=field,
                        constraint_type="unique",
                    )

    def _check_references(self, model: ModelSpec, row: Record) -> None:
        for relation in model.relations:
            if not relation.is_to_one:
                continue
            fk = relation.foreign_key_for(model.name)
            value = row.get(fk)
            if value is not None and value not in self._table(relation.to_model):
                raise ConstraintViolation(
                    f"Referenced {relation.to_model} does not exist",
                    field=fk,
                    constraint_type="foreign_key",
                )

    def _check_not_referenced(self, model: ModelSpec, key: Any) -> None:
        for other in self._models.values():
            for relation in other.relations:
                if relation.to_model != model.name or not relation.is_to_one:
                    continue
                fk = relation.foreign_key_for(other.name)
                if any(row.get(fk) == key for row in self._tables[other.name].values()):
                    raise ConstraintViolation(
                        f"{model.name} is still referenced by {other.name}",
                        field=fk,
                        constraint_type="foreign_key",
                    )


class MemoryPort:
    """DataPort bound to one model of a MemoryStore."""

    def __init__(self, store: MemoryStore, model: ModelSpec):
        self.store = store
        self.model = model

    def __repr__(self) -> str:
        return f"MemoryPort({self.model.name!r})"

    def _check_filters(self, filters: Mapping[str, Any]) -> None:
        if self.model.fields is None:
            return
        known = {self.model.primary_key, *self.model.fields}
        unknown = sorted(set(filters) - known)
        if unknown:
            raise ValueError(f"Unknown attribute(s) for {self.model.name}: {', '.join(unknown)}")

    def _matching(self, filters: Mapping[str, Any]) -> list[Record]:
        self._check_filters(filters)
        return [
            row
            for row in self.store._ordered(self.model.name)
            if all(row.get(k) == v for k, v in filters.items())
        ]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_by_key(self, key: Any) -> Record:
        with self.store._lock:
            return dict(self.store._lookup(self.model.name, key))

    def find_first(self, filters: Mapping[str, Any]) -> Record:
        with self.store._lock:
            rows = self._matching(filters)
            if not rows:
                raise NotFound(
                    f"Couldn't find {self.model.name}", {"model": self.model.name, **filters}
                )
            return dict(rows[0])

    def find_all(self, filters: Mapping[str, Any]) -> list[Record]:
        with self.store._lock:
            return [dict(row) for row in self._matching(filters)]

    def traverse(
        self, subject_model: str, identity: Any, hops: Sequence[str]
    ) -> Record | list[Record] | None:
        """
        Walk ``hops`` from the subject record, one relation at a time.

        Raises:
            NotFound: If the subject record does not exist
            InvalidAncestry: If a hop is not a relation of the current model,
                or is applied to a collection
        """
        with self.store._lock:
            model = self.store.model(subject_model)
            current: Record | list[Record] | None = self.store._lookup(model.name, identity)

            for hop in hops:
                if current is None:
                    return None
                relation = model.relation(hop)
                if isinstance(current, list) or relation is None:
                    raise InvalidAncestry(
                        INVALID_ANCESTRY_MSG, {"model": model.name, "relation": hop}
                    )
                current = self.store._follow(model, relation, current)
                model = self.store.model(relation.to_model)

            if current is None:
                return None
            if isinstance(current, list):
                return [dict(row) for row in current]
            return dict(current)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, attrs: Mapping[str, Any]) -> Record:
        pk = self.model.primary_key
        with self.store._lock:
            table = self.store._table(self.model.name)
            row = dict(attrs)
            if row.get(pk) is None:
                sequence = self.store._sequences[self.model.name]
                key = next(sequence)
                while key in table:
                    key = next(sequence)
                row[pk] = key
            elif row[pk] in table:
                raise ConstraintViolation(
                    f"A {self.model.name} with this {pk} already exists",
                    field=pk,
                    constraint_type="unique",
                )

            self.store._check_unique(self.model, row)
            self.store._check_references(self.model, row)
            table[row[pk]] = row

        logger.debug("Created %s %r", self.model.name, row[pk])
        return dict(row)

    def update(self, key: Any, attrs: Mapping[str, Any]) -> Record:
        pk = self.model.primary_key
        with self.store._lock:
            current = self.store._lookup(self.model.name, key)
            if pk in attrs and attrs[pk] != key:
                raise ConstraintViolation(
                    f"The {pk} of a {self.model.name} cannot change",
                    field=pk,
                    constraint_type="primary_key",
                )
            row = {**current, **attrs}
            self.store._check_unique(self.model, row, exclude_key=key)
            self.store._check_references(self.model, row)
            self.store._table(self.model.name)[key] = row

        logger.debug("Updated %s %r", self.model.name, key)
        return dict(row)

    def delete(self, key: Any) -> bool:
        with self.store._lock:
            self.store._lookup(self.model.name, key)
            self.store._check_not_referenced(self.model, key)
            del self.store._table(self.model.name)[key]

        logger.debug("Deleted %s %r", self.model.name, key)
        return True
