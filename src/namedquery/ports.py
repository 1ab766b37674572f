"""
Data port contracts.

A DataPort is bound to one model and answers the handful of reads the
dispatcher needs. A PortProvider hands out ports by model name. Concrete
adapters (see ``namedquery.adapters``) implement both.

Adapters report missing records with ``NotFound``, bad traversal hops with
``InvalidAncestry`` and rejected writes with ``ConstraintViolation``. Other
exceptions are wrapped in ``DataPortError`` by the dispatcher.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from namedquery.errors import InvalidArguments
from namedquery.views import Collection, Entity

RawRecord = Mapping[str, Any]
RawCollection = Sequence[RawRecord]

# Scalars accepted directly as a subject's identity
_IDENTITY_SCALARS = (int, str, UUID)


class DataPort(Protocol):
    """Read (and write) access to one model's records."""

    def get_by_key(self, key: Any) -> RawRecord:
        """Return the record with this primary key or raise NotFound."""
        ...

    def find_first(self, filters: Mapping[str, Any]) -> RawRecord:
        """Return the first record matching all filters or raise NotFound."""
        ...

    def find_all(self, filters: Mapping[str, Any]) -> RawCollection:
        """Return every record matching all filters, possibly none."""
        ...

    def traverse(
        self, subject_model: str, identity: Any, hops: Sequence[str]
    ) -> RawRecord | RawCollection | None:
        """Follow ``hops`` from the subject; None when a link is missing."""
        ...

    def create(self, attrs: Mapping[str, Any]) -> RawRecord: ...

    def update(self, key: Any, attrs: Mapping[str, Any]) -> RawRecord: ...

    def delete(self, key: Any) -> bool: ...


class PortProvider(Protocol):
    """Hands out a DataPort per model name."""

    def port_for(self, model: str) -> DataPort: ...


@runtime_checkable
class Identifiable(Protocol):
    """Anything that can stand in as an association subject."""

    @property
    def identity(self) -> Any: ...


def resolve_identity(subject: Any, primary_key: str = "id") -> Any:
    """
    Extract the identity value from a subject reference.

    Accepts a scalar id, a projected Entity, a mapping holding the primary
    key, or an object implementing ``Identifiable``.

    Raises:
        InvalidArguments: If no identity can be found
    """
    if isinstance(subject, bool) or subject is None:
        raise InvalidArguments("Subject reference has no identity", {"subject": subject})
    if isinstance(subject, _IDENTITY_SCALARS):
        return subject
    if isinstance(subject, Collection):
        raise InvalidArguments("A collection cannot be an association subject")
    if isinstance(subject, Entity):
        if primary_key in subject:
            return subject[primary_key]
    elif isinstance(subject, Mapping):
        if primary_key in subject:
            return subject[primary_key]
    elif isinstance(subject, Identifiable):
        return subject.identity

    raise InvalidArguments(
        f"Subject reference exposes no '{primary_key}'", {"subject": type(subject).__name__}
    )
