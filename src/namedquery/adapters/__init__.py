"""Data port adapters."""

from namedquery.adapters.memory import (
    MemoryPort,
    MemoryStore,
    ModelSpec,
    RelationKind,
    RelationSpec,
)

__all__ = [
    "MemoryPort",
    "MemoryStore",
    "ModelSpec",
    "RelationKind",
    "RelationSpec",
]
