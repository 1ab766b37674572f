"""
Query intent types.

A QuerySpec is the canonical, immutable description of what an identifier
such as ``UsersByLastName`` or ``EmployerFromUser`` asks for. RuntimeArgs
carries the values supplied when the identifier is invoked.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from namedquery.strings import inflections


class QueryMode(StrEnum):
    """How the identifier reaches its records."""

    QUERY = "query"
    ASSOCIATION = "association"


class Plurality(StrEnum):
    """Whether a single record or a collection is expected."""

    SINGULAR = "singular"
    PLURAL = "plural"


class QuerySpec(BaseModel):
    """
    Parsed query intent.

    Examples:
        - UsersByLastName: mode=QUERY, plurality=PLURAL, subject_model="user", field="last_name"
        - UserById: mode=QUERY, plurality=SINGULAR, subject_model="user", field="id", by_key=True
        - EmployerFromUser: mode=ASSOCIATION, plurality=SINGULAR, subject_model="user",
          target_association="employer"
    """

    identifier: str = Field(description="Identifier the spec was parsed from")
    mode: QueryMode
    plurality: Plurality
    subject_model: str = Field(description="Model queried, or the model already held")
    field: str | None = Field(default=None, description="Filter field (query mode)")
    target_association: str | None = Field(
        default=None, description="Association reached from the subject (association mode)"
    )
    by_key: bool = Field(default=False, description="Lookup by primary key")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_mode_fields(self) -> QuerySpec:
        if self.mode == QueryMode.ASSOCIATION:
            if not self.target_association or self.field is not None or self.by_key:
                raise ValueError("association specs carry only target_association")
        elif self.target_association is not None:
            raise ValueError("query specs cannot carry target_association")
        if self.by_key and not self.field:
            raise ValueError("by_key specs need the primary key in field")
        return self

    @property
    def is_plural(self) -> bool:
        return self.plurality == Plurality.PLURAL

    @property
    def view_model(self) -> str:
        """Model name whose records this spec projects.

        For associations this is the singularized association name, not the
        related model: ports return bare records, so ``OwnerFromSportscar``
        projects into ``ViewOwner`` even when owners are users. Register a
        view for the identifier to share a type across association names.
        """
        if self.mode == QueryMode.ASSOCIATION:
            assert self.target_association is not None
            return inflections.singularize(self.target_association)
        return self.subject_model


@dataclass(frozen=True)
class RuntimeArgs:
    """Values supplied at call time.

    Query mode uses ``value`` when the spec names a field, ``filters``
    otherwise. Association mode uses ``subject`` and the optional ``via``
    chain of intermediate association names.
    """

    value: Any = None
    filters: Mapping[str, Any] | None = None
    subject: Any = None
    via: tuple[str, ...] = ()
