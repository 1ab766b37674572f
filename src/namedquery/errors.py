"""
Error types for identifier resolution, dispatch and projection.
"""

from __future__ import annotations

from typing import Any

INVALID_ANCESTRY_MSG = (
    "Invalid relation. Ensure that the plurality of your associations is correct."
)


class QueryError(Exception):
    """Base exception for all namedquery errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({details})"
        return self.message


class UnresolvableName(QueryError):
    """
    Raised when an identifier does not match the query grammar.

    Examples:
    - No ``By`` or ``From`` keyword token
    - Both keywords present, or a keyword repeated
    - Empty model, target or source phrase
    """

    pass


class NotFound(QueryError, LookupError):
    """Raised when the data port finds no matching or traversable record."""

    pass


class InvalidAncestry(QueryError):
    """
    Raised when a traversal does not match its declared shape.

    Examples:
    - A singular identifier whose association yields a collection
    - A hop name that is not a relation of the intermediate model
    """

    pass


class UndefinedAttribute(QueryError, AttributeError):
    """Raised when reading a name that was not present on a projected view."""

    pass


class ConstraintViolation(QueryError):
    """Raised when the store rejects a write (unique, foreign key)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        constraint_type: str = "integrity",
    ):
        self.field = field
        self.constraint_type = constraint_type  # "unique" | "foreign_key"
        super().__init__(message, {"field": field} if field else None)


class CannotProjectCollection(QueryError):
    """Raised when a single-record operation is attempted on a Collection."""

    def __init__(self, message: str = "Cannot extract a single mapping from a collection"):
        super().__init__(message)


class AdapterNotConfigured(QueryError):
    """Raised when a query runs before a data-port provider is configured."""

    def __init__(self, message: str = "No data port provider configured; call configure() first"):
        super().__init__(message)


class InvalidArguments(QueryError, ValueError):
    """Raised when runtime arguments do not fit the identifier's mode."""

    pass


class UndefinedModel(QueryError):
    """Raised by adapters asked for a model they do not know."""

    pass


class DataPortError(QueryError):
    """Wraps an unexpected failure raised inside a data port."""

    pass
