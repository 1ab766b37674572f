"""
Query dispatcher - runs a QuerySpec against a data port and projects the result.

One spec plus runtime arguments becomes exactly one port call:

    Query, singular, by key       port.get_by_key(value)
    Query, singular, by field     port.find_first({field: value})
    Query, singular, by filters   port.find_first(filters)
    Query, plural                 port.find_all({field: value} | filters)
    Association                   port.traverse(subject_model, identity, via + [target])
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from namedquery.config import get_provider, get_settings
from namedquery.errors import (
    INVALID_ANCESTRY_MSG,
    DataPortError,
    InvalidAncestry,
    InvalidArguments,
    NotFound,
    QueryError,
)
from namedquery.logging import log_with_context
from namedquery.ports import PortProvider, RawCollection, RawRecord, resolve_identity
from namedquery.specs import QueryMode, QuerySpec, RuntimeArgs
from namedquery.view_registry import ViewRegistry, get_view_registry
from namedquery.views import Collection, Entity

logger = logging.getLogger(__name__)


@contextmanager
def translate_port_errors(spec: QuerySpec, operation: str) -> Iterator[None]:
    """Map exceptions escaping a port call onto the namedquery taxonomy."""
    try:
        yield
    except QueryError:
        raise
    except LookupError as exc:
        raise NotFound(str(exc) or "Record not found", {"identifier": spec.identifier}) from exc
    except Exception as exc:
        raise DataPortError(
            f"Data port failed during {operation}: {exc}",
            {"identifier": spec.identifier, "error_type": type(exc).__name__},
        ) from exc


class Dispatcher:
    """
    Executes query specs.

    The provider, registry and primary key default to the process-wide
    configuration, resolved per call so ``configure``/``reset`` take effect
    immediately.
    """

    def __init__(
        self,
        provider: PortProvider | None = None,
        registry: ViewRegistry | None = None,
        primary_key: str | None = None,
    ):
        self._provider = provider
        self._registry = registry
        self._primary_key = primary_key

    @property
    def provider(self) -> PortProvider:
        return self._provider if self._provider is not None else get_provider()

    @property
    def registry(self) -> ViewRegistry:
        return self._registry if self._registry is not None else get_view_registry()

    @property
    def primary_key(self) -> str:
        return self._primary_key or get_settings().primary_key

    def dispatch(
        self,
        spec: QuerySpec,
        args: RuntimeArgs,
        strict: bool = False,
        caller_key: str | None = None,
    ) -> Entity | Collection | None:
        """
        Run a spec and project the result.

        Args:
            spec: Parsed query intent
            args: Runtime arguments matching the spec's mode
            strict: Raise NotFound instead of returning None
            caller_key: Identifier used to look up custom view registrations

        Returns:
            Entity or Collection, or None when nothing was found and not strict

        Raises:
            NotFound: Nothing found and ``strict`` is set
            InvalidAncestry: Traversal result shape does not match the spec
            InvalidArguments: Arguments do not fit the spec's mode
        """
        try:
            if spec.mode == QueryMode.ASSOCIATION:
                raw = self._traverse(spec, args)
            else:
                raw = self._query(spec, args)
        except NotFound:
            if strict:
                raise
            logger.debug("No result for %s, returning None", spec.identifier)
            return None

        return self.registry.project(raw, spec, caller_key or spec.identifier)

    # -------------------------------------------------------------------------
    # Query mode
    # -------------------------------------------------------------------------

    def _query(self, spec: QuerySpec, args: RuntimeArgs) -> RawRecord | RawCollection:
        port = self.provider.port_for(spec.subject_model)

        if spec.by_key and not spec.is_plural:
            if args.value is None:
                raise InvalidArguments(f"{spec.identifier} needs a key value")
            logger.debug("%s: get_by_key(%r)", spec.identifier, args.value)
            with translate_port_errors(spec, "get_by_key"):
                return port.get_by_key(args.value)

        filters = self._filters(spec, args)
        if spec.is_plural:
            logger.debug("%s: find_all(%r)", spec.identifier, filters)
            with translate_port_errors(spec, "find_all"):
                return port.find_all(filters)

        logger.debug("%s: find_first(%r)", spec.identifier, filters)
        with translate_port_errors(spec, "find_first"):
            return port.find_first(filters)

    @staticmethod
    def _filters(spec: QuerySpec, args: RuntimeArgs) -> dict[str, Any]:
        if spec.field is not None:
            if args.filters is not None:
                raise InvalidArguments(
                    f"{spec.identifier} takes a single {spec.field} value, not a filter mapping"
                )
            return {spec.field: args.value}

        if args.filters is None or not isinstance(args.filters, Mapping):
            raise InvalidArguments(f"{spec.identifier} needs a filter mapping")
        if not args.filters:
            raise InvalidArguments(f"{spec.identifier} needs at least one filter")
        return dict(args.filters)

    # -------------------------------------------------------------------------
    # Association mode
    # -------------------------------------------------------------------------

    def _traverse(self, spec: QuerySpec, args: RuntimeArgs) -> RawRecord | RawCollection:
        assert spec.target_association is not None

        identity = resolve_identity(args.subject, self.primary_key)
        hops = [*args.via, spec.target_association]
        port = self.provider.port_for(spec.subject_model)

        logger.debug(
            "%s: traverse(%s, %r, %r)", spec.identifier, spec.subject_model, identity, hops
        )
        with translate_port_errors(spec, "traverse"):
            result = port.traverse(spec.subject_model, identity, hops)

        if result is None:
            raise NotFound(
                f"No {spec.target_association} reachable from {spec.subject_model}",
                {"identifier": spec.identifier, "identity": identity},
            )

        is_collection = _is_collection(result)
        if is_collection != spec.is_plural:
            log_with_context(
                logger,
                logging.WARNING,
                f"{spec.identifier} traversal returned the wrong shape",
                expected="collection" if spec.is_plural else "single record",
                hops=hops,
            )
            raise InvalidAncestry(
                INVALID_ANCESTRY_MSG, {"identifier": spec.identifier, "hops": hops}
            )
        return result


def _is_collection(result: Any) -> bool:
    return isinstance(result, Sequence) and not isinstance(result, (str, bytes, Mapping))


_dispatcher = Dispatcher()


def dispatch(
    spec: QuerySpec,
    args: RuntimeArgs,
    strict: bool = False,
    caller_key: str | None = None,
) -> Entity | Collection | None:
    """Dispatch with the process-wide configuration."""
    return _dispatcher.dispatch(spec, args, strict=strict, caller_key=caller_key)
