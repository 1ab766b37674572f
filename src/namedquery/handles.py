"""
Caller-facing query handles.

    from namedquery import Get

    Get.UsersByLastName.run("Turner")              # Collection (possibly empty)
    Get.UserById.run_strict(42)                    # Entity, or raises NotFound
    Get.UserBy.run(last_name="Turner", age=40)     # first match or None
    Get.EmployerFromUser.run(user)                 # Entity or None
    Get.SportscarsFromUser.run(user, via=["employer", "owner"])

``run`` returns None when nothing is found; ``run_strict`` raises NotFound.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from namedquery.config import get_settings
from namedquery.dispatcher import Dispatcher
from namedquery.errors import InvalidArguments
from namedquery.parser import parse_identifier
from namedquery.specs import QueryMode, QuerySpec, RuntimeArgs
from namedquery.strings import camel_to_snake
from namedquery.views import Collection, Entity

Result = Entity | Collection | None


class QueryHandle:
    """A resolved identifier, ready to run."""

    __slots__ = ("spec", "key", "_dispatcher")

    def __init__(self, identifier: str, dispatcher: Dispatcher | None = None):
        self.spec: QuerySpec = parse_identifier(identifier)
        self.key = camel_to_snake(identifier)
        self._dispatcher = dispatcher or Dispatcher()

    def __repr__(self) -> str:
        return f"QueryHandle({self.spec.identifier!r})"

    def run(self, *args: Any, via: Iterable[str] | None = None, **filters: Any) -> Result:
        """Run the query; None when nothing is found."""
        strict = get_settings().strict_by_default
        return self._run(args, via, filters, strict=strict)

    def run_strict(self, *args: Any, via: Iterable[str] | None = None, **filters: Any) -> Result:
        """Run the query; raise NotFound when nothing is found."""
        return self._run(args, via, filters, strict=True)

    __call__ = run

    def _run(
        self,
        args: tuple[Any, ...],
        via: Iterable[str] | None,
        filters: dict[str, Any],
        *,
        strict: bool,
    ) -> Result:
        runtime_args = build_args(self.spec, args, via, filters)
        return self._dispatcher.dispatch(
            self.spec, runtime_args, strict=strict, caller_key=self.key
        )


def build_args(
    spec: QuerySpec,
    args: tuple[Any, ...],
    via: Iterable[str] | None = None,
    filters: Mapping[str, Any] | None = None,
) -> RuntimeArgs:
    """
    Shape positional/keyword call arguments into RuntimeArgs for a spec.

    Raises:
        InvalidArguments: If the arguments do not fit the spec's mode
    """
    filters = dict(filters or {})

    if spec.mode == QueryMode.ASSOCIATION:
        if len(args) != 1 or filters:
            raise InvalidArguments(f"{spec.identifier} takes exactly one subject")
        if isinstance(via, str):
            raise InvalidArguments("via must be a sequence of association names, not a string")
        return RuntimeArgs(subject=args[0], via=tuple(via or ()))

    if via is not None:
        raise InvalidArguments(f"{spec.identifier} is not an association; via is not allowed")

    if spec.field is not None:
        if len(args) != 1 or filters:
            raise InvalidArguments(f"{spec.identifier} takes exactly one {spec.field} value")
        return RuntimeArgs(value=args[0])

    if len(args) > 1 or (args and filters):
        raise InvalidArguments(f"{spec.identifier} takes one filter mapping or keyword filters")
    if args:
        if not isinstance(args[0], Mapping):
            raise InvalidArguments(f"{spec.identifier} needs a filter mapping")
        return RuntimeArgs(filters=dict(args[0]))
    return RuntimeArgs(filters=filters)


def get(identifier: str) -> QueryHandle:
    """Resolve an identifier into a handle."""
    return QueryHandle(identifier)


class _Namespace:
    """Attribute access to handles: ``Get.UsersByLastName``.

    Malformed names raise UnresolvableName rather than AttributeError.
    """

    def __getattr__(self, name: str) -> QueryHandle:
        if name.startswith("_"):
            raise AttributeError(name)
        return get(name)


Get = _Namespace()
