"""
Identifier parser - turns names like ``UsersByLastName`` into QuerySpecs.

Grammar:
    <Model>By<Field>     query a model by one field
    <Model>ById          query a model by primary key
    <Model>By            query a model by a filter mapping given at call time
    <Target>From<Source> follow an association from a model already held

The model phrase (``By``) or target phrase (``From``) decides plurality:
``UserByEmail`` returns one record, ``UsersByEmail`` a collection.
"""

from __future__ import annotations

import logging
import re
import threading

from namedquery.config import get_settings
from namedquery.errors import UnresolvableName
from namedquery.specs import Plurality, QueryMode, QuerySpec
from namedquery.strings import inflections, to_snake, tokenize

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")

BY = "By"
FROM = "From"
_KEY_WORDS = frozenset({"Id", "ID"})


# =============================================================================
# Spec Cache
# =============================================================================


class SpecCache:
    """
    Thread-safe memo of parsed identifiers.

    Entries are keyed by identifier and the primary key name they were
    parsed with, so a spec parsed under a previous primary key is never
    served after ``configure`` changes it.

    Reads are plain dict lookups. Inserts take the lock and keep the first
    stored spec, so racing parsers of one identifier all observe the same
    instance.
    """

    def __init__(self) -> None:
        self._specs: dict[tuple[str, str], QuerySpec] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str, primary_key: str) -> QuerySpec | None:
        return self._specs.get((identifier, primary_key))

    def put(self, spec: QuerySpec, primary_key: str) -> QuerySpec:
        """Store a spec unless one is already cached; return the cached one."""
        with self._lock:
            return self._specs.setdefault((spec.identifier, primary_key), spec)

    def clear(self) -> None:
        with self._lock:
            self._specs.clear()

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return any(key == identifier for key, _ in self._specs)


_spec_cache = SpecCache()


def get_spec_cache() -> SpecCache:
    """Get the process-wide spec cache."""
    return _spec_cache


# =============================================================================
# Parsing
# =============================================================================


def parse_identifier(identifier: str) -> QuerySpec:
    """
    Parse an identifier into a QuerySpec, using the spec cache.

    Args:
        identifier: CamelCase identifier, e.g. ``UsersByLastName``

    Returns:
        The cached QuerySpec for the identifier

    Raises:
        UnresolvableName: If the identifier does not match the grammar

    Example:
        >>> parse_identifier("EmployerFromUser").target_association
        'employer'
    """
    primary_key = get_settings().primary_key
    cached = _spec_cache.get(identifier, primary_key)
    if cached is not None:
        return cached

    spec = _parse(identifier, primary_key)
    logger.debug("Resolved %s -> %s", identifier, spec.model_dump(exclude={"identifier"}))
    return _spec_cache.put(spec, primary_key)


def _parse(identifier: str, primary_key: str) -> QuerySpec:
    if not isinstance(identifier, str) or not _IDENTIFIER_RE.match(identifier):
        raise UnresolvableName("Identifier must be a CamelCase name", {"identifier": identifier})

    tokens = tokenize(identifier)
    positions = [i for i, token in enumerate(tokens) if token in (BY, FROM)]
    if not positions:
        raise UnresolvableName(
            f"Identifier has no '{BY}' or '{FROM}' keyword", {"identifier": identifier}
        )
    if len(positions) > 1:
        raise UnresolvableName(
            f"Identifier must contain exactly one '{BY}' or '{FROM}' keyword",
            {"identifier": identifier},
        )

    split = positions[0]
    left, right = tokens[:split], tokens[split + 1 :]

    if tokens[split] == BY:
        return _parse_query(identifier, left, right, primary_key)
    return _parse_association(identifier, left, right)


def _parse_query(
    identifier: str, model_tokens: list[str], field_tokens: list[str], primary_key: str
) -> QuerySpec:
    if not model_tokens:
        raise UnresolvableName("Identifier has an empty model phrase", {"identifier": identifier})

    model_phrase = to_snake(model_tokens)
    by_key = len(field_tokens) == 1 and field_tokens[0] in _KEY_WORDS

    if by_key:
        field: str | None = primary_key
    elif field_tokens:
        field = to_snake(field_tokens)
    else:
        field = None

    return QuerySpec(
        identifier=identifier,
        mode=QueryMode.QUERY,
        plurality=_plurality(model_phrase),
        subject_model=inflections.singularize(model_phrase),
        field=field,
        by_key=by_key,
    )


def _parse_association(
    identifier: str, target_tokens: list[str], source_tokens: list[str]
) -> QuerySpec:
    if not target_tokens:
        raise UnresolvableName("Identifier has an empty target phrase", {"identifier": identifier})
    if not source_tokens:
        raise UnresolvableName("Identifier has an empty source phrase", {"identifier": identifier})

    target_phrase = to_snake(target_tokens)

    return QuerySpec(
        identifier=identifier,
        mode=QueryMode.ASSOCIATION,
        plurality=_plurality(target_phrase),
        subject_model=inflections.singularize(to_snake(source_tokens)),
        target_association=target_phrase,
    )


def _plurality(phrase: str) -> Plurality:
    return Plurality.PLURAL if inflections.is_plural(phrase) else Plurality.SINGULAR
