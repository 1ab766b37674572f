"""
String utility functions for identifier parsing.

Provides camel-case tokenization, snake-casing and English inflection.
The inflector keeps its irregular and uncountable tables open for extension
so projects can register their own domain nouns.
"""

from __future__ import annotations

import re
import threading

# An acronym run ends where the next capitalized word begins (HTTPRequests -> HTTP, Requests)
_TOKEN_RE = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]|\d|$)|[A-Z][a-z0-9]*|[a-z0-9]+")


def tokenize(identifier: str) -> list[str]:
    """
    Split a CamelCase identifier into word tokens.

    Examples:
        >>> tokenize("UsersByLastName")
        ['Users', 'By', 'Last', 'Name']
        >>> tokenize("HTTPRequestsByID")
        ['HTTP', 'Requests', 'By', 'ID']
    """
    return _TOKEN_RE.findall(identifier)


def to_snake(tokens: list[str]) -> str:
    """Join word tokens into a lower, underscore-separated phrase."""
    return "_".join(token.lower() for token in tokens)


def camel_to_snake(name: str) -> str:
    """
    Convert CamelCase to snake_case.

    Already snake-cased input is returned lowercased and otherwise unchanged.

    Examples:
        >>> camel_to_snake("UsersByLastName")
        'users_by_last_name'
        >>> camel_to_snake("users_by_last_name")
        'users_by_last_name'
    """
    if "_" in name or name.islower():
        return name.lower()
    return to_snake(tokenize(name))


def snake_to_camel(name: str) -> str:
    """Convert snake_case to CamelCase."""
    return "".join(part.title() for part in name.split("_"))


# =============================================================================
# Inflection
# =============================================================================

# Rules are checked in order, first match wins
_PLURAL_RULES: list[tuple[str, str]] = [
    (r"(quiz)$", r"\1zes"),
    (r"^(oxen)$", r"\1"),
    (r"^(ox)$", r"\1en"),
    (r"^(m|l)ice$", r"\1ice"),
    (r"^(m|l)ouse$", r"\1ice"),
    (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
    (r"(x|ch|ss|sh)$", r"\1es"),
    (r"([^aeiouy]|qu)y$", r"\1ies"),
    (r"(hive)$", r"\1s"),
    (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
    (r"sis$", "ses"),
    (r"([ti])a$", r"\1a"),
    (r"([ti])um$", r"\1a"),
    (r"(buffal|tomat)o$", r"\1oes"),
    (r"(bu)s$", r"\1ses"),
    (r"(alias|status)$", r"\1es"),
    (r"(octop|vir)i$", r"\1i"),
    (r"(octop|vir)us$", r"\1i"),
    (r"^(ax|test)is$", r"\1es"),
    (r"s$", "s"),
    (r"$", "s"),
]

_SINGULAR_RULES: list[tuple[str, str]] = [
    (r"(database)s$", r"\1"),
    (r"(quiz)zes$", r"\1"),
    (r"(matr)ices$", r"\1ix"),
    (r"(vert|ind)ices$", r"\1ex"),
    (r"^(ox)en", r"\1"),
    (r"(alias|status)(es)?$", r"\1"),
    (r"(octop|vir)(us|i)$", r"\1us"),
    (r"^(a)x[ie]s$", r"\1xis"),
    (r"(cris|test)(is|es)$", r"\1is"),
    (r"(shoe)s$", r"\1"),
    (r"(o)es$", r"\1"),
    (r"(bus)(es)?$", r"\1"),
    (r"^(m|l)ice$", r"\1ouse"),
    (r"(x|ch|ss|sh)es$", r"\1"),
    (r"(m)ovies$", r"\1ovie"),
    (r"(s)eries$", r"\1eries"),
    (r"([^aeiouy]|qu)ies$", r"\1y"),
    (r"([lr])ves$", r"\1f"),
    (r"(tive)s$", r"\1"),
    (r"(hive)s$", r"\1"),
    (r"([^f])ves$", r"\1fe"),
    (r"(analy|ba|diagno|parenthe|progno|synop|the)(sis|ses)$", r"\1sis"),
    (r"([ti])a$", r"\1um"),
    (r"(n)ews$", r"\1ews"),
    (r"(ss)$", r"\1"),
    (r"s$", ""),
]

_IRREGULAR_PLURALS = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "foot": "feet",
    "tooth": "teeth",
    "goose": "geese",
    "sex": "sexes",
    "move": "moves",
    "zombie": "zombies",
}

_UNCOUNTABLE = {
    "equipment",
    "information",
    "rice",
    "money",
    "species",
    "series",
    "fish",
    "sheep",
    "jeans",
    "police",
}


class Inflector:
    """
    English singular/plural inflection over snake_case phrases.

    Only the last underscore-separated word of a phrase is inflected, so
    ``blog_posts`` singularizes to ``blog_post``.

    Irregular nouns and uncountable (invariant) nouns are pluggable:

        >>> inflections.irregular("cactus", "cacti")
        >>> inflections.uncountable("aircraft")
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._plurals = [(re.compile(p, re.IGNORECASE), r) for p, r in _PLURAL_RULES]
        self._singulars = [(re.compile(p, re.IGNORECASE), r) for p, r in _SINGULAR_RULES]
        self._irregular: dict[str, str] = dict(_IRREGULAR_PLURALS)
        self._irregular_inverse: dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}
        self._uncountable: set[str] = set(_UNCOUNTABLE)

    def irregular(self, singular: str, plural: str) -> None:
        """Register an irregular singular/plural pair."""
        with self._lock:
            self._irregular[singular.lower()] = plural.lower()
            self._irregular_inverse[plural.lower()] = singular.lower()

    def uncountable(self, *words: str) -> None:
        """Register words whose singular and plural forms are identical."""
        with self._lock:
            self._uncountable.update(w.lower() for w in words)

    def pluralize(self, phrase: str) -> str:
        """
        Return the plural form of a phrase; already-plural input is unchanged.

        Examples:
            >>> inflections.pluralize("user")
            'users'
            >>> inflections.pluralize("users")
            'users'
            >>> inflections.pluralize("company")
            'companies'
        """
        head, word = _last_word(phrase)
        if not word or word in self._uncountable:
            return phrase
        if word in self._irregular:
            return head + self._irregular[word]
        if word in self._irregular_inverse:
            return phrase
        return head + _apply(self._plurals, word)

    def singularize(self, phrase: str) -> str:
        """
        Return the singular form of a phrase; already-singular input is unchanged.

        Examples:
            >>> inflections.singularize("sportscars")
            'sportscar'
            >>> inflections.singularize("people")
            'person'
        """
        head, word = _last_word(phrase)
        if not word or word in self._uncountable:
            return phrase
        if word in self._irregular_inverse:
            return head + self._irregular_inverse[word]
        if word in self._irregular:
            return phrase
        return head + _apply(self._singulars, word)

    def is_plural(self, phrase: str) -> bool:
        """True when the phrase is its own plural and differs from its singular."""
        phrase = phrase.lower()
        return self.pluralize(phrase) == phrase and self.singularize(phrase) != phrase


def _last_word(phrase: str) -> tuple[str, str]:
    head, _, word = phrase.rpartition("_")
    return (f"{head}_" if head else ""), word.lower()


def _apply(rules: list[tuple[re.Pattern[str], str]], word: str) -> str:
    for pattern, replacement in rules:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)
    return word


# Process-wide inflector used by the parser
inflections = Inflector()
