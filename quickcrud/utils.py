# File: quickcrud/utils.py
"""
QuickCRUD - Utility Functions & Helpers
========================================
String casing, English pluralisation, entity naming and small file helpers
used throughout the generation pipeline.

All string-conversion functions are pure and decorated with
``@lru_cache(maxsize=None)``; the same entity name is resolved many times
while rendering one CRUD set.
"""

from __future__ import annotations

import functools
import logging
import re
import time
from typing import Dict, List, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Irregular nouns.  Anything not listed here goes through the suffix rules,
# so e.g. "Cactus" or "Criterion" come out wrong; that is accepted.
_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "datum": "data",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
}
_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("OrderItem")
        'order_item'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("OrderItem")
        'orderItem'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (URL slugs, view folders)."""
    if not name:
        return ""
    return "-".join(w.lower() for w in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert identifier to human-readable title.

    Examples:
        >>> to_title_human("OrderItems")
        'Order Items'
    """
    if not name:
        return ""
    return " ".join(w.capitalize() for w in _extract_words(name))


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _split_last_word(name: str) -> Tuple[str, str]:
    """Split ``OrderItem`` into ``("Order", "Item")`` so only the tail is inflected."""
    match: Optional[re.Match[str]] = re.search(r"([A-Z]?[a-z]+|[A-Z]+|\d+)$", name)
    if match is None:
        return "", name
    return name[: match.start()], match.group(0)


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, sufficient for entity names.

    Only the last word of a compound name is inflected
    (``OrderCategory`` → ``OrderCategories``).
    """
    if not name:
        return ""

    head, word = _split_last_word(name)
    lower: str = word.lower()

    if lower in _IRREGULAR_PLURALS:
        return head + _match_case(word, _IRREGULAR_PLURALS[lower])

    # Already plural-looking (very naive)
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name

    if lower.endswith(("sh", "ch", "x", "z", "ss", "us", "is")):
        return name + "es"
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"
    if lower.endswith("o") and len(word) > 1 and lower[-2] not in "aeiou":
        return name + "es"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Naive English singularisation (reverse of :func:`to_plural`)."""
    if not name:
        return ""

    head, word = _split_last_word(name)
    lower: str = word.lower()

    if lower in _IRREGULAR_SINGULARS:
        return head + _match_case(word, _IRREGULAR_SINGULARS[lower])
    if lower in _IRREGULAR_PLURALS or lower.endswith(("ss", "us", "is")):
        return name

    if lower.endswith("ies") and len(word) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves"):
        return name[:-3] + "f"
    if lower.endswith(("oes", "ses", "xes", "zes", "ches", "shes")) and len(word) > 3:
        return name[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return name[:-1]

    return name


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Extract lowercase words from any casing style."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


# ---------------------------------------------------------------------------
# Entity naming
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def entity_table_name(base_name: str) -> str:
    """``OrderItem`` → ``order_items``."""
    return to_snake_case(to_plural(base_name))


@functools.lru_cache(maxsize=None)
def entity_route_slug(base_name: str) -> str:
    """``OrderItem`` → ``order-items`` (resource route name and URL prefix)."""
    return to_kebab_case(to_plural(base_name))


@functools.lru_cache(maxsize=None)
def entity_view_directory(base_name: str) -> str:
    """``OrderItem`` → ``order-items`` (folder under resources/views)."""
    plural: str = to_plural(base_name)
    return to_kebab_case(plural)


# ---------------------------------------------------------------------------
# PHP source helpers
# ---------------------------------------------------------------------------


def php_quote(value: str) -> str:
    """Single-quoted PHP string literal."""
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 4) -> List[str]:
    """Indent a list of lines, leaving blank lines empty."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("write model") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_camel_case",
    "to_kebab_case",
    "to_title_human",
    "to_plural",
    "to_singular",
    "entity_table_name",
    "entity_route_slug",
    "entity_view_directory",
    "php_quote",
    "indent_lines",
    "count_lines",
    "Timer",
]

logger.debug("quickcrud.utils loaded, %d public symbols.", len(__all__))
