# File: scaffoldgen/utils.py
"""
ScaffoldGen - Utility Functions & Helpers
===========================================
String transformation, PHP literal formatting, and file I/O utilities used
throughout the generation pipeline.

Notes:
- Naming functions are decorated with ``@lru_cache(maxsize=None)``; the same
  model and field names are converted many times per run.
- Naming follows the conventions of the generated Laravel application
  (snake_case tables, StudlyCase classes, camelCase dynamic properties).
- File writes go through a temp file and a rename.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.utils")

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

# Words whose plural and singular forms are identical
_UNCOUNTABLE: frozenset = frozenset({
    "equipment", "information", "rice", "money", "species", "series",
    "fish", "sheep", "news", "feedback", "metadata", "staff",
})


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
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into a tuple of lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("order_item")
        'orderItem'
    """
    words: Tuple[str, ...] = _extract_words(name) if name else ()
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (used in URLs)."""
    if not name:
        return ""
    return "-".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert an identifier to a human-readable title.

    Examples:
        >>> to_title_human("order_items")
        'Order Items'
        >>> to_title_human("orderItems")
        'Order Items'
    """
    if not name:
        return ""
    return " ".join(w.capitalize() for w in _extract_words(name))


def _match_case(source: str, replacement: str) -> str:
    if source and source[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation of the last word of *name*.

    ``to_plural("order_item")`` gives ``"order_items"`` and
    ``to_plural("Category")`` gives ``"Categories"``.
    """
    if not name:
        return ""

    head, sep, last = name.rpartition("_")
    lower: str = last.lower()

    if lower in _UNCOUNTABLE:
        return name
    if lower in _IRREGULAR_PLURALS:
        return head + sep + _match_case(last, _IRREGULAR_PLURALS[lower])
    if lower in _IRREGULAR_SINGULARS:
        return name

    # Already plural-looking (very naive)
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name

    if lower.endswith(("sh", "ch", "x", "z", "ss", "us")):
        return name + "es"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"
    if lower.endswith("o") and len(lower) > 1 and lower[-2] not in "aeiou":
        return name + "es"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Naive English singularisation of the last word of *name*."""
    if not name:
        return ""

    head, sep, last = name.rpartition("_")
    lower: str = last.lower()

    if lower in _UNCOUNTABLE or lower in _IRREGULAR_PLURALS:
        return name
    if lower in _IRREGULAR_SINGULARS:
        return head + sep + _match_case(last, _IRREGULAR_SINGULARS[lower])

    if lower.endswith("ies") and len(lower) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves"):
        return name[:-3] + "f"
    if lower.endswith("oes") and len(lower) > 3:
        return name[:-2]
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name[:-1]

    return name


@functools.lru_cache(maxsize=None)
def class_basename(reference: str) -> str:
    """
    Return the short class name of a (possibly namespaced) class reference.

    Examples:
        >>> class_basename("App\\\\Modules\\\\Blog\\\\Models\\\\Tag")
        'Tag'
        >>> class_basename("Tag")
        'Tag'
    """
    return reference.strip("\\").rsplit("\\", 1)[-1]


@functools.lru_cache(maxsize=None)
def derive_label(field_name: str) -> str:
    """
    Build a UI label from a field name.

    A trailing ``_id`` is dropped, underscores become spaces and every word
    is title-cased: ``customer_id`` → ``Customer``,
    ``first_name`` → ``First Name``.
    """
    base: str = field_name[:-3] if field_name.endswith("_id") else field_name
    return " ".join(word.capitalize() for word in base.replace("_", " ").split())


# ---------------------------------------------------------------------------
# PHP literal helpers
# ---------------------------------------------------------------------------


def php_escape(value: str) -> str:
    """
    Escape a string for use inside a single-quoted PHP literal.

    Only backslash and the single quote are special there; both are
    prefixed with a backslash.
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


def php_quote(value: Any) -> str:
    """Return *value* as a single-quoted, escaped PHP string literal."""
    return f"'{php_escape(str(value))}'"


def php_scalar(value: Any) -> str:
    """
    Render a Python scalar as a PHP literal.

    ``True``/``False`` → ``true``/``false``, ``None`` → ``null``, numbers
    stay bare and everything else is quoted.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return format_number(value)
    return php_quote(value)


def format_number(value: float) -> str:
    """Render a number without a spurious ``.0`` for whole floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def php_array(value: Any, indent_level: int = 1, size: int = 2) -> str:
    """
    Render nested mappings / sequences as a PHP short-array literal.

    Mappings keep their key order; sequences render without keys.  Empty
    containers collapse to ``[]``.  The returned string has no trailing
    comma and starts without indentation (the caller places it).
    """
    if isinstance(value, Mapping):
        if not value:
            return "[]"
        pad: str = " " * (indent_level * size)
        lines: List[str] = ["["]
        for key, item in value.items():
            rendered: str = php_array(item, indent_level + 1, size)
            lines.append(f"{pad}{php_quote(key)} => {rendered},")
        lines.append(" " * ((indent_level - 1) * size) + "]")
        return "\n".join(lines)

    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        pad = " " * (indent_level * size)
        lines = ["["]
        for item in value:
            lines.append(f"{pad}{php_array(item, indent_level + 1, size)},")
        lines.append(" " * ((indent_level - 1) * size) + "]")
        return "\n".join(lines)

    return php_scalar(value)


def php_list_inline(items: Sequence[Any]) -> str:
    """Render ``['a', 'b']`` on a single line."""
    return "[" + ", ".join(php_quote(item) for item in items) + "]"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames;
    this prevents partial writes on crash.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            shutil.move(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


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
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("generate models") as t:
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
    "class_basename",
    "derive_label",
    "php_escape",
    "php_quote",
    "php_scalar",
    "php_array",
    "php_list_inline",
    "format_number",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("scaffoldgen.utils loaded (%d public symbols).", len(__all__))
