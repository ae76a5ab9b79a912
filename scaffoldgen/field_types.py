# File: scaffoldgen/field_types.py
"""
ScaffoldGen - Field Type Resolver
===================================
Maps a declared logical field type onto:

* the storage column type used by the migration builder,
* the UI input type used in field-definition metadata,
* the model attribute cast (``$casts``).

All three are pure functions over static tables.  Lookups are
case-insensitive; an unknown storage or UI type is echoed back in its
original spelling so that any Blueprint column method can be used directly
in a schema.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from scaffoldgen.models import FieldModifiers

logger: logging.Logger = logging.getLogger("scaffoldgen.field_types")

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

STORAGE_TYPE_MAP: Dict[str, str] = {
    "string": "string",
    "varchar": "string",
    "char": "string",
    "email": "string",
    "password": "string",
    "select": "string",
    "file": "string",
    "checkbox": "string",
    "radio": "string",
    "text": "text",
    "textarea": "text",
    "encrypted_string": "text",
    "integer": "integer",
    "int": "integer",
    "decimal": "decimal",
    "float": "decimal",
    "double": "decimal",
    "boolean": "boolean",
    "bool": "boolean",
    "boolcheckbox": "boolean",
    "boolradio": "boolean",
    "date": "date",
    "datepicker": "date",
    "datetime": "datetime",
    "timestamp": "datetime",
    "datetimepicker": "datetime",
    "time": "time",
    "timepicker": "time",
}

UI_TYPE_MAP: Dict[str, str] = {
    "decimal": "number",
    "float": "number",
    "int": "number",
    "integer": "number",
    "timepicker": "timepicker",
    "datepicker": "datepicker",
    "datetimepicker": "datetimepicker",
}

_CAST_MAP: Dict[str, str] = {
    "boolean": "boolean",
    "bool": "boolean",
    "checkbox": "boolean",
    "integer": "integer",
    "int": "integer",
    "array": "array",
    "json": "json",
    "date": "date",
    "datepicker": "date",
    "datetime": "datetime",
    "timestamp": "datetime",
}

_DECIMAL_TYPES: frozenset = frozenset({"decimal", "float", "double"})

DEFAULT_DECIMAL_PRECISION: str = "8,2"

# Storage types that accept a length argument.
LENGTH_TYPES: frozenset = frozenset({"string", "varchar", "char"})


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


def resolve_storage_type(logical_type: str) -> str:
    """
    Return the column type for *logical_type*.

    >>> resolve_storage_type("Email")
    'string'
    >>> resolve_storage_type("uuid")
    'uuid'
    """
    return STORAGE_TYPE_MAP.get(logical_type.lower(), logical_type)


def resolve_ui_type(logical_type: str) -> str:
    """Return the UI input type; unknown types pass through unchanged."""
    return UI_TYPE_MAP.get(logical_type.lower(), logical_type)


def resolve_cast_type(
    logical_type: str, modifiers: Optional[FieldModifiers] = None
) -> Optional[str]:
    """
    Return the ``$casts`` entry for a field, or ``None`` when no cast applies.

    Decimal types cast to ``decimal:{scale}``; the scale comes from the
    ``precision`` modifier (second part, else the first part) and falls back
    to ``8,2``.
    """
    lowered: str = logical_type.lower()
    if lowered in _DECIMAL_TYPES:
        parts = modifiers.precision_parts() if modifiers is not None else None
        scale: str = parts[1] if parts else DEFAULT_DECIMAL_PRECISION.split(",")[1]
        return f"decimal:{scale}"
    return _CAST_MAP.get(lowered)


__all__: List[str] = [
    "STORAGE_TYPE_MAP",
    "UI_TYPE_MAP",
    "LENGTH_TYPES",
    "DEFAULT_DECIMAL_PRECISION",
    "resolve_storage_type",
    "resolve_ui_type",
    "resolve_cast_type",
]

logger.debug("scaffoldgen.field_types loaded.")
