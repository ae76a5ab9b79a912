# File: scaffoldgen/columns.py
"""
ScaffoldGen - Column Definition Builder
=========================================
Turns a field declaration into Blueprint column statements for a migration.

Three shapes are produced:

1. ``$table->foreignId('x')...->constrained('t', 'c')`` when the field has a
   foreign spec (implicit style).  The statement is returned *without* its
   trailing ``;`` and :attr:`ColumnDefinition.terminated` is ``False``.
2. A plain column line plus a separate ``$table->foreign(...)`` constraint
   line when ``isExplicitConstraint`` is set.  Both lines are terminated.
3. A plain column line with optional length / precision parameters.

Modifiers are appended in the fixed order nullable → unique → default →
comment regardless of their order in the document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from scaffoldgen.field_types import LENGTH_TYPES, resolve_storage_type
from scaffoldgen.models import (
    FieldDeclaration,
    FieldModifiers,
    ForeignKeyAction,
    ForeignKeySpec,
    ModelRecord,
)
from scaffoldgen.utils import format_number, php_escape

logger: logging.Logger = logging.getLogger("scaffoldgen.columns")

CONFIRMATION_SUFFIX: str = "_confirmation"

# Strings PHP treats as numbers; such defaults are emitted bare.
_NUMERIC_STRING_RE: re.Pattern[str] = re.compile(
    r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$"
)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """One or two Blueprint statements for a single field."""

    lines: Tuple[str, ...]
    terminated: bool = True

    def statements(self) -> List[str]:
        """The lines with every statement closed by ``;``."""
        if self.terminated:
            return list(self.lines)
        return [line if line.endswith(";") else f"{line};" for line in self.lines]

    def __repr__(self) -> str:
        return f"<ColumnDefinition {self.lines[0]!r}{'' if self.terminated else ' (open)'}>"


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------


def _render_default(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        if _NUMERIC_STRING_RE.match(value):
            return value.strip()
        return f"'{php_escape(value)}'"
    return None


def render_modifiers(modifiers: FieldModifiers) -> str:
    """
    Return the chained modifier calls for a column.

    ``nullable`` and ``unique`` are emitted only for a literal ``True``;
    a ``default`` of an unsupported kind (list, mapping, ``None``) is
    dropped without complaint.
    """
    chain: List[str] = []

    if modifiers.nullable is True:
        chain.append("->nullable()")
    if modifiers.unique is True:
        chain.append("->unique()")

    default: Optional[str] = _render_default(modifiers.default)
    if default is not None:
        chain.append(f"->default({default})")
    elif modifiers.default is not None:
        logger.debug("Ignoring default of unsupported kind: %r", modifiers.default)

    if modifiers.comment is not None:
        chain.append(f"->comment('{php_escape(str(modifiers.comment))}')")

    return "".join(chain)


def render_actions(foreign: ForeignKeySpec) -> str:
    """``->onDelete(...)`` / ``->onUpdate(...)`` for recognised actions only."""
    chain: str = ""
    on_delete: Optional[str] = ForeignKeyAction.normalise(foreign.on_delete)
    if on_delete is not None:
        chain += f"->onDelete('{on_delete}')"
    on_update: Optional[str] = ForeignKeyAction.normalise(foreign.on_update)
    if on_update is not None:
        chain += f"->onUpdate('{on_update}')"
    return chain


def _type_parameters(storage_type: str, modifiers: FieldModifiers) -> str:
    if storage_type in LENGTH_TYPES and modifiers.length is not None:
        return f", {modifiers.length}"
    if storage_type == "decimal":
        parts: Optional[Tuple[str, str]] = modifiers.precision_parts()
        if parts is not None:
            return f", {parts[0]}, {parts[1]}"
    return ""


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def is_confirmation_field(field_name: str) -> bool:
    return field_name.endswith(CONFIRMATION_SUFFIX)


def build_column(field_name: str, declaration: FieldDeclaration) -> Optional[ColumnDefinition]:
    """
    Build the column statement(s) for one field.

    Returns ``None`` for ``*_confirmation`` fields, which exist only for
    form validation.
    """
    if is_confirmation_field(field_name):
        logger.debug("Skipping confirmation field '%s'", field_name)
        return None

    storage_type: str = resolve_storage_type(declaration.type)
    modifiers: FieldModifiers = declaration.modifiers
    foreign: Optional[ForeignKeySpec] = declaration.foreign

    if foreign is not None and not declaration.is_explicit_constraint:
        line: str = (
            f"$table->foreignId('{field_name}')"
            + render_modifiers(modifiers)
            + f"->constrained('{foreign.table}', '{foreign.column}')"
            + render_actions(foreign)
        )
        return ColumnDefinition(lines=(line,), terminated=False)

    if foreign is not None:
        column_line: str = (
            f"$table->{storage_type}('{field_name}')" + render_modifiers(modifiers) + ";"
        )
        constraint_line: str = (
            f"$table->foreign('{field_name}')"
            f"->references('{foreign.column}')"
            f"->on('{foreign.table}')"
            + render_actions(foreign)
            + ";"
        )
        return ColumnDefinition(lines=(column_line, constraint_line), terminated=True)

    line = (
        f"$table->{storage_type}('{field_name}'"
        + _type_parameters(storage_type, modifiers)
        + ")"
        + render_modifiers(modifiers)
        + ";"
    )
    return ColumnDefinition(lines=(line,), terminated=True)


def build_column_lines(fields: Dict[str, FieldDeclaration]) -> List[str]:
    """All column statements of a model in declaration order, each closed."""
    lines: List[str] = []
    for name, declaration in fields.items():
        definition: Optional[ColumnDefinition] = build_column(name, declaration)
        if definition is not None:
            lines.extend(definition.statements())
    return lines


def build_index_lines(
    record: ModelRecord, fields: Optional[Dict[str, FieldDeclaration]] = None
) -> List[str]:
    """
    Index statements for a model.

    *fields* overrides the declared fields (after partial expansion).

    Order: single indexes, single unique indexes, compound indexes, compound
    unique indexes, then one unique index per field carrying a ``unique:``
    validation rule.
    """
    lines: List[str] = []
    for column in record.indexes:
        lines.append(f"$table->index('{column}');")
    for column in record.unique_indexes:
        lines.append(f"$table->unique('{column}');")
    for columns in record.compound_indexes:
        lines.append("$table->index(['" + "', '".join(columns) + "']);")
    for columns in record.compound_unique_indexes:
        lines.append("$table->unique(['" + "', '".join(columns) + "']);")
    for name, declaration in (record.fields if fields is None else fields).items():
        if declaration.has_unique_rule():
            lines.append(f"$table->unique('{name}');")
    return lines


__all__: List[str] = [
    "ColumnDefinition",
    "CONFIRMATION_SUFFIX",
    "render_modifiers",
    "render_actions",
    "is_confirmation_field",
    "build_column",
    "build_column_lines",
    "build_index_lines",
]

logger.debug("scaffoldgen.columns loaded.")
