# File: scaffoldgen/validators.py
"""
ScaffoldGen - Schema Validators
=================================
Cross-record semantic checks run after the document has been parsed into
``scaffoldgen.models`` objects.

Pydantic already rejects structurally broken documents (a model without
``module``, a field whose ``fields`` entry is not a mapping, ...).  The
checks here look at references between records: relation targets, through
models, foreign-key specs and index columns.

Every finding carries the owning model in its context so the generator can
skip exactly the models that failed.

Usage:
    from scaffoldgen.validators import validate_full
    result = validate_full(schema)
    if result.has_errors:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Set

from scaffoldgen.models import (
    PIVOT_KINDS,
    THROUGH_KINDS,
    ForeignKeyAction,
    ModelRecord,
    RelationKind,
    SchemaDocument,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight finding descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    @property
    def model(self) -> Optional[str]:
        return self.context.get("model")

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def failed_models(self) -> Set[str]:
        """
        Names of models with at least one model-level error.

        Errors scoped to a single relation are left out: generation drops
        just that accessor and keeps the rest of the model.
        """
        return {
            e.model
            for e in self._items
            if e.is_error and e.model and "relation" not in e.context
        }

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_STUDLY_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_model_names(schema: SchemaDocument) -> ValidationResult:
    """Model names become PHP class names; modules become namespaces."""
    result: ValidationResult = ValidationResult()
    for name, record in schema.models.items():
        ctx: Dict[str, Any] = {"model": name}
        if not _IDENTIFIER_RE.match(name):
            result.add_error(
                "INVALID_MODEL_NAME",
                f"Model name '{name}' is not a valid class name.",
                ctx,
            )
        elif not _STUDLY_CASE_RE.match(name):
            result.add_warning(
                "MODEL_NAME_NOT_STUDLY",
                f"Model name '{name}' is not StudlyCase.",
                ctx,
            )
        if not _IDENTIFIER_RE.match(record.module):
            result.add_error(
                "INVALID_MODULE_NAME",
                f"Module '{record.module}' of model '{name}' is not a valid namespace segment.",
                ctx,
            )
    return result


def validate_fields(schema: SchemaDocument) -> ValidationResult:
    """Foreign-key specs need a target table; referential actions must be known."""
    result: ValidationResult = ValidationResult()
    for model_name, record in schema.models.items():
        for field_name, decl in record.fields.items():
            if decl.is_partial or decl.foreign is None:
                continue
            ctx: Dict[str, Any] = {"model": model_name, "field": field_name}
            if not decl.foreign.table:
                result.add_error(
                    "FOREIGN_WITHOUT_TABLE",
                    f"Field '{model_name}.{field_name}' declares a foreign key without a table.",
                    ctx,
                )
            for label, action in (
                ("onDelete", decl.foreign.on_delete),
                ("onUpdate", decl.foreign.on_update),
            ):
                if action is not None and ForeignKeyAction.normalise(action) is None:
                    result.add_info(
                        "UNKNOWN_FK_ACTION",
                        f"Field '{model_name}.{field_name}': {label} '{action}' "
                        f"is not recognised and will be ignored.",
                        ctx,
                    )
    return result


def _validate_relation(
    result: ValidationResult,
    model_name: str,
    relation_name: str,
    record: ModelRecord,
    schema: SchemaDocument,
) -> None:
    decl = record.relations[relation_name]
    ctx: Dict[str, Any] = {"model": model_name, "relation": relation_name}
    label: str = f"{model_name}.{relation_name}"

    kind: Optional[RelationKind] = RelationKind.parse(decl.type)
    if kind is None:
        result.add_error(
            "UNKNOWN_RELATION_KIND",
            f"Relation '{label}' has unknown type '{decl.type}'.",
            ctx,
        )
        return

    if kind is not RelationKind.MORPH_TO and not decl.model:
        result.add_error(
            "RELATION_WITHOUT_MODEL",
            f"Relation '{label}' ({kind.value}) does not name a related model.",
            ctx,
        )
    if kind in THROUGH_KINDS and not decl.through:
        result.add_error(
            "THROUGH_WITHOUT_MODEL",
            f"Relation '{label}' ({kind.value}) requires a 'through' model.",
            ctx,
        )
    if kind in PIVOT_KINDS and kind is not RelationKind.BELONGS_TO_MANY and not decl.pivot_table:
        result.add_warning(
            "MORPH_PIVOT_WITHOUT_TABLE",
            f"Relation '{label}' ({kind.value}) has no pivotTable; "
            f"its pivot migration will not be generated.",
            ctx,
        )

    related: Optional[str] = decl.model
    if related and "\\" not in related and related not in schema.models and not decl.module:
        result.add_info(
            "RELATED_MODEL_NOT_DECLARED",
            f"Relation '{label}' targets '{related}', which is not declared in this "
            f"document; it is assumed to live in module '{record.module}'.",
            ctx,
        )


def validate_relations(schema: SchemaDocument) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for model_name, record in schema.models.items():
        for relation_name in record.relations:
            _validate_relation(result, model_name, relation_name, record, schema)
    return result


def validate_indexes(schema: SchemaDocument) -> ValidationResult:
    """Index declarations should name declared columns."""
    result: ValidationResult = ValidationResult()
    for model_name, record in schema.models.items():
        if any(decl.is_partial for decl in record.fields.values()):
            # Columns from partial field-sets are only known after expansion.
            continue
        columns: Set[str] = set(record.fields)
        referenced: List[str] = [*record.indexes, *record.unique_indexes]
        for group in (*record.compound_indexes, *record.compound_unique_indexes):
            referenced.extend(group)
        for column in dict.fromkeys(referenced):
            if column not in columns:
                result.add_warning(
                    "INDEX_UNKNOWN_COLUMN",
                    f"Model '{model_name}' indexes undeclared column '{column}'.",
                    {"model": model_name, "column": column},
                )
    return result


# ---------------------------------------------------------------------------
# Composite validator
# ---------------------------------------------------------------------------


def validate_full(schema: SchemaDocument) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every check and logs the outcome.  Called by the generator and by
    ``scaffoldgen --validate-only``.
    """
    logger.info("Starting validation of %d model(s)", len(schema.models))

    result: ValidationResult = ValidationResult()
    result.merge(validate_model_names(schema))
    result.merge(validate_fields(schema))
    result.merge(validate_relations(schema))
    result.merge(validate_indexes(schema))

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_model_names",
    "validate_fields",
    "validate_relations",
    "validate_indexes",
    "validate_full",
]

logger.debug("scaffoldgen.validators loaded (%d public symbols).", len(__all__))
