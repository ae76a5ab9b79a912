# File: scaffoldgen/models.py
"""
ScaffoldGen - Core Data Models
================================
Pydantic V2 models describing the declarative schema document and the
generation configuration.  These models are the single source of truth for
the whole pipeline: Schema Loading → Validation → Generation → Export.

Document keys are the camelCase keys of the schema format
(``isExplicitConstraint``, ``pivotTable``, ...); the Python attributes are
snake_case and reachable by either name.

Schema records are parsed once per invocation and treated as read-only
afterwards.  Modifier values are kept with their raw kinds (a ``default``
may be a bool, a number or a string) because the column builder decides how
to render each kind.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from scaffoldgen.utils import to_plural, to_singular, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RelationKind(str, Enum):
    """The eleven relationship kinds understood by the resolver."""

    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO_MANY = "belongsToMany"
    MORPH_TO = "morphTo"
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"
    MORPH_TO_MANY = "morphToMany"
    MORPHED_BY_MANY = "morphedByMany"
    HAS_ONE_THROUGH = "hasOneThrough"
    HAS_MANY_THROUGH = "hasManyThrough"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RelationKind"]:
        """Return the member for *value*, or ``None`` for unknown kinds."""
        for member in cls:
            if member.value == value:
                return member
        return None


class ForeignKeyAction(str, Enum):
    """Referential actions accepted for ``onDelete`` / ``onUpdate``."""

    CASCADE = "cascade"
    RESTRICT = "restrict"
    SET_NULL = "set null"
    NO_ACTION = "no action"

    @classmethod
    def normalise(cls, value: Any) -> Optional[str]:
        """Lower-cased action if recognised, else ``None``."""
        if not isinstance(value, str):
            return None
        lowered: str = value.strip().lower()
        for member in cls:
            if member.value == lowered:
                return member.value
        return None


# Relation kinds backed by a pivot table.
PIVOT_KINDS: frozenset = frozenset({
    RelationKind.BELONGS_TO_MANY,
    RelationKind.MORPH_TO_MANY,
    RelationKind.MORPHED_BY_MANY,
})

# Relation kinds that go through an intermediate model.
THROUGH_KINDS: frozenset = frozenset({
    RelationKind.HAS_ONE_THROUGH,
    RelationKind.HAS_MANY_THROUGH,
})

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

# Schema records tolerate keys this tool does not interpret; they are
# carried through to the config artifact untouched.
_RECORD_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="allow",
)


# ---------------------------------------------------------------------------
# Field-level records
# ---------------------------------------------------------------------------


class FieldModifiers(BaseModel):
    """Column modifiers, kept with whatever value kind the document used."""

    model_config = _RECORD_CONFIG

    nullable: Any = None
    unique: Any = None
    default: Any = None
    length: Any = None
    precision: Any = None
    comment: Any = None

    def precision_parts(self) -> Optional[Tuple[str, str]]:
        """
        Split ``precision`` into ``(precision, scale)``.

        ``"10,4"`` → ``("10", "4")``; a single value is used for both parts.
        Returns ``None`` when no precision is declared.
        """
        if self.precision is None or isinstance(self.precision, bool):
            return None
        parts: List[str] = [p.strip() for p in str(self.precision).split(",")]
        first: str = parts[0]
        if not first:
            return None
        second: str = parts[1] if len(parts) > 1 and parts[1] else first
        return first, second


class ForeignKeySpec(BaseModel):
    """Target of a foreign-key column."""

    model_config = _RECORD_CONFIG

    table: Optional[str] = None
    column: str = "id"
    on_delete: Any = Field(default=None, alias="onDelete")
    on_update: Any = Field(default=None, alias="onUpdate")

    @field_validator("column", mode="before")
    @classmethod
    def _default_column(cls, v: Any) -> Any:
        return "id" if v is None else v


class FieldDeclaration(BaseModel):
    """
    A single declared field of a model.

    A declaration carrying ``partial`` stands for an externally stored group
    of field declarations and is expanded before columns or metadata are
    built.
    """

    model_config = _RECORD_CONFIG

    type: str = "string"
    display: Optional[str] = None
    label: Optional[str] = None
    validation: Optional[List[str]] = None
    modifiers: FieldModifiers = Field(default_factory=FieldModifiers)
    foreign: Optional[ForeignKeySpec] = None
    is_explicit_constraint: bool = Field(default=False, alias="isExplicitConstraint")
    options: Any = None
    file_types: Any = Field(default=None, alias="fileTypes")
    max_size_mb: Optional[float] = Field(default=None, alias="maxSizeMB")
    fillable: bool = True
    auto_generate: Any = Field(default=None, alias="autoGenerate")
    multi_select: Any = Field(default=None, alias="multiSelect")
    reactivity: Any = None
    partial: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, v: Any) -> Any:
        return "string" if v is None else str(v)

    @field_validator("validation", mode="before")
    @classmethod
    def _split_rule_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [rule for rule in v.split("|") if rule]
        return v

    @field_validator("modifiers", mode="before")
    @classmethod
    def _empty_modifiers(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def is_partial(self) -> bool:
        return self.partial is not None

    def has_unique_rule(self) -> bool:
        """True when any validation rule starts with ``unique:``."""
        return any(rule.startswith("unique:") for rule in self.validation or [])


class RelationDeclaration(BaseModel):
    """
    A declared relationship.

    ``type`` is kept as a plain string so that an unknown kind survives
    parsing and can be reported (and skipped) instead of failing the whole
    document.
    """

    model_config = _RECORD_CONFIG

    type: Optional[str] = None
    model: Optional[str] = None
    module: Optional[str] = None
    through: Optional[str] = None

    foreign_key: Optional[str] = Field(default=None, alias="foreignKey")
    owner_key: Optional[str] = Field(default=None, alias="ownerKey")
    local_key: Optional[str] = Field(default=None, alias="localKey")
    parent_key: Optional[str] = Field(default=None, alias="parentKey")
    related_key: Optional[str] = Field(default=None, alias="relatedKey")
    pivot_table: Optional[str] = Field(default=None, alias="pivotTable")
    foreign_pivot_key: Optional[str] = Field(default=None, alias="foreignPivotKey")
    related_pivot_key: Optional[str] = Field(default=None, alias="relatedPivotKey")
    first_key: Optional[str] = Field(default=None, alias="firstKey")
    second_key: Optional[str] = Field(default=None, alias="secondKey")
    second_local_key: Optional[str] = Field(default=None, alias="secondLocalKey")

    morph_name: Optional[str] = Field(default=None, alias="morphName")
    morph_type: Optional[str] = Field(default=None, alias="morphType")
    morph_id: Optional[str] = Field(default=None, alias="morphId")

    display: Optional[str] = None
    display_field: Optional[str] = Field(default=None, alias="displayField")
    inline_add: bool = Field(default=False, alias="inlineAdd")
    hint_field: Optional[str] = Field(default=None, alias="hintField")

    @computed_field  # type: ignore[misc]
    @property
    def kind(self) -> Optional[RelationKind]:
        return RelationKind.parse(self.type)

    def to_document(self) -> Dict[str, Any]:
        """Document-shaped mapping (camelCase keys, unset values dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"kind"})


# ---------------------------------------------------------------------------
# Model record
# ---------------------------------------------------------------------------


class ModelRecord(BaseModel):
    """
    One entity's full declaration.

    Sections that only the generated application interprets
    (``hiddenFields``, ``controls``, ``sidebar``, ...) are accepted as extra
    keys and exposed through :meth:`section`.
    """

    model_config = _RECORD_CONFIG

    module: str = Field(..., min_length=1)
    fields: Dict[str, FieldDeclaration] = Field(default_factory=dict)
    relations: Dict[str, RelationDeclaration] = Field(default_factory=dict)
    table: Optional[str] = None
    indexes: List[str] = Field(default_factory=list)
    unique_indexes: List[str] = Field(default_factory=list, alias="uniqueIndexes")
    compound_indexes: List[List[str]] = Field(default_factory=list, alias="compoundIndexes")
    compound_unique_indexes: List[List[str]] = Field(
        default_factory=list, alias="compoundUniqueIndexes"
    )
    is_pivot: bool = Field(default=False, alias="isPivot")
    soft_deletes: bool = Field(default=False, alias="softDeletes")
    timestamps: Optional[bool] = None
    override: bool = False

    @field_validator("fields", "relations", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator(
        "indexes", "unique_indexes", "compound_indexes", "compound_unique_indexes",
        mode="before",
    )
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    def section(self, key: str, default: Any = None) -> Any:
        """Return a pass-through section by its document key."""
        extra: Dict[str, Any] = self.model_extra or {}
        value: Any = extra.get(key)
        return default if value is None else value


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Run-level options.

    Defaults may be overridden by the document's ``config`` section, which
    in turn is overridden by command-line flags.
    """

    model_config = _SHARED_CONFIG

    output_dir: Path = Field(default=Path("."), alias="outputDir")
    app_dir: str = Field(default="app", alias="appDir")
    namespace_root: str = Field(default="App\\Modules", alias="namespaceRoot")
    stub_dir: Optional[Path] = Field(default=None, alias="stubDir")
    force: bool = False
    dry_run: bool = Field(default=False, alias="dryRun")
    generate_sidebar: bool = Field(default=True, alias="generateSidebar")
    default_timestamps: bool = Field(default=True, alias="defaultTimestamps")

    @field_validator("namespace_root")
    @classmethod
    def _strip_namespace(cls, v: str) -> str:
        return v.strip("\\")

    def module_dir(self, module: str) -> Path:
        """``{output}/{app_dir}/Modules/{Module}``."""
        return self.output_dir / self.app_dir / "Modules" / module

    def model_namespace(self, module: str) -> str:
        return f"{self.namespace_root}\\{module}\\Models"

    def model_fqcn(self, module: str, model_name: str) -> str:
        return f"{self.model_namespace(module)}\\{model_name}"


# ---------------------------------------------------------------------------
# Schema document (top-level)
# ---------------------------------------------------------------------------


class SchemaDocument(BaseModel):
    """The parsed input document."""

    model_config = _SHARED_CONFIG

    models: Dict[str, ModelRecord] = Field(default_factory=dict)
    wizards: Dict[str, Any] = Field(default_factory=dict)
    dashboards: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)
    source_path: Optional[Path] = Field(default=None, exclude=True)

    @field_validator("models", "wizards", "dashboards", "config", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @model_validator(mode="after")
    def _warn_empty(self) -> "SchemaDocument":
        if not self.models:
            logger.warning("Schema document declares no models.")
        return self

    @computed_field  # type: ignore[misc]
    @property
    def declaration_order(self) -> Tuple[str, ...]:
        return tuple(self.models.keys())

    def module_of(self, model_name: str) -> Optional[str]:
        """Module of a model declared in this document, else ``None``."""
        record: Optional[ModelRecord] = self.models.get(model_name)
        return record.module if record is not None else None


# ---------------------------------------------------------------------------
# Naming helpers shared by the generators
# ---------------------------------------------------------------------------


def table_name_for(model_name: str, is_pivot: bool = False) -> str:
    """Plural snake_case table name; singular for pivot models."""
    snake: str = to_snake_case(model_name)
    return to_singular(snake) if is_pivot else to_plural(snake)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RelationKind",
    "ForeignKeyAction",
    "PIVOT_KINDS",
    "THROUGH_KINDS",
    "FieldModifiers",
    "ForeignKeySpec",
    "FieldDeclaration",
    "RelationDeclaration",
    "ModelRecord",
    "GenerationConfig",
    "SchemaDocument",
    "table_name_for",
]

logger.debug("scaffoldgen.models loaded (%d public symbols).", len(__all__))
