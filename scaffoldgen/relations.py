# File: scaffoldgen/relations.py
"""
ScaffoldGen - Relationship Resolver
=====================================
Computes the fully-populated shape of every relationship accessor and the
pivot tables that back many-to-many and polymorphic many-to-many relations.

Default key conventions
-----------------------
* belongsTo:      foreignKey ``{relation}_id``, ownerKey ``id``
* hasOne/hasMany: foreignKey ``{owning model}_id``, localKey ``id``
* belongsToMany:  pivot ``{a}_{b}`` (singular snake names in schema order),
                  foreignPivotKey ``{owning}_id``, relatedPivotKey ``{related}_id``
* morphTo:        morph name = relation name, ``{name}_type`` / ``{name}_id``
* morphOne/Many:  as morphTo plus localKey ``id``
* morphToMany:    foreignPivotKey ``{name}_id``, relatedPivotKey ``{related}_id``
* morphedByMany:  foreignPivotKey ``{owning}_id``, relatedPivotKey ``{name}_id``
* *Through:       firstKey ``{through}_id``, secondKey ``{related}_id``

Every default can be overridden in the relation declaration.  Because
pivot names are derived from schema declaration order rather than from the
declaring side, both ends of a mutual many-to-many agree on one table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from scaffoldgen.errors import MissingInputError
from scaffoldgen.models import (
    PIVOT_KINDS,
    THROUGH_KINDS,
    ModelRecord,
    RelationDeclaration,
    RelationKind,
    table_name_for,
)
from scaffoldgen.reporter import Reporter
from scaffoldgen.utils import class_basename, to_singular, to_snake_case

logger: logging.Logger = logging.getLogger("scaffoldgen.relations")

DEFAULT_NAMESPACE_ROOT: str = "App\\Modules"

# Key attributes of AccessorShape passed to the Eloquent call, in argument
# order, for each kind.
KIND_ARGUMENTS: Dict[RelationKind, Tuple[str, ...]] = {
    RelationKind.BELONGS_TO: ("foreign_key", "owner_key"),
    RelationKind.HAS_ONE: ("foreign_key", "local_key"),
    RelationKind.HAS_MANY: ("foreign_key", "local_key"),
    RelationKind.BELONGS_TO_MANY: (
        "pivot_table", "foreign_pivot_key", "related_pivot_key", "parent_key", "related_key",
    ),
    RelationKind.MORPH_TO: ("morph_name", "morph_type", "morph_id", "owner_key"),
    RelationKind.MORPH_ONE: ("morph_name", "morph_type", "morph_id", "local_key"),
    RelationKind.MORPH_MANY: ("morph_name", "morph_type", "morph_id", "local_key"),
    RelationKind.MORPH_TO_MANY: (
        "morph_name", "pivot_table", "foreign_pivot_key", "related_pivot_key",
        "parent_key", "related_key",
    ),
    RelationKind.MORPHED_BY_MANY: (
        "morph_name", "pivot_table", "foreign_pivot_key", "related_pivot_key",
        "parent_key", "related_key",
    ),
    RelationKind.HAS_ONE_THROUGH: ("first_key", "second_key", "local_key", "second_local_key"),
    RelationKind.HAS_MANY_THROUGH: ("first_key", "second_key", "local_key", "second_local_key"),
}


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class AccessorShape:
    """Everything needed to render one relationship method."""

    name: str
    kind: RelationKind
    related: Optional[str] = None
    through: Optional[str] = None
    foreign_key: Optional[str] = None
    owner_key: Optional[str] = None
    local_key: Optional[str] = None
    parent_key: Optional[str] = None
    related_key: Optional[str] = None
    pivot_table: Optional[str] = None
    pivot_table_declared: bool = False
    foreign_pivot_key: Optional[str] = None
    related_pivot_key: Optional[str] = None
    first_key: Optional[str] = None
    second_key: Optional[str] = None
    second_local_key: Optional[str] = None
    morph_name: Optional[str] = None
    morph_type: Optional[str] = None
    morph_id: Optional[str] = None
    multi_select: bool = False

    @property
    def method(self) -> str:
        return RelationKind(self.kind).value

    def arguments(self) -> List[str]:
        """Key arguments for the Eloquent call, in order."""
        return [getattr(self, attr) for attr in KIND_ARGUMENTS[RelationKind(self.kind)]]

    def is_complete(self) -> bool:
        """True when every argument the kind needs has a value."""
        if any(value is None for value in self.arguments()):
            return False
        if self.kind is not RelationKind.MORPH_TO and self.related is None:
            return False
        return self.kind not in THROUGH_KINDS or self.through is not None


@dataclass(frozen=False, slots=True)
class PivotSpec:
    """
    Structure of a join table.

    A plain pivot has two foreign ids (``key_column`` → ``key_table`` and
    ``other_column`` → ``other_table``).  A polymorphic pivot has one
    foreign id plus a morph id/type pair.
    """

    table: str
    polymorphic: bool
    key_column: str
    key_table: str
    other_column: Optional[str] = None
    other_table: Optional[str] = None
    morph_id_column: Optional[str] = None
    morph_type_column: Optional[str] = None
    source: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def qualify_model(
    reference: str,
    *,
    module: Optional[str],
    owning_module: str,
    schema_models: Mapping[str, ModelRecord],
    namespace_root: str = DEFAULT_NAMESPACE_ROOT,
) -> str:
    """
    Fully qualify a related model reference.

    A reference that already contains a namespace separator is returned
    without its leading backslash.  A bare name lives in the declaration's
    module, else in the module of the schema model with that name, else in
    the owning model's module.
    """
    if "\\" in reference:
        return reference.lstrip("\\")
    target: Optional[str] = module
    if target is None and reference in schema_models:
        target = schema_models[reference].module
    if target is None:
        target = owning_module
    return f"{namespace_root}\\{target}\\Models\\{reference}"


def default_pivot_table(
    owning_model: str, related_model: str, schema_models: Mapping[str, ModelRecord]
) -> str:
    """
    ``{first}_{second}`` from the singular snake names of both models.

    Models are ordered by their position in the schema; a related model not
    declared in the schema sorts after the owning model.
    """
    order: List[str] = list(schema_models.keys())

    def position(name: str, fallback: int) -> int:
        return order.index(name) if name in order else fallback

    owning_pos: int = position(owning_model, -1)
    related_pos: int = position(related_model, len(order))
    pair: List[str] = [owning_model, related_model]
    if related_pos < owning_pos:
        pair.reverse()
    return "_".join(to_singular(to_snake_case(name)) for name in pair)


def _key(name: str) -> str:
    return f"{to_snake_case(name)}_id"


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def build_relation_accessor(
    relation_name: str,
    declaration: RelationDeclaration,
    owning_model_name: str,
    *,
    owning_module: str,
    schema_models: Mapping[str, ModelRecord],
    namespace_root: str = DEFAULT_NAMESPACE_ROOT,
) -> AccessorShape:
    """
    Resolve *declaration* into a fully populated :class:`AccessorShape`.

    Raises:
        MissingInputError: unknown kind, missing ``model`` or missing
            ``through`` for the through kinds.
    """
    context: str = f"{owning_model_name}.{relation_name}"
    kind: Optional[RelationKind] = RelationKind.parse(declaration.type)
    if kind is None:
        raise MissingInputError(context, f"unknown relation type {declaration.type!r}")

    if kind is not RelationKind.MORPH_TO and not declaration.model:
        raise MissingInputError(context, f"'{kind.value}' relation requires 'model'")
    if kind in THROUGH_KINDS and not declaration.through:
        raise MissingInputError(context, f"'{kind.value}' relation requires 'through'")

    shape = AccessorShape(name=relation_name, kind=kind)
    related_base: str = ""
    if declaration.model:
        related_base = class_basename(declaration.model)
        shape.related = qualify_model(
            declaration.model,
            module=declaration.module,
            owning_module=owning_module,
            schema_models=schema_models,
            namespace_root=namespace_root,
        )

    if kind is RelationKind.BELONGS_TO:
        shape.foreign_key = declaration.foreign_key or _key(relation_name)
        shape.owner_key = declaration.owner_key or "id"

    elif kind in (RelationKind.HAS_ONE, RelationKind.HAS_MANY):
        shape.foreign_key = declaration.foreign_key or _key(owning_model_name)
        shape.local_key = declaration.local_key or "id"

    elif kind in (RelationKind.MORPH_TO, RelationKind.MORPH_ONE, RelationKind.MORPH_MANY):
        morph: str = declaration.morph_name or relation_name
        shape.morph_name = morph
        shape.morph_type = declaration.morph_type or f"{morph}_type"
        shape.morph_id = declaration.morph_id or f"{morph}_id"
        if kind is RelationKind.MORPH_TO:
            shape.owner_key = declaration.owner_key or "id"
        else:
            shape.local_key = declaration.local_key or "id"

    elif kind in PIVOT_KINDS:
        shape.multi_select = True
        shape.pivot_table_declared = declaration.pivot_table is not None
        shape.pivot_table = declaration.pivot_table or default_pivot_table(
            owning_model_name, related_base, schema_models
        )
        shape.parent_key = declaration.parent_key or "id"
        shape.related_key = declaration.related_key or "id"
        if kind is RelationKind.BELONGS_TO_MANY:
            shape.foreign_pivot_key = declaration.foreign_pivot_key or _key(owning_model_name)
            shape.related_pivot_key = declaration.related_pivot_key or _key(related_base)
        else:
            morph = declaration.morph_name or relation_name
            shape.morph_name = morph
            shape.morph_type = declaration.morph_type or f"{morph}_type"
            if kind is RelationKind.MORPH_TO_MANY:
                shape.foreign_pivot_key = declaration.foreign_pivot_key or f"{morph}_id"
                shape.related_pivot_key = declaration.related_pivot_key or _key(related_base)
                shape.morph_id = shape.foreign_pivot_key
            else:
                shape.foreign_pivot_key = declaration.foreign_pivot_key or _key(owning_model_name)
                shape.related_pivot_key = declaration.related_pivot_key or f"{morph}_id"
                shape.morph_id = shape.related_pivot_key

    else:
        through_base: str = class_basename(declaration.through or "")
        shape.through = qualify_model(
            declaration.through or "",
            module=declaration.module,
            owning_module=owning_module,
            schema_models=schema_models,
            namespace_root=namespace_root,
        )
        shape.first_key = declaration.first_key or _key(through_base)
        shape.second_key = declaration.second_key or _key(related_base)
        shape.local_key = declaration.local_key or "id"
        shape.second_local_key = declaration.second_local_key or "id"

    logger.debug("Resolved %s as %s → %s", context, kind.value, shape.arguments())
    return shape


def resolve_relations(
    record: ModelRecord,
    model_name: str,
    *,
    schema_models: Mapping[str, ModelRecord],
    reporter: Optional[Reporter] = None,
    namespace_root: str = DEFAULT_NAMESPACE_ROOT,
) -> Dict[str, AccessorShape]:
    """Resolve every relation of a model; failures are reported and skipped."""
    shapes: Dict[str, AccessorShape] = {}
    for name, declaration in record.relations.items():
        try:
            shapes[name] = build_relation_accessor(
                name,
                declaration,
                model_name,
                owning_module=record.module,
                schema_models=schema_models,
                namespace_root=namespace_root,
            )
        except MissingInputError as exc:
            if reporter is not None:
                reporter.error(exc.detail, context=exc.context)
            else:
                logger.debug("Skipping relation %s", exc)
    return shapes


def resolved_foreign_key(shape: AccessorShape, declaration: RelationDeclaration) -> Optional[str]:
    """The local column a relation is keyed on, for matching field overlays."""
    return shape.foreign_key or declaration.foreign_key


# ---------------------------------------------------------------------------
# Pivot tables
# ---------------------------------------------------------------------------


def _related_table(reference: str, schema_models: Mapping[str, ModelRecord]) -> str:
    base: str = class_basename(reference)
    record: Optional[ModelRecord] = schema_models.get(base)
    if record is not None and record.table:
        return record.table
    return table_name_for(base)


def build_pivot_spec(
    shape: AccessorShape,
    owning_model_name: str,
    schema_models: Mapping[str, ModelRecord],
) -> Optional[PivotSpec]:
    """
    Describe the join table behind a pivot-backed relation.

    Returns ``None`` for kinds without a pivot table.

    Raises:
        MissingInputError: a polymorphic many-to-many relation without an
            explicit ``pivotTable``; its table name cannot be agreed on
            between the two sides by convention alone.
    """
    kind = RelationKind(shape.kind)
    if kind not in PIVOT_KINDS:
        return None

    owning_record: Optional[ModelRecord] = schema_models.get(owning_model_name)
    owning_table: str = (
        owning_record.table if owning_record is not None and owning_record.table
        else table_name_for(owning_model_name)
    )
    related_table: str = _related_table(shape.related or "", schema_models)
    source: List[str] = [f"{owning_model_name}.{shape.name}"]

    if kind is RelationKind.BELONGS_TO_MANY:
        return PivotSpec(
            table=shape.pivot_table or "",
            polymorphic=False,
            key_column=shape.foreign_pivot_key or "",
            key_table=owning_table,
            other_column=shape.related_pivot_key,
            other_table=related_table,
            source=source,
        )

    if not shape.pivot_table_declared:
        raise MissingInputError(
            source[0], f"'{kind.value}' relation requires 'pivotTable' for its pivot migration"
        )

    if kind is RelationKind.MORPH_TO_MANY:
        return PivotSpec(
            table=shape.pivot_table or "",
            polymorphic=True,
            key_column=shape.related_pivot_key or "",
            key_table=related_table,
            morph_id_column=shape.foreign_pivot_key,
            morph_type_column=shape.morph_type,
            source=source,
        )

    return PivotSpec(
        table=shape.pivot_table or "",
        polymorphic=True,
        key_column=shape.foreign_pivot_key or "",
        key_table=owning_table,
        morph_id_column=shape.related_pivot_key,
        morph_type_column=shape.morph_type,
        source=source,
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_accessor(shape: AccessorShape) -> str:
    """
    Render the PHP method for *shape*, indented for a class body.

    Related and through models are referenced by their fully qualified
    names (``\\App\\...\\User::class``); through relations put one
    argument per line.
    """
    keys: List[str] = [f"'{value}'" for value in shape.arguments()]
    kind = RelationKind(shape.kind)

    lines: List[str] = [f"    public function {shape.name}()", "    {"]
    if kind is RelationKind.MORPH_TO:
        lines.append(f"        return $this->morphTo({', '.join(keys)});")
    elif kind in THROUGH_KINDS:
        arguments: List[str] = [f"\\{shape.related}::class", f"\\{shape.through}::class", *keys]
        lines.append(f"        return $this->{shape.method}(")
        lines.append(",\n".join(f"            {arg}" for arg in arguments))
        lines.append("        );")
    else:
        arguments = [f"\\{shape.related}::class", *keys]
        lines.append(f"        return $this->{shape.method}({', '.join(arguments)});")
    lines.append("    }")
    return "\n".join(lines)


__all__: List[str] = [
    "KIND_ARGUMENTS",
    "AccessorShape",
    "PivotSpec",
    "qualify_model",
    "default_pivot_table",
    "build_relation_accessor",
    "resolve_relations",
    "resolved_foreign_key",
    "build_pivot_spec",
    "render_accessor",
]

logger.debug("scaffoldgen.relations loaded.")
