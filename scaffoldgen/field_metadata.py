# File: scaffoldgen/field_metadata.py
"""
ScaffoldGen - Field-Definition Metadata Builder
=================================================
Builds the ordered ``fieldDefinitions`` map consumed by the UI layer of the
generated application.

Each declared field becomes one descriptor (display mode, input type,
label, validation, options, ...).  Three things are layered on top:

* **File policy**: ``file`` fields get an extension allow-list, a size
  limit in MB and a matching ``mimes:...|max:...`` rule (the ``max:``
  figure is in KB).
* **Foreign-key overlays**: a field carrying a foreign spec that matches a
  relation's foreign key gains ``relationship`` and ``options`` blocks.
* **Virtual descriptors**: to-many and polymorphic relations add a
  descriptor keyed by the relation name (multi-select checkboxes, morph
  selectors).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from scaffoldgen.field_types import resolve_ui_type
from scaffoldgen.fragments import FragmentLoader, expand_fields
from scaffoldgen.models import (
    FieldDeclaration,
    ModelRecord,
    RelationDeclaration,
    RelationKind,
)
from scaffoldgen.relations import (
    DEFAULT_NAMESPACE_ROOT,
    AccessorShape,
    resolve_relations,
    resolved_foreign_key,
)
from scaffoldgen.reporter import Reporter
from scaffoldgen.utils import derive_label, format_number, to_camel_case, to_plural, to_title_human

logger: logging.Logger = logging.getLogger("scaffoldgen.field_metadata")

# ---------------------------------------------------------------------------
# File upload policy
# ---------------------------------------------------------------------------

DOCUMENT_TYPES: List[str] = ["pdf", "doc", "docx"]
IMAGE_TYPES: List[str] = ["jpg", "jpeg", "png", "bmp"]
DEFAULT_MAX_SIZE_MB: int = 1

_FILE_TYPE_GROUPS: Dict[str, List[str]] = {
    "document": DOCUMENT_TYPES,
    "image": IMAGE_TYPES,
}

# Relation kinds rendered as a multi-select checkbox list.
_CHECKBOX_KINDS: frozenset = frozenset({
    RelationKind.HAS_MANY,
    RelationKind.BELONGS_TO_MANY,
    RelationKind.MORPHED_BY_MANY,
})

# Kinds whose dynamic property is pluralised.
_PLURAL_PROPERTY_KINDS: frozenset = frozenset({
    RelationKind.HAS_MANY,
    RelationKind.BELONGS_TO_MANY,
})


def _whole(value: float) -> Any:
    """``2.0`` → ``2``; other numbers unchanged."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def resolve_file_types(file_types: Any) -> List[str]:
    """
    Allowed extensions for a file field.

    ``"document"`` and ``"image"`` name built-in groups; a list is used
    as is; any other string is read as a comma-separated list.  Without a
    declaration every built-in extension is allowed.
    """
    if isinstance(file_types, str) and file_types in _FILE_TYPE_GROUPS:
        return list(_FILE_TYPE_GROUPS[file_types])
    if isinstance(file_types, (list, tuple)):
        return [str(t) for t in file_types]
    if isinstance(file_types, str) and file_types.strip():
        return [t.strip() for t in file_types.split(",") if t.strip()]
    return DOCUMENT_TYPES + IMAGE_TYPES


def apply_file_policy(descriptor: Dict[str, Any], declaration: FieldDeclaration) -> None:
    """Add ``fileTypes``, ``maxSizeMB`` and (unless explicit) ``validation``."""
    types: List[str] = resolve_file_types(declaration.file_types)
    max_mb: Any = _whole(
        declaration.max_size_mb if declaration.max_size_mb is not None else DEFAULT_MAX_SIZE_MB
    )
    descriptor["fileTypes"] = types
    descriptor["maxSizeMB"] = max_mb
    if declaration.validation is None:
        descriptor["validation"] = f"mimes:{','.join(types)}|max:{format_number(max_mb * 1024)}"


def process_options(options: Any) -> Any:
    """Lists and maps are kept; a comma string becomes ``{value: value}``."""
    if isinstance(options, str):
        values: List[str] = [o.strip() for o in options.split(",")]
        return {value: value for value in values}
    return options


def dynamic_property(field_name: str, kind: Optional[RelationKind]) -> str:
    """``customer_id`` → ``customer``; pluralised for to-many kinds."""
    base: str = field_name[:-3] if field_name.endswith("_id") else field_name
    prop: str = to_camel_case(base)
    if kind in _PLURAL_PROPERTY_KINDS:
        prop = to_plural(prop)
    return prop


# ---------------------------------------------------------------------------
# Per-field descriptors
# ---------------------------------------------------------------------------


def build_field_descriptor(field_name: str, declaration: FieldDeclaration) -> Dict[str, Any]:
    """Descriptor for one declared field, without relation overlays."""
    descriptor: Dict[str, Any] = {
        "display": declaration.display or "inline",
        "field_type": resolve_ui_type(declaration.type),
        "label": declaration.label or derive_label(field_name),
    }
    if declaration.validation is not None:
        descriptor["validation"] = "|".join(declaration.validation)
    if declaration.type.lower() == "file":
        apply_file_policy(descriptor, declaration)
    if declaration.options is not None:
        descriptor["options"] = process_options(declaration.options)
    if declaration.auto_generate:
        descriptor["autoGenerate"] = True
    if declaration.multi_select:
        descriptor["multiSelect"] = True
    if declaration.reactivity is not None:
        descriptor["reactivity"] = declaration.reactivity
    return descriptor


def _options_block(shape: AccessorShape, declaration: RelationDeclaration) -> Dict[str, Any]:
    return {
        "model": shape.related or "",
        "column": declaration.display_field or "name",
        "hintField": declaration.hint_field,
    }


def foreign_overlay(
    field_name: str, shape: AccessorShape, declaration: RelationDeclaration
) -> Dict[str, Any]:
    """``relationship`` / ``options`` blocks for a foreign-key field."""
    kind = RelationKind(shape.kind)
    return {
        "relationship": {
            "model": shape.related or "",
            "type": kind.value,
            "display_field": declaration.display_field or "name",
            "dynamic_property": dynamic_property(field_name, kind),
            "foreign_key": field_name,
            "inlineAdd": declaration.inline_add,
        },
        "options": _options_block(shape, declaration),
    }


def relation_descriptor(
    shape: AccessorShape, declaration: RelationDeclaration
) -> Optional[Dict[str, Any]]:
    """
    Virtual descriptor keyed by relation name, or ``None`` when the kind has
    no UI of its own (belongsTo is driven by its foreign-key field).
    """
    kind = RelationKind(shape.kind)
    display: str = declaration.display or "inline"
    label: str = to_title_human(shape.name)

    if kind in _CHECKBOX_KINDS:
        return {
            "field_type": "checkbox",
            "relationship": {
                "model": shape.related or "",
                "type": kind.value,
                "display_field": declaration.display_field or "name",
                "hintField": declaration.hint_field,
                "dynamic_property": shape.name,
                "foreign_key": resolved_foreign_key(shape, declaration) or shape.foreign_pivot_key,
                "local_key": shape.local_key or shape.parent_key or "id",
                "inlineAdd": declaration.inline_add,
            },
            "options": _options_block(shape, declaration),
            "label": label,
            "multiSelect": True,
            "display": display,
        }

    if kind is RelationKind.MORPH_TO_MANY:
        return {
            "field_type": "morphToMany",
            "relationship": {
                "model": shape.related or "",
                "type": kind.value,
                "display_field": declaration.display_field or "name",
                "dynamic_property": shape.name,
                "foreign_key": shape.foreign_pivot_key,
                "related_pivot_key": shape.related_pivot_key,
                "morph_type": shape.morph_type,
                "pivot_table": shape.pivot_table,
                "inlineAdd": declaration.inline_add,
            },
            "options": _options_block(shape, declaration),
            "label": label,
            "multiSelect": True,
            "display": display,
        }

    if kind is RelationKind.MORPH_TO:
        return {
            "field_type": "morphTo",
            "relationship": {
                "model": shape.related or "",
                "type": kind.value,
                "dynamic_property": shape.name,
            },
            "label": label,
            "display": display,
        }

    return None


# ---------------------------------------------------------------------------
# Model-level builder
# ---------------------------------------------------------------------------


def build_field_metadata(
    record: ModelRecord,
    *,
    model_name: str,
    fragments: Optional[FragmentLoader],
    reporter: Reporter,
    schema_models: Mapping[str, ModelRecord],
    shapes: Optional[Mapping[str, AccessorShape]] = None,
    namespace_root: str = DEFAULT_NAMESPACE_ROOT,
) -> Dict[str, Dict[str, Any]]:
    """
    Ordered ``fieldDefinitions`` for one model.

    Declared fields come first in declaration order (partials expanded in
    place), followed by relation-derived descriptors in relation order.
    *shapes* may carry relation accessors already resolved by the caller.
    """
    if shapes is None:
        shapes = resolve_relations(
            record, model_name,
            schema_models=schema_models, reporter=reporter, namespace_root=namespace_root,
        )

    fields: Dict[str, FieldDeclaration] = expand_fields(
        record.fields,
        fragments,
        on_missing=lambda exc: reporter.warning(str(exc), context=model_name),
    )

    by_foreign_key: Dict[str, str] = {}
    for relation_name, shape in shapes.items():
        key: Optional[str] = resolved_foreign_key(shape, record.relations[relation_name])
        if key is not None and key not in by_foreign_key:
            by_foreign_key[key] = relation_name

    metadata: Dict[str, Dict[str, Any]] = {}
    for field_name, declaration in fields.items():
        descriptor: Dict[str, Any] = build_field_descriptor(field_name, declaration)
        if declaration.foreign is not None and field_name in by_foreign_key:
            relation_name = by_foreign_key[field_name]
            descriptor.update(
                foreign_overlay(field_name, shapes[relation_name], record.relations[relation_name])
            )
        metadata[field_name] = descriptor

    for relation_name, shape in shapes.items():
        virtual: Optional[Dict[str, Any]] = relation_descriptor(
            shape, record.relations[relation_name]
        )
        if virtual is not None:
            metadata[relation_name] = virtual

    logger.debug("Built %d field descriptors for %s", len(metadata), model_name)
    return metadata


__all__: List[str] = [
    "DOCUMENT_TYPES",
    "IMAGE_TYPES",
    "DEFAULT_MAX_SIZE_MB",
    "resolve_file_types",
    "apply_file_policy",
    "process_options",
    "dynamic_property",
    "build_field_descriptor",
    "foreign_overlay",
    "relation_descriptor",
    "build_field_metadata",
]

logger.debug("scaffoldgen.field_metadata loaded.")
