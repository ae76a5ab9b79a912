# File: scaffoldgen/templates.py
"""
ScaffoldGen - Stub Template Engine
====================================
Turns resolved columns, relationship shapes and field metadata into the
text of each generated artifact:

    1. Model migrations (``migration.stub``)
    2. Pivot migrations (``pivot_migration.stub``)
    3. Polymorphic pivot migrations (``polymorphic_pivot_migration.stub``)
    4. Eloquent model classes (``model.stub``)
    5. Model config files (``Data/{model}.php``, rendered as a PHP array)
    6. Sidebar menu entries (``Config/sidebar_menu.php``)

Stubs use ``{{placeholder}}`` markers.  A placeholder standing alone on a
line is replaced by its (possibly multi-line) value with the line's
indentation applied to every value line; when the value is empty the whole
line is dropped.  Inline placeholders are replaced verbatim.

Stub lookup order for a model of module ``M``:

    ``app/Modules/M/Stubs/{kind}/{Model}.stub``
    ``app/Modules/M/Stubs/{kind}/{kind}.stub``
    ``{stub_dir}/{kind}.stub``                 (``--stubs`` option)
    bundled ``scaffoldgen/stubs/{kind}.stub``
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from scaffoldgen.columns import build_column_lines, build_index_lines, is_confirmation_field
from scaffoldgen.errors import StubNotFoundError
from scaffoldgen.field_types import resolve_cast_type
from scaffoldgen.models import FieldDeclaration, GenerationConfig, ModelRecord, table_name_for
from scaffoldgen.relations import AccessorShape, PivotSpec, render_accessor
from scaffoldgen.utils import (
    class_basename,
    php_array,
    php_list_inline,
    php_quote,
    to_kebab_case,
    to_plural,
    to_snake_case,
    to_title_human,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BUNDLED_STUB_DIR: Path = Path(__file__).resolve().parent / "stubs"

STUB_MIGRATION: str = "migration"
STUB_PIVOT_MIGRATION: str = "pivot_migration"
STUB_POLYMORPHIC_PIVOT_MIGRATION: str = "polymorphic_pivot_migration"
STUB_MODEL: str = "model"

DEFAULT_SIDEBAR_ICON: str = "fas fa-cube"
SIDEBAR_GROUP_TITLE_HTML: str = (
    '<h6 class="ps-3 mt-4 mb-2 text-uppercase text-xs font-weight-bolder '
    'opacity-6 group-title">{title}</h6>'
)

# A placeholder alone on its line (group 1 indent, group 2 name) or inline (group 3).
_PLACEHOLDER_RE: re.Pattern[str] = re.compile(
    r"^([ \t]*)\{\{\s*(\w+)\s*\}\}[ \t]*$|\{\{\s*(\w+)\s*\}\}", re.MULTILINE
)
_BLANK_RUN_RE: re.Pattern[str] = re.compile(r"\n{3,}")
_DROP_LINE: str = "\x00"

# Config sections copied from the model record, with their defaults.
_CONFIG_SECTIONS: Dict[str, Any] = {
    "hiddenFields": [],
    "simpleActions": [],
    "isTransaction": False,
    "dispatchEvents": False,
    "controls": [],
    "fieldGroups": [],
    "moreActions": [],
    "switchViews": [],
}

_REPORT_MODEL_KEYS: tuple = ("model", "itemsModel", "recordModel")


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------


def fill(stub: str, values: Mapping[str, str]) -> str:
    """
    Substitute ``{{name}}`` placeholders in *stub*.

    The stub is scanned once, so markers inside substituted values are
    never expanded.  Unknown placeholders are left untouched so that custom
    stubs may carry markers this generator does not provide.
    """

    def substitute(match: re.Match[str]) -> str:
        if match.group(2) is None:
            key: str = match.group(3)
            return values.get(key, match.group(0))
        prefix, key = match.group(1), match.group(2)
        if key not in values:
            return match.group(0)
        value: str = values[key]
        if not value:
            return _DROP_LINE
        return "\n".join(prefix + line if line else line for line in value.split("\n"))

    text: str = _PLACEHOLDER_RE.sub(substitute, stub)
    text = text.replace(_DROP_LINE + "\n", "").replace(_DROP_LINE, "")
    return _BLANK_RUN_RE.sub("\n\n", text)


# ---------------------------------------------------------------------------
# Stub repository
# ---------------------------------------------------------------------------


class StubRepository:
    """Locate and read stub files following the override chain."""

    def __init__(self, config: GenerationConfig) -> None:
        self._config: GenerationConfig = config
        self._cache: Dict[Path, str] = {}

    def candidates(
        self, kind: str, module: Optional[str] = None, model_name: Optional[str] = None
    ) -> List[Path]:
        paths: List[Path] = []
        if module:
            module_stubs: Path = self._config.module_dir(module) / "Stubs" / kind
            if model_name:
                paths.append(module_stubs / f"{model_name}.stub")
            paths.append(module_stubs / f"{kind}.stub")
        if self._config.stub_dir is not None:
            paths.append(Path(self._config.stub_dir) / f"{kind}.stub")
        paths.append(BUNDLED_STUB_DIR / f"{kind}.stub")
        return paths

    def load(
        self, kind: str, module: Optional[str] = None, model_name: Optional[str] = None
    ) -> str:
        """
        Return the text of the first existing stub for *kind*.

        Raises:
            StubNotFoundError: no candidate exists.
        """
        searched: List[Path] = self.candidates(kind, module, model_name)
        for path in searched:
            if path in self._cache:
                return self._cache[path]
            if path.is_file():
                text: str = path.read_text(encoding="utf-8")
                self._cache[path] = text
                logger.debug("Using stub %s for '%s'", path, kind)
                return text
        raise StubNotFoundError(kind, searched)


# ---------------------------------------------------------------------------
# Small renderers
# ---------------------------------------------------------------------------


def _assignments(mapping: Mapping[str, Any], quote_values: bool = True) -> str:
    lines: List[str] = []
    for key, value in mapping.items():
        if isinstance(value, (list, tuple)):
            value = "|".join(str(v) for v in value)
        rendered: str = php_quote(value) if quote_values else str(value)
        lines.append(f"{php_quote(key)} => {rendered},")
    return "\n".join(lines)


def build_report_config(
    report: Mapping[str, Any], module: str, config: GenerationConfig
) -> Any:
    """Qualify model references of a ``report`` section with the module namespace."""
    if not report:
        return []
    qualified: Dict[str, Any] = dict(report)
    for key in _REPORT_MODEL_KEYS:
        if key in qualified and qualified[key]:
            qualified[key] = config.model_fqcn(module, str(qualified[key]))
    return qualified


# ---------------------------------------------------------------------------
# Template renderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """
    Stateless artifact renderer.

    Each ``render_*`` method returns the complete text of one file; nothing
    is written here.
    """

    def __init__(self, config: GenerationConfig, stubs: Optional[StubRepository] = None) -> None:
        self._config: GenerationConfig = config
        self._stubs: StubRepository = stubs or StubRepository(config)

    @property
    def stubs(self) -> StubRepository:
        return self._stubs

    # ===================================================================
    # 1. Model migration
    # ===================================================================

    def render_migration(
        self, model_name: str, record: ModelRecord, fields: Mapping[str, FieldDeclaration]
    ) -> str:
        """Migration creating the model's table (columns in declaration order)."""
        stub: str = self._stubs.load(STUB_MIGRATION, record.module, model_name)
        table: str = record.table or table_name_for(model_name, record.is_pivot)

        columns: List[str] = build_column_lines(dict(fields))
        timestamps: bool = (
            record.timestamps if record.timestamps is not None else self._config.default_timestamps
        )
        if timestamps:
            columns.append("$table->timestamps();")
        if record.soft_deletes:
            columns.append("$table->softDeletes();")

        return fill(stub, {
            "modelName": model_name,
            "module": record.module,
            "tableName": table,
            "columns": "\n".join(columns),
            "indexes": "\n".join(build_index_lines(record, dict(fields))),
        })

    # ===================================================================
    # 2/3. Pivot migrations
    # ===================================================================

    def render_pivot_migration(self, spec: PivotSpec, module: str) -> str:
        """Join table for a belongsToMany or polymorphic many-to-many relation."""
        if spec.polymorphic:
            stub: str = self._stubs.load(STUB_POLYMORPHIC_PIVOT_MIGRATION, module)
            return fill(stub, {
                "pivotTableName": spec.table,
                "module": module,
                "foreignKey": spec.key_column,
                "foreignTable": spec.key_table,
                "morphId": spec.morph_id_column or "",
                "morphType": spec.morph_type_column or "",
            })

        stub = self._stubs.load(STUB_PIVOT_MIGRATION, module)
        return fill(stub, {
            "pivotTableName": spec.table,
            "module": module,
            "foreignKey1": spec.key_column,
            "table1": spec.key_table,
            "foreignKey2": spec.other_column or "",
            "table2": spec.other_table or "",
        })

    # ===================================================================
    # 4. Model class
    # ===================================================================

    def _fillable(self, record: ModelRecord, fields: Mapping[str, FieldDeclaration]) -> List[str]:
        guarded: List[str] = list(record.section("guarded", []))
        names: List[str] = [
            name for name, decl in fields.items()
            if decl.fillable and name not in guarded and not is_confirmation_field(name)
        ]
        names.extend(record.section("fillable", []))
        return list(dict.fromkeys(names))

    def _imports(
        self, model_name: str, record: ModelRecord, shapes: Mapping[str, AccessorShape]
    ) -> List[str]:
        imports: List[str] = [str(i).lstrip("\\") for i in record.section("imports", [])]
        own_namespace: str = self._config.model_namespace(record.module)
        taken: set = {model_name} | {class_basename(i) for i in imports}
        for shape in shapes.values():
            for reference in (shape.related, shape.through):
                if not reference or reference in imports:
                    continue
                base: str = class_basename(reference)
                if reference.rsplit("\\", 1)[0] == own_namespace or base in taken:
                    continue
                imports.append(reference)
                taken.add(base)
        return [f"use {i};" for i in dict.fromkeys(imports)]

    def render_model(
        self,
        model_name: str,
        record: ModelRecord,
        fields: Mapping[str, FieldDeclaration],
        shapes: Mapping[str, AccessorShape],
    ) -> str:
        """Eloquent model with fillable, casts and relationship accessors."""
        stub: str = self._stubs.load(STUB_MODEL, record.module, model_name)
        table: str = record.table or table_name_for(model_name, record.is_pivot)

        casts: Dict[str, str] = {}
        for name, decl in fields.items():
            cast: Optional[str] = resolve_cast_type(decl.type, decl.modifiers)
            if cast is not None:
                casts[name] = cast

        traits: List[str] = [str(t).lstrip("\\") for t in record.section("traits", [])]
        display_fields: List[str] = list(record.section("displayFields", []))
        primary_key: Optional[str] = record.section("primaryKey")
        incrementing: Optional[bool] = record.section("incrementing")
        key_type: Optional[str] = record.section("keyType")
        date_format: Optional[str] = record.section("dateFormat")

        values: Dict[str, str] = {
            "namespace": self._config.model_namespace(record.module),
            "module": record.module,
            "modelName": model_name,
            "tableName": f"protected $table = {php_quote(table)};",
            "fillable": ", ".join(php_quote(n) for n in self._fillable(record, fields)),
            "guarded": ", ".join(php_quote(n) for n in record.section("guarded", [])),
            "casts": _assignments(casts),
            "imports": "\n".join(self._imports(model_name, record, shapes)),
            "traitImports": "\n".join(f"use {t};" for t in traits),
            "traitUses": f"use {', '.join(class_basename(t) for t in traits)};" if traits else "",
            "softDeletesImport": (
                "use Illuminate\\Database\\Eloquent\\SoftDeletes;" if record.soft_deletes else ""
            ),
            "softDeletes": "use SoftDeletes;" if record.soft_deletes else "",
            "displayFields": (
                f"protected $displayFields = {php_list_inline(display_fields)};"
                if display_fields else ""
            ),
            "primaryKey": (
                f"protected $primaryKey = {php_quote(primary_key)};" if primary_key else ""
            ),
            "incrementing": (
                f"public $incrementing = {'true' if incrementing else 'false'};"
                if incrementing is not None else ""
            ),
            "keyType": f"protected $keyType = {php_quote(key_type)};" if key_type else "",
            "timestamps": (
                f"public $timestamps = {'true' if record.timestamps else 'false'};"
                if record.timestamps is not None else ""
            ),
            "dateFormat": (
                f"protected $dateFormat = {php_quote(date_format)};" if date_format else ""
            ),
            "events": _assignments(record.section("events", {}), quote_values=False),
            "rules": _assignments(record.section("rules", {})),
            "messages": _assignments(record.section("messages", {})),
            "bootMethods": "\n".join(str(m) for m in record.section("bootMethods", [])),
            "relations": "\n\n".join(render_accessor(s) for s in shapes.values()),
        }
        return fill(stub, values)

    # ===================================================================
    # 5. Config file
    # ===================================================================

    def build_config_data(
        self,
        model_name: str,
        record: ModelRecord,
        field_definitions: Mapping[str, Any],
        included: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Config mapping; included fragments have lower priority than the model."""
        data: Dict[str, Any] = dict(included or {})
        data["model"] = self._config.model_fqcn(record.module, model_name)
        data["fieldDefinitions"] = dict(field_definitions)
        for section, default in _CONFIG_SECTIONS.items():
            data[section] = record.section(section, data.get(section, default))
        data["relations"] = {
            name: decl.to_document() for name, decl in record.relations.items()
        }
        data["report"] = build_report_config(
            record.section("report", {}), record.module, self._config
        )
        return data

    def render_config(
        self,
        model_name: str,
        record: ModelRecord,
        field_definitions: Mapping[str, Any],
        included: Optional[Mapping[str, Any]] = None,
    ) -> str:
        data: Dict[str, Any] = self.build_config_data(
            model_name, record, field_definitions, included
        )
        return f"<?php\n\nreturn {php_array(data)};\n"

    # ===================================================================
    # 6. Sidebar menu
    # ===================================================================

    def sidebar_entry(self, model_name: str, record: ModelRecord) -> Optional[Dict[str, Any]]:
        """Menu entry for a model, or ``None`` when ``sidebar.add`` is false."""
        sidebar: Dict[str, Any] = dict(record.section("sidebar", {}))
        if "add" in sidebar and not sidebar["add"]:
            return None

        plural: str = to_plural(model_name)
        url: str = sidebar.get("url") or to_kebab_case(plural)
        entry: Dict[str, Any] = {
            "title": sidebar.get("title") or to_title_human(plural),
            "icon": (
                sidebar.get("iconClasses")
                or record.section("iconClasses")
                or DEFAULT_SIDEBAR_ICON
            ),
            "url": f"{record.module}/{str(url).lstrip('/')}",
            "permission": sidebar.get("permission") or f"view_{to_snake_case(model_name)}",
        }
        if sidebar.get("groupTitle"):
            entry["groupTitle"] = sidebar["groupTitle"]
        if sidebar.get("itemType"):
            entry["itemType"] = sidebar["itemType"]
        submenu: Any = sidebar.get("submenu")
        if submenu and isinstance(submenu, list):
            items: List[Dict[str, Any]] = []
            for sub in submenu:
                item: Dict[str, Any] = {
                    "title": sub.get("title", "Subitem"),
                    "url": f"{record.module}/{str(sub.get('url', '')).lstrip('/')}",
                }
                for key in ("permission", "icon"):
                    if key in sub:
                        item[key] = sub[key]
                items.append(item)
            entry["submenu"] = items
        return entry

    @staticmethod
    def render_sidebar_item(entry: Mapping[str, Any]) -> str:
        return "    " + php_array(entry, indent_level=2, size=4) + ","

    @staticmethod
    def group_separator(group_title: str) -> Dict[str, Any]:
        return {
            "itemType": "item-separator",
            "title": SIDEBAR_GROUP_TITLE_HTML.format(title=group_title),
            "url": None,
        }

    def merge_sidebar(self, existing: Optional[str], entry: Mapping[str, Any]) -> Optional[str]:
        """
        Return the sidebar file text with *entry* added.

        Returns ``None`` when the rendered entry is already present.  A group
        separator is inserted ahead of the first entry of each group.
        """
        block: str = self.render_sidebar_item(entry)
        if existing is not None and block in existing:
            return None

        blocks: List[str] = []
        group: Optional[str] = entry.get("groupTitle")
        if group:
            separator: str = self.render_sidebar_item(self.group_separator(group))
            if existing is None or separator not in existing:
                blocks.append(separator)
        blocks.append(block)
        addition: str = "\n".join(blocks) + "\n"

        if existing is None or "];" not in existing:
            return "<?php\n\nreturn [\n" + addition + "];\n"

        head, _, tail = existing.rpartition("];")
        if not head.endswith("\n"):
            head += "\n"
        return head + addition + "];" + tail


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BUNDLED_STUB_DIR",
    "STUB_MIGRATION",
    "STUB_PIVOT_MIGRATION",
    "STUB_POLYMORPHIC_PIVOT_MIGRATION",
    "STUB_MODEL",
    "fill",
    "build_report_config",
    "StubRepository",
    "TemplateRenderer",
]

logger.debug("scaffoldgen.templates loaded.")
