"""
tests/test_templates.py
Tests for placeholder substitution, stub lookup and artifact rendering.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest

from scaffoldgen.errors import StubNotFoundError
from scaffoldgen.models import GenerationConfig, ModelRecord, SchemaDocument
from scaffoldgen.relations import PivotSpec, resolve_relations
from scaffoldgen.reporter import Reporter
from scaffoldgen.templates import (
    BUNDLED_STUB_DIR,
    STUB_MIGRATION,
    StubRepository,
    TemplateRenderer,
    build_report_config,
    fill,
)


def _record(**data: Any) -> ModelRecord:
    data.setdefault("module", "Blog")
    return ModelRecord.model_validate(data)


def _render_model(renderer: TemplateRenderer, schema: SchemaDocument, name: str) -> str:
    record = schema.models[name]
    shapes = resolve_relations(record, name, schema_models=schema.models, reporter=Reporter())
    return renderer.render_model(name, record, record.fields, shapes)


@pytest.fixture()
def renderer(generation_config: GenerationConfig) -> TemplateRenderer:
    return TemplateRenderer(generation_config)


# ===========================================================================
# fill()
# ===========================================================================


class TestFill:

    def test_standalone_value_is_indented_per_line(self) -> None:
        stub = "[\n    {{items}}\n]"
        assert fill(stub, {"items": "a,\nb,"}) == "[\n    a,\n    b,\n]"

    def test_empty_standalone_drops_line(self) -> None:
        stub = "first\n    {{nothing}}\nlast"
        assert fill(stub, {"nothing": ""}) == "first\nlast"

    def test_inline_replacement(self) -> None:
        assert fill("class {{name}} extends Model", {"name": "Post"}) == "class Post extends Model"

    def test_unknown_placeholders_kept(self) -> None:
        assert fill("{{custom}} and {{name}}", {"name": "x"}) == "{{custom}} and x"
        assert fill("    {{custom}}\n", {}) == "    {{custom}}\n"

    def test_markers_inside_values_are_kept(self) -> None:
        stub = "Schema::create('{{tableName}}', function () {\n    {{columns}}\n});"
        values = {
            "tableName": "posts",
            "columns": "$table->string('slug')->comment('{{tableName}} key');",
        }
        assert fill(stub, values) == (
            "Schema::create('posts', function () {\n"
            "    $table->string('slug')->comment('{{tableName}} key');\n"
            "});"
        )
        assert fill("{{a}} {{b}}", {"a": "{{b}}", "b": "x"}) == "{{b}} x"

    def test_blank_runs_collapse(self) -> None:
        stub = "a\n\n{{x}}\n\n\nb"
        assert fill(stub, {"x": ""}) == "a\n\nb"


# ===========================================================================
# Stub lookup
# ===========================================================================


class TestStubRepository:

    def test_bundled_fallback(self, generation_config: GenerationConfig) -> None:
        repo = StubRepository(generation_config)
        expected = (BUNDLED_STUB_DIR / "migration.stub").read_text(encoding="utf-8")
        assert repo.load(STUB_MIGRATION, "Blog", "Post") == expected

    def test_lookup_order(self, generation_config: GenerationConfig) -> None:
        repo = StubRepository(generation_config)
        stubs = generation_config.module_dir("Blog") / "Stubs" / "migration"
        assert repo.candidates("migration", "Blog", "Post") == [
            stubs / "Post.stub",
            stubs / "migration.stub",
            BUNDLED_STUB_DIR / "migration.stub",
        ]

    def test_model_specific_override_wins(self, generation_config: GenerationConfig) -> None:
        stubs = generation_config.module_dir("Blog") / "Stubs" / "migration"
        stubs.mkdir(parents=True)
        (stubs / "migration.stub").write_text("module wide", encoding="utf-8")
        (stubs / "Post.stub").write_text("post only", encoding="utf-8")
        repo = StubRepository(generation_config)
        assert repo.load("migration", "Blog", "Post") == "post only"
        assert repo.load("migration", "Blog", "Tag") == "module wide"

    def test_stub_dir_option(self, output_dir: pathlib.Path, tmp_path: pathlib.Path) -> None:
        custom = tmp_path / "custom_stubs"
        custom.mkdir()
        (custom / "model.stub").write_text("custom model", encoding="utf-8")
        repo = StubRepository(GenerationConfig(output_dir=output_dir, stub_dir=custom))
        assert repo.load("model", "Blog", "Post") == "custom model"

    def test_missing_stub(self, generation_config: GenerationConfig) -> None:
        with pytest.raises(StubNotFoundError) as exc_info:
            StubRepository(generation_config).load("seeder", "Blog", "Post")
        assert exc_info.value.searched[-1] == BUNDLED_STUB_DIR / "seeder.stub"


# ===========================================================================
# Migrations
# ===========================================================================


class TestRenderMigration:

    def test_post_migration(self, renderer: TemplateRenderer, schema_document: SchemaDocument) -> None:
        record = schema_document.models["Post"]
        text = renderer.render_migration("Post", record, record.fields)
        assert "Schema::create('posts', function (Blueprint $table) {" in text
        assert "Schema::dropIfExists('posts');" in text
        assert "            $table->string('title');\n" in text
        assert "$table->decimal('price', 10, 4)->default(0);" in text
        assert "$table->boolean('is_published')->default(false);" in text
        assert (
            "$table->foreignId('author_id')->constrained('authors', 'id')->onDelete('cascade');"
            in text
        )
        assert "$table->timestamps();" in text
        assert "$table->softDeletes();" in text
        assert "$table->index('published_at');" in text
        assert "$table->index(['author_id', 'is_published']);" in text
        assert "{{" not in text

    def test_columns_follow_id_in_order(
        self, renderer: TemplateRenderer, schema_document: SchemaDocument
    ) -> None:
        record = schema_document.models["Post"]
        text = renderer.render_migration("Post", record, record.fields)
        positions = [
            text.index(marker)
            for marker in ("$table->id();", "'title'", "'slug'", "'price'", "timestamps()")
        ]
        assert positions == sorted(positions)

    def test_table_override_and_no_timestamps(self, renderer: TemplateRenderer) -> None:
        record = _record(table="blog_entries", timestamps=False, fields={"title": {}})
        text = renderer.render_migration("Entry", record, record.fields)
        assert "Schema::create('blog_entries'" in text
        assert "timestamps()" not in text
        assert "softDeletes()" not in text

    def test_no_indexes_leaves_no_placeholder_line(self, renderer: TemplateRenderer) -> None:
        record = _record(fields={"title": {}})
        text = renderer.render_migration("Entry", record, record.fields)
        assert "            $table->timestamps();\n        });" in text


class TestRenderPivotMigration:

    def test_plain_pivot(self, renderer: TemplateRenderer) -> None:
        spec = PivotSpec(
            table="post_tag", polymorphic=False,
            key_column="post_id", key_table="posts",
            other_column="tag_id", other_table="tags",
        )
        text = renderer.render_pivot_migration(spec, "Blog")
        assert "Schema::create('post_tag'" in text
        assert "$table->foreignId('post_id')->constrained('posts')->onDelete('cascade');" in text
        assert "$table->foreignId('tag_id')->constrained('tags')->onDelete('cascade');" in text
        assert "$table->unique(['post_id', 'tag_id']);" in text

    def test_polymorphic_pivot(self, renderer: TemplateRenderer) -> None:
        spec = PivotSpec(
            table="taggables", polymorphic=True,
            key_column="tag_id", key_table="tags",
            morph_id_column="taggable_id", morph_type_column="taggable_type",
        )
        text = renderer.render_pivot_migration(spec, "Blog")
        assert "Schema::create('taggables'" in text
        assert "$table->unsignedBigInteger('taggable_id');" in text
        assert "$table->string('taggable_type');" in text
        assert "{{" not in text


# ===========================================================================
# Model classes
# ===========================================================================


class TestRenderModel:

    def test_post_model(self, renderer: TemplateRenderer, schema_document: SchemaDocument) -> None:
        text = _render_model(renderer, schema_document, "Post")
        assert "namespace App\\Modules\\Blog\\Models;" in text
        assert "class Post extends Model" in text
        assert "use Illuminate\\Database\\Eloquent\\SoftDeletes;" in text
        assert "    use SoftDeletes;" in text
        assert "    protected $table = 'posts';" in text
        assert "'price' => 'decimal:4'," in text
        assert "'is_published' => 'boolean'," in text
        assert "public function author()" in text
        assert "public function tags()" in text
        assert "public function comments()" in text
        assert "{{" not in text

    def test_fillable_excludes_confirmation(
        self, renderer: TemplateRenderer, schema_document: SchemaDocument
    ) -> None:
        text = _render_model(renderer, schema_document, "Author")
        assert "protected $fillable = ['name', 'email', 'password', 'bio'];" in text

    def test_confirmation_never_fillable(self, renderer: TemplateRenderer) -> None:
        record = _record(fields={"secret": {}, "secret_confirmation": {}})
        text = renderer.render_model("Vault", record, record.fields, {})
        assert "protected $fillable = ['secret'];" in text

    def test_guarded_and_extra_fillable(self, renderer: TemplateRenderer) -> None:
        record = _record(
            fields={"title": {}, "internal": {}},
            guarded=["internal"],
            fillable=["slug"],
        )
        text = renderer.render_model("Entry", record, record.fields, {})
        assert "protected $fillable = ['title', 'slug'];" in text
        assert "protected $guarded = ['internal'];" in text

    def test_same_module_relations_not_imported(
        self, renderer: TemplateRenderer, schema_document: SchemaDocument
    ) -> None:
        text = _render_model(renderer, schema_document, "Order")
        assert "use App\\Modules\\Sales\\Models" not in text

    def test_cross_module_relation_imported(self, renderer: TemplateRenderer) -> None:
        models: Dict[str, ModelRecord] = {
            "Invoice": _record(module="Billing", relations={
                "customer": {"type": "belongsTo", "model": "Customer"},
            }),
            "Customer": _record(module="Sales"),
        }
        shapes = resolve_relations(
            models["Invoice"], "Invoice", schema_models=models, reporter=Reporter()
        )
        text = renderer.render_model("Invoice", models["Invoice"], {}, shapes)
        assert "use App\\Modules\\Sales\\Models\\Customer;" in text

    def test_optional_sections(self, renderer: TemplateRenderer) -> None:
        record = _record(
            primaryKey="uuid",
            incrementing=False,
            keyType="string",
            timestamps=False,
            traits=["\\App\\Traits\\HasUuid"],
            displayFields=["title"],
        )
        text = renderer.render_model("Entry", record, {}, {})
        assert "protected $primaryKey = 'uuid';" in text
        assert "public $incrementing = false;" in text
        assert "protected $keyType = 'string';" in text
        assert "public $timestamps = false;" in text
        assert "use App\\Traits\\HasUuid;" in text
        assert "    use HasUuid;" in text
        assert "protected $displayFields = ['title'];" in text

    def test_plain_model_has_no_optional_lines(self, renderer: TemplateRenderer) -> None:
        text = renderer.render_model("Entry", _record(), {}, {})
        assert "$primaryKey" not in text
        assert "SoftDeletes" not in text
        assert "$displayFields" not in text


# ===========================================================================
# Config files
# ===========================================================================


class TestRenderConfig:

    def test_config_layout(self, renderer: TemplateRenderer, schema_document: SchemaDocument) -> None:
        record = schema_document.models["Post"]
        definitions = {"title": {"field_type": "string", "label": "Title"}}
        text = renderer.render_config("Post", record, definitions)
        assert text.startswith("<?php\n\nreturn [\n")
        assert text.endswith("];\n")
        assert "'model' => 'App\\\\Modules\\\\Blog\\\\Models\\\\Post'," in text
        assert "'fieldDefinitions' => [" in text
        assert "'label' => 'Title'," in text
        assert "'isTransaction' => false," in text

    def test_section_order(self, renderer: TemplateRenderer, schema_document: SchemaDocument) -> None:
        data = renderer.build_config_data("Post", schema_document.models["Post"], {})
        assert list(data)[:3] == ["model", "fieldDefinitions", "hiddenFields"]
        assert list(data)[-2:] == ["relations", "report"]
        assert data["relations"]["author"]["displayField"] == "name"

    def test_model_sections_win_over_includes(self, renderer: TemplateRenderer) -> None:
        record = _record(hiddenFields=["secret"])
        data = renderer.build_config_data(
            "Entry", record, {},
            included={"hiddenFields": ["other"], "controls": ["export"], "extra": 1},
        )
        assert data["hiddenFields"] == ["secret"]
        assert data["controls"] == ["export"]
        assert data["extra"] == 1

    def test_report_models_qualified(self, generation_config: GenerationConfig) -> None:
        report = build_report_config({"model": "Order", "title": "Orders"}, "Sales", generation_config)
        assert report == {"model": "App\\Modules\\Sales\\Models\\Order", "title": "Orders"}
        assert build_report_config({}, "Sales", generation_config) == []


# ===========================================================================
# Sidebar
# ===========================================================================


class TestSidebar:

    def test_entry_from_sidebar_section(
        self, renderer: TemplateRenderer, schema_document: SchemaDocument
    ) -> None:
        entry = renderer.sidebar_entry("Author", schema_document.models["Author"])
        assert entry == {
            "title": "Writers",
            "icon": "fas fa-user-pen",
            "url": "Blog/authors",
            "permission": "view_author",
            "groupTitle": "Blog",
        }

    def test_entry_defaults(self, renderer: TemplateRenderer) -> None:
        entry = renderer.sidebar_entry("OrderItem", _record(module="Sales"))
        assert entry == {
            "title": "Order Items",
            "icon": "fas fa-cube",
            "url": "Sales/order-items",
            "permission": "view_order_item",
        }

    def test_add_false(self, renderer: TemplateRenderer, schema_document: SchemaDocument) -> None:
        assert renderer.sidebar_entry("Comment", schema_document.models["Comment"]) is None

    def test_submenu(self, renderer: TemplateRenderer) -> None:
        record = _record(sidebar={"submenu": [{"title": "Drafts", "url": "/posts/drafts"}]})
        entry = renderer.sidebar_entry("Post", record)
        assert entry["submenu"] == [{"title": "Drafts", "url": "Blog/posts/drafts"}]

    def test_merge_creates_file(self, renderer: TemplateRenderer) -> None:
        entry = renderer.sidebar_entry("OrderItem", _record(module="Sales"))
        text = renderer.merge_sidebar(None, entry)
        assert text.startswith("<?php\n\nreturn [\n    [\n")
        assert "        'url' => 'Sales/order-items',\n" in text
        assert text.endswith("    ],\n];\n")

    def test_merge_appends_before_closing_bracket(self, renderer: TemplateRenderer) -> None:
        first = renderer.merge_sidebar(None, renderer.sidebar_entry("Order", _record(module="Sales")))
        second = renderer.merge_sidebar(
            first, renderer.sidebar_entry("Customer", _record(module="Sales"))
        )
        assert second.index("Sales/orders") < second.index("Sales/customers")
        assert second.count("];") == 1
        assert second.endswith("];\n")

    def test_duplicate_entry_returns_none(self, renderer: TemplateRenderer) -> None:
        entry = renderer.sidebar_entry("Order", _record(module="Sales"))
        text = renderer.merge_sidebar(None, entry)
        assert renderer.merge_sidebar(text, entry) is None

    def test_group_separator_once_per_group(self, renderer: TemplateRenderer) -> None:
        sidebar = {"groupTitle": "Blog"}
        text = renderer.merge_sidebar(None, renderer.sidebar_entry("Post", _record(sidebar=sidebar)))
        text = renderer.merge_sidebar(text, renderer.sidebar_entry("Tag", _record(sidebar=sidebar)))
        assert text.count("'itemType' => 'item-separator',") == 1
        assert text.index("group-title") < text.index("Blog/posts")
