"""
tests/test_validators.py
Unit tests for scaffoldgen.validators.

Tests cover:
- ValidationResult bookkeeping and report formatting
- Model and module name checks
- Foreign-key spec checks
- Relation target / through / pivot checks
- Index column checks
- Full validation pipeline (validate_full)
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from scaffoldgen.models import SchemaDocument
from scaffoldgen.validators import (
    ValidationError,
    ValidationResult,
    validate_fields,
    validate_full,
    validate_indexes,
    validate_model_names,
    validate_relations,
)


def _schema(models: Dict[str, Any]) -> SchemaDocument:
    return SchemaDocument.model_validate({"models": models})


def _codes(result: ValidationResult) -> List[str]:
    return [item.code for item in result.all_items]


# ===========================================================================
# ValidationResult
# ===========================================================================


class TestValidationResult:

    def test_empty_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result) is True
        assert len(result) == 0

    def test_levels(self) -> None:
        result = ValidationResult()
        result.add_error("E1", "bad", {"model": "Post"})
        result.add_warning("W1", "meh")
        result.add_info("I1", "fyi")
        assert result.error_count == 1
        assert result.warning_count == 1
        assert len(result) == 3
        assert not result
        assert result.failed_models() == {"Post"}

    def test_relation_errors_do_not_fail_model(self) -> None:
        result = ValidationResult()
        result.add_error("E1", "no model", {"model": "Post", "relation": "owner"})
        result.add_error("E2", "bad field", {"model": "Tag", "field": "name"})
        assert result.failed_models() == {"Tag"}

    def test_merge(self) -> None:
        first, second = ValidationResult(), ValidationResult()
        first.add_error("E1", "a")
        second.add_error("E2", "b")
        first.merge(second)
        assert [e.code for e in first.errors] == ["E1", "E2"]

    def test_format_report_hides_info_by_default(self) -> None:
        result = ValidationResult()
        result.add_error("E1", "broken", {"model": "Post"})
        result.add_info("I1", "fyi")
        report = result.format_report()
        assert "[E1] broken" in report
        assert "model: Post" in report
        assert "I1" not in report
        assert "I1" in result.format_report(include_info=True)

    def test_error_repr(self) -> None:
        assert repr(ValidationError("warning", "W", "msg")) == "[WARNING] W: msg"


# ===========================================================================
# Individual checks
# ===========================================================================


class TestModelNames:

    def test_valid(self, schema_document: SchemaDocument) -> None:
        assert len(validate_model_names(schema_document)) == 0

    def test_invalid_class_name(self) -> None:
        result = validate_model_names(_schema({"Order-Item": {"module": "Sales"}}))
        assert _codes(result) == ["INVALID_MODEL_NAME"]
        assert result.failed_models() == {"Order-Item"}

    def test_not_studly_is_warning(self) -> None:
        result = validate_model_names(_schema({"order_item": {"module": "Sales"}}))
        assert _codes(result) == ["MODEL_NAME_NOT_STUDLY"]
        assert result.is_valid

    def test_invalid_module(self) -> None:
        result = validate_model_names(_schema({"Order": {"module": "Sales Dept"}}))
        assert _codes(result) == ["INVALID_MODULE_NAME"]


class TestFields:

    def test_foreign_without_table(self) -> None:
        result = validate_fields(_schema({
            "Order": {"module": "Sales", "fields": {"customer_id": {"foreign": {"column": "id"}}}},
        }))
        assert _codes(result) == ["FOREIGN_WITHOUT_TABLE"]
        assert result.errors[0].context == {"model": "Order", "field": "customer_id"}

    def test_unknown_action_is_info(self) -> None:
        result = validate_fields(_schema({
            "Order": {
                "module": "Sales",
                "fields": {"customer_id": {"foreign": {"table": "customers", "onDelete": "wipe"}}},
            },
        }))
        assert _codes(result) == ["UNKNOWN_FK_ACTION"]
        assert result.is_valid

    def test_partials_skipped(self) -> None:
        result = validate_fields(_schema({
            "Order": {"module": "Sales", "fields": {"audit": {"partial": "audit.yaml"}}},
        }))
        assert len(result) == 0


class TestRelations:

    def test_reference_schema_is_clean(self, schema_document: SchemaDocument) -> None:
        assert len(validate_relations(schema_document)) == 0

    @pytest.mark.parametrize(
        "relation, code",
        [
            ({"type": "manyToMany", "model": "Tag"}, "UNKNOWN_RELATION_KIND"),
            ({"type": "hasMany"}, "RELATION_WITHOUT_MODEL"),
            ({"type": "hasManyThrough", "model": "Tag"}, "THROUGH_WITHOUT_MODEL"),
        ],
    )
    def test_errors(self, relation: Dict[str, Any], code: str) -> None:
        result = validate_relations(_schema({
            "Post": {"module": "Blog", "relations": {"rel": relation}},
            "Tag": {"module": "Blog"},
        }))
        assert code in _codes(result)
        assert not result.is_valid
        assert result.failed_models() == set()

    def test_morph_to_needs_no_model(self) -> None:
        result = validate_relations(_schema({
            "Comment": {"module": "Blog", "relations": {"commentable": {"type": "morphTo"}}},
        }))
        assert len(result) == 0

    def test_morph_pivot_without_table_is_warning(self) -> None:
        result = validate_relations(_schema({
            "Post": {
                "module": "Blog",
                "relations": {"tags": {"type": "morphToMany", "model": "Tag", "morphName": "taggable"}},
            },
            "Tag": {"module": "Blog"},
        }))
        assert _codes(result) == ["MORPH_PIVOT_WITHOUT_TABLE"]
        assert result.is_valid

    def test_undeclared_target_is_info(self) -> None:
        result = validate_relations(_schema({
            "Post": {"module": "Blog", "relations": {"owner": {"type": "belongsTo", "model": "User"}}},
        }))
        assert _codes(result) == ["RELATED_MODEL_NOT_DECLARED"]
        assert result.is_valid

    def test_fqcn_target_not_reported(self) -> None:
        result = validate_relations(_schema({
            "Post": {
                "module": "Blog",
                "relations": {"owner": {"type": "belongsTo", "model": "\\App\\Models\\User"}},
            },
        }))
        assert len(result) == 0


class TestIndexes:

    def test_unknown_column(self) -> None:
        result = validate_indexes(_schema({
            "Post": {
                "module": "Blog",
                "fields": {"title": {}},
                "indexes": ["title"],
                "compoundUniqueIndexes": [["title", "slug"]],
            },
        }))
        assert _codes(result) == ["INDEX_UNKNOWN_COLUMN"]
        assert result.warnings[0].context["column"] == "slug"

    def test_models_with_partials_skipped(self) -> None:
        result = validate_indexes(_schema({
            "Post": {
                "module": "Blog",
                "fields": {"audit": {"partial": "audit.yaml"}},
                "indexes": ["approved_at"],
            },
        }))
        assert len(result) == 0


# ===========================================================================
# Full pipeline
# ===========================================================================


class TestValidateFull:

    def test_reference_schema_passes(self, schema_document: SchemaDocument) -> None:
        result = validate_full(schema_document)
        assert result.is_valid
        assert result.warning_count == 0

    def test_collects_every_check(self) -> None:
        result = validate_full(_schema({
            "bad-name": {"module": "Blog"},
            "Post": {
                "module": "Blog",
                "fields": {"author_id": {"foreign": {}}},
                "relations": {"rel": {"type": "nope"}},
                "indexes": ["missing"],
            },
        }))
        assert set(_codes(result)) == {
            "INVALID_MODEL_NAME",
            "FOREIGN_WITHOUT_TABLE",
            "UNKNOWN_RELATION_KIND",
            "INDEX_UNKNOWN_COLUMN",
        }
        assert result.failed_models() == {"bad-name", "Post"}
