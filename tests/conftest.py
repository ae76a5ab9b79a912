"""
tests/conftest.py
Shared fixtures for the scaffoldgen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Callable, Dict

import pytest
import yaml

from scaffoldgen.models import GenerationConfig, SchemaDocument
from scaffoldgen.reporter import Reporter
from scaffoldgen.sequencing import MigrationSequencer


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"

# 2023-11-14 22:13:20 UTC; any fixed instant will do.
FIXED_EPOCH: float = 1_700_000_000.0


def dump_yaml(data: Dict[str, Any], path: pathlib.Path) -> pathlib.Path:
    """Write *data* keeping key order (model order matters)."""
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return path


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    return dump_yaml(schema_dict, tmp_path / "schema.yaml")


@pytest.fixture()
def schema_document(schema_dict: Dict[str, Any]) -> SchemaDocument:
    return SchemaDocument.model_validate(schema_dict)


# ---------------------------------------------------------------------------
# Minimal / edge-case schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_schema_dict() -> Dict[str, Any]:
    """Smallest useful schema: one model, two fields, no relations."""
    return {
        "models": {
            "Item": {
                "module": "Inventory",
                "fields": {
                    "title": {"type": "string", "validation": "required"},
                    "quantity": {"type": "integer", "modifiers": {"default": 0}},
                },
            }
        }
    }


@pytest.fixture()
def minimal_schema_yaml_path(
    minimal_schema_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    return dump_yaml(minimal_schema_dict, tmp_path / "minimal_schema.yaml")


@pytest.fixture()
def mutual_many_to_many_dict() -> Dict[str, Any]:
    """Two models declaring belongsToMany at each other, without pivot tables."""
    return {
        "models": {
            "Student": {
                "module": "School",
                "fields": {"name": {"type": "string"}},
                "relations": {"courses": {"type": "belongsToMany", "model": "Course"}},
            },
            "Course": {
                "module": "School",
                "fields": {"title": {"type": "string"}},
                "relations": {"students": {"type": "belongsToMany", "model": "Student"}},
            },
        }
    }


# ---------------------------------------------------------------------------
# Generation fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture()
def generation_config(output_dir: pathlib.Path) -> GenerationConfig:
    return GenerationConfig(output_dir=output_dir)


@pytest.fixture()
def fixed_sequencer() -> MigrationSequencer:
    return MigrationSequencer(clock=lambda: FIXED_EPOCH)


@pytest.fixture()
def reporter() -> Reporter:
    return Reporter()


@pytest.fixture()
def sequencer_factory() -> Callable[[], MigrationSequencer]:
    """Fresh sequencers sharing the fixed clock."""
    return lambda: MigrationSequencer(clock=lambda: FIXED_EPOCH)
