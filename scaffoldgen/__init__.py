# File: scaffoldgen/__init__.py
"""
ScaffoldGen - Schema-Driven Scaffolding for Modular Laravel Applications
==========================================================================

Reads a declarative model description (YAML/JSON) and writes migrations,
Eloquent model classes, model config files and sidebar menu entries laid
out under ``app/Modules/{Module}/``.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ScaffoldGenerator │────▶│ TemplateRenderer │
    │   (cli.py)   │     │  (generator.py)   │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
          ┌──────────────┬────────┼─────────┬───────────────┐
          ▼              ▼        ▼         ▼               ▼
    ┌──────────┐ ┌─────────────┐ ┌─────────┐ ┌────────────┐ ┌───────────┐
    │validators│ │field_types /│ │relations│ │ sequencing │ │ exporters │
    │  (.py)   │ │ columns     │ │ (.py)   │ │   (.py)    │ │   (.py)   │
    └──────────┘ └─────────────┘ └─────────┘ └────────────┘ └───────────┘

Usage::

    # As a library
    from scaffoldgen import ScaffoldGenerator, load_schema_file, parse_raw_schema
    schema, config = parse_raw_schema(load_schema_file(path), source_path=path)
    report = ScaffoldGenerator(config).generate(schema)

    # From the command line
    scaffoldgen --schema schema.yaml --output . --verbose
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from scaffoldgen.columns import ColumnDefinition, build_column
from scaffoldgen.errors import (
    FragmentNotFoundError,
    MissingInputError,
    ScaffoldError,
    SchemaLoadError,
    StubNotFoundError,
)
from scaffoldgen.exporters import ArtifactWriter, ExportManifest
from scaffoldgen.field_metadata import build_field_metadata
from scaffoldgen.field_types import resolve_cast_type, resolve_storage_type, resolve_ui_type
from scaffoldgen.fragments import FragmentLoader
from scaffoldgen.generator import (
    GenerationReport,
    ScaffoldGenerator,
    load_schema_file,
    parse_raw_schema,
)
from scaffoldgen.models import (
    FieldDeclaration,
    GenerationConfig,
    ModelRecord,
    RelationDeclaration,
    RelationKind,
    SchemaDocument,
)
from scaffoldgen.relations import AccessorShape, build_relation_accessor
from scaffoldgen.reporter import Reporter
from scaffoldgen.sequencing import MigrationPathAllocator, MigrationSequencer
from scaffoldgen.templates import TemplateRenderer
from scaffoldgen.validators import ValidationResult, validate_full

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "ScaffoldGenerator",
    "GenerationReport",
    "load_schema_file",
    "parse_raw_schema",
    # Models
    "FieldDeclaration",
    "GenerationConfig",
    "ModelRecord",
    "RelationDeclaration",
    "RelationKind",
    "SchemaDocument",
    # Core engine
    "resolve_storage_type",
    "resolve_ui_type",
    "resolve_cast_type",
    "ColumnDefinition",
    "build_column",
    "AccessorShape",
    "build_relation_accessor",
    "build_field_metadata",
    "MigrationSequencer",
    "MigrationPathAllocator",
    # Collaborators
    "FragmentLoader",
    "Reporter",
    "TemplateRenderer",
    "ArtifactWriter",
    "ExportManifest",
    "validate_full",
    "ValidationResult",
    # Errors
    "ScaffoldError",
    "SchemaLoadError",
    "MissingInputError",
    "StubNotFoundError",
    "FragmentNotFoundError",
]
