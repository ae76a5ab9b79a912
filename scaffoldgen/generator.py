# File: scaffoldgen/generator.py
"""
ScaffoldGen - Master Generation Pipeline (Orchestrator)
=========================================================

Connects every phase together:

    Schema Input → Validation → Per-Model Generation → File Writes

Workflow::

    1. Load the schema document from a JSON/YAML file.
    2. Parse it into ``SchemaDocument`` + ``GenerationConfig`` (models.py).
    3. Run the validation checks (validators.py).
    4. For every model, in declaration order:
         a. expand partial field-sets (fragments.py)
         b. resolve relationship accessors (relations.py)
         c. write the model migration, then its pivot migrations
         d. write the model class and the config file (templates.py)
         e. merge the sidebar menu entry
    5. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Validation errors skip the offending model; with ``strict`` they
      abort the run before anything is written.
    - A missing stub aborts the model it was needed for; the next model
      is still generated.
    - Write failures are recorded as export errors.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from scaffoldgen.errors import (
    FragmentNotFoundError,
    MissingInputError,
    SchemaLoadError,
    StubNotFoundError,
)
from scaffoldgen.exporters import ArtifactWriter, ExportManifest, WriteAction
from scaffoldgen.field_metadata import build_field_metadata
from scaffoldgen.fragments import FragmentLoader, expand_fields
from scaffoldgen.models import FieldDeclaration, GenerationConfig, ModelRecord, SchemaDocument
from scaffoldgen.relations import AccessorShape, PivotSpec, build_pivot_spec, resolve_relations
from scaffoldgen.reporter import Reporter
from scaffoldgen.sequencing import MigrationPathAllocator, MigrationSequencer
from scaffoldgen.templates import TemplateRenderer
from scaffoldgen.utils import Timer, to_snake_case
from scaffoldgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.generator")

MODELS_SUBDIR: str = "Models"
DATA_SUBDIR: str = "Data"
SIDEBAR_FILE: Path = Path("Config") / "sidebar_menu.php"


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``ScaffoldGenerator.generate()``.

    Contains timing information, file decisions, validation findings and
    any errors encountered.
    """

    success: bool = False
    output_directory: str = ""
    dry_run: bool = False

    total_models_processed: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    generation_warnings: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    skipped_models: List[str] = field(default_factory=list)

    manifest: Optional[ExportManifest] = None

    @property
    def files_written(self) -> List[str]:
        if self.manifest is None:
            return []
        return [
            f.relative_path for f in self.manifest.files
            if f.written or f.action is WriteAction.PLANNED
        ]

    @property
    def files_skipped(self) -> List[str]:
        if self.manifest is None:
            return []
        return [
            f.relative_path for f in self.manifest.files
            if f.action in (WriteAction.SKIPPED, WriteAction.UNCHANGED)
        ]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  ScaffoldGen - Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}{'  (dry run)' if self.dry_run else ''}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Models processed: {self.total_models_processed}")
        lines.append(f"  Files written:    {len(self.files_written)}")
        lines.append(f"  Files skipped:    {len(self.files_skipped)}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: List[Tuple[str, str, List[str]]] = [
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
            ("Generation Warnings", "⚠", self.generation_warnings),
            ("Export Errors", "✗", self.export_errors),
            ("Skipped Models", "⊘", self.skipped_models),
        ]
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"Invalid JSON: {exc}", path) from exc
    if not isinstance(data, dict):
        raise SchemaLoadError(
            f"Expected a JSON object at top level, got {type(data).__name__}", path
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Invalid YAML: {exc}", path) from exc
    if not isinstance(data, dict):
        raise SchemaLoadError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}", path
        )
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema document (JSON or YAML), dispatching on the extension.

    Raises:
        SchemaLoadError: the file is missing or cannot be parsed.
    """
    if not path.exists():
        raise SchemaLoadError("Schema file not found", path)
    if not path.is_file():
        raise SchemaLoadError("Schema path is not a file", path)

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' - trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except SchemaLoadError:
        return _load_yaml_file(path)


def parse_raw_schema(
    raw: Dict[str, Any],
    *,
    source_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[SchemaDocument, GenerationConfig]:
    """
    Parse a raw mapping into the schema document and the run configuration.

    The document's ``config`` section supplies defaults; *overrides* (from
    the command line) win over it.

    Raises:
        SchemaLoadError: the mapping does not describe a valid document.
    """
    try:
        schema: SchemaDocument = SchemaDocument.model_validate(raw)
    except PydanticValidationError as exc:
        raise SchemaLoadError(f"Schema validation failed: {exc}", source_path) from exc
    schema.source_path = source_path

    config_data: Dict[str, Any] = dict(schema.config)
    if overrides:
        config_data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        config: GenerationConfig = GenerationConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise SchemaLoadError(f"Config validation failed: {exc}", source_path) from exc

    return schema, config


# ---------------------------------------------------------------------------
# ScaffoldGenerator - master orchestrator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """
    Pipeline orchestrator.

    Usage::

        schema, config = parse_raw_schema(load_schema_file(path), source_path=path)
        report = ScaffoldGenerator(config).generate(schema)
        print(report.summary())

    One instance per run: the migration sequencer and the writer's manifest
    belong to the run.
    """

    def __init__(
        self,
        config: GenerationConfig,
        *,
        strict: bool = False,
        reporter: Optional[Reporter] = None,
        sequencer: Optional[MigrationSequencer] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self._config: GenerationConfig = config
        self._strict: bool = strict
        self._reporter: Reporter = reporter or Reporter()
        self._allocator: MigrationPathAllocator = MigrationPathAllocator(config, sequencer)
        self._renderer: TemplateRenderer = renderer or TemplateRenderer(config)
        self._writer: ArtifactWriter = ArtifactWriter(config)

        logger.debug(
            "ScaffoldGenerator initialised: strict=%s, force=%s, dry_run=%s.",
            strict,
            config.force,
            config.dry_run,
        )

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    # -----------------------------------------------------------------
    # Public entry points
    # -----------------------------------------------------------------

    @classmethod
    def from_file(
        cls,
        schema_path: Path,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
        strict: bool = False,
    ) -> Tuple["ScaffoldGenerator", SchemaDocument]:
        """Load *schema_path* and build a generator configured from it."""
        raw: Dict[str, Any] = load_schema_file(schema_path)
        schema, config = parse_raw_schema(raw, source_path=schema_path, overrides=overrides)
        logger.info("Loaded schema %s: %d model(s).", schema_path, len(schema.models))
        return cls(config, strict=strict), schema

    def generate(self, schema: SchemaDocument) -> GenerationReport:
        """Full pipeline from a parsed document."""
        report: GenerationReport = GenerationReport(
            output_directory=str(Path(self._config.output_dir).resolve()),
            dry_run=self._config.dry_run,
        )
        pipeline_start: float = time.perf_counter()

        failed: Optional[Set[str]] = self._step_validate(schema, report)
        if failed is not None:
            self._step_generate(schema, failed, report)

        report.manifest = self._writer.manifest()
        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self, schema: SchemaDocument, report: GenerationReport
    ) -> Optional[Set[str]]:
        """
        Run the checks; return the models to skip, or ``None`` to abort.
        """
        with Timer("validation") as t:
            result: ValidationResult = validate_full(schema)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Schema",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=result.summary(),
        ))

        if result.has_errors and self._strict:
            logger.error("Strict mode: aborting on %d validation error(s).", result.error_count)
            return None
        return result.failed_models()

    # -----------------------------------------------------------------
    # Pipeline step: Generation
    # -----------------------------------------------------------------

    def _step_generate(
        self, schema: SchemaDocument, failed: Set[str], report: GenerationReport
    ) -> None:
        fragments: FragmentLoader = FragmentLoader(
            [schema.source_path.parent] if schema.source_path is not None else []
        )

        with Timer("generation") as t:
            for model_name in schema.declaration_order:
                if model_name in failed:
                    report.skipped_models.append(f"{model_name} (validation errors)")
                    continue
                record: ModelRecord = schema.models[model_name]
                try:
                    self._generate_model(model_name, record, schema, fragments)
                    report.total_models_processed += 1
                except StubNotFoundError as exc:
                    report.generation_errors.append(f"{model_name}: {exc}")
                    report.skipped_models.append(f"{model_name} (missing stub '{exc.kind}')")
                    logger.error("Aborted %s: %s", model_name, exc)
                except OSError as exc:
                    report.export_errors.append(f"{model_name}: {exc}")
                    logger.error("Write failed for %s: %s", model_name, exc)

        report.generation_errors.extend(str(e) for e in self._reporter.errors)
        report.generation_warnings.extend(str(w) for w in self._reporter.warnings)

        manifest: ExportManifest = self._writer.manifest()
        report.step_metrics.append(GenerationStepMetric(
            step_name="Generate Artifacts",
            success=not report.generation_errors and not report.export_errors,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{report.total_models_processed} model(s), "
                f"{manifest.total_written} written, "
                f"{len(manifest.by_action(WriteAction.SKIPPED))} skipped"
            ),
        ))

    def _generate_model(
        self,
        model_name: str,
        record: ModelRecord,
        schema: SchemaDocument,
        fragments: FragmentLoader,
    ) -> None:
        config: GenerationConfig = self._config
        module_dir: Path = config.module_dir(record.module)
        loader: FragmentLoader = fragments.with_paths(module_dir / DATA_SUBDIR)

        logger.info("Generating %s (module %s)", model_name, record.module)

        # Missing partials are reported once, by the metadata builder.
        fields: Dict[str, FieldDeclaration] = expand_fields(record.fields, loader)
        shapes: Dict[str, AccessorShape] = resolve_relations(
            record,
            model_name,
            schema_models=schema.models,
            reporter=self._reporter,
            namespace_root=config.namespace_root,
        )

        migration_path: Path = self._allocator.allocate_migration_path(
            record.module, model_name, record.is_pivot
        )
        self._writer.write(
            migration_path,
            self._renderer.render_migration(model_name, record, fields),
            kind="migration",
            overwrite=record.override,
        )

        for shape in shapes.values():
            self._generate_pivot(model_name, record, shape, schema)

        self._writer.write(
            module_dir / MODELS_SUBDIR / f"{model_name}.php",
            self._renderer.render_model(model_name, record, fields, shapes),
            kind="model",
            overwrite=record.override,
        )

        field_definitions: Dict[str, Dict[str, Any]] = build_field_metadata(
            record,
            model_name=model_name,
            fragments=loader,
            reporter=self._reporter,
            schema_models=schema.models,
            shapes=shapes,
            namespace_root=config.namespace_root,
        )
        self._writer.write(
            module_dir / DATA_SUBDIR / f"{to_snake_case(model_name)}.php",
            self._renderer.render_config(
                model_name, record, field_definitions, self._load_includes(model_name, record, loader)
            ),
            kind="config",
            overwrite=record.override,
        )

        if config.generate_sidebar:
            entry: Optional[Dict[str, Any]] = self._renderer.sidebar_entry(model_name, record)
            if entry is not None:
                self._writer.update(
                    module_dir / SIDEBAR_FILE,
                    lambda existing: self._renderer.merge_sidebar(existing, entry),
                    kind="sidebar",
                )

    def _generate_pivot(
        self,
        model_name: str,
        record: ModelRecord,
        shape: AccessorShape,
        schema: SchemaDocument,
    ) -> None:
        """Write the join-table migration behind *shape*, once per table."""
        try:
            spec: Optional[PivotSpec] = build_pivot_spec(shape, model_name, schema.models)
        except MissingInputError as exc:
            self._reporter.warning(exc.detail, context=exc.context)
            return
        if spec is None:
            return

        if self._allocator.was_allocated(record.module, spec.table, is_pivot=True):
            logger.debug("Pivot %s already handled in this run", spec.table)
            return

        path: Path = self._allocator.allocate_migration_path(
            record.module, spec.table, is_pivot=True
        )
        self._writer.write(
            path,
            self._renderer.render_pivot_migration(spec, record.module),
            kind="polymorphic_pivot_migration" if spec.polymorphic else "pivot_migration",
            overwrite=record.override,
        )

    def _load_includes(
        self, model_name: str, record: ModelRecord, loader: FragmentLoader
    ) -> Dict[str, Any]:
        """Merge the ``includes`` fragments in order; later ones win."""
        included: Dict[str, Any] = {}
        references: Any = record.section("includes", [])
        if isinstance(references, str):
            references = [references]
        for reference in references:
            try:
                included.update(loader.load_fragment(str(reference)))
            except (FragmentNotFoundError, SchemaLoadError) as exc:
                self._reporter.warning(str(exc), context=model_name)
        return included

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        logger.info(
            "Run finished: %s in %.3fs.",
            "success" if report.success else "failed",
            total_elapsed,
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ScaffoldGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_schema_file",
    "parse_raw_schema",
]

logger.debug("scaffoldgen.generator loaded.")
