# File: scaffoldgen/exporters.py
"""
ScaffoldGen - Artifact Writer (File-System Manager)
=====================================================

Responsible for:
    1. Creating module directories under the output root on demand.
    2. Writing generated artifacts atomically (write-to-temp then rename).
    3. Applying the overwrite policy: an existing artifact is left untouched
       unless the model sets ``override`` or the run uses ``--force``.
    4. Merging into append-style artifacts (the sidebar menu) so that a
       repeated run adds nothing twice.
    5. Recording every decision in a manifest with checksums.

In a dry run nothing touches the disk, but written contents are kept in
memory so later merges in the same run see them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from scaffoldgen.models import GenerationConfig
from scaffoldgen.utils import count_lines, read_file, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("scaffoldgen.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


class WriteAction(str, Enum):
    """Outcome of one write request."""

    CREATED = "created"
    OVERWRITTEN = "overwritten"
    UPDATED = "updated"
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    PLANNED = "planned"


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single artifact decision."""

    kind: str
    relative_path: str
    absolute_path: str
    action: WriteAction
    size_bytes: int = 0
    line_count: int = 0
    sha256: str = ""

    @property
    def written(self) -> bool:
        return self.action in (WriteAction.CREATED, WriteAction.OVERWRITTEN, WriteAction.UPDATED)


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """All artifact decisions of one run."""

    output_directory: str = ""
    dry_run: bool = False
    files: List[FileRecord] = field(default_factory=list)

    def by_action(self, action: WriteAction) -> List[FileRecord]:
        return [f for f in self.files if f.action is action]

    @property
    def total_written(self) -> int:
        return sum(1 for f in self.files if f.written)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files if f.written)

    def to_dict(self) -> Dict[str, Any]:
        """Convert manifest to a JSON-serialisable dictionary."""
        return {
            "output_directory": self.output_directory,
            "dry_run": self.dry_run,
            "total_written": self.total_written,
            "total_bytes": self.total_bytes,
            "files": [
                {
                    "kind": f.kind,
                    "relative_path": f.relative_path,
                    "action": f.action.value,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        """Serialise manifest to pretty-printed JSON."""
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


# ---------------------------------------------------------------------------
# ArtifactWriter class
# ---------------------------------------------------------------------------


class ArtifactWriter:
    """
    Writes generated artifacts under the configured output directory.

    Usage::

        writer = ArtifactWriter(config)
        writer.write(path, content, kind="model", overwrite=False)
        writer.update(sidebar_path, merge, kind="sidebar")
        print(writer.manifest().to_json())

    Not thread-safe; use one writer per run.
    """

    def __init__(self, config: GenerationConfig) -> None:
        self._config: GenerationConfig = config
        self._root: Path = Path(config.output_dir).resolve()
        self._records: List[FileRecord] = []
        self._pending: Dict[Path, str] = {}

        logger.debug(
            "ArtifactWriter initialised: output_dir=%s, dry_run=%s.",
            self._root,
            config.dry_run,
        )

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def records(self) -> List[FileRecord]:
        return list(self._records)

    def exists(self, path: Path) -> bool:
        """True if *path* exists on disk or was written earlier in this dry run."""
        return path.resolve() in self._pending or path.exists()

    def read(self, path: Path) -> Optional[str]:
        resolved: Path = path.resolve()
        if resolved in self._pending:
            return self._pending[resolved]
        if path.is_file():
            return read_file(path)
        return None

    def manifest(self) -> ExportManifest:
        return ExportManifest(
            output_directory=str(self._root),
            dry_run=self._config.dry_run,
            files=list(self._records),
        )

    # -----------------------------------------------------------------
    # Writing
    # -----------------------------------------------------------------

    def _relative(self, path: Path) -> str:
        try:
            return str(path.resolve().relative_to(self._root))
        except ValueError:
            return str(path)

    def _commit(self, path: Path, content: str, kind: str, action: WriteAction) -> FileRecord:
        if self._config.dry_run:
            self._pending[path.resolve()] = content
            action = WriteAction.PLANNED
        else:
            write_file(path, content)

        record = FileRecord(
            kind=kind,
            relative_path=self._relative(path),
            absolute_path=str(path),
            action=action,
            size_bytes=len(content.encode("utf-8")),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        self._records.append(record)
        logger.info("%s %s: %s", action.value.capitalize(), kind, record.relative_path)
        return record

    def _skip(self, path: Path, kind: str, action: WriteAction, reason: str) -> FileRecord:
        record = FileRecord(
            kind=kind,
            relative_path=self._relative(path),
            absolute_path=str(path),
            action=action,
        )
        self._records.append(record)
        logger.info("Skipped %s %s: %s", kind, record.relative_path, reason)
        return record

    def write(self, path: Path, content: str, *, kind: str, overwrite: bool = False) -> FileRecord:
        """
        Create *path* with *content*.

        An existing file is only replaced when *overwrite* (model
        ``override``) or the run-level ``force`` flag is set.

        Raises:
            OSError: the file could not be written.
        """
        existed: bool = self.exists(path)
        if existed and not (overwrite or self._config.force):
            return self._skip(
                path, kind, WriteAction.SKIPPED, "already exists (use override to regenerate)"
            )
        action: WriteAction = WriteAction.OVERWRITTEN if existed else WriteAction.CREATED
        return self._commit(path, content, kind, action)

    def update(
        self,
        path: Path,
        transform: Callable[[Optional[str]], Optional[str]],
        *,
        kind: str,
    ) -> FileRecord:
        """
        Merge into an append-style artifact.

        *transform* receives the current text (``None`` if the file does not
        exist) and returns the new text, or ``None`` when nothing changes.
        """
        current: Optional[str] = self.read(path)
        updated: Optional[str] = transform(current)
        if updated is None or updated == current:
            return self._skip(path, kind, WriteAction.UNCHANGED, "entry already present")
        action: WriteAction = WriteAction.CREATED if current is None else WriteAction.UPDATED
        return self._commit(path, updated, kind, action)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "WriteAction",
    "FileRecord",
    "ExportManifest",
    "ArtifactWriter",
]

logger.debug("scaffoldgen.exporters loaded.")
