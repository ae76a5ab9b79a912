# File: scaffoldgen/errors.py
"""
ScaffoldGen - Error Taxonomy
==============================
Exceptions raised by the generation pipeline.

Recoverable failures (a relation missing its ``through`` model, a partial
field-set that cannot be found) are caught by the orchestrator, reported
and the offending unit is skipped.  A missing stub aborts the artifact it
was needed for.  An unreadable schema document aborts the run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

logger: logging.Logger = logging.getLogger("scaffoldgen.errors")


class ScaffoldError(Exception):
    """Base class for every error raised by scaffoldgen."""


class SchemaLoadError(ScaffoldError):
    """The schema document could not be read, parsed or validated."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        self.path: Optional[Path] = path
        super().__init__(f"{message} ({path})" if path is not None else message)


class MissingInputError(ScaffoldError):
    """
    A declaration lacks a value that cannot be defaulted.

    ``context`` names the unit that was skipped, e.g. ``"Post.tags"``.
    """

    def __init__(self, context: str, detail: str) -> None:
        self.context: str = context
        self.detail: str = detail
        super().__init__(f"{context}: {detail}")


class StubNotFoundError(ScaffoldError):
    """No template could be located for an artifact kind."""

    def __init__(self, kind: str, searched: Sequence[Path]) -> None:
        self.kind: str = kind
        self.searched: List[Path] = list(searched)
        expected: str = ", ".join(str(p) for p in self.searched) or "<none>"
        super().__init__(f"Stub '{kind}' not found; looked in: {expected}")


class FragmentNotFoundError(ScaffoldError):
    """A partial field-set or include file could not be located."""

    def __init__(self, reference: str, searched: Sequence[Path]) -> None:
        self.reference: str = reference
        self.searched: List[Path] = list(searched)
        super().__init__(
            f"Fragment '{reference}' not found in "
            + (", ".join(str(p) for p in self.searched) or "<no search paths>")
        )


__all__: List[str] = [
    "ScaffoldError",
    "SchemaLoadError",
    "MissingInputError",
    "StubNotFoundError",
    "FragmentNotFoundError",
]

logger.debug("scaffoldgen.errors loaded.")
