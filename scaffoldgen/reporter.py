# File: scaffoldgen/reporter.py
"""
ScaffoldGen - Run Reporter
============================
Explicit message sink handed to every generator.

A :class:`Reporter` forwards each message to a standard ``logging`` logger
and keeps a copy so the run report can list what happened after the fact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ReportLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    ReportLevel.INFO: logging.INFO,
    ReportLevel.WARNING: logging.WARNING,
    ReportLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class ReportEntry:
    level: ReportLevel
    message: str
    context: Optional[str] = None

    def __str__(self) -> str:
        prefix: str = f"[{self.context}] " if self.context else ""
        return f"{self.level.value.upper():<7} {prefix}{self.message}"


@dataclass(slots=True)
class Reporter:
    """Collects info / warning / error messages while logging them."""

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("scaffoldgen.reporter")
    )
    entries: List[ReportEntry] = field(default_factory=list)

    def _record(self, level: ReportLevel, message: str, context: Optional[str]) -> None:
        entry = ReportEntry(level=level, message=message, context=context)
        self.entries.append(entry)
        self.logger.log(_LOG_LEVELS[level], "%s", entry)

    def info(self, message: str, context: Optional[str] = None) -> None:
        self._record(ReportLevel.INFO, message, context)

    def warning(self, message: str, context: Optional[str] = None) -> None:
        self._record(ReportLevel.WARNING, message, context)

    def error(self, message: str, context: Optional[str] = None) -> None:
        self._record(ReportLevel.ERROR, message, context)

    def _select(self, level: ReportLevel) -> List[ReportEntry]:
        return [e for e in self.entries if e.level is level]

    @property
    def warnings(self) -> List[ReportEntry]:
        return self._select(ReportLevel.WARNING)

    @property
    def errors(self) -> List[ReportEntry]:
        return self._select(ReportLevel.ERROR)

    @property
    def has_errors(self) -> bool:
        return any(e.level is ReportLevel.ERROR for e in self.entries)


__all__: List[str] = ["ReportLevel", "ReportEntry", "Reporter"]
