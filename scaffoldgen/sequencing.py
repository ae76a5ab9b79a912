# File: scaffoldgen/sequencing.py
"""
ScaffoldGen - Migration Path / Sequencing
===========================================
Produces ordered, collision-free migration file names.

Migration runners apply files in lexical order, so every file created in a
single run must sort after the previous one.  :class:`MigrationSequencer`
seeds itself from the wall clock on first use and then advances one second
per call; :class:`MigrationPathAllocator` maps a table onto a path, reusing
an existing ``create_{table}_table`` migration instead of creating a second
one.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from scaffoldgen.models import GenerationConfig, table_name_for

logger: logging.Logger = logging.getLogger("scaffoldgen.sequencing")

TIMESTAMP_FORMAT: str = "%Y_%m_%d_%H%M%S"
MIGRATIONS_SUBDIR: Path = Path("Database") / "Migrations"


class MigrationSequencer:
    """
    Monotonic migration timestamps for one run.

    Args:
        clock: Returns seconds since the epoch; read once, on the first
            call to :meth:`next`.
        step: Seconds added for every later call.
    """

    __slots__ = ("_clock", "_step", "_current")

    def __init__(self, clock: Callable[[], float] = time.time, step: int = 1) -> None:
        self._clock: Callable[[], float] = clock
        self._step: int = step
        self._current: Optional[int] = None

    def next(self) -> str:
        if self._current is None:
            self._current = int(self._clock())
        else:
            self._current += self._step
        return time.strftime(TIMESTAMP_FORMAT, time.localtime(self._current))

    def __repr__(self) -> str:
        return f"<MigrationSequencer at={self._current}>"


class MigrationPathAllocator:
    """
    Map ``(module, table)`` to a migration path.

    Paths handed out earlier in the same run are remembered, so a pivot
    table declared from both sides of a relation gets one file even when
    nothing has been written yet (dry runs).
    """

    def __init__(
        self,
        config: GenerationConfig,
        sequencer: Optional[MigrationSequencer] = None,
    ) -> None:
        self.config: GenerationConfig = config
        self.sequencer: MigrationSequencer = sequencer or MigrationSequencer()
        self._allocated: Dict[str, Path] = {}

    def migrations_dir(self, module: str) -> Path:
        return self.config.module_dir(module) / MIGRATIONS_SUBDIR

    def was_allocated(self, module: str, name: str, is_pivot: bool = False) -> bool:
        """True when this run already handed out a path for the table."""
        key: str = f"{module}:{self.migration_name(name, is_pivot)}"
        return key in self._allocated

    @staticmethod
    def migration_name(name: str, is_pivot: bool = False) -> str:
        """``create_{table}_table`` for a model or pivot table name."""
        return f"create_{table_name_for(name, is_pivot)}_table"

    def find_existing(self, module: str, migration_name: str) -> Optional[Path]:
        directory: Path = self.migrations_dir(module)
        if not directory.is_dir():
            return None
        suffix: str = f"_{migration_name}.php"
        for candidate in sorted(directory.iterdir()):
            if candidate.is_file() and candidate.name.endswith(suffix):
                return candidate
        return None

    def allocate_migration_path(self, module: str, name: str, is_pivot: bool = False) -> Path:
        """
        Return the migration path for a model (or pivot table) *name*.

        An existing ``*_create_{table}_table.php`` file is returned as is.
        Otherwise a new timestamped name is allocated; if that name is taken
        a counter is inserted (``{ts}_1_create_...``).
        """
        migration_name: str = self.migration_name(name, is_pivot)
        key: str = f"{module}:{migration_name}"

        if key in self._allocated:
            return self._allocated[key]

        existing: Optional[Path] = self.find_existing(module, migration_name)
        if existing is not None:
            logger.debug("Reusing existing migration %s", existing.name)
            self._allocated[key] = existing
            return existing

        directory: Path = self.migrations_dir(module)
        stamp: str = self.sequencer.next()
        path: Path = directory / f"{stamp}_{migration_name}.php"
        counter: int = 1
        while path.exists():
            path = directory / f"{stamp}_{counter}_{migration_name}.php"
            counter += 1

        logger.debug("Allocated migration %s", path.name)
        self._allocated[key] = path
        return path


__all__: List[str] = [
    "TIMESTAMP_FORMAT",
    "MIGRATIONS_SUBDIR",
    "MigrationSequencer",
    "MigrationPathAllocator",
]

logger.debug("scaffoldgen.sequencing loaded.")
