"""
tests/test_sequencing.py
Tests for migration timestamps and migration path allocation.
"""

from __future__ import annotations

import pathlib
import re
import time

from scaffoldgen.models import GenerationConfig
from scaffoldgen.sequencing import (
    TIMESTAMP_FORMAT,
    MigrationPathAllocator,
    MigrationSequencer,
)

FIXED_EPOCH: float = 1_700_000_000.0

_STAMP_RE = re.compile(r"^\d{4}_\d{2}_\d{2}_\d{6}$")


class TestMigrationSequencer:

    def test_first_call_reads_clock(self) -> None:
        sequencer = MigrationSequencer(clock=lambda: FIXED_EPOCH)
        assert sequencer.next() == time.strftime(TIMESTAMP_FORMAT, time.localtime(FIXED_EPOCH))

    def test_strictly_increasing(self) -> None:
        calls = []

        def clock() -> float:
            calls.append(1)
            return FIXED_EPOCH

        sequencer = MigrationSequencer(clock=clock)
        stamps = [sequencer.next() for _ in range(5)]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 5
        assert len(calls) == 1
        assert all(_STAMP_RE.match(s) for s in stamps)


class TestMigrationPathAllocator:

    def _allocator(self, output_dir: pathlib.Path) -> MigrationPathAllocator:
        return MigrationPathAllocator(
            GenerationConfig(output_dir=output_dir),
            MigrationSequencer(clock=lambda: FIXED_EPOCH),
        )

    def test_path_layout(self, output_dir: pathlib.Path) -> None:
        path = self._allocator(output_dir).allocate_migration_path("Sales", "OrderItem")
        assert path.parent == output_dir / "app" / "Modules" / "Sales" / "Database" / "Migrations"
        assert path.name.endswith("_create_order_items_table.php")

    def test_pivot_name_is_singular(self, output_dir: pathlib.Path) -> None:
        path = self._allocator(output_dir).allocate_migration_path("Blog", "post_tag", is_pivot=True)
        assert path.name.endswith("_create_post_tag_table.php")

    def test_same_table_same_path_within_run(self, output_dir: pathlib.Path) -> None:
        allocator = self._allocator(output_dir)
        first = allocator.allocate_migration_path("Blog", "Post")
        assert allocator.was_allocated("Blog", "Post")
        assert allocator.allocate_migration_path("Blog", "Post") == first

    def test_reuses_existing_file(self, output_dir: pathlib.Path) -> None:
        allocator = self._allocator(output_dir)
        directory = allocator.migrations_dir("Blog")
        directory.mkdir(parents=True)
        existing = directory / "2020_01_01_000000_create_posts_table.php"
        existing.write_text("<?php\n", encoding="utf-8")
        assert allocator.allocate_migration_path("Blog", "Post") == existing

    def test_distinct_tables_are_ordered(self, output_dir: pathlib.Path) -> None:
        allocator = self._allocator(output_dir)
        first = allocator.allocate_migration_path("Blog", "Author")
        second = allocator.allocate_migration_path("Blog", "Post")
        assert first.name < second.name

    def test_collision_gets_counter(self, output_dir: pathlib.Path) -> None:
        allocator = self._allocator(output_dir)
        stamp = time.strftime(TIMESTAMP_FORMAT, time.localtime(FIXED_EPOCH))
        directory = allocator.migrations_dir("Blog")
        directory.mkdir(parents=True)
        # A directory is not an existing migration but still occupies the name.
        (directory / f"{stamp}_create_posts_table.php").mkdir()
        path = allocator.allocate_migration_path("Blog", "Post")
        assert path.name == f"{stamp}_1_create_posts_table.php"
