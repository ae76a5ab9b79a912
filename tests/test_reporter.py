"""
tests/test_reporter.py
Tests for the run reporter.
"""

from __future__ import annotations

import logging

import pytest

from scaffoldgen.reporter import ReportEntry, Reporter, ReportLevel


class TestReporter:

    def test_collects_by_level(self) -> None:
        reporter = Reporter()
        reporter.info("starting")
        reporter.warning("fragment missing", context="Post")
        reporter.error("no through model", context="Customer.orderItems")
        assert len(reporter.entries) == 3
        assert [w.message for w in reporter.warnings] == ["fragment missing"]
        assert reporter.errors[0].context == "Customer.orderItems"
        assert reporter.has_errors

    def test_no_errors(self) -> None:
        reporter = Reporter()
        reporter.warning("careful")
        assert not reporter.has_errors

    def test_messages_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="scaffoldgen.reporter"):
            Reporter().warning("fragment missing", context="Post")
        assert "[Post] fragment missing" in caplog.text

    def test_entry_str(self) -> None:
        entry = ReportEntry(ReportLevel.ERROR, "boom", "Order.customer")
        assert str(entry) == "ERROR   [Order.customer] boom"
        assert str(ReportEntry(ReportLevel.INFO, "done")) == "INFO    done"
