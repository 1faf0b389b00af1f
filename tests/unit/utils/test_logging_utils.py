"""Tests for logging configuration helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import sys

import pytest

from bundlr.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    get_logger,
    log_duration,
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Reset root logging after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestStructuredJSONFormatter:
    """Tests for JSON lines output."""

    def test_formats_message_and_context(self):
        record = logging.LogRecord(
            name="bundlr.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg="Skipping group %s",
            args=("ui",),
            exc_info=None,
        )
        record.manifest = "base"

        entry = json.loads(StructuredJSONFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["message"] == "Skipping group ui"
        assert entry["context"]["logger_name"] == "bundlr.test"
        assert entry["context"]["manifest"] == "base"

    def test_includes_exception_details(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "bundlr.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )

        entry = json.loads(StructuredJSONFormatter().format(record))

        assert entry["context"]["error_type"] == "ValueError"
        assert entry["context"]["error_message"] == "boom"
        assert "stack_trace" in entry["context"]


class TestConfigureLogging:
    def test_sets_root_level(self):
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_writes_structured_lines_to_file(self, tmp_path: Path):
        log_file = tmp_path / "build.jsonl"
        configure_logging(level="INFO", filename=str(log_file), structured=True)

        logging.getLogger("bundlr.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "hello"


class TestGetLogger:
    def test_plain_logger_without_context(self):
        assert isinstance(get_logger("bundlr.x"), logging.Logger)

    def test_adapter_with_context(self):
        adapter = get_logger("bundlr.x", manifest="base")
        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.extra == {"manifest": "base"}


def test_log_duration_returns_wrapped_result(caplog: pytest.LogCaptureFixture):
    @log_duration
    def add(a, b):
        return a + b

    with caplog.at_level(logging.DEBUG):
        assert add(1, 2) == 3
    assert any("took" in message for message in caplog.messages)
