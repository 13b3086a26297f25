# tests/unit/logging/test_logger.py - v1
"""Tests for logging/logger.py - logger factory, formatters and setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from releaseflow.logging.context import clear_context, set_run_context, set_step_context
from releaseflow.logging.logger import (
    JsonFormatter,
    TextFormatter,
    parse_size,
    setup_logging,
)


def _record(msg: str = "Hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_run_context("demo", "run1")
        set_step_context("tag", "git.tag")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "component_id": "demo", "run_id": "run1", "step_id": "tag", "step_type": "git.tag",
        }

    def test_format_exception(self):
        try:
            raise RuntimeError("bad")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: bad" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_includes_component_and_step(self):
        set_run_context("demo", "run1")
        set_step_context("build")
        output = TextFormatter().format(_record())
        assert "demo" in output
        assert "[build]" in output


class TestParseSize:
    def test_units(self):
        assert parse_size("10MB") == 10 * 1024 * 1024
        assert parse_size("5 kb") == 5 * 1024

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_size("lots")


class TestSetupLogging:
    def test_module_loggers_inherit_root_level(self):
        setup_logging(level="WARNING")
        module_logger = logging.getLogger("releaseflow.pipeline.scheduler")
        assert module_logger.getEffectiveLevel() == logging.WARNING

    def test_stderr_handler_only(self):
        setup_logging(level="DEBUG")
        root = logging.getLogger("releaseflow")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_rotating_file(self, tmp_path):
        log_file = tmp_path / "logs" / "release.log"
        setup_logging(log_format="json", log_file=log_file, rotation="1MB", retention=2)
        logging.getLogger("releaseflow.test").info("to file")
        for handler in logging.getLogger("releaseflow").handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "to file"

    def test_repeated_setup_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("releaseflow").handlers) == 1
