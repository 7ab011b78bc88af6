"""Unit tests for structured logging configuration."""

import json
import logging

import pytest

from src.lib.logging_config import (
    ContextFilter,
    JsonFormatter,
    SimpleFormatter,
    configure_logging,
    request_id_var,
)


@pytest.fixture
def record():
    return logging.LogRecord(
        name="src.test", level=logging.INFO, pathname=__file__, lineno=1,
        msg="Created feedback %s", args=("BUG-1",), exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestContextFilter:
    def test_injects_request_id(self, record):
        token = request_id_var.set("req-42")
        try:
            ContextFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-42"


class TestFormatters:
    def test_json_formatter_includes_extras(self, record):
        record.request_id = "req-1"
        record.feedback_id = "BUG-1"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "Created feedback BUG-1"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
        assert entry["feedback_id"] == "BUG-1"

    def test_simple_formatter(self, record):
        record.request_id = "req-1"

        line = SimpleFormatter().format(record)

        assert "INFO" in line
        assert "Created feedback BUG-1" in line
        assert line.endswith("[request_id=req-1]")


class TestConfigureLogging:
    def test_json_by_default(self, restore_root_logger, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        configure_logging()

        assert restore_root_logger.level == logging.WARNING
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_simple_format(self, restore_root_logger):
        configure_logging("simple")

        assert isinstance(restore_root_logger.handlers[0].formatter, SimpleFormatter)
        assert logging.getLogger("botocore").level == logging.WARNING
