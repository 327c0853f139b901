"""
Unit Tests for Structured Logging

Tests JSON rendering of client context fields and root logger setup.
"""

import json
import logging
import sys

import pytest

from integrations.logging import JSONFormatter, setup_structured_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


def make_record(msg: str = "attempt failed", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="integrations.clients.base",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_base_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "integrations.clients.base"
        assert data["message"] == "attempt failed"
        assert "timestamp" in data

    def test_context_fields_included(self):
        record = make_record(service="inventory", endpoint="/api/inventory/check", attempt=2, max_retries=3)

        data = json.loads(JSONFormatter().format(record))

        assert data["service"] == "inventory"
        assert data["endpoint"] == "/api/inventory/check"
        assert data["attempt"] == 2
        assert data["max_retries"] == 3
        assert "prefecture" not in data

    def test_non_ascii_kept_readable(self):
        output = JSONFormatter().format(make_record(prefecture="東京都"))

        assert "東京都" in output

    def test_exception_rendered(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestSetupStructuredLogging:
    """Tests for setup_structured_logging."""

    def test_json_handler_installed(self, restore_root_logger):
        logger = setup_structured_logging("check-integrations", level="debug")

        assert logger.name == "check-integrations"
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_text_format(self, restore_root_logger):
        setup_structured_logging("mock-api-server", fmt="text")

        assert not isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_repeated_setup_replaces_handlers(self, restore_root_logger):
        setup_structured_logging("a")
        setup_structured_logging("b")

        assert len(restore_root_logger.handlers) == 1
