"""Tests for logging configuration utilities."""

from io import StringIO
import json
import logging
from pathlib import Path

import pytest

from duocache.core.caching import EntryStore, WriteOptions
from duocache.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    get_logger,
)


def _record(
    level: int = logging.INFO, msg: str = "Cached x", exc_info=None
) -> logging.LogRecord:
    record = logging.LogRecord(
        name="duocache.core.caching.store",
        level=level,
        pathname="/path/to/store.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.funcName = "write"
    record.module = "store"
    record.thread = 12345
    record.threadName = "MainThread"
    record.process = 9999
    return record


class TestStructuredJSONFormatter:
    """Test suite for StructuredJSONFormatter."""

    def test_basic_log_format(self):
        """Test basic log record formatting to JSON."""
        data = json.loads(StructuredJSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Cached x"
        assert "timestamp" in data
        assert data["context"]["logger_name"] == "duocache.core.caching.store"
        assert data["context"]["module"] == "store"
        assert data["context"]["function"] == "write"
        assert data["context"]["line"] == 42
        assert data["context"]["thread_name"] == "MainThread"
        assert data["context"]["process"] == 9999

    def test_log_with_extra_fields(self):
        """Test that extra fields are included in context."""
        record = _record(logging.DEBUG)
        record.entry = "styles"
        record.cache_dir = Path("/cache")

        data = json.loads(StructuredJSONFormatter().format(record))

        assert data["context"]["entry"] == "styles"
        assert data["context"]["cache_dir"] == "/cache"

    def test_log_with_exception(self):
        """Test that exception info is captured in context."""
        try:
            raise OSError("disk full")
        except OSError:
            import sys

            exc_info = sys.exc_info()

        data = json.loads(
            StructuredJSONFormatter().format(_record(logging.ERROR, "write failed", exc_info))
        )

        assert data["level"] == "ERROR"
        assert data["context"]["error_type"] == "OSError"
        assert data["context"]["error_message"] == "disk full"
        assert "OSError: disk full" in data["context"]["stack_trace"]


class TestConfigureLogging:
    """Test suite for configure_logging function."""

    def test_configure_standard_logging(self, capsys):
        """Test standard text logging configuration."""
        configure_logging(level="INFO", structured=False)

        logging.getLogger("test.standard").info("Test message")

        captured = capsys.readouterr()
        assert "Test message" in captured.out
        assert "test.standard" in captured.out
        assert "INFO" in captured.out

    def test_configure_structured_logging_to_file(self, tmp_path: Path):
        """Test structured JSON logging to file."""
        log_file = tmp_path / "cache.jsonl"
        configure_logging(level="debug", structured=True, filename=str(log_file))

        logger = logging.getLogger("test.file")
        logger.debug("Debug message")
        logger.warning("Warning message")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines() if line]
        assert [line["level"] for line in lines[-2:]] == ["DEBUG", "WARNING"]
        assert all("logger_name" in line["context"] for line in lines)

    def test_noisy_loggers_suppressed(self):
        configure_logging(level="DEBUG")
        assert logging.getLogger("aiofiles").level == logging.ERROR
        assert logging.getLogger("asyncio").level == logging.ERROR

    async def test_store_operations_are_logged(
        self, store: EntryStore, caplog: pytest.LogCaptureFixture
    ):
        """Test the store reports writes at INFO through the module logger."""
        with caplog.at_level(logging.INFO, logger="duocache.core.caching.store"):
            await store.write("styles", "body {}", WriteOptions(ttl_ms=2000))

        assert any("Cached styles" in message for message in caplog.messages)


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_get_logger_without_context(self):
        """Test getting a plain logger without context."""
        logger = get_logger("test.plain")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.plain"

    def test_logger_adapter_includes_context_in_structured_logs(self):
        """Test that LoggerAdapter context appears in structured logs."""
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredJSONFormatter())

        logger = get_logger("test.adapter", cache_dir="/cache", operation="clear")
        assert isinstance(logger, logging.LoggerAdapter)
        logger.logger.addHandler(handler)
        logger.logger.setLevel(logging.INFO)
        try:
            logger.info("Cleared 4 files")
        finally:
            logger.logger.removeHandler(handler)

        data = json.loads(stream.getvalue().strip())
        assert data["message"] == "Cleared 4 files"
        assert data["context"]["cache_dir"] == "/cache"
        assert data["context"]["operation"] == "clear"
