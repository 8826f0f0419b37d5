"""Unit tests for Logging configuration."""

import json
import logging
import logging.handlers

import pytest

from config.settings import LogFormatName, LoggingSettings
from src.logging_config import (
    CompactFormatter,
    ContextLogger,
    JsonFormatter,
    LogFormat,
    LoggerRegistry,
    LoggingConfig,
    LogLevel,
    configure_logging,
    get_context_logger,
    get_registry,
    set_log_level,
)


def make_record(msg: str = "Retrieved 3 entries", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="src.analytics.history",
        level=logging.INFO,
        pathname="history.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root():
    """Restore root logger state after a test reconfigures it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Tests for LoggingConfig dataclass."""

    def test_default_config(self):
        """Should have correct defaults."""
        config = LoggingConfig()

        assert config.level == LogLevel.INFO
        assert config.format_type == LogFormat.DETAILED
        assert config.log_to_console is True
        assert config.log_to_file is False
        assert config.file_name == "tickerwin.log"

    def test_from_settings(self, tmp_path):
        """Should map the settings section onto the dataclass."""
        settings = LoggingSettings(
            level="warning",
            format=LogFormatName.JSON,
            log_to_file=True,
            log_dir=tmp_path,
        )

        config = LoggingConfig.from_settings(settings)

        assert config.level == LogLevel.WARNING
        assert config.format_type == LogFormat.JSON
        assert config.log_to_file is True
        assert config.log_dir == tmp_path

    def test_to_dict(self):
        """Should convert to dictionary."""
        d = LoggingConfig().to_dict()

        assert d["level"] == "INFO"
        assert d["format_type"] == "detailed"


class TestFormatters:
    """Tests for the custom formatters."""

    def test_json_formatter(self):
        """Should emit one JSON object with the standard fields."""
        output = JsonFormatter().format(make_record())
        data = json.loads(output)

        assert data["level"] == "INFO"
        assert data["logger"] == "src.analytics.history"
        assert data["message"] == "Retrieved 3 entries"
        assert data["line"] == 42
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_extra(self):
        """Should include non-standard record attributes."""
        data = json.loads(JsonFormatter().format(make_record(ticker="NVDA")))

        assert data["extra"] == {"ticker": "NVDA"}

    def test_compact_formatter(self):
        """Should print a single short line."""
        output = CompactFormatter().format(make_record())

        assert " I [src.analytics.history] Retrieved 3 entries" in output


class TestLoggerRegistry:
    """Tests for LoggerRegistry."""

    def test_configure_console(self, restore_root):
        """Should install a single console handler."""
        registry = LoggerRegistry()

        registry.configure(LoggingConfig(level=LogLevel.WARNING))

        assert registry.initialized is True
        assert restore_root.level == logging.WARNING
        assert [type(h) for h in restore_root.handlers] == [logging.StreamHandler]

    def test_configure_file(self, restore_root, tmp_path):
        """Should add a rotating file handler in the log dir."""
        registry = LoggerRegistry()

        registry.configure(LoggingConfig(log_to_console=False, log_to_file=True, log_dir=tmp_path))

        handler = restore_root.handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        handler.close()

    def test_json_format_selected(self, restore_root):
        """Should use JsonFormatter for the json format."""
        registry = LoggerRegistry()

        registry.configure(LoggingConfig(format_type=LogFormat.JSON))

        assert isinstance(restore_root.handlers[0].formatter, JsonFormatter)

    def test_status(self, restore_root):
        """Should report handlers and config."""
        registry = LoggerRegistry()
        registry.configure(LoggingConfig())

        status = registry.get_status()

        assert status["initialized"] is True
        assert status["handlers"] == ["StreamHandler"]
        assert status["config"]["level"] == "INFO"


class TestGlobalHelpers:
    """Tests for module-level helpers."""

    def test_get_registry_singleton(self):
        """Should return the same registry."""
        assert get_registry() is get_registry()

    def test_configure_and_set_level(self, restore_root):
        """Should change the root level globally."""
        configure_logging(LoggingConfig())

        set_log_level(LogLevel.DEBUG)

        assert restore_root.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in restore_root.handlers)

    def test_set_level_named_logger(self):
        """Should set the level on one logger only."""
        set_log_level(LogLevel.ERROR, "src.storage.sweeper")

        assert logging.getLogger("src.storage.sweeper").level == logging.ERROR
        logging.getLogger("src.storage.sweeper").setLevel(logging.NOTSET)


class TestContextLogger:
    """Tests for ContextLogger."""

    def test_appends_context(self, caplog):
        """Should append key=value pairs to the message."""
        log = get_context_logger("tests.context", store="InMemorySampleStore")

        with caplog.at_level(logging.INFO, logger="tests.context"):
            log.info("Expiry sweeper started")

        assert "Expiry sweeper started | store=InMemorySampleStore" in caplog.text

    def test_with_context_merges(self):
        """Should merge additional context."""
        log = get_context_logger("tests.context", store="memory")

        child = log.with_context(ticker="NVDA")

        assert isinstance(child, ContextLogger)
        assert child.extra == {"store": "memory", "ticker": "NVDA"}

    def test_no_context(self):
        """Should leave the message unchanged without context."""
        log = ContextLogger(logging.getLogger("tests.context"), {})

        msg, _ = log.process("plain", {})

        assert msg == "plain"
