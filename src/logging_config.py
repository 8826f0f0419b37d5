"""Centralized logging configuration for the price service."""

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(Enum):
    """Log format types."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
    COMPACT = "compact"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: LogLevel = LogLevel.INFO
    format_type: LogFormat = LogFormat.DETAILED
    log_to_console: bool = True
    log_to_file: bool = False
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    file_name: str = "tickerwin.log"
    max_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    colorize_console: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> "LoggingConfig":
        """Build from the ``logging`` section of ``AppConfig``."""
        return cls(
            level=LogLevel(settings.level),
            format_type=LogFormat(settings.format.value),
            log_to_file=settings.log_to_file,
            log_dir=Path(settings.log_dir),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "level": self.level.value,
            "format_type": self.format_type.value,
            "log_to_console": self.log_to_console,
            "log_to_file": self.log_to_file,
            "log_dir": str(self.log_dir),
            "file_name": self.file_name,
            "colorize_console": self.colorize_console,
        }


LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1m\033[31m",
}
RESET = "\033[0m"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    _standard_keys = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "asctime", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {
            k: v for k, v in record.__dict__.items()
            if k not in self._standard_keys and not k.startswith("_")
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Formatter with colored level names for console output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format with colors."""
        color = LEVEL_COLORS.get(record.levelname, "")
        original_levelname = record.levelname
        record.levelname = f"{color}{record.levelname}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class CompactFormatter(logging.Formatter):
    """Compact log format for high-volume ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        """Format compactly."""
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        return f"{ts} {record.levelname[0]} [{record.name}] {record.getMessage()}"


class LoggerRegistry:
    """Owns root logger handlers for the process."""

    def __init__(self):
        self._config = LoggingConfig()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def configure(self, config: Optional[LoggingConfig] = None) -> None:
        """Configure logging system."""
        if config:
            self._config = config

        root_logger = logging.getLogger()
        root_logger.setLevel(self._config.level.value)
        root_logger.handlers.clear()

        if self._config.log_to_console:
            root_logger.addHandler(self._create_console_handler())

        if self._config.log_to_file:
            root_logger.addHandler(self._create_file_handler())

        self._initialized = True

    def _create_console_handler(self) -> logging.Handler:
        """Create console handler on stderr so CLI output stays clean."""
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(self._config.level.value)
        handler.setFormatter(self._create_formatter(for_console=True))
        return handler

    def _create_file_handler(self) -> logging.Handler:
        """Create rotating file handler."""
        log_dir = self._config.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            log_dir / self._config.file_name,
            maxBytes=self._config.max_bytes,
            backupCount=self._config.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(self._config.level.value)
        handler.setFormatter(self._create_formatter(for_console=False))
        return handler

    def _create_formatter(self, for_console: bool) -> logging.Formatter:
        """Create formatter based on config."""
        format_type = self._config.format_type

        if format_type == LogFormat.JSON:
            return JsonFormatter()

        if format_type == LogFormat.COMPACT:
            return CompactFormatter()

        if format_type == LogFormat.SIMPLE:
            fmt = "%(levelname)s: %(message)s"
        else:  # DETAILED
            fmt = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

        if for_console and self._config.colorize_console and sys.stderr.isatty():
            return ColoredFormatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def set_level(self, level: LogLevel, logger_name: Optional[str] = None) -> None:
        """Set log level for one logger or for the root and its handlers."""
        if logger_name:
            logging.getLogger(logger_name).setLevel(level.value)
            return

        root = logging.getLogger()
        root.setLevel(level.value)
        for handler in root.handlers:
            handler.setLevel(level.value)

    def get_status(self) -> Dict[str, Any]:
        """Get logging status."""
        root = logging.getLogger()
        return {
            "initialized": self._initialized,
            "level": logging.getLevelName(root.level),
            "handlers": [type(h).__name__ for h in root.handlers],
            "config": self._config.to_dict(),
        }


class ContextLogger(logging.LoggerAdapter):
    """Logger that appends ``key=value`` context to every message."""

    def process(self, msg, kwargs):
        if not self.extra:
            return msg, kwargs
        context_str = " ".join(f"{k}={v}" for k, v in self.extra.items())
        return f"{msg} | {context_str}", kwargs

    def with_context(self, **kwargs) -> "ContextLogger":
        """Create new logger with additional context."""
        return ContextLogger(self.logger, {**self.extra, **kwargs})


# Global registry
_registry: Optional[LoggerRegistry] = None


def get_registry() -> LoggerRegistry:
    """Get or create global logger registry."""
    global _registry
    if _registry is None:
        _registry = LoggerRegistry()
    return _registry


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure global logging."""
    get_registry().configure(config)


def get_logger(name: str) -> logging.Logger:
    """Get logger by name."""
    return logging.getLogger(name)


def get_context_logger(name: str, **context) -> ContextLogger:
    """Get context logger with initial context."""
    return ContextLogger(logging.getLogger(name), context)


def set_log_level(level: LogLevel, logger_name: Optional[str] = None) -> None:
    """Set log level globally or for specific logger."""
    get_registry().set_level(level, logger_name)
