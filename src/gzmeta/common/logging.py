"""Structured logging utilities."""

import logging
import logging.handlers
import json
import sys
from typing import Any, Dict, Optional, Type
from datetime import datetime, timezone
from pathlib import Path

from .logging_config import LoggingConfig


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields of a record: LogContext fields, then extra_fields."""
    fields = dict(getattr(record, "context_fields", None) or {})
    fields.update(getattr(record, "extra_fields", None) or {})
    return fields


class StructuredFormatter(logging.Formatter):
    """JSON formatter, one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(record_fields(record))

        # Header bytes and paths are not JSON types
        return json.dumps(log_data, default=str)


class DetailedFormatter(logging.Formatter):
    """Human-readable formatter with time and source location."""

    def __init__(self) -> None:
        fmt = (
            "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | "
            "%(message)s"
        )
        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class SimpleFormatter(logging.Formatter):
    """Console formatter for command line use."""

    def __init__(self) -> None:
        super().__init__(fmt="%(levelname)-8s | %(name)s | %(message)s")


_FORMATTERS: Dict[str, Type[logging.Formatter]] = {
    "simple": SimpleFormatter,
    "detailed": DetailedFormatter,
    "json": StructuredFormatter,
}


def make_formatter(format: str) -> logging.Formatter:
    """Formatter for a format name; unknown names get the simple format."""
    return _FORMATTERS.get(format.lower(), SimpleFormatter)()


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the root logger.

    Replaces any existing root handlers with a stderr handler and, when
    log_file is given, a rotating file handler that always writes JSON.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Console format type (simple, detailed, json)
        log_file: Optional log file path
        max_file_size_mb: Max log file size in MB
        backup_count: Number of backup files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(make_formatter(format))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)


def configure_logging(config: LoggingConfig, level: Optional[str] = None) -> None:
    """Configure logging from a LoggingConfig, optionally overriding its level."""
    setup_logging(
        level=level or config.level,
        format=config.format,
        log_file=Path(config.file) if config.file else None,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count,
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger with structured logging support."""
    return logging.getLogger(name)


class LogContext:
    """Context manager that adds structured fields to every record logged inside it.

    The fields go to record.context_fields, not extra_fields, so calls inside
    the context can still pass extra={"extra_fields": ...}. Nested contexts
    merge, the inner one winning.

    Example:
        >>> with LogContext(logger, file="data.txt"):
        ...     logger.error("Cannot read header")
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self.old_factory = None

    def __enter__(self) -> "LogContext":
        self.old_factory = logging.getLogRecordFactory()

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = self.old_factory(*args, **kwargs)
            record.context_fields = {**getattr(record, "context_fields", {}), **self.fields}
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        logging.setLogRecordFactory(self.old_factory)
