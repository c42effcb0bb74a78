"""
Structured Logging Configuration Module

This module provides logging utilities with JSON-formatted or plain-text output,
optional rotating file output, context enrichment via LoggerAdapter, and
integration with Uvicorn's loggers for consistent application-wide logging.

Features:
- JSONFormatter: Formatter outputting structured JSON log records
- StandardFormatter: Human-readable formatter for development
- setup_logging: Application-wide logging configuration with Uvicorn integration
- add_log_context: Helper for enriching logs with per-upload context

Usage:
    from video_assets.utils.logger import add_log_context, setup_logging

    # Initialize logging at application startup
    setup_logging(log_level="INFO", json_logs=True)

    # Add context to logs (e.g., video_id, user_id)
    ctx_logger = add_log_context(logger, video_id="vid-1", user_id="user-1")
    ctx_logger.info("Staging thumbnail")
"""

import json
import logging
import os
import sys
import traceback

from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any


# =============================================================================
# Constants
# =============================================================================

DEFAULT_LOG_DIR: str = "logs"
DEFAULT_LOG_FILENAME: str = "video_assets.log"

# 10 MB per file, keep 5 backup files
LOG_MAX_BYTES: int = 10 * 1024 * 1024
LOG_BACKUP_COUNT: int = 5

LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers to reduce verbosity
THIRD_PARTY_LOGGERS: list[str] = [
    "fastapi",
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "httpx",
    "asyncio",
]


# =============================================================================
# Custom JSON Encoder
# =============================================================================


class LogJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for log record serialization.

    Converts values json cannot handle (datetimes, paths, exceptions, sets)
    so that a log record can always be serialized.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set | frozenset):
            return sorted(obj, key=str)
        return str(obj)


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    Logging formatter that outputs log records as JSON strings.

    Each line carries timestamp, level, logger name and message, plus any
    extra fields supplied via ``extra=`` or a ContextLoggerAdapter.

    Example output:
        {
            "timestamp": "2025-01-15T10:30:45.123456+00:00",
            "level": "INFO",
            "logger": "video_assets.services.upload_service",
            "message": "Thumbnail promoted",
            "extra": {"video_id": "vid-1", "user_id": "user-1"}
        }
    """

    # Standard LogRecord attributes to exclude from extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(
        self,
        include_extra_fields: bool = True,
        include_source_location: bool = False,
    ) -> None:
        super().__init__()
        self.include_extra_fields = include_extra_fields
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        if self.include_extra_fields:
            extra_fields = {
                key: value
                for key, value in record.__dict__.items()
                if not key.startswith("_") and key not in self.RESERVED_ATTRS
            }
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(log_entry, cls=LogJSONEncoder, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """
    Text formatter for console output in development mode.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


# =============================================================================
# Application Logging Setup
# =============================================================================


def _create_file_handler(
    log_dir: str,
    log_filename: str,
    log_level: int,
    formatter: logging.Formatter,
) -> RotatingFileHandler | None:
    """
    Create a RotatingFileHandler (10MB per file, 5 backups).

    Returns None and writes a warning to stderr if the directory or file
    cannot be created.
    """
    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(log_dir, log_filename),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not create log file handler: {e}\n")
        return None

    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    return file_handler


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    include_file_logging: bool = False,
    log_dir: str | None = None,
    log_filename: str | None = None,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging with root logger and Uvicorn integration.

    Called once at application startup. It configures:
    - Root logger with a console handler (JSON or text)
    - Optional rotating file output
    - Uvicorn loggers sharing the same formatter
    - Reduced verbosity for third-party libraries

    Args:
        log_level: Application log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON format; if False, output standard text
        include_file_logging: If True, add file handler with rotation
        log_dir: Directory for log files (defaults to "logs")
        log_filename: Log filename (defaults to "video_assets.log")
        third_party_level: Log level for third-party libraries (default WARNING)
    """
    level_str = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if json_logs:
        formatter: logging.Formatter = JSONFormatter(
            include_extra_fields=True,
            include_source_location=level <= logging.DEBUG,
        )
    else:
        formatter = StandardFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if include_file_logging:
        file_handler = _create_file_handler(
            log_dir=log_dir or DEFAULT_LOG_DIR,
            log_filename=log_filename or DEFAULT_LOG_FILENAME,
            log_level=level,
            formatter=formatter,
        )
        if file_handler:
            root_logger.addHandler(file_handler)

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s, file_logging=%s",
        level_str,
        json_logs,
        include_file_logging,
    )


# =============================================================================
# Context Enrichment
# =============================================================================


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra`` dict
    instead of replacing it.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in self.extra.items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **kwargs: Any) -> ContextLoggerAdapter:
    """
    Wrap ``logger`` so every message carries the given context fields.

    Example:
        ctx_logger = add_log_context(logger, video_id="vid-1", kind="thumbnail")
        ctx_logger.info("Staged asset", extra={"size_bytes": 1024})
        # extra: video_id, kind and size_bytes
    """
    return ContextLoggerAdapter(logger, kwargs)
