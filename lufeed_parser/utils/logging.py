"""
Lufeed Parser Logging Configuration
===================================

Logging for the parser service and the async worker.

Console output goes through rich; the rotating log file is JSON lines with
the parser context (component, feed, request, egress identity) promoted to
top-level keys so that one feed's or one proxy's history can be filtered
without parsing messages.
"""

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

# Context keys carried by component loggers and parser runs
CONTEXT_FIELDS = (
    "component",
    "feed_url",
    "request_id",
    "proxy_id",
    "duration_seconds",
    "success",
)

_RECORD_ATTRS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

QUIET_LIBRARIES = ("aiohttp", "urllib3", "feedparser", "redis", "asyncio")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        extra = {
            k: v for k, v in record.__dict__.items()
            if k not in _RECORD_ATTRS and k not in CONTEXT_FIELDS
        }
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "lufeed",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with console and/or rotating file handlers.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        console: Whether to log to console
        structured: JSON on the console instead of rich output
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Reconfiguration replaces handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        if structured:
            console_handler: logging.Handler = logging.StreamHandler()
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler = RichHandler(rich_tracebacks=True, show_path=False)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter merging component context into every record; call-site extras win."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    feed_url: Optional[str] = None,
    request_id: Optional[str] = None,
    proxy_id: Optional[int] = None,
) -> LoggerAdapter:
    """Get a logger adapter for one parser component.

    Args:
        component_name: Component name (e.g. 'egress_pool', 'item_parser')
        feed_url: Feed being processed
        request_id: Correlation id of the triggering request
        proxy_id: Egress identity used by the component (0 is direct)

    Returns:
        Logger adapter under the ``lufeed`` namespace
    """
    context: Dict[str, Any] = {"component": component_name}
    if feed_url:
        context["feed_url"] = feed_url
    if request_id:
        context["request_id"] = request_id
    if proxy_id is not None:
        context["proxy_id"] = proxy_id

    return LoggerAdapter(logging.getLogger(f"lufeed.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/lufeed-parser.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure the ``lufeed`` logger tree and quiet chatty libraries."""
    setup_logger(
        name="lufeed",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size,
        backup_count=backup_count,
    )

    for library in QUIET_LIBRARIES:
        logging.getLogger(library).setLevel(logging.WARNING)


class PerformanceLogger:
    """Context manager timing one parser run."""

    def __init__(self, logger: logging.Logger, operation: str, **kwargs):
        """Initialize performance logger.

        Args:
            logger: Logger instance
            operation: Operation being timed
            **kwargs: Context attached to the start and end records
        """
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time: Optional[datetime] = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = datetime.now(timezone.utc)
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is None:
            return

        duration = (datetime.now(timezone.utc) - self.start_time).total_seconds()
        context = {**self.context, "duration_seconds": duration, "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {duration:.3f}s: {exc_val}", extra=context)
        else:
            self.logger.info(f"Completed {self.operation} in {duration:.3f}s", extra=context)
