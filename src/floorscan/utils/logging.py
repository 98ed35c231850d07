"""Logging infrastructure with per-scan id tracking and structured context.

Every log record carries the id of the scan that produced it, taken from a
ContextVar. Worker threads run inside a copy of the orchestrator's context,
so records emitted while resolving sizes carry the same id.

Context passed through ``extra={...}`` is appended to console and file
output as ``key=value`` pairs.
"""

import contextvars
import logging
import sys
from pathlib import Path
from typing import Final, override

scan_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scan_id",
    default=None,
)

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(scan_id)s] - %(message)s"

# Attributes present on every LogRecord; anything else came from extra={...}
_STANDARD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "asctime",
        "scan_id",
    }
)


class ScanIdFilter(logging.Filter):
    """Logging filter that adds the current scan id to log records."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        scan_id = scan_id_var.get()
        record.scan_id = scan_id if scan_id is not None else "-"
        return True


class ContextFormatter(logging.Formatter):
    """Formatter appending structured ``extra`` fields as ``key=value`` pairs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()  # pyright: ignore[reportAny]
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))  # pyright: ignore[reportAny]
        return f"{base} | {pairs}"


def configure_logging(
    *,
    log_level: str = "WARNING",
    log_file: Path | None = None,
    enable_console: bool = True,
) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving the same records as the console
        enable_console: Enable the stderr handler

    Example:
        >>> configure_logging(log_level="INFO")
        >>> set_scan_id("3f2a9c1e")
        >>> logging.getLogger(__name__).info("Batch complete", extra={"batch": 1})
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    scan_filter = ScanIdFilter()
    formatter = ContextFormatter(DEFAULT_LOG_FORMAT)

    if enable_console:
        # stdout carries the result table, so logs go to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(scan_filter)
        root_logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(scan_filter)
        root_logger.addHandler(file_handler)


def set_scan_id(scan_id: str) -> contextvars.Token[str | None]:
    """Set the scan id for the current context.

    Returns:
        Token that restores the previous id via :func:`reset_scan_id`
    """
    return scan_id_var.set(scan_id)


def reset_scan_id(token: contextvars.Token[str | None]) -> None:
    scan_id_var.reset(token)


def get_scan_id() -> str | None:
    return scan_id_var.get()
