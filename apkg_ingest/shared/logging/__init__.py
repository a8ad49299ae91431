"""Shared Logging Configuration.

Loguru-based logging module with:
- Structured JSON logging for production
- Colored console output for development
- Import trace correlation
"""

from loguru import logger

from .config import (
    InterceptHandler,
    configure_stdlib_loggers,
    get_logger,
    setup_logger,
)
from .event_logger import (
    log_import_completed,
    log_import_failed,
    log_import_progress,
    log_import_started,
    log_note_skipped,
)

__all__ = [
    # Core logging
    "logger",
    "setup_logger",
    "get_logger",
    "InterceptHandler",
    "configure_stdlib_loggers",
    # Event logging
    "log_import_started",
    "log_import_progress",
    "log_import_completed",
    "log_import_failed",
    "log_note_skipped",
]
