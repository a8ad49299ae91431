"""
Shared module - cross-cutting concerns and utilities.

This module provides shared functionality used across the pipeline:
- Context variable for the import trace ID
- Logging utilities with Loguru
- Base schema for caller-facing payloads
"""

from .context import get_trace_id, set_trace_id, trace_id_var
from .logging import (
    get_logger,
    log_import_completed,
    log_import_failed,
    log_import_started,
    logger,
    setup_logger,
)
from .schemas import BaseSchema

__all__ = [
    # Context
    "get_trace_id",
    "set_trace_id",
    "trace_id_var",
    # Logging
    "get_logger",
    "logger",
    "setup_logger",
    "log_import_started",
    "log_import_completed",
    "log_import_failed",
    # Schemas
    "BaseSchema",
]
