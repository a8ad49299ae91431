"""Shared errors package.

Centralized error handling and exception management.
"""

from .base import AppError
from .decorators import safe, safe_with_fallback
from .domain import BadRequestError, PayloadTooLargeError, ValidationError
from .mapping import ExceptionMapper
from .schemas import ErrorDetail, ErrorResponse

__all__ = [
    # Base
    "AppError",
    # Domain errors
    "BadRequestError",
    "PayloadTooLargeError",
    "ValidationError",
    # Mapping
    "ExceptionMapper",
    # Decorators
    "safe",
    "safe_with_fallback",
    # Schemas
    "ErrorDetail",
    "ErrorResponse",
]
