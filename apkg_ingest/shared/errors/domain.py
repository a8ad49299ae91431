"""Standard domain error types.

Catalog of generic error types the import modules specialize.
"""

from .base import AppError


class BadRequestError(AppError):
    """Bad request - malformed or invalid."""

    status_code = 400


class ValidationError(AppError):
    """Input validation error."""

    status_code = 422


class PayloadTooLargeError(BadRequestError):
    """Uploaded file is too large."""

    status_code = 413
