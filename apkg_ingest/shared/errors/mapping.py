"""Mapping of technical errors to domain errors.

Handlers are registered by the modules that own the domain errors, so
this registry starts empty.
"""

import logging
from collections.abc import Callable
from typing import Any

from .base import AppError

logger = logging.getLogger(__name__)

Handler = Callable[[Any, str], AppError]


class ExceptionMapper:
    """Registry of technical exception types and their domain translations."""

    _handlers: dict[type[Exception], Handler] = {}

    @classmethod
    def register(cls, *exception_types: type[Exception]) -> Callable[[Handler], Handler]:
        """Register a handler for one or more exception types.

        Usage:
            @ExceptionMapper.register(zipfile.BadZipFile)
            def _handle_bad_zip(exc: zipfile.BadZipFile, func_name: str) -> AppError:
                return NotAZipError()
        """

        def decorator(handler: Handler) -> Handler:
            for exc_type in exception_types:
                cls._handlers[exc_type] = handler
            return handler

        return decorator

    @classmethod
    def map(cls, exc: Exception, func_name: str = "") -> AppError:
        """Translate ``exc`` using the closest registered base class.

        Unregistered exceptions become a generic 500 AppError and are
        logged with their traceback.
        """
        for exc_type in type(exc).__mro__:
            handler = cls._handlers.get(exc_type)
            if handler is not None:
                return handler(exc, func_name)

        logger.exception("Unhandled exception in %s: %s", func_name, type(exc).__name__)
        return AppError(details={"function": func_name} if func_name else None)
