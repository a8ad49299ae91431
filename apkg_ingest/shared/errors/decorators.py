"""Decorators for error handling.

`safe` turns zip / SQLite failures into domain errors at the parser
boundary; `safe_with_fallback` lets metadata decoders degrade instead of
aborting a whole import.
"""

import logging
from collections.abc import Callable
from functools import wraps
from inspect import iscoroutinefunction
from typing import Any, Never, ParamSpec, TypeVar

from .base import AppError
from .mapping import ExceptionMapper

logger = logging.getLogger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def _reraise_as_domain(exc: Exception, func_name: str) -> Never:
    if isinstance(exc, AppError):
        raise exc
    raise ExceptionMapper.map(exc, func_name) from exc


def safe(func: Callable[P, T]) -> Callable[P, T]:
    """Map technical exceptions raised by ``func`` to AppError subclasses.

    Usage:
        @safe
        def parse(data: bytes) -> ParsedCollection:
            ...

    AppError subclasses pass through unchanged; anything else goes through
    ExceptionMapper and is chained as ``__cause__``. Works for sync and
    async callables.
    """
    if iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                _reraise_as_domain(e, func.__name__)

        return async_wrapper  # type: ignore[return-value]

    @wraps(func)
    def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            _reraise_as_domain(e, func.__name__)

    return sync_wrapper  # type: ignore[return-value]


def safe_with_fallback(
    fallback: Any = None,
    *,
    default_factory: Callable[[], Any] | None = None,
    log_level: int = logging.WARNING,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Return a fallback value instead of raising.

    Usage:
        @safe_with_fallback(default_factory=dict)
        def decode_manifest(raw: bytes) -> dict[str, str]:
            ...

    Args:
        fallback: Value returned when the call fails
        default_factory: Builds a fresh fallback per failure (wins over fallback)
        log_level: Level the swallowed exception is logged at
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.log(log_level, "%s failed, using fallback: %s", func.__name__, e)
                if default_factory is not None:
                    return default_factory()
                return fallback

        return wrapper

    return decorator
