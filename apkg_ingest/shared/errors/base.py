"""Base exception class for import errors.

Subclasses only declare a docstring and a status code: the error code is
derived from the class name and the default message from the docstring.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from apkg_ingest.shared.context import trace_id_var

from .schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def error_code_for(class_name: str) -> str:
    """``NotAZipError`` -> ``NOT_A_ZIP``."""
    for suffix in ("Exception", "Error"):
        if class_name.endswith(suffix):
            class_name = class_name[: -len(suffix)]
            break
    return _CAMEL_BOUNDARY.sub("_", class_name).upper()


def _normalize_details(owner: str, details: dict[str, Any] | ErrorDetail | None) -> dict[str, Any]:
    if details is None:
        return {}
    if isinstance(details, ErrorDetail):
        return details.model_dump(exclude_none=True)
    try:
        return ErrorDetail(**details).model_dump(exclude_none=True)
    except ValidationError as e:
        logger.warning("Invalid details in %s: %s", owner, e)
        return dict(details)


class AppError(Exception):
    """Base class for all import errors.

    Carries a stable ``code``, a human message, structured ``details``
    and the trace id of the run that raised it.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | ErrorDetail | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = _normalize_details(type(self).__name__, details)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "code" not in cls.__dict__:
            cls.code = error_code_for(cls.__name__)
        if "default_message" not in cls.__dict__ and cls.__doc__:
            cls.default_message = cls.__doc__.strip().split("\n")[0]

    @property
    def trace_id(self) -> str:
        return trace_id_var.get()

    def to_response(self) -> ErrorResponse:
        """Serialize to the error payload model."""
        return ErrorResponse(
            error=self.code,
            message=self.message,
            details=self.details,
            trace_id=self.trace_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_response().model_dump()
