"""Pydantic models for error handling.

Data structures for error payloads and details.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Strict schema for error details."""

    model_config = ConfigDict(extra="allow")

    field: str | None = None
    value: Any | None = None
    expected: Any | None = None
    entry: str | None = None
    table: str | None = None
    tables: list[str] | None = None
    resource_id: str | int | None = None
    resource_type: str | None = None
    function: str | None = None


class ErrorResponse(BaseModel):
    """Unified error payload schema."""

    error: str = Field(..., description="Error code (SNAKE_CASE)")
    message: str = Field(..., description="Human-readable error description")
    details: dict[str, Any] = Field(default_factory=dict)
    trace_id: str = Field(default="", description="Import correlation ID")
