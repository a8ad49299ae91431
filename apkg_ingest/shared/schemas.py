"""Base pydantic schemas shared by the caller-facing payloads."""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with the common configuration.

    Every payload handed to the caller inherits from this class so that
    serialization behaves the same across the package.
    """

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        populate_by_name=True,
    )
