"""Base models for dataset-tool."""

from pydantic import BaseModel, ConfigDict


class DatasetToolBaseModel(BaseModel):
    """Base model for all dataset-tool domain models."""

    model_config = ConfigDict(
        extra="forbid",  # Don't allow extra fields
        frozen=False,  # Allow modification (can be changed per model)
        validate_assignment=True,  # Validate on attribute assignment
    )


class ApiBaseModel(BaseModel):
    """Base model for dataset API responses."""

    model_config = ConfigDict(extra="allow")  # Allow extra fields from API


__all__ = ["DatasetToolBaseModel", "ApiBaseModel"]
