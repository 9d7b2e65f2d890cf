"""Pydantic schemas for stations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StationRequest(BaseModel):
    """Request to create a station."""

    name: str = Field(..., min_length=1, max_length=255, description="Station name")

    @field_validator("name", mode="after")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        stripped = v.strip()
        if not stripped:
            msg = "Station name must not be blank"
            raise ValueError(msg)
        return stripped


class StationResponse(BaseModel):
    """Response schema for a station."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
