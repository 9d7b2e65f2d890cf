"""Pydantic schemas for lines and their sections."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ==================== Request Schemas ====================


class LineRequest(BaseModel):
    """
    Request to create a line with its first section.

    Distance range and station distinctness are checked by the line path
    itself so that every invalid section is rejected the same way, at creation
    or later.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Line name")
    color: str = Field(..., min_length=1, max_length=50, description="Display color, e.g. 'bg-red-600'")
    up_station_id: UUID = Field(..., description="First station of the initial section")
    down_station_id: UUID = Field(..., description="Second station of the initial section")
    distance: int = Field(..., description="Length of the initial section (must be positive)")


class UpdateLineRequest(BaseModel):
    """Request to rename or recolor a line. Sections are changed through the sections endpoints."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, min_length=1, max_length=50)

    @model_validator(mode="after")
    def check_not_empty(self) -> "UpdateLineRequest":
        """Require at least one field to update."""
        if self.name is None and self.color is None:
            msg = "At least one of name or color must be provided"
            raise ValueError(msg)
        return self


class SectionRequest(BaseModel):
    """Request to add a section to a line."""

    up_station_id: UUID = Field(..., description="Upstream station of the new section")
    down_station_id: UUID = Field(..., description="Downstream station of the new section")
    distance: int = Field(..., description="Length of the new section (must be positive)")


# ==================== Response Schemas ====================


class LineStationResponse(BaseModel):
    """A station in line order, with its distance from the first station."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    distance_from_start: int = Field(..., description="Sum of section distances from the first station")


class SectionResponse(BaseModel):
    """Response schema for a section."""

    model_config = ConfigDict(from_attributes=True)

    up_station_id: UUID
    down_station_id: UUID
    distance: int


class LineResponse(BaseModel):
    """Full response schema for a line with stations and sections in path order."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: str
    stations: list[LineStationResponse]
    sections: list[SectionResponse]
    total_distance: int
    created_at: datetime
    updated_at: datetime


class LinePathErrorDetail(BaseModel):
    """Body of the ``detail`` field when a section change is rejected."""

    code: str = Field(..., description="Error kind, e.g. 'DISTANCE_TOO_LARGE'")
    message: str
