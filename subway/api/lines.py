"""Line API endpoints, including section insertion and station removal."""

from itertools import accumulate
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_db
from subway.models.line import Line
from subway.schemas.lines import (
    LinePathErrorDetail,
    LineRequest,
    LineResponse,
    LineStationResponse,
    SectionRequest,
    SectionResponse,
    UpdateLineRequest,
)
from subway.services.line_service import LineService

router = APIRouter(prefix="/lines", tags=["lines"])

# Documented for endpoints that run a line path operation
SECTION_REJECTED_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Section change rejected; detail holds the error code and message",
        "model": LinePathErrorDetail,
    },
}


def build_line_response(line: Line) -> LineResponse:
    """
    Build the response for a line with its stations and sections in path order.

    Each station carries its cumulative distance from the first station.

    Args:
        line: Line with sections and their stations loaded

    Returns:
        Line response
    """
    sections = line.ordered_sections()
    stations = line.ordered_stations()
    offsets = accumulate((section.distance for section in sections), initial=0)

    return LineResponse(
        id=line.id,
        name=line.name,
        color=line.color,
        stations=[
            LineStationResponse(id=station.id, name=station.name, distance_from_start=offset)
            for station, offset in zip(stations, offsets, strict=False)
        ],
        sections=[SectionResponse.model_validate(section) for section in sections],
        total_distance=sum(section.distance for section in sections),
        created_at=line.created_at,
        updated_at=line.updated_at,
    )


# ==================== Line Endpoints ====================


@router.post(
    "",
    response_model=LineResponse,
    status_code=status.HTTP_201_CREATED,
    responses=SECTION_REJECTED_RESPONSES,
)
async def create_line(
    request: LineRequest,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Create a line with its initial section.

    Args:
        request: Line creation request
        db: Database session

    Returns:
        Created line

    Raises:
        HTTPException: 404 if a station does not exist, 400 if the section is
            invalid, 409 if the name is taken
    """
    service = LineService(db)
    line = await service.create_line(request)
    return build_line_response(line)


@router.get("", response_model=list[LineResponse])
async def list_lines(db: AsyncSession = Depends(get_db)) -> list[LineResponse]:
    """List all lines with their stations in order."""
    service = LineService(db)
    return [build_line_response(line) for line in await service.list_lines()]


@router.get("/{line_id}", response_model=LineResponse)
async def get_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Get a single line.

    Raises:
        HTTPException: 404 if line not found
    """
    service = LineService(db)
    return build_line_response(await service.get_line_by_id(line_id))


@router.patch("/{line_id}", response_model=LineResponse)
async def update_line(
    line_id: UUID,
    request: UpdateLineRequest,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Rename or recolor a line.

    Raises:
        HTTPException: 404 if line not found, 409 if the name is taken
    """
    service = LineService(db)
    return build_line_response(await service.update_line(line_id, request))


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a line and its sections. Stations are kept.

    Raises:
        HTTPException: 404 if line not found
    """
    service = LineService(db)
    await service.delete_line(line_id)


@router.get("/{line_id}/stations", response_model=list[LineStationResponse])
async def list_line_stations(
    line_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[LineStationResponse]:
    """
    Get the stations of a line from first to last.

    Raises:
        HTTPException: 404 if line not found
    """
    service = LineService(db)
    return build_line_response(await service.get_line_by_id(line_id)).stations


# ==================== Section Endpoints ====================


@router.post(
    "/{line_id}/sections",
    response_model=LineResponse,
    status_code=status.HTTP_201_CREATED,
    responses=SECTION_REJECTED_RESPONSES,
)
async def add_section(
    line_id: UUID,
    request: SectionRequest,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Add a section to a line.

    The section either extends the line at one end or splits an existing
    section; the split keeps the total distance of the section it replaces.

    Args:
        line_id: Line UUID
        request: Section to add
        db: Database session

    Returns:
        Updated line

    Raises:
        HTTPException: 404 if the line or a station does not exist, 400 if
            the section cannot be placed
    """
    service = LineService(db)
    return build_line_response(await service.add_section(line_id, request))


@router.delete(
    "/{line_id}/sections",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=SECTION_REJECTED_RESPONSES,
)
async def remove_station(
    line_id: UUID,
    station_id: UUID = Query(..., description="Station to take off the line"),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Remove a station from a line.

    An interior station's two sections are merged into one.

    Raises:
        HTTPException: 404 if line not found, 400 if the station is not on the
            line or it is the line's last section
    """
    service = LineService(db)
    await service.remove_station(line_id, station_id)
