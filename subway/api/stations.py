"""Station API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_db
from subway.models.station import Station
from subway.schemas.stations import StationRequest, StationResponse
from subway.services.station_service import StationService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    request: StationRequest,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Create a new station.

    Args:
        request: Station creation request
        db: Database session

    Returns:
        Created station
    """
    service = StationService(db)
    return await service.create_station(request)


@router.get("", response_model=list[StationResponse])
async def list_stations(db: AsyncSession = Depends(get_db)) -> list[Station]:
    """List all stations ordered by name."""
    service = StationService(db)
    return await service.list_stations()


@router.get("/{station_id}", response_model=StationResponse)
async def get_station(
    station_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Get a single station.

    Raises:
        HTTPException: 404 if station not found
    """
    service = StationService(db)
    return await service.get_station_by_id(station_id)


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(
    station_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Delete a station.

    Raises:
        HTTPException: 404 if station not found, 409 if a line still uses it
    """
    service = StationService(db)
    await service.delete_station(station_id)
