"""Station management service."""

import uuid

import structlog
from fastapi import HTTPException, status
from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.telemetry import service_span
from subway.models.line import Section
from subway.models.station import Station
from subway.schemas.stations import StationRequest

logger = structlog.get_logger(__name__)


class StationService:
    """Service for managing stations."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the station service.

        Args:
            db: Database session
        """
        self.db = db

    async def create_station(self, request: StationRequest) -> Station:
        """
        Create a new station.

        Args:
            request: Station creation request

        Returns:
            Created station
        """
        station = Station(name=request.name)

        self.db.add(station)
        await self.db.commit()
        await self.db.refresh(station)

        logger.info("station_created", station_id=str(station.id), name=station.name)
        return station

    async def list_stations(self) -> list[Station]:
        """List all stations ordered by name."""
        result = await self.db.execute(select(Station).order_by(Station.name, Station.created_at))
        return list(result.scalars().all())

    async def get_station_by_id(self, station_id: uuid.UUID) -> Station:
        """
        Get a station by ID.

        Raises:
            HTTPException: 404 if the station does not exist
        """
        if not (station := await self.db.get(Station, station_id)):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Station {station_id} not found.",
            )
        return station

    async def get_stations_by_ids(self, station_ids: set[uuid.UUID]) -> dict[uuid.UUID, Station]:
        """
        Get several stations at once.

        Args:
            station_ids: Station UUIDs to load

        Returns:
            Mapping of station ID to station

        Raises:
            HTTPException: 404 naming every station that does not exist
        """
        result = await self.db.execute(select(Station).where(Station.id.in_(station_ids)))
        stations = {station.id: station for station in result.scalars().all()}

        if missing := station_ids - stations.keys():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Station(s) not found: {', '.join(sorted(str(sid) for sid in missing))}.",
            )
        return stations

    async def is_station_in_use(self, station_id: uuid.UUID) -> bool:
        """Return True if any line has a section touching the station."""
        query = select(
            exists().where(
                or_(
                    Section.up_station_id == station_id,
                    Section.down_station_id == station_id,
                )
            )
        )
        return bool(await self.db.scalar(query))

    async def delete_station(self, station_id: uuid.UUID) -> None:
        """
        Delete a station that no line uses.

        Raises:
            HTTPException: 404 if not found, 409 if a line still uses the station
        """
        with service_span("station.delete", "station-service", **{"station.id": str(station_id)}):
            station = await self.get_station_by_id(station_id)

            if await self.is_station_in_use(station_id):
                logger.warning("station_delete_rejected", station_id=str(station_id), reason="in_use")
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Station is part of a line. Remove it from every line first.",
                )

            await self.db.delete(station)
            await self.db.commit()

            logger.info("station_deleted", station_id=str(station_id))
