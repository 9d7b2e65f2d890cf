"""Line management service.

Loads a line with its sections, runs the requested path operation in memory
and writes the resulting section diff back in one transaction.
"""

import uuid
from datetime import UTC, datetime

import structlog
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subway.core.telemetry import service_span
from subway.domain.errors import LinePathError
from subway.domain.line_path import LinePath, SectionChange
from subway.models.line import Line, Section
from subway.models.station import Station
from subway.schemas.lines import LineRequest, SectionRequest, UpdateLineRequest
from subway.services.station_service import StationService

logger = structlog.get_logger(__name__)

# Everything needed to materialize a line without further lazy loads
LINE_LOAD_OPTIONS = (
    selectinload(Line.sections).selectinload(Section.up_station),
    selectinload(Line.sections).selectinload(Section.down_station),
)


def _stations_on_line(line: Line) -> dict[uuid.UUID, Station]:
    stations: dict[uuid.UUID, Station] = {}
    for section in line.sections:
        stations[section.up_station_id] = section.up_station
        stations[section.down_station_id] = section.down_station
    return stations


class LineService:
    """Service for managing lines and their sections."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the line service.

        Args:
            db: Database session
        """
        self.db = db
        self.station_service = StationService(db)

    def _rejected(self, error: LinePathError, line_id: uuid.UUID | None = None) -> HTTPException:
        """Log a rejected path operation and build the 400 response for it."""
        logger.warning(
            "section_rejected",
            line_id=str(line_id) if line_id else None,
            code=error.code,
            reason=str(error),
        )
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": error.code, "message": str(error)},
        )

    async def _ensure_name_available(self, name: str, *, exclude_line_id: uuid.UUID | None = None) -> None:
        """
        Raise if another line already uses the name.

        Raises:
            HTTPException: 409 if the name is taken
        """
        query = select(Line.id).where(Line.name == name)
        if exclude_line_id is not None:
            query = query.where(Line.id != exclude_line_id)

        if (await self.db.execute(query)).first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A line named '{name}' already exists.",
            )

    async def get_line_by_id(self, line_id: uuid.UUID) -> Line:
        """
        Get a line by ID with sections and their stations loaded.

        Args:
            line_id: Line UUID

        Returns:
            Line object

        Raises:
            HTTPException: 404 if line not found
        """
        result = await self.db.execute(select(Line).where(Line.id == line_id).options(*LINE_LOAD_OPTIONS))

        if not (line := result.scalar_one_or_none()):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Line {line_id} not found.",
            )

        return line

    async def list_lines(self) -> list[Line]:
        """List all lines with sections loaded, oldest first."""
        result = await self.db.execute(select(Line).options(*LINE_LOAD_OPTIONS).order_by(Line.created_at, Line.name))
        return list(result.scalars().all())

    async def create_line(self, request: LineRequest) -> Line:
        """
        Create a line with its initial section.

        Args:
            request: Line creation request

        Returns:
            Created line with its section loaded

        Raises:
            HTTPException: 404 if a station does not exist, 400 if the section
                is invalid, 409 if the name is taken
        """
        with service_span("line.create", "line-service", **{"line.name": request.name}):
            stations = await self.station_service.get_stations_by_ids(
                {request.up_station_id, request.down_station_id}
            )

            try:
                path = LinePath.create(request.up_station_id, request.down_station_id, request.distance)
            except LinePathError as e:
                raise self._rejected(e) from e

            await self._ensure_name_available(request.name)

            line = Line(name=request.name, color=request.color)
            line.sections = [
                Section(
                    up_station_id=section.up_station_id,
                    up_station=stations[section.up_station_id],
                    down_station_id=section.down_station_id,
                    down_station=stations[section.down_station_id],
                    distance=section.distance,
                )
                for section in path.sections
            ]

            self.db.add(line)
            await self.db.commit()

            logger.info(
                "line_created",
                line_id=str(line.id),
                name=line.name,
                up_station_id=str(request.up_station_id),
                down_station_id=str(request.down_station_id),
                distance=request.distance,
            )
            return line

    async def update_line(self, line_id: uuid.UUID, request: UpdateLineRequest) -> Line:
        """
        Update line name and/or color.

        Raises:
            HTTPException: 404 if line not found, 409 if the new name is taken
        """
        line = await self.get_line_by_id(line_id)

        if request.name is not None and request.name != line.name:
            await self._ensure_name_available(request.name, exclude_line_id=line_id)
            line.name = request.name
        if request.color is not None:
            line.color = request.color

        await self.db.commit()

        logger.info("line_updated", line_id=str(line_id), name=line.name, color=line.color)
        return line

    async def delete_line(self, line_id: uuid.UUID) -> None:
        """
        Delete a line and all of its sections.

        Raises:
            HTTPException: 404 if line not found
        """
        line = await self.get_line_by_id(line_id)

        await self.db.delete(line)
        await self.db.commit()

        logger.info("line_deleted", line_id=str(line_id))

    async def list_line_stations(self, line_id: uuid.UUID) -> list[Station]:
        """
        Get the stations of a line in path order.

        Raises:
            HTTPException: 404 if line not found
        """
        line = await self.get_line_by_id(line_id)
        return line.ordered_stations()

    async def add_section(self, line_id: uuid.UUID, request: SectionRequest) -> Line:
        """
        Add a section to a line, extending or splitting the path as needed.

        Args:
            line_id: Line UUID
            request: Section to add

        Returns:
            Updated line

        Raises:
            HTTPException: 404 if the line or a station does not exist,
                400 if the section cannot be placed on the line
        """
        line = await self.get_line_by_id(line_id)

        with service_span("line.add_section", "line-service", **{"line.id": str(line_id)}) as span:
            new_stations = await self.station_service.get_stations_by_ids(
                {request.up_station_id, request.down_station_id}
            )

            path = line.to_path()
            try:
                change = path.add_section(request.up_station_id, request.down_station_id, request.distance)
            except LinePathError as e:
                span.set_attribute("line.rejection_code", e.code)
                raise self._rejected(e, line_id) from e

            await self._apply_change(line, change, {**_stations_on_line(line), **new_stations})
            span.set_attribute("line.sections_removed", len(change.removed))
            span.set_attribute("line.sections_added", len(change.added))

        logger.info(
            "section_added",
            line_id=str(line_id),
            up_station_id=str(request.up_station_id),
            down_station_id=str(request.down_station_id),
            distance=request.distance,
            split=bool(change.removed),
        )
        return line

    async def remove_station(self, line_id: uuid.UUID, station_id: uuid.UUID) -> Line:
        """
        Remove a station from a line, merging its two sections if it is interior.

        Args:
            line_id: Line UUID
            station_id: Station UUID to take off the line

        Returns:
            Updated line

        Raises:
            HTTPException: 404 if line not found, 400 if the station is not on
                the line or the line has a single section left
        """
        line = await self.get_line_by_id(line_id)

        with service_span(
            "line.remove_station",
            "line-service",
            **{"line.id": str(line_id), "station.id": str(station_id)},
        ) as span:
            path = line.to_path()
            try:
                change = path.remove_station(station_id)
            except LinePathError as e:
                span.set_attribute("line.rejection_code", e.code)
                raise self._rejected(e, line_id) from e

            await self._apply_change(line, change, _stations_on_line(line))

        logger.info(
            "station_removed_from_line",
            line_id=str(line_id),
            station_id=str(station_id),
            merged=bool(change.added),
        )
        return line

    async def _apply_change(
        self,
        line: Line,
        change: SectionChange,
        stations: dict[uuid.UUID, Station],
    ) -> None:
        """
        Persist a section diff for a line in one transaction.

        Removed rows are flushed before new rows are inserted: a split or merge
        reuses endpoints of the removed sections, which the per-line unique
        constraints would otherwise reject.

        Args:
            line: Line with sections loaded
            change: Diff returned by the path operation
            stations: Stations referenced by the added sections
        """
        removed = {(section.up_station_id, section.down_station_id) for section in change.removed}

        try:
            for section in [s for s in line.sections if (s.up_station_id, s.down_station_id) in removed]:
                line.sections.remove(section)
            await self.db.flush()

            for section in change.added:
                line.sections.append(
                    Section(
                        up_station_id=section.up_station_id,
                        up_station=stations[section.up_station_id],
                        down_station_id=section.down_station_id,
                        down_station=stations[section.down_station_id],
                        distance=section.distance,
                    )
                )
            line.updated_at = datetime.now(UTC)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
