"""Line and section models."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subway.domain.line_path import LinePath
from subway.domain.line_path import Section as PathSection
from subway.models.base import BaseModel
from subway.models.station import Station


class Line(BaseModel):
    """A transit line whose sections form a single path of stations."""

    __tablename__ = "lines"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    color: Mapped[str] = mapped_column(
        String(50),  # CSS class or hex value, e.g. "bg-red-600"
        nullable=False,
    )

    # Relationships
    sections: Mapped[list["Section"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
    )

    def to_path(self) -> LinePath:
        """
        Build the in-memory path from the loaded sections.

        Requires ``sections`` to be loaded (use selectinload in async sessions).

        Raises:
            BrokenPathError: If the stored sections do not form a single path
        """
        return LinePath((section.to_path_section() for section in self.sections), line_id=self.id)

    def ordered_sections(self) -> list["Section"]:
        """Sections from the first station of the line to the last."""
        by_up_station = {section.up_station_id: section for section in self.sections}
        return [by_up_station[path_section.up_station_id] for path_section in self.to_path().ordered_sections()]

    def ordered_stations(self) -> list[Station]:
        """Stations from the first station of the line to the last."""
        stations_by_id: dict[uuid.UUID, Station] = {}
        for section in self.sections:
            stations_by_id[section.up_station_id] = section.up_station
            stations_by_id[section.down_station_id] = section.down_station
        return [stations_by_id[station_id] for station_id in self.to_path().ordered_station_ids()]

    def __repr__(self) -> str:
        """String representation of the line."""
        return f"<Line(id={self.id}, name={self.name}, color={self.color})>"


class Section(BaseModel):
    """Directed, weighted connection between two adjacent stations of a line."""

    __tablename__ = "sections"

    line_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("lines.id", ondelete="CASCADE"),
        nullable=False,
    )
    up_station_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    down_station_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    distance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    line: Mapped[Line] = relationship(back_populates="sections")
    up_station: Mapped[Station] = relationship(foreign_keys=[up_station_id])
    down_station: Mapped[Station] = relationship(foreign_keys=[down_station_id])

    # A station starts at most one section and ends at most one section per line
    __table_args__ = (
        CheckConstraint("distance > 0", name="ck_sections_distance_positive"),
        CheckConstraint("up_station_id <> down_station_id", name="ck_sections_distinct_stations"),
        UniqueConstraint("line_id", "up_station_id", name="uq_sections_line_up_station"),
        UniqueConstraint("line_id", "down_station_id", name="uq_sections_line_down_station"),
        Index("ix_sections_line", "line_id"),
        Index("ix_sections_up_station", "up_station_id"),
        Index("ix_sections_down_station", "down_station_id"),
    )

    def to_path_section(self) -> PathSection:
        """Convert to the in-memory section value used by LinePath."""
        return PathSection(self.up_station_id, self.down_station_id, self.distance, self.line_id)

    def __repr__(self) -> str:
        """String representation of the section."""
        return (
            f"<Section(id={self.id}, line={self.line_id}, "
            f"up={self.up_station_id}, down={self.down_station_id}, distance={self.distance})>"
        )
