"""
Line path topology.

A line is a single unbranching path of stations joined by directed, weighted
sections. ``LinePath`` owns the unordered section set of one line and keeps it
a simple path across insertions and removals. Order is never stored; it is
reconstructed on demand by walking from the only station without an incoming
section.

These are pure in-memory operations. Persistence belongs to the service layer,
which applies the ``SectionChange`` returned by each mutation.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from subway.domain.errors import (
    BothEndpointsAlreadyPresentError,
    BrokenPathError,
    DistanceTooLargeError,
    InvalidSectionError,
    NoSharedEndpointError,
    SingleSectionRemainingError,
    StationNotInPathError,
)

StationId = Hashable

# Largest distance the sections table can store (signed 32-bit column)
MAX_DISTANCE = 2**31 - 1


@dataclass(frozen=True)
class Section:
    """
    Directed weighted edge between two stations of a line.

    Attributes:
        up_station_id: Station the section leaves from
        down_station_id: Station the section arrives at
        distance: Positive section length
        line_id: Owning line identifier (back-reference only, ignored by equality)
    """

    up_station_id: StationId
    down_station_id: StationId
    distance: int
    line_id: Hashable | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.distance, bool) or not isinstance(self.distance, int):
            msg = f"Section distance must be an integer, got {self.distance!r}"
            raise InvalidSectionError(msg)
        if self.distance <= 0:
            msg = f"Section distance must be positive, got {self.distance}"
            raise InvalidSectionError(msg)
        if self.distance > MAX_DISTANCE:
            msg = f"Section distance must be at most {MAX_DISTANCE}, got {self.distance}"
            raise InvalidSectionError(msg)
        if self.up_station_id == self.down_station_id:
            msg = f"Section cannot start and end at the same station ({self.up_station_id})"
            raise InvalidSectionError(msg)


@dataclass(frozen=True)
class SectionChange:
    """Sections removed from and added to a line by one mutation."""

    removed: tuple[Section, ...] = ()
    added: tuple[Section, ...] = ()


def _walk(sections_by_up: Mapping[StationId, Section]) -> list[StationId]:
    """
    Materialize the ordered station sequence of a section set.

    Args:
        sections_by_up: Sections keyed by their upstream station

    Returns:
        Station ids from path start to path end (empty for no sections)

    Raises:
        BrokenPathError: If the sections do not form exactly one simple path
    """
    if not sections_by_up:
        return []

    down_ids = {section.down_station_id for section in sections_by_up.values()}
    if len(down_ids) != len(sections_by_up):
        msg = "A station is the downstream end of more than one section"
        raise BrokenPathError(msg)

    starts = [station_id for station_id in sections_by_up if station_id not in down_ids]
    if len(starts) != 1:
        msg = f"Expected exactly one path start, found {len(starts)}"
        raise BrokenPathError(msg)

    current = starts[0]
    ordered = [current]
    # At most one step per section, so a corrupted set cannot loop forever
    for _ in range(len(sections_by_up)):
        if (section := sections_by_up.get(current)) is None:
            break
        current = section.down_station_id
        ordered.append(current)

    if len(ordered) != len(sections_by_up) + 1:
        msg = f"Sections are disconnected: path covers {len(ordered) - 1} of {len(sections_by_up)} sections"
        raise BrokenPathError(msg)

    return ordered


class LinePath:
    """
    Unordered section set of one line, kept as a single simple path.

    Sections are indexed by upstream station, which gives constant time
    "what comes after this station" lookups for both materialization and
    mutation. Mutations build the new index in a scratch mapping and only
    swap it in once it validates, so a rejected call leaves the path as it was.

    Example:
        path = LinePath.create("A", "B", 10)
        path.add_section("A", "C", 4)
        path.ordered_station_ids()  # ["A", "C", "B"]
    """

    def __init__(self, sections: Iterable[Section] = (), *, line_id: Hashable | None = None) -> None:
        """
        Build a path from sections loaded from storage.

        Args:
            sections: Sections of the line, in any order
            line_id: Identifier stamped on sections created by mutations

        Raises:
            BrokenPathError: If the sections do not form a single simple path
        """
        sections_by_up: dict[StationId, Section] = {}
        for section in sections:
            if section.up_station_id in sections_by_up:
                msg = f"Station {section.up_station_id} is the upstream end of more than one section"
                raise BrokenPathError(msg)
            sections_by_up[section.up_station_id] = section

        _walk(sections_by_up)
        self.line_id = line_id
        self._sections_by_up = sections_by_up

    @classmethod
    def create(
        cls,
        up_station_id: StationId,
        down_station_id: StationId,
        distance: int,
        *,
        line_id: Hashable | None = None,
    ) -> LinePath:
        """
        Create a path holding a single initial section.

        Raises:
            InvalidSectionError: If distance is not a positive integer up to
                MAX_DISTANCE or the stations are equal
        """
        return cls([Section(up_station_id, down_station_id, distance, line_id)], line_id=line_id)

    def __len__(self) -> int:
        return len(self._sections_by_up)

    def __contains__(self, station_id: object) -> bool:
        return station_id in self.station_ids

    def __iter__(self) -> Iterator[Section]:
        return iter(self.ordered_sections())

    def __repr__(self) -> str:
        return f"LinePath(line_id={self.line_id}, stations={self.ordered_station_ids()})"

    @property
    def sections(self) -> tuple[Section, ...]:
        """Sections in no particular order."""
        return tuple(self._sections_by_up.values())

    @property
    def station_ids(self) -> frozenset[StationId]:
        """Every station on the line."""
        ids: set[StationId] = set()
        for section in self._sections_by_up.values():
            ids.add(section.up_station_id)
            ids.add(section.down_station_id)
        return frozenset(ids)

    @property
    def start_station_id(self) -> StationId | None:
        """First station of the path, None for an empty path."""
        ordered = self.ordered_station_ids()
        return ordered[0] if ordered else None

    @property
    def end_station_id(self) -> StationId | None:
        """Last station of the path, None for an empty path."""
        ordered = self.ordered_station_ids()
        return ordered[-1] if ordered else None

    @property
    def total_distance(self) -> int:
        return sum(section.distance for section in self._sections_by_up.values())

    def ordered_station_ids(self) -> list[StationId]:
        """
        Stations from path start to path end.

        Recomputed on every call; the result has ``len(self) + 1`` entries.

        Raises:
            BrokenPathError: If the section set no longer forms a simple path
        """
        return _walk(self._sections_by_up)

    def ordered_sections(self) -> list[Section]:
        """Sections from path start to path end."""
        ordered = self.ordered_station_ids()
        return [self._sections_by_up[station_id] for station_id in ordered[:-1]]

    def _sections_by_down(self) -> dict[StationId, Section]:
        return {section.down_station_id: section for section in self._sections_by_up.values()}

    def _section(self, up_station_id: StationId, down_station_id: StationId, distance: int) -> Section:
        return Section(up_station_id, down_station_id, distance, self.line_id)

    def _apply(self, removed: Iterable[Section], added: Iterable[Section]) -> SectionChange:
        """Apply a change on a scratch copy, validate it, then swap it in."""
        removed = tuple(removed)
        added = tuple(added)

        scratch = dict(self._sections_by_up)
        for section in removed:
            del scratch[section.up_station_id]
        for section in added:
            if section.up_station_id in scratch:
                msg = f"Station {section.up_station_id} is the upstream end of more than one section"
                raise BrokenPathError(msg)
            scratch[section.up_station_id] = section

        _walk(scratch)
        self._sections_by_up = scratch
        return SectionChange(removed=removed, added=added)

    def add_section(self, up_station_id: StationId, down_station_id: StationId, distance: int) -> SectionChange:
        """
        Insert a section so the line stays a single simple path.

        Exactly one of these applies:
        - up station is the path end: append after it
        - down station is the path start: prepend before it
        - up station starts an existing section: split it, new station after up
        - down station ends an existing section: split it, new station before down

        Args:
            up_station_id: Upstream station of the new section
            down_station_id: Downstream station of the new section
            distance: Length of the new section

        Returns:
            The sections removed and added

        Raises:
            InvalidSectionError: If distance is not a positive integer up to
                MAX_DISTANCE or the stations are equal
            BothEndpointsAlreadyPresentError: If both stations are already on the line
            NoSharedEndpointError: If neither station is on the line
            DistanceTooLargeError: If a split would leave a non-positive remainder
        """
        new_section = self._section(up_station_id, down_station_id, distance)

        if not self._sections_by_up:
            return self._apply(removed=(), added=(new_section,))

        stations = self.station_ids
        has_up = up_station_id in stations
        has_down = down_station_id in stations

        if has_up and has_down:
            msg = f"Stations {up_station_id} and {down_station_id} are both already on the line"
            raise BothEndpointsAlreadyPresentError(msg)
        if not has_up and not has_down:
            msg = f"Neither {up_station_id} nor {down_station_id} is on the line"
            raise NoSharedEndpointError(msg)

        if has_up:
            existing = self._sections_by_up.get(up_station_id)
            if existing is None:
                return self._apply(removed=(), added=(new_section,))
            self._check_split(existing, distance)
            return self._apply(
                removed=(existing,),
                added=(
                    new_section,
                    self._section(down_station_id, existing.down_station_id, existing.distance - distance),
                ),
            )

        existing = self._sections_by_down().get(down_station_id)
        if existing is None:
            return self._apply(removed=(), added=(new_section,))
        self._check_split(existing, distance)
        return self._apply(
            removed=(existing,),
            added=(
                self._section(existing.up_station_id, up_station_id, existing.distance - distance),
                new_section,
            ),
        )

    @staticmethod
    def _check_split(existing: Section, distance: int) -> None:
        if distance >= existing.distance:
            msg = (
                f"Distance {distance} must be shorter than the existing section "
                f"{existing.up_station_id} -> {existing.down_station_id} ({existing.distance})"
            )
            raise DistanceTooLargeError(msg)

    def remove_station(self, station_id: StationId) -> SectionChange:
        """
        Remove a station and re-join the path around it.

        End stations drop their single section. An interior station's two
        sections are merged into one spanning both, with the summed distance.

        Args:
            station_id: Station to remove

        Returns:
            The sections removed and added

        Raises:
            StationNotInPathError: If the station is not on the line
            SingleSectionRemainingError: If the line has only one section left
            InvalidSectionError: If the merged section would exceed MAX_DISTANCE
        """
        if station_id not in self.station_ids:
            msg = f"Station {station_id} is not on the line"
            raise StationNotInPathError(msg)
        if len(self._sections_by_up) == 1:
            msg = "Cannot remove a station from a line with a single section"
            raise SingleSectionRemainingError(msg)

        incoming = self._sections_by_down().get(station_id)
        outgoing = self._sections_by_up.get(station_id)

        if incoming is not None and outgoing is not None:
            merged = self._section(
                incoming.up_station_id,
                outgoing.down_station_id,
                incoming.distance + outgoing.distance,
            )
            return self._apply(removed=(incoming, outgoing), added=(merged,))

        removed = incoming if incoming is not None else outgoing
        return self._apply(removed=(removed,), added=())
