"""Line topology: sections, path invariants and their errors."""

from subway.domain.errors import (
    BothEndpointsAlreadyPresentError,
    BrokenPathError,
    DistanceTooLargeError,
    InvalidSectionError,
    LinePathError,
    NoSharedEndpointError,
    SingleSectionRemainingError,
    StationNotInPathError,
)
from subway.domain.line_path import MAX_DISTANCE, LinePath, Section, SectionChange

__all__ = [
    "MAX_DISTANCE",
    "LinePath",
    "Section",
    "SectionChange",
    # Errors
    "LinePathError",
    "InvalidSectionError",
    "BothEndpointsAlreadyPresentError",
    "NoSharedEndpointError",
    "DistanceTooLargeError",
    "StationNotInPathError",
    "SingleSectionRemainingError",
    "BrokenPathError",
]
