"""Errors raised by line path operations.

Every error carries a stable ``code`` so callers can report the reason for a
rejection without matching on message text.
"""


class LinePathError(ValueError):
    """Base class for rejected line path operations."""

    code = "LINE_PATH_ERROR"


class InvalidSectionError(LinePathError):
    """Section has an out-of-range or non-integer distance, or identical endpoints."""

    code = "INVALID_SECTION"


class BothEndpointsAlreadyPresentError(LinePathError):
    """Both stations of the new section are already on the line."""

    code = "BOTH_ENDPOINTS_ALREADY_PRESENT"


class NoSharedEndpointError(LinePathError):
    """Neither station of the new section is on the line."""

    code = "NO_SHARED_ENDPOINT"


class DistanceTooLargeError(LinePathError):
    """Split distance is not shorter than the section being split."""

    code = "DISTANCE_TOO_LARGE"


class StationNotInPathError(LinePathError):
    """Station to remove is not on the line."""

    code = "STATION_NOT_IN_PATH"


class SingleSectionRemainingError(LinePathError):
    """Removal would leave the line without sections."""

    code = "SINGLE_SECTION_REMAINING"


class BrokenPathError(LinePathError):
    """Sections do not form a single simple path."""

    code = "BROKEN_PATH"
