"""Exception taxonomy for the tracker.

Only ``EnumerationError`` and ``AuthError`` end a run. ``TransportError`` is
absorbed at the member or group level, ``ValidationError`` is raised before
any network call and ``BusyError`` rejects a second concurrent run.
"""

from __future__ import annotations


class WealthTrackerError(Exception):
    """Base class for errors surfaced to the command surface."""


class ValidationError(WealthTrackerError):
    """The supplied community link is malformed."""


class AuthError(WealthTrackerError):
    """Credentials are missing or expired after one refresh attempt."""


class EnumerationError(WealthTrackerError):
    """The roster could not be read or is empty."""


class TransportError(WealthTrackerError):
    """A single network call failed."""


class BusyError(WealthTrackerError):
    """An analysis run is already active."""

    def __init__(self, message: str = "busy") -> None:
        super().__init__(message)
