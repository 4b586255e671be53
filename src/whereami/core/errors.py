"""
Acquisition error taxonomy.

Both failure types are caught where the acquisition runs; neither is allowed to
escape a task. See `whereami.acquisition.tasks` for the handling policy.
"""

from __future__ import annotations

from typing import Literal

SensorErrorKind = Literal["permission_denied", "unavailable", "timeout", "not_supported"]


class AcquisitionError(Exception):
    """Base class for location acquisition failures."""


class SensorFailure(AcquisitionError):
    """The location sensor refused, failed, timed out or does not exist."""

    def __init__(self, kind: SensorErrorKind, message: str | None = None):
        super().__init__(message or kind)
        self.kind: SensorErrorKind = kind


class NetworkFailure(AcquisitionError):
    """The IP lookup request failed, returned non-2xx, or returned a malformed payload."""
