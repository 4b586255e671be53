"""
Domain models (Pydantic).

These types validate data crossing a trust boundary:
- the IP lookup service response (`IpLookupPayload`)
- the browser's geolocation report posted by the page script (`SensorReport`)

Anything that fails validation here is rejected as a whole; there is no
field-level partial recovery.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from whereami.core.errors import SensorErrorKind
from whereami.core.geo import Coordinate


class IpLookupPayload(BaseModel):
    """The subset of an ipapi.co-style response this app relies on."""

    model_config = ConfigDict(extra="ignore")

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    ip: str
    org: str

    @model_validator(mode="before")
    @classmethod
    def _reject_error_body(cls, data: Any) -> Any:
        # ipapi.co reports some failures (rate limit, reserved range) as 200 + {"error": true}.
        if isinstance(data, dict) and data.get("error"):
            reason = data.get("reason") or data.get("message") or "unknown"
            raise ValueError(f"lookup service returned an error body: {reason}")
        return data

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.latitude, lon=self.longitude)


class SensorReport(BaseModel):
    """A single geolocation outcome reported by the page script.

    Exactly one of (`latitude` + `longitude`) or `error` must be set.
    """

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    error: SensorErrorKind | None = None

    @model_validator(mode="after")
    def _validate_one_outcome(self) -> "SensorReport":
        has_fix = self.latitude is not None or self.longitude is not None
        if has_fix and self.error is not None:
            raise ValueError("a sensor report carries either a fix or an error, not both")
        if not has_fix and self.error is None:
            raise ValueError("a sensor report needs latitude/longitude or an error")
        if has_fix and (self.latitude is None or self.longitude is None):
            raise ValueError("a fix needs both latitude and longitude")
        return self

    def to_coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(lat=self.latitude, lon=self.longitude)
