"""
Location sensors.

A sensor answers one question, once: "where is the device right now?". Every
implementation either returns a `Coordinate` or raises `SensorFailure`.

- `BrowserSensor`: the answer comes from the page script
  (`navigator.geolocation.getCurrentPosition`) via the JSON API.
- `FixedSensor`: a known coordinate (CLI demos, tests).
- `UnavailableSensor`: a host without a location capability.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from whereami.core.errors import SensorErrorKind, SensorFailure
from whereami.core.geo import Coordinate
from whereami.domain.models import SensorReport


class Sensor(Protocol):
    async def current_position(self) -> Coordinate: ...


class SensorAlreadySettled(RuntimeError):
    """Raised when a one-shot sensor receives a second report."""


class BrowserSensor:
    """One-shot sensor settled by a report from the browser."""

    def __init__(self) -> None:
        self._future: asyncio.Future[Coordinate] | None = None

    def _get_future(self) -> asyncio.Future[Coordinate]:
        # Created lazily so the future binds to the loop that awaits it.
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    def report(self, report: SensorReport) -> None:
        """Settle the sensor with the browser's fix or failure."""
        future = self._get_future()
        if future.done():
            raise SensorAlreadySettled("sensor already reported for this page")
        coordinate = report.to_coordinate()
        if coordinate is not None:
            future.set_result(coordinate)
        else:
            kind: SensorErrorKind = report.error or "unavailable"
            future.set_exception(SensorFailure(kind))

    def cancel(self) -> None:
        if self._future is not None and not self._future.done():
            self._future.cancel()

    async def current_position(self) -> Coordinate:
        return await self._get_future()


class FixedSensor:
    """Sensor that always reports the same coordinate."""

    def __init__(self, position: Coordinate):
        self._position = position

    async def current_position(self) -> Coordinate:
        return self._position


class UnavailableSensor:
    """Sensor for hosts with no geolocation capability."""

    async def current_position(self) -> Coordinate:
        raise SensorFailure("not_supported", "geolocation is not supported on this host")
