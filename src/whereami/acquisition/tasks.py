"""
Location acquisition tasks.

Each acquisition runs once and never raises:
- GPS failures are surfaced to the user through `notify` (the page shows an alert).
- IP lookup failures are logged for diagnostics only; the page keeps its defaults.

The two are independent: `acquire_all` starts both and waits for both, and
neither outcome affects the other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from whereami.acquisition.ip_lookup import IpLocationClient, IpLookup
from whereami.acquisition.sensor import Sensor
from whereami.core.errors import NetworkFailure, SensorFailure
from whereami.core.geo import Coordinate
from whereami.state.store import LocationStore

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]

GPS_NOT_SUPPORTED_MESSAGE = "Geolocation not supported by your browser."
GPS_FAILED_MESSAGE = "Could not get GPS location."


def sensor_failure_message(exc: SensorFailure) -> str:
    if exc.kind == "not_supported":
        return GPS_NOT_SUPPORTED_MESSAGE
    return GPS_FAILED_MESSAGE


async def acquire_gps(
    sensor: Sensor,
    store: LocationStore,
    notify: Notify,
    *,
    timeout_seconds: float | None = None,
) -> Coordinate | None:
    """Request one fix from `sensor` and store it; returns the fix or None on failure."""
    logger.info("Fetching GPS location...")
    try:
        try:
            position = await asyncio.wait_for(sensor.current_position(), timeout=timeout_seconds)
        except asyncio.TimeoutError as e:
            raise SensorFailure("timeout", f"no fix within {timeout_seconds}s") from e
    except SensorFailure as e:
        logger.warning("GPS error (%s): %s", e.kind, e)
        notify("sensor_failure", sensor_failure_message(e))
        return None

    logger.info("GPS location: %.6f, %.6f", position.lat, position.lon)
    store.set_gps(position)
    return position


async def acquire_ip_location(
    client: IpLocationClient,
    store: LocationStore,
    *,
    address: str | None = None,
) -> IpLookup | None:
    """Resolve the IP-derived location and store it; returns the lookup or None on failure."""
    logger.info("Fetching IP location...")
    try:
        result = await client.lookup(address)
    except NetworkFailure as e:
        logger.warning("IP location error: %s", e)
        return None

    logger.info(
        "IP location: %.6f, %.6f (ip=%s org=%s)",
        result.position.lat,
        result.position.lon,
        result.info.address,
        result.info.organization,
    )
    store.set_ip(result.position, result.info)
    return result


async def acquire_all(
    *,
    sensor: Sensor,
    ip_client: IpLocationClient | None,
    store: LocationStore,
    notify: Notify,
    address: str | None = None,
    sensor_timeout_seconds: float | None = None,
) -> tuple[Coordinate | None, IpLookup | None]:
    """Run both acquisitions concurrently; `ip_client=None` skips the IP lookup."""
    gps_task = asyncio.create_task(
        acquire_gps(sensor, store, notify, timeout_seconds=sensor_timeout_seconds)
    )
    if ip_client is None:
        return await gps_task, None
    ip_task = asyncio.create_task(acquire_ip_location(ip_client, store, address=address))
    gps, ip = await asyncio.gather(gps_task, ip_task)
    return gps, ip
