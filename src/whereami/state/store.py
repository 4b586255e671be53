"""
Per-page location state.

`LocationStore` is the single mutable container a page owns. Each acquisition
writes only its own fields:
- GPS acquisition -> `gps_position`
- IP acquisition  -> `ip_position` + `ip_info` (together, one transition)

Subscribers are called synchronously after every mutation with the new snapshot;
this is where the page hooks its "recompute and redraw" step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from whereami.core.geo import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IPInfo:
    """Metadata returned alongside the IP-derived position."""

    address: str = ""
    organization: str = ""


@dataclass(frozen=True)
class LocationState:
    """Immutable snapshot of a page's location state."""

    gps_position: Coordinate
    ip_position: Coordinate
    ip_info: IPInfo = field(default_factory=IPInfo)
    version: int = 0


Listener = Callable[[LocationState], None]


class LocationStore:
    """Holds the current `LocationState` and notifies listeners on change."""

    def __init__(self, default_position: Coordinate):
        self._state = LocationState(gps_position=default_position, ip_position=default_position)
        self._listeners: list[Listener] = []

    @property
    def state(self) -> LocationState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_gps(self, position: Coordinate) -> LocationState:
        """Replace the GPS position with an exact sensor fix."""
        return self._commit(replace(self._state, gps_position=position))

    def set_ip(self, position: Coordinate, info: IPInfo) -> LocationState:
        """Replace the IP position and its metadata in one transition."""
        return self._commit(replace(self._state, ip_position=position, ip_info=info))

    def _commit(self, new_state: LocationState) -> LocationState:
        self._state = replace(new_state, version=self._state.version + 1)
        logger.debug("Location state v%d: %s", self._state.version, self._state)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state
