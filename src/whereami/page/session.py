"""
Page sessions.

A `PageSession` is the server-side half of one page load. It owns:
- the `LocationStore` for that page,
- the notification log the page script turns into `alert()`s,
- the two acquisition tasks (started once),
- the latest composed `Scene`.

Every store mutation triggers `_redraw`, which recomposes the scene and wakes
anyone long-polling for a change. Sessions live in memory only; the registry
is bounded and evicts the oldest page.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass

from whereami.acquisition.ip_lookup import IpLocationClient
from whereami.acquisition.sensor import BrowserSensor, Sensor
from whereami.acquisition.tasks import acquire_gps, acquire_ip_location
from whereami.config.settings import Settings
from whereami.display.scene import Scene, compose_scene
from whereami.state.store import LocationState, LocationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    seq: int
    kind: str
    message: str


class PageSession:
    """Location state, acquisitions and derived scene for one page load."""

    def __init__(
        self,
        settings: Settings,
        ip_client: IpLocationClient,
        *,
        sensor: Sensor | None = None,
        session_id: str | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self._settings = settings
        self._ip_client = ip_client
        self.sensor = sensor if sensor is not None else BrowserSensor()
        self.store = LocationStore(settings.defaults.position.to_coordinate())
        self.notifications: list[Notification] = []
        self.scene: Scene = compose_scene(self.store.state)
        self._changed = asyncio.Event()
        self.gps_task: asyncio.Task | None = None
        self.ip_task: asyncio.Task | None = None
        self.store.subscribe(self._redraw)

    @property
    def state(self) -> LocationState:
        return self.store.state

    def _redraw(self, state: LocationState) -> None:
        self.scene = compose_scene(state)
        self._wake()

    def _wake(self) -> None:
        # Replace the event so late waiters block until the next change.
        self._changed.set()
        self._changed = asyncio.Event()

    def notify(self, kind: str, message: str) -> None:
        """Record a user-visible notification."""
        self.notifications.append(Notification(seq=len(self.notifications) + 1, kind=kind, message=message))
        logger.info("Session %s notification (%s): %s", self.id, kind, message)
        self._wake()

    def start(self, address: str | None = None) -> None:
        """Spawn both acquisitions; calling again is a no-op."""
        if self.gps_task is not None:
            return
        self.gps_task = asyncio.create_task(
            acquire_gps(
                self.sensor,
                self.store,
                self.notify,
                timeout_seconds=self._settings.acquisition.sensor_timeout_seconds,
            ),
            name=f"gps:{self.id}",
        )
        self.ip_task = asyncio.create_task(
            acquire_ip_location(self._ip_client, self.store, address=address),
            name=f"ip:{self.id}",
        )

    async def wait_for_change(self, after_version: int, timeout: float) -> Scene:
        """Return the scene once its version exceeds `after_version`, or after `timeout`."""
        if self.scene.version > after_version or timeout <= 0:
            return self.scene
        try:
            await asyncio.wait_for(self._changed.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self.scene

    def snapshot(self) -> dict:
        """JSON-ready view of the session for the page script."""
        return {
            "session_id": self.id,
            "scene": self.scene.to_dict(),
            "ip_info": {
                "address": self.state.ip_info.address,
                "organization": self.state.ip_info.organization,
            },
            "notifications": [
                {"seq": n.seq, "kind": n.kind, "message": n.message} for n in self.notifications
            ],
            "pending": {
                "gps": self.gps_task is not None and not self.gps_task.done(),
                "ip": self.ip_task is not None and not self.ip_task.done(),
            },
        }

    def close(self) -> None:
        for task in (self.gps_task, self.ip_task):
            if task is not None and not task.done():
                task.cancel()
        if isinstance(self.sensor, BrowserSensor):
            self.sensor.cancel()


class SessionRegistry:
    """Bounded in-memory map of live page sessions (oldest evicted first)."""

    def __init__(self, max_sessions: int):
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, PageSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, session: PageSession) -> PageSession:
        self._sessions[session.id] = session
        while len(self._sessions) > self._max_sessions:
            _, evicted = self._sessions.popitem(last=False)
            logger.info("Evicting page session %s", evicted.id)
            evicted.close()
        return session

    def get(self, session_id: str) -> PageSession | None:
        return self._sessions.get(session_id)

    def clear(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
