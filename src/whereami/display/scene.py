"""
Scene composition.

`compose_scene` is a pure function of a `LocationState` snapshot: it derives the
two markers, the connecting line and the distance label. Nothing here talks to
the map widget; `whereami.display.folium_map` turns a `Scene` into HTML.

Rounding is a display concern only: popups show 4 decimals, the label shows the
distance to 2 decimals. The stored state is never rounded.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from html import escape
from typing import Any, Literal

from whereami.core.geo import Coordinate, distance_km, midpoint
from whereami.state.store import LocationState


@dataclass(frozen=True)
class MarkerSpec:
    kind: Literal["gps", "ip"]
    position: Coordinate
    popup_lines: tuple[str, ...]

    @property
    def popup_html(self) -> str:
        return "<br>".join(self.popup_lines)


@dataclass(frozen=True)
class DistanceLabel:
    position: Coordinate
    distance_km: float

    @property
    def text(self) -> str:
        return f"{self.distance_km:.2f} km"


@dataclass(frozen=True)
class Scene:
    """Everything needed to draw one frame of the map."""

    version: int
    center: Coordinate
    markers: tuple[MarkerSpec, MarkerSpec]
    line: tuple[Coordinate, Coordinate]
    label: DistanceLabel

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["label"]["text"] = self.label.text
        return data


def format_coordinate(position: Coordinate) -> str:
    return f"{position.lat:.4f}, {position.lon:.4f}"


def compose_scene(state: LocationState) -> Scene:
    """Derive the scene for `state`."""
    gps = state.gps_position
    ip = state.ip_position

    gps_marker = MarkerSpec(
        kind="gps",
        position=gps,
        popup_lines=("GPS Location:", format_coordinate(gps)),
    )
    # Address and organization come from a third party; escape before they reach HTML.
    ip_marker = MarkerSpec(
        kind="ip",
        position=ip,
        popup_lines=(
            f"IP Location: {format_coordinate(ip)}",
            f"IP: {escape(state.ip_info.address)}",
            f"Organization: {escape(state.ip_info.organization)}",
        ),
    )

    return Scene(
        version=state.version,
        center=gps,
        markers=(gps_marker, ip_marker),
        line=(gps, ip),
        label=DistanceLabel(position=midpoint(gps, ip), distance_km=distance_km(gps, ip)),
    )
