"""
WhereAmI CLI entrypoint.

This CLI is intended for quick local demos and debugging without a browser:
- `serve`: run the web app under uvicorn
- `locate`: run both acquisitions once and print/save the resulting map
- `distance`: haversine distance + midpoint between two points
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from whereami.acquisition.ip_lookup import IpLocationClient
from whereami.acquisition.sensor import FixedSensor, Sensor, UnavailableSensor
from whereami.acquisition.tasks import acquire_all
from whereami.config.settings import get_settings
from whereami.core.geo import Coordinate, distance_km, midpoint
from whereami.core.logging import configure_logging
from whereami.display.folium_map import save_map
from whereami.display.scene import compose_scene, format_coordinate
from whereami.state.store import LocationStore


def parse_coordinate(value: str) -> Coordinate:
    """Parse `LAT,LON` (comma or whitespace separated) into a `Coordinate`."""
    parts = value.replace(",", " ").split()
    if len(parts) != 2:
        raise ValueError(f"Invalid coordinate '{value}', expected LAT,LON")
    return Coordinate(lat=float(parts[0]), lon=float(parts[1]))


def _coordinate_arg(value: str) -> Coordinate:
    try:
        return parse_coordinate(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _bounded_float(name: str, limit: float):
    def parse(value: str) -> float:
        try:
            number = float(value)
        except ValueError as e:
            raise argparse.ArgumentTypeError(f"invalid {name} '{value}'") from e
        if not -limit <= number <= limit:
            raise argparse.ArgumentTypeError(f"{name} out of range [-{limit:g}, {limit:g}]: {value}")
        return number

    return parse


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("whereami.api.app:app", host=args.host, port=int(args.port), reload=bool(args.reload))
    return 0


def _cmd_locate(args: argparse.Namespace) -> int:
    """Handle the `locate` subcommand."""
    settings = get_settings()
    store = LocationStore(settings.defaults.position.to_coordinate())
    notifications: list[str] = []

    def notify(_kind: str, message: str) -> None:
        notifications.append(message)

    sensor: Sensor = FixedSensor(args.gps) if args.gps is not None else UnavailableSensor()
    ip_client = None if args.no_ip else IpLocationClient(settings)

    asyncio.run(
        acquire_all(
            sensor=sensor,
            ip_client=ip_client,
            store=store,
            notify=notify,
            address=args.ip,
            sensor_timeout_seconds=settings.acquisition.sensor_timeout_seconds,
        )
    )

    state = store.state
    scene = compose_scene(state)
    map_path = save_map(scene, settings.map, args.out) if args.out else None

    if args.json:
        payload: dict[str, Any] = {
            "gps_position": {"lat": state.gps_position.lat, "lon": state.gps_position.lon},
            "ip_position": {"lat": state.ip_position.lat, "lon": state.ip_position.lon},
            "ip_info": {"address": state.ip_info.address, "organization": state.ip_info.organization},
            "distance_km": scene.label.distance_km,
            "label": scene.label.text,
            "notifications": notifications,
            "map_path": str(map_path) if map_path else None,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    for message in notifications:
        print(f"! {message}")
    print(f"GPS location: {format_coordinate(state.gps_position)}")
    print(f"IP location:  {format_coordinate(state.ip_position)}")
    print(f"IP: {state.ip_info.address or '-'}  Organization: {state.ip_info.organization or '-'}")
    print(f"Distance: {scene.label.text} (midpoint {format_coordinate(scene.label.position)})")
    if map_path:
        print(f"Map saved to: {map_path}")
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    """Handle the `distance` subcommand."""
    a = Coordinate(lat=args.lat1, lon=args.lon1)
    b = Coordinate(lat=args.lat2, lon=args.lon2)
    km = distance_km(a, b)
    mid = midpoint(a, b)
    if args.json:
        print(json.dumps({"distance_km": km, "midpoint": {"lat": mid.lat, "lon": mid.lon}}, indent=2))
    else:
        print(f"{km:.2f} km (midpoint {format_coordinate(mid)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the WhereAmI CLI."""
    parser = argparse.ArgumentParser(prog="whereami")
    sub = parser.add_subparsers(dest="command", required=True)

    srv = sub.add_parser("serve", help="Run the web app (uvicorn).")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development).")
    srv.set_defaults(func=_cmd_serve)

    loc = sub.add_parser("locate", help="Resolve GPS + IP locations once and print the distance.")
    loc.add_argument(
        "--gps",
        type=_coordinate_arg,
        default=None,
        help="GPS fix as LAT,LON. Omit to simulate a host without a location sensor.",
    )
    loc.add_argument("--ip", default=None, help="Look up this public IP instead of the caller's own.")
    loc.add_argument("--no-ip", action="store_true", help="Skip the IP lookup (keeps the default position).")
    loc.add_argument("--out", default=None, help="Write the map HTML to this path.")
    loc.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    loc.set_defaults(func=_cmd_locate)

    dist = sub.add_parser("distance", help="Great-circle distance and midpoint between two points.")
    dist.add_argument("lat1", type=_bounded_float("latitude", 90))
    dist.add_argument("lon1", type=_bounded_float("longitude", 180))
    dist.add_argument("lat2", type=_bounded_float("latitude", 90))
    dist.add_argument("lon2", type=_bounded_float("longitude", 180))
    dist.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    dist.set_defaults(func=_cmd_distance)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m whereami.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
