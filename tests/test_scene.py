from whereami.config.settings import get_settings
from whereami.core.geo import Coordinate
from whereami.display.folium_map import render_map_html, save_map
from whereami.display.scene import compose_scene
from whereami.state.store import IPInfo, LocationState, LocationStore

DEFAULT = Coordinate(lat=32.0853, lon=34.7818)


def test_default_state_renders_zero_length_line_and_zero_label():
    # Both acquisitions failed: everything sits on the default point.
    scene = compose_scene(LocationStore(DEFAULT).state)

    gps_marker, ip_marker = scene.markers
    assert gps_marker.position == DEFAULT
    assert ip_marker.position == DEFAULT
    assert scene.line == (DEFAULT, DEFAULT)
    assert scene.label.position == DEFAULT
    assert scene.label.text == "0.00 km"


def test_popups_round_to_four_decimals_and_include_ip_info():
    state = LocationState(
        gps_position=Coordinate(lat=32.123456, lon=34.987654),
        ip_position=Coordinate(lat=31.5, lon=35.25),
        ip_info=IPInfo(address="203.0.113.5", organization="AS12400 Partner"),
    )

    gps_marker, ip_marker = compose_scene(state).markers

    assert gps_marker.popup_lines == ("GPS Location:", "32.1235, 34.9877")
    assert ip_marker.popup_lines == (
        "IP Location: 31.5000, 35.2500",
        "IP: 203.0.113.5",
        "Organization: AS12400 Partner",
    )
    # Stored state is untouched by display rounding.
    assert state.gps_position.lat == 32.123456


def test_label_sits_at_midpoint_with_two_decimals():
    state = LocationState(gps_position=Coordinate(lat=0, lon=0), ip_position=Coordinate(lat=0, lon=90))

    scene = compose_scene(state)

    assert scene.label.position == Coordinate(lat=0, lon=45)
    assert scene.label.text == "10007.54 km"
    assert scene.center == Coordinate(lat=0, lon=0)


def test_organization_is_html_escaped():
    state = LocationState(
        gps_position=DEFAULT,
        ip_position=DEFAULT,
        ip_info=IPInfo(address="203.0.113.5", organization="<script>alert(1)</script>"),
    )

    ip_marker = compose_scene(state).markers[1]

    assert "<script>" not in ip_marker.popup_html
    assert "&lt;script&gt;" in ip_marker.popup_html


def test_scene_to_dict_is_json_ready():
    data = compose_scene(LocationStore(DEFAULT).state).to_dict()

    assert data["version"] == 0
    assert data["label"]["text"] == "0.00 km"
    assert data["center"] == {"lat": 32.0853, "lon": 34.7818}
    assert [m["kind"] for m in data["markers"]] == ["gps", "ip"]


def test_rendered_map_contains_markers_line_and_label():
    settings = get_settings()
    state = LocationState(
        gps_position=Coordinate(lat=32.0853, lon=34.7818),
        ip_position=Coordinate(lat=31.7683, lon=35.2137),
        ip_info=IPInfo(address="203.0.113.5", organization="Example ISP"),
    )
    scene = compose_scene(state)

    html = render_map_html(scene, settings.map)

    assert "L.polyline" in html
    assert scene.label.text in html
    assert "distance-label" in html
    assert "Example ISP" in html
    assert settings.map.marker_icon.icon_url in html
    assert "tile.openstreetmap.org" in html


def test_save_map_writes_html(tmp_path):
    scene = compose_scene(LocationStore(DEFAULT).state)

    path = save_map(scene, get_settings().map, tmp_path / "out" / "map.html")

    assert path.is_file()
    assert "0.00 km" in path.read_text(encoding="utf-8")
