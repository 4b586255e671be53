# src/whereami/display/folium_map.py
"""
Render a `Scene` as an interactive Folium (Leaflet) map.

Each call builds a fresh `folium.Map`; the distance label is therefore dropped
and re-added on every redraw instead of being mutated in place.
"""

from __future__ import annotations

from pathlib import Path

import folium

from whereami.config.settings import MapSettings
from whereami.display.scene import Scene

LABEL_STYLE = (
    "background:#fff;border:1px solid #007bff;border-radius:4px;"
    "padding:2px 6px;font:bold 12px sans-serif;color:#007bff;white-space:nowrap;"
)


def _marker_icon(map_settings: MapSettings) -> folium.CustomIcon:
    icon = map_settings.marker_icon
    return folium.CustomIcon(
        icon_image=icon.icon_url,
        icon_size=icon.icon_size,
        icon_anchor=icon.icon_anchor,
        shadow_image=icon.shadow_url,
        shadow_size=icon.shadow_size,
        popup_anchor=icon.popup_anchor,
    )


def render_map(scene: Scene, map_settings: MapSettings) -> folium.Map:
    """Build the map for `scene`: two markers, the connecting line and the distance label."""
    m = folium.Map(
        location=scene.center.as_tuple(),
        zoom_start=map_settings.zoom,
        tiles=map_settings.tiles_url,
        attr=map_settings.attribution,
    )

    for marker in scene.markers:
        folium.Marker(
            location=marker.position.as_tuple(),
            icon=_marker_icon(map_settings),
            popup=folium.Popup(marker.popup_html, max_width=300),
            tooltip=f"{marker.kind.upper()} location",
        ).add_to(m)

    folium.PolyLine(
        [p.as_tuple() for p in scene.line],
        color=map_settings.line_color,
        weight=3,
        opacity=0.8,
    ).add_to(m)

    folium.Marker(
        location=scene.label.position.as_tuple(),
        icon=folium.DivIcon(
            html=f'<div class="distance-label" style="{LABEL_STYLE}">{scene.label.text}</div>',
            icon_size=(90, 24),
            icon_anchor=(45, 12),
            class_name="distance-label-icon",
        ),
    ).add_to(m)

    return m


def render_map_html(scene: Scene, map_settings: MapSettings) -> str:
    """Return the standalone HTML document for `scene`."""
    return render_map(scene, map_settings).get_root().render()


def save_map(scene: Scene, map_settings: MapSettings, output_file: str | Path) -> Path:
    """Write the map HTML to `output_file` and return its resolved path."""
    path = Path(output_file).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    render_map(scene, map_settings).save(str(path))
    return path
