# src/whereami/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/whereami/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `WHEREAMI_CONFIG_PATH`
- a small whitelist of environment variables (e.g., `WHEREAMI_LOG_LEVEL`)

Design rule:
- Tunable values (URLs, timeouts, the default position, map assets) live in YAML,
  not hard-coded in the acquisition or display code.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from whereami.core.env import load_dotenv_if_present
from whereami.core.geo import Coordinate


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `whereami.config`."""
    text = resources.files("whereami.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "WhereAmI"
    http_timeout_seconds: float = Field(10, gt=0)
    log_level: str = "INFO"


class PositionSettings(BaseModel):
    lat: float = Field(32.0853, ge=-90, le=90)
    lon: float = Field(34.7818, ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)


class DefaultsSettings(BaseModel):
    position: PositionSettings = Field(default_factory=PositionSettings)


class IpLookupSettings(BaseModel):
    url: str = "https://ipapi.co/json/"
    address_url: str = "https://ipapi.co/{ip}/json/"
    # Query the visitor's own address when it is public; otherwise the service sees ours.
    use_client_address: bool = True
    trust_forwarded_for: bool = False


class AcquisitionSettings(BaseModel):
    sensor_timeout_seconds: float | None = Field(120, gt=0)
    ip_lookup: IpLookupSettings = Field(default_factory=IpLookupSettings)


class MarkerIconSettings(BaseModel):
    icon_url: str
    shadow_url: str
    icon_size: tuple[int, int] = (25, 41)
    icon_anchor: tuple[int, int] = (12, 41)
    popup_anchor: tuple[int, int] = (1, -34)
    shadow_size: tuple[int, int] = (41, 41)


class MapSettings(BaseModel):
    zoom: int = Field(13, ge=0, le=19)
    tiles_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    attribution: str = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
    line_color: str = "#007bff"
    marker_icon: MarkerIconSettings
    info_button_label: str = "About This Website"
    info_text: str


class SessionSettings(BaseModel):
    max_sessions: int = Field(256, ge=1)
    scene_wait_seconds: float = Field(25, ge=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    defaults: DefaultsSettings = Field(default_factory=DefaultsSettings)
    acquisition: AcquisitionSettings = Field(default_factory=AcquisitionSettings)
    map: MapSettings
    sessions: SessionSettings = Field(default_factory=SessionSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("WHEREAMI_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    lookup_url = os.getenv("WHEREAMI_IP_LOOKUP_URL")
    if lookup_url:
        data.setdefault("acquisition", {}).setdefault("ip_lookup", {})["url"] = lookup_url

    sensor_timeout = os.getenv("WHEREAMI_SENSOR_TIMEOUT_SECONDS")
    if sensor_timeout:
        data.setdefault("acquisition", {})["sensor_timeout_seconds"] = float(sensor_timeout)

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("WHEREAMI_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
