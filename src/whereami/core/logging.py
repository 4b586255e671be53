"""
Logging setup for the web app and the CLI.

The packaged `logging.yaml` is the baseline; the level from settings
(`app.log_level`, or `WHEREAMI_LOG_LEVEL`) is applied to the root logger, every
handler and the `whereami.*` loggers declared in that file. The cached YAML
mapping is never modified, so repeated calls always start from the file.
"""

from __future__ import annotations

import copy
import logging.config
from typing import Any

from whereami.config.settings import get_logging_config, get_settings

PROJECT_LOGGER_PREFIX = "whereami"


def build_logging_config(level: str) -> dict[str, Any]:
    """Return a fresh dictConfig payload with `level` applied."""
    config = copy.deepcopy(get_logging_config())
    level = level.upper()

    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level
    for name, logger_cfg in config.get("loggers", {}).items():
        if name.startswith(PROJECT_LOGGER_PREFIX) and isinstance(logger_cfg, dict):
            logger_cfg["level"] = level
    return config


def configure_logging() -> str:
    """Apply the logging config for the current settings; returns the level used."""
    level = get_settings().app.log_level.upper()
    logging.config.dictConfig(build_logging_config(level))
    return level
