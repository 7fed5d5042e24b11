"""Configuration for TIE client tools.

Settings are read from the ``"tie"`` section of ``config/settings.json`` (when
present) and can be overridden with environment variables:

- ``TIE_DXL_CONFIG``: path to the DXL client configuration file
- ``TIE_QUERY_LIMIT``: default maximum systems for first reference queries
- ``TIE_REQUEST_TIMEOUT``: seconds blocking callers wait for a response
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 500
DEFAULT_REQUEST_TIMEOUT = 30.0

CONFIG_PATHS = [
    Path(__file__).parent.parent.parent / "config" / "settings.json",
    Path("config/settings.json"),
]


def _load_settings_file(config_paths: list[Path]) -> dict[str, Any]:
    """Return the "tie" section of the first readable settings file."""
    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                    return data.get("tie", {})
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Failed to load TIE settings from {config_path}: {e}")
    return {}


def _positive(value: Any, name: str, convert: type) -> Optional[Any]:
    try:
        converted = convert(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid {name}: {value!r}")
        return None
    if converted <= 0:
        logger.warning(f"Ignoring non-positive {name}: {value!r}")
        return None
    return converted


@dataclass
class TieSettings:
    """Settings shared by the CLI, MCP tools and ``TieClient``.

    Attributes:
        dxl_config: DXL client configuration file used to connect to the fabric
        query_limit: Default maximum number of systems returned by first
            reference queries
        request_timeout: Seconds a blocking caller waits for a response; the
            fabric's own timeouts still apply
    """

    dxl_config: Optional[str] = None
    query_limit: int = DEFAULT_QUERY_LIMIT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_dict(cls, config: dict) -> "TieSettings":
        """Create settings from a dictionary, skipping invalid values."""
        settings = cls(dxl_config=config.get("dxl_config"))
        if "query_limit" in config:
            query_limit = _positive(config["query_limit"], "query_limit", int)
            if query_limit is not None:
                settings.query_limit = query_limit
        if "request_timeout" in config:
            timeout = _positive(config["request_timeout"], "request_timeout", float)
            if timeout is not None:
                settings.request_timeout = timeout
        return settings

    @classmethod
    def load(cls, config_paths: Optional[list[Path]] = None) -> "TieSettings":
        """Load settings from the settings file and environment overrides."""
        config = dict(_load_settings_file(config_paths or CONFIG_PATHS))

        env_overrides = {
            "dxl_config": os.environ.get("TIE_DXL_CONFIG"),
            "query_limit": os.environ.get("TIE_QUERY_LIMIT"),
            "request_timeout": os.environ.get("TIE_REQUEST_TIMEOUT"),
        }
        for key, value in env_overrides.items():
            if value:
                config[key] = value

        return cls.from_dict(config)
