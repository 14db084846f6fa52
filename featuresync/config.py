"""Settings for the featuresync pipeline.

Values come from ``DEFAULT_CONFIG``, optionally overridden by a YAML file and
then by ``FEATURESYNC_*`` environment variables.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

import yaml

from featuresync.errors import ConfigError
from featuresync.logging_config import get_logger

LOGGER = get_logger(__name__)

SOURCE_URL = "https://www.enhauto.com/pages/buttons-functions"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_OUTPUT_PATH = "_data/features.json"
DEFAULT_CONFIG_PATH = "featuresync.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "source": {
        "url": SOURCE_URL,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "headers": {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
            ),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        },
        "challenge_markers": [
            "Attention Required!",
            "Just a moment...",
            "cf-browser-verification",
            "cf_chl_opt",
            "Checking your browser before accessing",
        ],
    },
    "output": {
        "path": DEFAULT_OUTPUT_PATH,
    },
}


@dataclass(frozen=True)
class Settings:
    url: str = SOURCE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    headers: dict[str, str] = field(default_factory=dict)
    challenge_markers: tuple[str, ...] = ()
    output_path: Path = Path(DEFAULT_OUTPUT_PATH)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Return ``DEFAULT_CONFIG`` merged with the YAML file at *path*."""

    config_path = Path(path or DEFAULT_CONFIG_PATH)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            try:
                data = yaml.safe_load(handle) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(
                    f"Configuration file is not valid YAML: {exc}",
                    source=str(config_path),
                    stage="config",
                ) from exc
    else:
        if path is not None:
            LOGGER.warning("Configuration file %s not found; using defaults", config_path)
        data = {}

    if not isinstance(data, dict):
        LOGGER.warning("Configuration file %s is not a mapping; using defaults", config_path)
        data = {}

    return _deep_merge(DEFAULT_CONFIG, data) if data else deepcopy(DEFAULT_CONFIG)


def settings_from_config(config: dict[str, Any]) -> Settings:
    """Build :class:`Settings` from a merged config mapping and the environment."""

    source = config.get("source") or {}
    output = config.get("output") or {}

    url = os.getenv("FEATURESYNC_URL") or str(source.get("url") or SOURCE_URL)

    try:
        timeout = float(source.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
    except (TypeError, ValueError):
        timeout = DEFAULT_TIMEOUT_SECONDS
    timeout = _env_float("FEATURESYNC_TIMEOUT", timeout)
    if timeout <= 0:
        LOGGER.warning("timeout_seconds must be positive; using %s", DEFAULT_TIMEOUT_SECONDS)
        timeout = DEFAULT_TIMEOUT_SECONDS

    headers = {str(key): str(value) for key, value in (source.get("headers") or {}).items()}
    markers = tuple(
        str(marker) for marker in (source.get("challenge_markers") or []) if str(marker).strip()
    )
    output_path = os.getenv("FEATURESYNC_OUTPUT") or str(output.get("path") or DEFAULT_OUTPUT_PATH)

    return Settings(
        url=url,
        timeout_seconds=timeout,
        headers=headers,
        challenge_markers=markers,
        output_path=Path(output_path),
    )


__all__ = [
    "DEFAULT_CONFIG",
    "Settings",
    "load_config",
    "settings_from_config",
]
