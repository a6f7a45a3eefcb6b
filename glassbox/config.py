"""Configuration loading for Glassbox.

Configuration comes from three layers, later layers winning:

1. DEFAULT_CONFIG
2. ``glassbox.yaml`` in the project root
3. Environment variables (``RSS_BASE_URL``, ``PORT``)

Key functions:
- load_config: Merge the layers into a configuration dictionary.
- feed_config: Build the FeedConfig consumed by the post cache.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .feeds import DEFAULT_LANGUAGE, FeedConfig

CONFIG_FILENAME = "glassbox.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "content/reflections",
    "host": "",
    "port": 9090,
    "base_url": "http://localhost:9090/reflections",
    "title": "glassbox // reflections",
    "description": "a personal time capsule in a glass box",
    "language": DEFAULT_LANGUAGE,
    "init_timeout": 30,
    "latest_count": 5,
}

ENV_OVERRIDES = {
    "RSS_BASE_URL": "base_url",
    "PORT": "port",
}


def load_config(
    project_root: Path, environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Load site configuration.

    Args:
        project_root: Directory containing ``glassbox.yaml``.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or a value has the wrong type.
    """
    config = DEFAULT_CONFIG.copy()
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        config.update(loaded)

    env = os.environ if environ is None else environ
    for variable, key in ENV_OVERRIDES.items():
        value = env.get(variable)
        if value:
            config[key] = value

    config["port"] = _as_int(config["port"], "port")
    config["latest_count"] = _as_int(config["latest_count"], "latest_count")
    config["init_timeout"] = _as_timeout(config["init_timeout"])
    return config


def feed_config(config: Mapping[str, Any]) -> FeedConfig:
    """Build the feed configuration from loaded settings.

    Raises:
        ConfigError: If the base URL is empty.
    """
    base_url = str(config.get("base_url") or "").strip()
    if not base_url:
        raise ConfigError("base_url must be set to generate the RSS feed")
    return FeedConfig(
        base_url=base_url,
        title=str(config.get("title", "")),
        description=str(config.get("description", "")),
        language=str(config.get("language") or DEFAULT_LANGUAGE),
    )


def content_root(project_root: Path, config: Mapping[str, Any]) -> Path:
    """Resolve the content directory against the project root."""
    return project_root / str(config["content_dir"])


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def _as_timeout(value: Any) -> float | None:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"init_timeout must be a number, got {value!r}") from exc
    return timeout if timeout > 0 else None
