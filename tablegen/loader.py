"""Load store and world configs from disk.

Reads mud.config.json (or a given path) and resolves it into a `Store`
or `World` config.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .config import Store, World, define_store, define_world
from .errors import ConfigError

DEFAULT_CONFIG_PATH = Path("mud.config.json")


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load a raw JSON config from disk."""
    config_file = Path(path or DEFAULT_CONFIG_PATH)
    try:
        with open(config_file, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{config_file} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_file} must contain a JSON object")
    return raw


def load_store_config(path: Path | None = None) -> Store:
    """Load and resolve a store config."""
    return define_store(load_config(path))


def load_world_config(path: Path | None = None) -> World:
    """Load and resolve a world config."""
    return define_world(load_config(path))
