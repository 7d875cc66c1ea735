"""Configuration store for the status tracker.

Reads and writes per-tool JSON config files in data/config/ (or the directory
named by ``TRACKER_CONFIG_DIR``). Each tool gets a single JSON file keyed by
tool name (e.g., "status-tracker.json"). Modules load config values with
fallback to their hardcoded defaults.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from the project root
_ENV_PATH = BASE_DIR / ".env"
if _ENV_PATH.exists():
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)

CONFIG_DIR = Path(os.environ.get("TRACKER_CONFIG_DIR", BASE_DIR / "data" / "config"))


def load_config(tool_name: str) -> dict | None:
    """Load a tool's JSON config. Returns None if file doesn't exist."""
    path = CONFIG_DIR / f"{tool_name}.json"
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


def save_config(tool_name: str, config: dict) -> None:
    """Write a tool's config to JSON. Creates dir if needed."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    path = CONFIG_DIR / f"{tool_name}.json"
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False))


def get_config_value(tool_name: str, key: str, default: Any) -> Any:
    """Get a single key from a tool's config, with fallback to default."""
    config = load_config(tool_name)
    if config is None:
        return default
    return config.get(key, default)


def get_config_mapping(tool_name: str, key: str, defaults: dict[str, Any]) -> dict[str, Any]:
    """Overlay a config dict onto *defaults*.

    Only keys already present in *defaults* are taken from the config file, so
    a partial override (say, one deadline offset) keeps the remaining
    defaults intact and typos in the JSON are ignored.
    """
    override = get_config_value(tool_name, key, None)
    merged = dict(defaults)
    if isinstance(override, dict):
        for k, v in override.items():
            if k in merged:
                merged[k] = v
    return merged


def set_config_value(tool_name: str, key: str, value: Any) -> None:
    """Set a single key in a tool's config, preserving other keys."""
    config = load_config(tool_name) or {}
    config[key] = value
    save_config(tool_name, config)
