"""Per-tool JSON configuration overrides.

Each tool may keep a ``data/config/<tool-name>.json`` file whose keys override
the tool's hardcoded defaults. A missing, unreadable or non-object file means
"no overrides" and the defaults apply.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "data" / "config"


def load_config(tool_name: str) -> dict | None:
    """Load a tool's JSON config. Returns None if missing or not a JSON object."""
    path = CONFIG_DIR / f"{tool_name}.json"
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return None
    return data


def save_config(tool_name: str, config: dict) -> None:
    """Write a tool's config to JSON, creating the config dir if needed."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    path = CONFIG_DIR / f"{tool_name}.json"
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8")


def get_config_value(tool_name: str, key: str, default: Any) -> Any:
    """Get a single key from a tool's config, with fallback to default."""
    config = load_config(tool_name)
    if config is None:
        return default
    return config.get(key, default)
