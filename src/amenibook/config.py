"""
Configuration loading.

Settings come from a JSON file with one section per booking platform plus
top-level process settings, e.g.:

    {
        "respage": {"campaign_id": "...", "timezone": "America/Los_Angeles"},
        "database_url": "sqlite:///amenibook.db",
        "scheduler": {"interval_minutes": 15}
    }

A missing file means defaults. AMENIBOOK_DATABASE_URL and AMENIBOOK_LOG_LEVEL
override the file.
"""

import copy
import json
import os
from pathlib import Path
from typing import Optional

# Default config path is in project root (parent of src/)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.json"

DEFAULTS = {
    "respage": {
        "campaign_id": "42dba40a50910a23a43548b2302f86ce",
        "base_url": "https://app.respage.com/public",
        "timezone": "America/Los_Angeles",
        "timeout": 30,
    },
    "database_url": "sqlite:///amenibook.db",
    "scheduler": {
        "interval_minutes": 15,
        "health_interval_minutes": 60,
    },
    "max_failed_attempts": 10,
    "log_level": "INFO",
    "log_file": None,
}


class ConfigError(Exception):
    pass


def merge_config(config: dict, overrides: dict) -> dict:
    """Merge ``overrides`` into ``config`` in place, section by section."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value
    return config


def load_config(config_path: Optional[str] = None) -> dict:
    """
    Load settings, layering file values and environment overrides over defaults.

    Args:
        config_path: Path to a JSON config file; falls back to AMENIBOOK_CONFIG,
            then config.json in the project root

    Raises:
        ConfigError: If the file exists but is not a JSON object
    """
    path = Path(config_path or os.environ.get("AMENIBOOK_CONFIG") or DEFAULT_CONFIG_PATH)
    config = copy.deepcopy(DEFAULTS)

    if path.exists():
        try:
            with open(path) as f:
                file_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path} is not valid JSON: {e}")

        if not isinstance(file_config, dict):
            raise ConfigError(f"{path} must contain a JSON object")

        merge_config(config, file_config)

    if os.environ.get("AMENIBOOK_DATABASE_URL"):
        config["database_url"] = os.environ["AMENIBOOK_DATABASE_URL"]
    if os.environ.get("AMENIBOOK_LOG_LEVEL"):
        config["log_level"] = os.environ["AMENIBOOK_LOG_LEVEL"]

    return config
