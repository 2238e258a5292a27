from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of user preferences and the recently opened
archive list using JSON. Missing keys fall back to defaults so older files
keep loading after new settings are introduced.
"""

import json
import logging
import os
from typing import Any, Dict, List, Tuple

from zipprune.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_BYTES,
)
from zipprune.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE = os.path.join(get_user_data_dir(), "config.json")
MAX_RECENT_ARCHIVES = 20

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_MIN_LOG_BYTES = 1024


def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Engine
        "cache_max_entries": DEFAULT_CACHE_MAX_ENTRIES,
        "scratch_dir": "",

        # Diagnostics
        "log_level": "INFO",
        "log_to_file": False,
        "log_max_bytes": DEFAULT_LOG_MAX_BYTES,
        "log_backup_count": DEFAULT_LOG_BACKUP_COUNT,

        # Session memory
        "recent_archives": [],
    }


def get_default_app_state() -> Dict[str, Any]:
    """Return the full default structure persisted in config.json."""
    return {
        "version": CURRENT_CONFIG_VERSION,
        "settings": get_default_config(),
    }

# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------

def load_app_state() -> Dict[str, Any]:
    """
    Load application state from disk.

    Returns:
        Dict[str, Any]: The loaded state or a default structure on failure.
    """
    state = get_default_app_state()

    if not os.path.exists(CONFIG_FILE):
        logger.debug("Config file not found. Returning defaults.")
        return state

    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return state

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return state

    settings = data.get("settings")
    if isinstance(settings, dict):
        state["settings"].update(settings)

    state["version"] = CURRENT_CONFIG_VERSION
    return state


def save_app_state(state: Dict[str, Any]) -> None:
    """
    Persist application state to disk.

    Args:
        state: The state dictionary to save.
    """
    try:
        os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
        state["version"] = CURRENT_CONFIG_VERSION
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {CONFIG_FILE}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")

# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

def validate_config(config: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Coerce a raw configuration into well-typed values.

    Unknown keys are dropped; invalid values are replaced by their default
    and reported.

    Args:
        config: Raw configuration dictionary.

    Returns:
        Tuple[Dict[str, Any], List[str]]: (clean configuration, warnings).
    """
    defaults = get_default_config()
    clean = dict(defaults)
    warnings: List[str] = []

    raw_max = config.get("cache_max_entries", defaults["cache_max_entries"])
    try:
        max_entries = int(raw_max)
        if max_entries < 1:
            raise ValueError(raw_max)
        clean["cache_max_entries"] = max_entries
    except (TypeError, ValueError):
        warnings.append(f"Invalid cache_max_entries '{raw_max}'. Using {defaults['cache_max_entries']}.")

    scratch = config.get("scratch_dir") or ""
    if isinstance(scratch, str):
        clean["scratch_dir"] = scratch.strip()
    else:
        warnings.append("Invalid scratch_dir. Using the system temp location.")

    level = str(config.get("log_level") or "INFO").strip().upper()
    if level in _VALID_LEVELS:
        clean["log_level"] = level
    else:
        warnings.append(f"Unknown log_level '{level}'. Using INFO.")

    log_to_file = config.get("log_to_file", False)
    if isinstance(log_to_file, bool):
        clean["log_to_file"] = log_to_file
    else:
        warnings.append(f"Invalid log_to_file '{log_to_file}' (expected true or false). Using false.")

    clean["log_max_bytes"] = _coerce_int(
        config, "log_max_bytes", defaults["log_max_bytes"], _MIN_LOG_BYTES, warnings
    )
    clean["log_backup_count"] = _coerce_int(
        config, "log_backup_count", defaults["log_backup_count"], 0, warnings
    )

    recent = config.get("recent_archives") or []
    if isinstance(recent, list):
        clean["recent_archives"] = [str(p) for p in recent if p][:MAX_RECENT_ARCHIVES]
    else:
        warnings.append("Invalid recent_archives list. Resetting.")

    return clean, warnings


def _coerce_int(config: Dict[str, Any], key: str, default: int, minimum: int, warnings: List[str]) -> int:
    raw = config.get(key, default)
    try:
        if isinstance(raw, bool):
            raise TypeError(raw)
        value = int(raw)
        if value < minimum:
            raise ValueError(raw)
        return value
    except (TypeError, ValueError):
        warnings.append(f"Invalid {key} '{raw}'. Using {default}.")
        return default

# -----------------------------------------------------------------------------
# Facade API
# -----------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Retrieve the active, validated settings."""
    state = load_app_state()
    clean, warnings = validate_config(state.get("settings", {}))
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")
    return clean


def save_config(config: Dict[str, Any]) -> None:
    """Save the provided settings."""
    state = load_app_state()
    state["settings"] = config
    save_app_state(state)


def remember_archive(config: Dict[str, Any], archive_path: str) -> Dict[str, Any]:
    """
    Move an archive to the front of the recent list (no duplicates).

    Args:
        config: Settings dictionary to update in place.
        archive_path: Absolute archive path.

    Returns:
        Dict[str, Any]: The same dictionary, for chaining.
    """
    recent = [p for p in config.get("recent_archives", []) if p != archive_path]
    recent.insert(0, archive_path)
    config["recent_archives"] = recent[:MAX_RECENT_ARCHIVES]
    return config
