"""Preferences file for Stratus.

User preferences live in ~/.config/stratus/config.json, under an "explorer"
section:

    {"explorer": {"show_all": true, "hidden_subscriptions": ["..."]}}

Environment variables still win over the file (see stratus.config).
"""

import json
import os
from pathlib import Path
from typing import Any

from stratus.utils.logging import get_logger

logger = get_logger(__name__)

EXPLORER_SECTION = "explorer"


def get_config_dir() -> Path:
    """Directory holding the preferences file.

    STRATUS_CONFIG_DIR wins, then $XDG_CONFIG_HOME/stratus, then
    ~/.config/stratus.
    """
    config_dir = os.getenv("STRATUS_CONFIG_DIR")
    if config_dir:
        return Path(config_dir)

    xdg_config = os.getenv("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "stratus"

    return Path.home() / ".config" / "stratus"


def get_config_file() -> Path:
    return get_config_dir() / "config.json"


def get_default_config() -> dict[str, Any]:
    """Get default preference values.

    Returns:
        Dict with the default "explorer" section
    """
    return {
        EXPLORER_SECTION: {
            "show_all": True,
            "hidden_subscriptions": [],
        },
    }


def load_config_file() -> dict[str, Any]:
    """Load the preferences file.

    A missing or unreadable file is treated as empty; the explorer then
    starts with defaults.

    Returns:
        Dict with preference values (empty dict if there is no usable file)
    """
    config_file = get_config_file()
    if not config_file.exists():
        return {}

    try:
        data = json.loads(config_file.read_text())
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {config_file}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {config_file}: top level is not an object")
        return {}
    return data


def load_explorer_section() -> dict[str, Any]:
    """Return the "explorer" section of the preferences file, or {}."""
    section = load_config_file().get(EXPLORER_SECTION, {})
    return section if isinstance(section, dict) else {}


def save_config_file(config: dict[str, Any]) -> None:
    """Write the preferences file.

    The file is replaced atomically so a crash never leaves half a file.

    Args:
        config: Preferences to save

    Raises:
        OSError: If the directory or file cannot be written
    """
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)

    tmp_file = config_file.with_suffix(".json.tmp")
    tmp_file.write_text(json.dumps(config, indent=2))
    os.replace(tmp_file, config_file)
    logger.debug(f"Saved preferences to {config_file}")


def update_config_value(section: str, key: str, value: Any) -> None:
    """Set one preference and save the file, keeping everything else.

    Args:
        section: Section name (e.g. "explorer")
        key: Key within the section
        value: JSON-serializable value

    Raises:
        OSError: If the file cannot be written
    """
    config = load_config_file()
    if not isinstance(config.get(section), dict):
        config[section] = {}
    config[section][key] = value
    save_config_file(config)
