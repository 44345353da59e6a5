"""Configuration manager for RefactorLens using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from .config import CONFIG_FILE, SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

# Defaults for the ``[analysis]`` section
DEFAULT_ANALYSIS_CONFIG: Dict[str, Any] = {
    "include_security_scan": True,
    "include_quality_scan": False,
    "adjust_for_language": False,
    "default_language": "",
}

_BOOL_KEYS = {"include_security_scan", "include_quality_scan", "adjust_for_language"}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", CONFIG_FILE, exc)
        return {}


def load_config() -> Dict[str, Any]:
    """Load the ``[analysis]`` section merged over the defaults.

    Returns:
        Analysis settings. Unknown keys are dropped, invalid values fall back
        to their default and a missing or corrupt file yields the defaults.
    """
    section = load_full_config().get("analysis", {})
    merged = DEFAULT_ANALYSIS_CONFIG.copy()
    for key, value in section.items():
        if key not in merged:
            continue
        try:
            merged[key] = coerce_value(key, value)
        except ValueError as exc:
            logger.warning("Ignoring invalid setting in %s: %s", CONFIG_FILE, exc)
    return merged


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", CONFIG_FILE, exc)
        return False


def coerce_value(key: str, value: Any) -> Any:
    """Convert a raw (usually CLI-provided) value to the type stored for *key*.

    Raises:
        ValueError: If the key is unknown or the value is invalid for it.
    """
    if key not in DEFAULT_ANALYSIS_CONFIG:
        raise ValueError(
            f"Unknown setting '{key}'. Valid settings: {', '.join(sorted(DEFAULT_ANALYSIS_CONFIG))}"
        )

    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Setting '{key}' expects a boolean, got '{value}'")

    text = str(value).strip().lower()
    if text and text not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language '{value}'. Supported: {', '.join(SUPPORTED_LANGUAGES)}"
        )
    return text


def save_config(key: str, value: Any) -> bool:
    """Persist one ``[analysis]`` setting, preserving other sections.

    Returns:
        True if saved successfully, False otherwise
    """
    coerced = coerce_value(key, value)
    config = load_full_config()
    section = config.setdefault("analysis", {})
    section[key] = coerced
    return _save_full_config(config)


def reset_config() -> bool:
    """Drop the ``[analysis]`` section so defaults apply again."""
    config = load_full_config()
    if "analysis" not in config:
        return True
    del config["analysis"]
    return _save_full_config(config)
