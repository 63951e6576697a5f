"""Configuration loading for the caption display and server.

Configuration lives in a JSON file (config/hud_config.json) and is handled as a
plain nested dict. Sections missing from the file are filled from DEFAULT_CONFIG.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'display': {
        'max_chars_per_line': 44,
        'wide_glyph_max_chars_per_line': 18,
        'max_lines': 3,
        'max_history_entries': 30,
        'throttle_interval_ms': 300,
        'wide_glyph_languages': ['zh', 'ja', 'ko'],
        'default_language': 'en-US',
    },
    'server': {
        'host': '127.0.0.1',
        'port': 8765,
    },
    'logging': {
        'verbose': False,
    },
}

_POSITIVE_INT_KEYS = (
    'max_chars_per_line',
    'wide_glyph_max_chars_per_line',
    'max_lines',
    'max_history_entries',
)


def default_config() -> Dict[str, Dict[str, Any]]:
    """Return a deep copy of DEFAULT_CONFIG that callers may mutate."""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(overrides: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Merge user config sections over the defaults and validate the result.

    Args:
        overrides: Partial config dict, e.g. {'display': {'max_lines': 4}}

    Returns:
        Complete configuration dictionary

    Raises:
        ValueError: If a section is not an object or a display value is invalid
    """
    config = default_config()
    for section, values in overrides.items():
        if not isinstance(values, dict):
            raise ValueError(f"Config section '{section}' must be an object, got {type(values).__name__}")
        config.setdefault(section, {}).update(values)

    validate_display_config(config['display'])
    return config


def validate_display_config(display: Dict[str, Any]) -> None:
    """Check display section values.

    Raises:
        ValueError: On non-positive sizes, negative throttle interval or bad language table
    """
    for key in _POSITIVE_INT_KEYS:
        value = display.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"display.{key} must be a positive integer, got {value!r}")

    interval = display.get('throttle_interval_ms')
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
        raise ValueError(f"display.throttle_interval_ms must be a non-negative number, got {interval!r}")

    languages = display.get('wide_glyph_languages')
    if not isinstance(languages, list) or not all(isinstance(code, str) for code in languages):
        raise ValueError(f"display.wide_glyph_languages must be a list of strings, got {languages!r}")


def load_config(config_path: str | Path) -> Dict[str, Dict[str, Any]]:
    """Load configuration from JSON file.

    Args:
        config_path: Path to hud_config.json

    Returns:
        Configuration dictionary with defaults applied

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or holds invalid values
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in config file {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    config = merge_config(raw)
    logging.info(f"Configuration loaded from {path}")
    return config
