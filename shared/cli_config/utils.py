"""
Utility functions for configuration loading.

This module provides common utilities used by configs:
- load_yaml_file: Parse YAML config files
- safe_bool: Parse boolean-like flags
- parse_int: Parse integers, naming the offending variable on failure
"""

from pathlib import Path
from typing import Any

import yaml


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file into a dictionary.

    Args:
        path: Path to the YAML file

    Returns:
        Dictionary from YAML content, or empty dict if the file is missing or empty

    Raises:
        ValueError: If the file is not valid YAML or its top level is not a mapping
    """
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def safe_bool(value: str | None, default: bool = False) -> bool:
    """Safely parse a boolean from a string.

    Recognizes: true, false, yes, no, on, off, 1, 0 (case-insensitive)

    Args:
        value: String to parse (can be None)
        default: Default value if the string is not recognized

    Returns:
        Parsed boolean or default value
    """
    if value is None:
        return default

    value_lower = value.lower().strip()
    if value_lower in ("true", "yes", "1", "on"):
        return True
    if value_lower in ("false", "no", "0", "off"):
        return False
    return default


def is_flag_enabled(value: str | None) -> bool:
    """Return True if an environment flag turns a feature on.

    Unset and empty values are off; recognized false words are off; any other
    non-empty value is on.
    """
    if not value or not value.strip():
        return False
    return safe_bool(value, default=True)


def parse_int(value: str | None, name: str, default: int | None = None) -> int | None:
    """Parse an integer setting.

    Args:
        value: String to parse (None or blank yields the default)
        name: Variable name used in the error message
        default: Value returned for None or blank input

    Raises:
        ValueError: If value is present but not an integer
    """
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}") from None
