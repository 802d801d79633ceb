"""
Configuration validation utilities.

Small helpers that read environment variables and fail with a readable
:class:`ConfigurationError` instead of a bare ``KeyError``/``ValueError``.
"""

import os
from typing import Optional, Sequence


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def require_env(name: str, description: Optional[str] = None) -> str:
    """
    Return a required environment variable.

    Raises:
        ConfigurationError: If the variable is unset or blank
    """
    value = os.getenv(name)
    if not value or not value.strip():
        desc_msg = f" ({description})" if description else ""
        raise ConfigurationError(
            f"Missing required environment variable: {name}{desc_msg}\n"
            f"Please set {name} in your .env file or environment."
        )
    return value.strip()


def first_env(names: Sequence[str], description: Optional[str] = None) -> str:
    """
    Return the first non-blank value among several alias variables.

    Raises:
        ConfigurationError: If none of the aliases are set
    """
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    desc_msg = f" ({description})" if description else ""
    raise ConfigurationError(
        f"Missing required environment variable: one of {', '.join(names)}{desc_msg}"
    )


def validate_int_env(
    name: str,
    default: int,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    """
    Read an integer environment variable and enforce inclusive bounds.

    Raises:
        ConfigurationError: If the value is not an integer or out of bounds
    """
    value_str = os.getenv(name)
    if value_str is None or not value_str.strip():
        return default

    try:
        value = int(value_str.strip())
    except ValueError:
        raise ConfigurationError(
            f"Invalid integer value for {name}: '{value_str}'"
        ) from None

    return check_bounds(name, value, min_value, max_value)


def validate_float_env(name: str, default: float, min_value: Optional[float] = None) -> float:
    """Read a float environment variable with an optional lower bound."""
    value_str = os.getenv(name)
    if value_str is None or not value_str.strip():
        return default
    try:
        value = float(value_str.strip())
    except ValueError:
        raise ConfigurationError(f"Invalid numeric value for {name}: '{value_str}'") from None
    if min_value is not None and value < min_value:
        raise ConfigurationError(
            f"Value for {name} ({value}) is below minimum allowed value ({min_value})"
        )
    return value


def check_bounds(name: str, value: int, min_value: Optional[int], max_value: Optional[int]) -> int:
    """Validate that *value* lies within the inclusive bounds."""
    if min_value is not None and value < min_value:
        raise ConfigurationError(
            f"Value for {name} ({value}) is below minimum allowed value ({min_value})"
        )
    if max_value is not None and value > max_value:
        raise ConfigurationError(
            f"Value for {name} ({value}) exceeds maximum allowed value ({max_value})"
        )
    return value
