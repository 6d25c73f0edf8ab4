#!/usr/bin/env python3
from __future__ import annotations


def float_value(value: object, *, default: float) -> float:
    """Coerce a value to float with fallback to default."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def is_number(value: object) -> bool:
    """Return True for ints, floats and numeric strings (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip())
        except ValueError:
            return False
        return bool(value.strip())
    return False


def stringify(value: object) -> str:
    """Render a bound value the way it appears in document text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple, dict)):
        return ""
    return str(value)


def format_number(
    value: object,
    decimals: int,
    *,
    decimal_separator: str = ",",
    thousands_separator: str = ".",
) -> str:
    """Format a numeric value with fixed decimals and custom separators."""
    number = float_value(value, default=0.0)
    formatted = f"{number:,.{max(0, decimals)}f}"
    return (
        formatted.replace(",", "\x00")
        .replace(".", decimal_separator)
        .replace("\x00", thousands_separator)
    )


def bool_value(value: object, *, default: bool = False) -> bool:
    """Coerce template flags; accepts bools, 0/1 and yes/no style strings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off", ""}:
            return False
    return default
