"""
ADEXP Display Formatters

Registry of display formatters for decoded field values.
Formatters turn raw ADEXP encodings into human-readable strings; the
decoded Message itself always keeps the raw values.

Built-in formatters:
- eto: Format a YYMMDDHHMM[SS] timestamp ("170301220429" -> "2017-03-01 22:04:29")
- fl: Format a flight level (390 -> "FL390")
- latitude: Format DDMM[SS]N/S ("520000N" -> "52°00'00\"N")
- longitude: Format DDDMM[SS]E/W ("0100000E" -> "010°00'00\"E")
- raw: Return the value unchanged
"""

import re
from typing import Any, Callable

# Type for formatter functions: (value) -> formatted_string
FormatterFunc = Callable[[Any], str]

# Registry of formatters
_formatters: dict[str, FormatterFunc] = {}

_ETO_PATTERN = re.compile(r"^(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})?$")
_LATITUDE_PATTERN = re.compile(r"^(\d{2})(\d{2})(\d{2})?([NS])$")
_LONGITUDE_PATTERN = re.compile(r"^(\d{3})(\d{2})(\d{2})?([EW])$")


def register(name: str):
    """Decorator to register a formatter."""
    def decorator(func: FormatterFunc) -> FormatterFunc:
        _formatters[name] = func
        return func
    return decorator


def get_formatter(name: str) -> FormatterFunc | None:
    """Get a formatter by name."""
    return _formatters.get(name)


def format_value(name: str, value: Any) -> str | None:
    """Format a decoded value using a named formatter.

    Args:
        name: Formatter name (e.g., "eto", "fl")
        value: Raw decoded value

    Returns:
        Formatted string, or None if formatter not found
    """
    formatter = get_formatter(name)
    if formatter is None:
        return None
    return formatter(value)


def list_formatters() -> list[str]:
    """List all registered formatter names."""
    return list(_formatters.keys())


# === Built-in Formatters ===

@register("raw")
def format_raw(value: Any) -> str:
    return str(value)


@register("eto")
def format_eto(value: Any) -> str:
    """Format an estimated time over as 'YYYY-MM-DD HH:MM[:SS]'."""
    match = _ETO_PATTERN.match(str(value))
    if not match:
        return str(value)
    year, month, day, hour, minute, second = match.groups()
    result = f"20{year}-{month}-{day} {hour}:{minute}"
    if second is not None:
        result += f":{second}"
    return result


@register("fl")
def format_flight_level(value: Any) -> str:
    """Format a flight level in hundreds of feet: 'FL390'."""
    try:
        return f"FL{int(value):03d}"
    except (TypeError, ValueError):
        return str(value)


def _format_angle(degrees: str, minutes: str, seconds: str | None, hemisphere: str) -> str:
    return f"{degrees}°{minutes}'{seconds or '00'}\"{hemisphere}"


@register("latitude")
def format_latitude(value: Any) -> str:
    match = _LATITUDE_PATTERN.match(str(value))
    if not match:
        return str(value)
    return _format_angle(*match.groups())


@register("longitude")
def format_longitude(value: Any) -> str:
    match = _LONGITUDE_PATTERN.match(str(value))
    if not match:
        return str(value)
    return _format_angle(*match.groups())
