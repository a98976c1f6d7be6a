#!/usr/bin/env python3
"""
Duration and column formatting helpers for the benchmark table.
"""

# Largest unit first: (threshold in seconds, multiplier, suffix)
_UNITS = [
    (1.0, 1.0, "s"),
    (1e-3, 1e3, "ms"),
    (1e-6, 1e6, "µs"),
    (0.0, 1e9, "ns"),
]


def _format_scaled(value: float, digits: int) -> str:
    # Fixed-point with `digits` significant digits, never exponent notation
    magnitude = abs(value)
    if magnitude == 0:
        return "0"
    integer_digits = len(str(int(magnitude))) if magnitude >= 1 else 1
    decimals = max(digits - integer_digits, 0)
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text


def format_duration(seconds: float, digits: int = 3) -> str:
    """Render a duration in seconds with the most readable unit.

    Parameters
    ----------
    seconds : float
        Duration in seconds. Negative values keep their minus sign.
    digits : int
        Number of significant digits (default: 3).

    Returns
    -------
    str
        Scaled value with unit suffix.

    Examples
    --------
    >>> format_duration(0.271)
    '271ms'
    >>> format_duration(1.23456)
    '1.23s'
    >>> format_duration(-0.0000125)
    '-12.5µs'
    """
    magnitude = abs(seconds)
    if magnitude == 0:
        return "0ns"

    for index, (threshold, multiplier, suffix) in enumerate(_UNITS):
        if magnitude < threshold:
            continue
        scaled = round(magnitude * multiplier, max(digits - len(str(int(magnitude * multiplier))), 0))
        # Rounding can carry 999.96ms to 1000ms; move up one unit in that case
        if scaled >= 1000 and index > 0:
            _, multiplier, suffix = _UNITS[index - 1]
        break

    return f"{_format_scaled(seconds * multiplier, digits)}{suffix}"


def pad(text: str, width: int, fill: str = " ") -> str:
    """Pad ``text`` to exactly ``width`` characters, truncating longer text."""
    return text[:width].ljust(width, fill)


def dash(width: int) -> str:
    return "-" * width
