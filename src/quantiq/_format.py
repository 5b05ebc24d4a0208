"""Number formatting for unit values and for display."""

import locale
import math

_DISPLAY_FRACTION_DIGITS = 4


def format_magnitude(value: float) -> str:
    """Format a magnitude the way it appears next to its unit, e.g. ``"1.01"`` in ``"1.01 m"``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return format(value, ".14g")


def format_display_value(value: float | None) -> str:
    """Format a computed value for display.

    Uses the current ``LC_NUMERIC`` locale with digit grouping and at most four
    fractional digits. An absent value renders as ``"NaN"``.

    Example:
        >>> format_display_value(123.5)
        '123.5'
        >>> format_display_value(None)
        'NaN'

    """
    if value is None or math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    text = locale.format_string(f"%.{_DISPLAY_FRACTION_DIGITS}f", value, grouping=True)
    decimal_point = locale.localeconv()["decimal_point"]
    if isinstance(decimal_point, str) and decimal_point in text:
        text = text.rstrip("0").rstrip(decimal_point)
    if text == "-0":
        text = "0"
    return text
