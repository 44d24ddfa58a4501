"""
Display formatters for portfolio reports.
Deterministic string formatting for percentages, ratios, currency, and dates.
"""

import math
from datetime import datetime, date
from typing import Any, Optional, Union


NOT_AVAILABLE = 'n/a'


class FormatterError(Exception):
    """Raised when formatter input validation fails."""
    pass


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if not isinstance(value, (int, float)):
        raise FormatterError(f"Value must be numeric, got {type(value)}")
    return not math.isfinite(value)


def format_percentage(value: Optional[float], decimal_places: int = 2) -> str:
    """
    Format decimal as percentage with specified precision.

    Args:
        value: Decimal value (0.0845 = 8.45%)
        decimal_places: Number of decimal places (default: 2)

    Returns:
        Formatted percentage string (e.g., "8.45%"), "n/a" when undefined
    """
    if _is_missing(value):
        return NOT_AVAILABLE
    return f"{value * 100:.{decimal_places}f}%"


def format_ratio(value: Optional[float], decimal_places: int = 2) -> str:
    """Format a plain number (Sharpe, correlation, beta), "n/a" when undefined."""
    if _is_missing(value):
        return NOT_AVAILABLE
    return f"{value:.{decimal_places}f}"


def format_currency(value: Optional[float]) -> str:
    """
    Format currency with appropriate scale.

    Args:
        value: Dollar amount

    Returns:
        Formatted currency string (e.g., "$1.2M", "$24,059", "$12.50")
    """
    if _is_missing(value):
        return NOT_AVAILABLE

    if value == 0:
        return "$0"

    abs_value = abs(value)
    sign = "-" if value < 0 else ""

    if abs_value >= 1e9:
        return f"{sign}${abs_value/1e9:.1f}B"
    elif abs_value >= 1e6:
        return f"{sign}${abs_value/1e6:.1f}M"
    elif abs_value >= 1e3:
        return f"{sign}${abs_value:,.0f}"
    else:
        return f"{sign}${abs_value:.2f}"


def format_date_display(date_input: Union[str, date, datetime, None]) -> str:
    """
    Format date as "Month DD, YYYY".

    Args:
        date_input: Date as ISO string, date object, or datetime object

    Returns:
        Formatted date string (e.g., "July 15, 2025")
    """
    if date_input is None:
        return NOT_AVAILABLE

    if isinstance(date_input, datetime):
        date_obj = date_input.date()
    elif isinstance(date_input, date):
        date_obj = date_input
    elif isinstance(date_input, str):
        try:
            date_obj = date.fromisoformat(date_input[:10])
        except ValueError:
            raise FormatterError(f"Invalid date string: {date_input}")
    else:
        raise FormatterError(f"Date must be string, date, or datetime, got {type(date_input)}")

    return date_obj.strftime("%B %d, %Y")


def format_window_display(window_days: int) -> str:
    """
    Format trailing window for display.

    Args:
        window_days: Number of trading days in window

    Returns:
        Formatted window string (e.g., "(21-day)")
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise FormatterError(f"Window days must be positive integer, got {window_days}")

    return f"({window_days}-day)"
