"""
Returns calculation utilities.
Pure functions for converting price series into simple periodic returns.
"""

from typing import Any, Dict, List


class ReturnsError(Exception):
    """Raised when returns calculation fails."""
    pass


def compute_returns(price_series: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Calculate simple returns between consecutive observations.

    Formula: r_i = (P_i / P_{i-1}) - 1

    Prices are assumed to be adjusted closes in ascending date order. Each
    return is stamped with the date of the later observation, so the output
    is one element shorter than the input.

    Args:
        price_series: List of {'date', 'close'} dictionaries

    Returns:
        List of {'date', 'return'} dictionaries. Empty when fewer than
        2 prices are available.

    Raises:
        ReturnsError: If a zero or negative price is encountered

    Example:
        closes [100, 110, 99] -> returns [0.10, -0.10]
    """
    if len(price_series) < 2:
        return []

    returns = []
    for previous, current in zip(price_series, price_series[1:]):
        previous_close = previous['close']
        if previous_close <= 0 or current['close'] <= 0:
            raise ReturnsError(
                f"Zero or negative prices not allowed (date {current['date']})"
            )
        returns.append({
            'date': current['date'],
            'return': current['close'] / previous_close - 1,
        })

    return returns
