"""
Return statistics.
Pure functions for cumulative return, volatility, Sharpe/Sortino and drawdown.
"""

import math
from typing import Any, Dict, List, Sequence, Union

import numpy as np


TRADING_DAYS = 252


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (divisor N), NaN for empty input."""
    if len(values) == 0:
        return math.nan
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


def downside_std(values: Sequence[float]) -> float:
    """Population standard deviation of the negative values only, 0 if none."""
    negatives = [v for v in values if v < 0]
    if not negatives:
        return 0.0
    return population_std(negatives)


def max_drawdown(values: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline of the compounded return path.

    The path starts at 1 and the running peak never drops below it.

    Args:
        values: Periodic returns

    Returns:
        Non-positive decimal (-0.25 = 25% drawdown), 0 if never drawn down
    """
    if len(values) == 0:
        return 0.0

    path = np.cumprod(1 + np.asarray(values, dtype=float))
    running_peak = np.maximum.accumulate(np.concatenate(([1.0], path)))[1:]
    drawdowns = path / running_peak - 1

    return float(min(0.0, drawdowns.min()))


def compute_statistics(
    return_series: List[Union[Dict[str, Any], float]],
    risk_free_rate: float = 0.0
) -> Dict[str, float]:
    """
    Calculate summary statistics over an entire return series.

    Formulas:
        cumulative_return = prod(1 + r) - 1
        volatility        = std(r) * sqrt(252)            (population std)
        sharpe            = (mean(r) - rf/252) * 252 / volatility
        sortino           = same numerator / (std(r < 0) * sqrt(252))

    Undefined ratios (zero volatility, no negative returns) are NaN.

    Args:
        return_series: {'date', 'return'} rows or bare return values
        risk_free_rate: Annual risk-free rate as decimal

    Returns:
        Dictionary with cumulative_return, volatility, sharpe, sortino,
        max_drawdown
    """
    rs = [
        row['return'] if isinstance(row, dict) else float(row)
        for row in return_series
    ]

    if not rs:
        return {
            'cumulative_return': 0.0,
            'volatility': math.nan,
            'sharpe': math.nan,
            'sortino': math.nan,
            'max_drawdown': 0.0,
        }

    values = np.asarray(rs, dtype=float)
    avg = float(values.mean())
    vol = population_std(rs) * math.sqrt(TRADING_DAYS)
    cumulative = float(np.prod(1 + values) - 1)

    excess = (avg - risk_free_rate / TRADING_DAYS) * TRADING_DAYS
    sharpe = excess / vol if vol else math.nan

    sortino_den = downside_std(rs) * math.sqrt(TRADING_DAYS)
    sortino = excess / sortino_den if sortino_den else math.nan

    return {
        'cumulative_return': cumulative,
        'volatility': vol,
        'sharpe': sharpe,
        'sortino': sortino,
        'max_drawdown': max_drawdown(rs),
    }
