"""
Correlation calculation utilities.
Pearson correlation matrices over trailing windows of portfolio return rows.
"""

import math
from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from analysis.calculations.portfolio_returns import PortfolioReturnRow


class CorrelationError(Exception):
    """Raised when correlation calculation fails."""
    pass


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation using population statistics.

    Formula: rho = cov(x, y) / (std(x) * std(y))

    Zero-variance input gives NaN rather than raising.

    Args:
        x: First series
        y: Second series, same length as x

    Returns:
        Correlation coefficient, or NaN when undefined

    Raises:
        CorrelationError: If the series lengths differ
    """
    if len(x) != len(y):
        raise CorrelationError(f"Series lengths differ: {len(x)} vs {len(y)}")

    if len(x) == 0:
        return math.nan

    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)

    cov = float(np.mean((xs - xs.mean()) * (ys - ys.mean())))
    denominator = float(np.std(xs) * np.std(ys))

    if denominator == 0 or math.isnan(denominator):
        return math.nan

    return cov / denominator


def _validate_window(window_days: int) -> None:
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise CorrelationError(f"Window must be a positive integer, got {window_days!r}")


def _trailing_ticker_returns(
    rows: List[PortfolioReturnRow],
    tickers: List[str],
    window_days: int
) -> Dict[str, List[float]]:
    """Per-ticker returns over the trailing window, zero-filled where missing."""
    sliced = rows[-window_days:]
    return {t: [row.ticker_return(t) for row in sliced] for t in tickers}


def compute_correlation_matrix(
    rows: List[PortfolioReturnRow],
    tickers: List[str],
    window_days: int
) -> pd.DataFrame:
    """
    Calculate the ticker x ticker correlation matrix over the last window_days rows.

    Missing per-ticker returns count as 0 for that date, matching the
    zero-fill used when the portfolio return was synthesized.

    Args:
        rows: Portfolio return rows in ascending date order
        tickers: Tickers to correlate (matrix order)
        window_days: Trailing window length in trading days

    Returns:
        Symmetric DataFrame indexed and columned by ticker

    Raises:
        CorrelationError: If window_days is not a positive integer
    """
    _validate_window(window_days)

    data = _trailing_ticker_returns(rows, tickers, window_days)

    matrix = pd.DataFrame(index=list(tickers), columns=list(tickers), dtype=float)
    for i, a in enumerate(tickers):
        for b in tickers[i:]:
            value = pearson_correlation(data[a], data[b])
            matrix.loc[a, b] = value
            matrix.loc[b, a] = value

    return matrix


def top_pairs(matrix: pd.DataFrame, limit: int = 10) -> List[Dict[str, Any]]:
    """
    Rank distinct ticker pairs by absolute correlation.

    Args:
        matrix: Correlation matrix from compute_correlation_matrix
        limit: Maximum number of pairs to return

    Returns:
        List of {'pair': 'A-B', 'correlation': float}, strongest first.
        Pairs with undefined correlation sort last.
    """
    tickers = list(matrix.columns)
    pairs = []
    for i, a in enumerate(tickers):
        for b in tickers[i + 1:]:
            pairs.append({'pair': f'{a}-{b}', 'correlation': float(matrix.loc[a, b])})

    pairs.sort(key=lambda p: (math.isnan(p['correlation']), -abs(p['correlation'])))
    return pairs[:limit]


def correlation_vs_portfolio(
    rows: List[PortfolioReturnRow],
    tickers: List[str],
    window_days: int
) -> List[Dict[str, Any]]:
    """
    Correlation of each ticker against the portfolio over a trailing window.

    Sorted ascending so the lowest-correlated tickers (best diversifiers)
    come first; undefined correlations sort last.

    Args:
        rows: Portfolio return rows in ascending date order
        tickers: Tickers to evaluate
        window_days: Trailing window length in trading days

    Returns:
        List of {'ticker', 'correlation'}
    """
    _validate_window(window_days)

    sliced = rows[-window_days:]
    portfolio = [row.portfolio_return for row in sliced]
    data = _trailing_ticker_returns(rows, tickers, window_days)

    results = [
        {'ticker': t, 'correlation': pearson_correlation(portfolio, data[t])}
        for t in tickers
    ]
    results.sort(key=lambda r: (math.isnan(r['correlation']), r['correlation']))
    return results
