"""
Guardrails for portfolio analysis - structural and data-quality warnings.
Checks never abort a run; they return human-readable warning strings.
"""

from typing import Any, Dict, Iterable, List, Mapping

from analysis.calculations.exposure import Holding, OptionHolding


# Roughly ten months of trading days
MIN_PRICE_OBSERVATIONS = 200


def option_structure_warnings(holdings: Iterable[Holding]) -> List[str]:
    """
    Flag option holdings whose structure is incomplete.

    Args:
        holdings: Normalized holdings

    Returns:
        Warnings for options missing an underlying (own ticker used as
        proxy) or an expiration date
    """
    options = [h for h in holdings if isinstance(h, OptionHolding)]

    warnings = [
        f"{h.ticker}: option missing underlying (using ticker as proxy)"
        for h in options if h.uses_proxy_ticker
    ]
    warnings.extend(
        f"{h.ticker}: option missing expiration date"
        for h in options if not h.expiration
    )
    return warnings


def price_history_warnings(
    prices_by_ticker: Mapping[str, List[Dict[str, Any]]],
    tickers: Iterable[str],
    min_observations: int = MIN_PRICE_OBSERVATIONS
) -> List[str]:
    """
    Warn about tickers with missing or short price history.

    Args:
        prices_by_ticker: {ticker: price series}
        tickers: Tickers the portfolio needs
        min_observations: History length below which a ticker is flagged

    Returns:
        List of warnings
    """
    warnings = []
    for ticker in tickers:
        series = prices_by_ticker.get(ticker)
        if not series:
            warnings.append(f"{ticker}: no price data")
        elif len(series) < min_observations:
            warnings.append(f"{ticker}: insufficient history ({len(series)} days)")
    return warnings


def window_coverage_warnings(row_count: int, windows: Iterable[int], label: str) -> List[str]:
    """Warn when a trailing window is longer than the available return rows."""
    return [
        f"{label} window {w}d exceeds available history ({row_count} days)"
        for w in windows if row_count < w
    ]


def unique_warnings(*groups: Iterable[str]) -> List[str]:
    """Concatenate warning groups, dropping duplicates in first-seen order."""
    seen = {}
    for group in groups:
        for warning in group:
            seen.setdefault(warning, None)
    return list(seen)
