"""
Portfolio return synthesis.
Combines per-ticker return series and exposure weights into one weighted series.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Union

from analysis.calculations.returns import compute_returns


# Fraction of tickers allowed to be missing on a date before it is dropped
MISSING_FRACTION = 0.3


class PortfolioReturnsError(Exception):
    """Raised when portfolio return synthesis fails."""
    pass


@dataclass(frozen=True)
class PortfolioReturnRow:
    """One date of weighted portfolio return plus the per-ticker breakdown."""
    date: Union[date, str]
    portfolio_return: float
    ticker_returns: Mapping[str, float] = field(default_factory=dict)

    def ticker_return(self, ticker: str) -> float:
        """Return for ticker on this date, 0 when the ticker had no data."""
        return self.ticker_returns.get(ticker) or 0.0


def missing_threshold(ticker_count: int) -> int:
    """
    Maximum number of tickers that may be missing on a retained date.

    Always at least 1, so small portfolios tolerate a single gap.
    """
    return max(1, math.floor(MISSING_FRACTION * ticker_count))


def synthesize_portfolio_returns(
    prices_by_ticker: Mapping[str, List[Dict[str, Any]]],
    weights: Mapping[str, float]
) -> List[PortfolioReturnRow]:
    """
    Build the weighted portfolio return series.

    Each ticker's prices are turned into simple returns and pivoted into
    per-date rows. Dates with more missing tickers than the threshold are
    dropped. On retained dates missing tickers contribute zero; the remaining
    weights are not rescaled.

    Args:
        prices_by_ticker: {ticker: [{'date', 'close'}, ...]}
        weights: {ticker: signed weight} from exposure aggregation

    Returns:
        Ascending list of PortfolioReturnRow

    Raises:
        PortfolioReturnsError: If weights is empty
    """
    if not weights:
        raise PortfolioReturnsError("No weights provided")

    by_date: Dict[Any, Dict[str, float]] = {}
    for ticker, series in prices_by_ticker.items():
        for row in compute_returns(series or []):
            by_date.setdefault(row['date'], {})[ticker] = row['return']

    tickers = list(weights.keys())
    threshold = missing_threshold(len(tickers))

    rows = []
    for row_date in sorted(by_date):
        ticker_returns = by_date[row_date]
        missing = sum(1 for t in tickers if ticker_returns.get(t) is None)
        if missing > threshold:
            continue

        portfolio_return = 0.0
        for ticker in tickers:
            portfolio_return += (ticker_returns.get(ticker) or 0.0) * weights[ticker]

        rows.append(PortfolioReturnRow(
            date=row_date,
            portfolio_return=portfolio_return,
            ticker_returns=dict(ticker_returns),
        ))

    return rows


def portfolio_return_series(rows: List[PortfolioReturnRow]) -> List[Dict[str, Any]]:
    """Project portfolio rows onto a plain {'date', 'return'} series."""
    return [{'date': row.date, 'return': row.portfolio_return} for row in rows]
