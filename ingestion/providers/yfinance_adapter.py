"""
yfinance adapter - fetch daily price history from Yahoo Finance.
Network IO allowed here, but minimal business logic.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
import yfinance as yf


logger = logging.getLogger(__name__)

# Five years of history plus slack for weekends and holidays
DEFAULT_LOOKBACK_DAYS = 365 * 5
MAX_LOOKBACK_DAYS = 365 * 10


class YFinanceError(Exception):
    """Raised when yfinance operations fail."""
    pass


def fetch_price_history(
    ticker: str,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> List[Dict[str, Any]]:
    """
    Fetch daily split/dividend-adjusted closes for a ticker.
    Returns raw data in provider format - no normalization.

    Args:
        ticker: Stock or ETF ticker symbol (e.g., 'VOO')
        start: Start date (inclusive), defaults to five years before end
        end: End date (inclusive), defaults to today

    Returns:
        List of raw price dictionaries with 'Date' and 'Close'
        (and 'Adj Close' when the provider returns it)

    Raises:
        YFinanceError: If fetch fails or validation fails
    """
    if end is None:
        end = date.today()
    if start is None:
        start = end - timedelta(days=DEFAULT_LOOKBACK_DAYS)

    _validate_date_range(start, end)
    _validate_ticker(ticker)

    try:
        # yfinance uses exclusive end dates, so add 1 day
        yf_end = end + timedelta(days=1)

        data = yf.download(
            ticker,
            start=start.isoformat(),
            end=yf_end.isoformat(),
            auto_adjust=True,
            progress=False
        )
    except Exception as e:
        logger.error(f"yfinance download failed for {ticker}: {e}")
        raise YFinanceError(f"Failed to fetch prices for {ticker}: {str(e)}") from e

    if data is None or len(data) == 0:
        logger.warning(f"No price rows returned for {ticker}")
        return []

    # Flatten (field, ticker) columns returned by newer yfinance releases
    if isinstance(data.columns, pd.MultiIndex):
        data.columns = data.columns.get_level_values(0)

    rows = []
    for date_idx, row in data.iterrows():
        row_dict = {'Date': date_idx.strftime('%Y-%m-%d')}
        for field in ['Close', 'Adj Close']:
            if field in data.columns and pd.notna(row[field]):
                row_dict[field] = float(row[field])
        rows.append(row_dict)

    logger.info(f"Fetched {len(rows)} price rows for {ticker}")
    return rows


def _validate_date_range(start: date, end: date) -> None:
    """
    Validate date range parameters.

    Args:
        start: Start date
        end: End date

    Raises:
        YFinanceError: If validation fails
    """
    if start > end:
        raise YFinanceError(f"start date ({start}) must be <= end date ({end})")

    today = date.today()
    if start > today or end > today:
        raise YFinanceError("Future dates not allowed for historical data")

    if (end - start).days > MAX_LOOKBACK_DAYS:
        raise YFinanceError(f"Date range too long (max {MAX_LOOKBACK_DAYS} days)")


def _validate_ticker(ticker: str) -> None:
    """
    Basic ticker validation.

    Args:
        ticker: Stock ticker symbol

    Raises:
        YFinanceError: If ticker is invalid
    """
    if not ticker or not isinstance(ticker, str):
        raise YFinanceError("Ticker must be non-empty string")

    if len(ticker) > 12:
        raise YFinanceError("Ticker too long (max 12 characters)")

    # Alphanumeric plus common exchange-suffix and class-share characters
    allowed_chars = set('ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-^=')
    if not set(ticker.upper()).issubset(allowed_chars):
        raise YFinanceError(f"Ticker contains invalid characters: {ticker}")
