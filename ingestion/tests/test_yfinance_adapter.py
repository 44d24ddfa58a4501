"""
Tests for yfinance adapter - mocked network calls, no live API hits in CI.
"""

from datetime import date, timedelta
from unittest.mock import patch

import pandas as pd
import pytest

from ingestion.providers.yfinance_adapter import (
    YFinanceError,
    _validate_date_range,
    _validate_ticker,
    fetch_price_history,
)


class TestFetchPriceHistory:
    """Tests for fetch_price_history."""

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_success(self, mock_download):
        """Rows come back in provider format with string dates."""
        mock_download.return_value = pd.DataFrame({
            'Open': [400.1, 401.2],
            'Close': [401.5, 403.0],
            'Volume': [1000, 1200],
        }, index=pd.DatetimeIndex(['2024-01-15', '2024-01-16'], name='Date'))

        result = fetch_price_history('VOO', start=date(2024, 1, 15), end=date(2024, 1, 16))

        mock_download.assert_called_once_with(
            'VOO',
            start='2024-01-15',
            end='2024-01-17',  # yfinance end is exclusive
            auto_adjust=True,
            progress=False
        )
        assert result == [
            {'Date': '2024-01-15', 'Close': 401.5},
            {'Date': '2024-01-16', 'Close': 403.0},
        ]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_multiindex_columns_flattened(self, mock_download):
        columns = pd.MultiIndex.from_tuples([('Close', 'XLE'), ('Volume', 'XLE')])
        mock_download.return_value = pd.DataFrame(
            [[90.0, 10], [float('nan'), 12]],
            index=pd.DatetimeIndex(['2024-03-01', '2024-03-04']),
            columns=columns,
        )

        result = fetch_price_history('XLE', start=date(2024, 3, 1), end=date(2024, 3, 4))

        assert result == [{'Date': '2024-03-01', 'Close': 90.0}, {'Date': '2024-03-04'}]

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_default_window(self, mock_download):
        mock_download.return_value = pd.DataFrame()

        assert fetch_price_history('VOO') == []

        kwargs = mock_download.call_args.kwargs
        start = date.fromisoformat(kwargs['start'])
        end = date.fromisoformat(kwargs['end'])
        assert (end - start).days == 365 * 5 + 1

    @patch('ingestion.providers.yfinance_adapter.yf.download')
    def test_provider_error_wrapped(self, mock_download):
        mock_download.side_effect = RuntimeError('rate limited')

        with pytest.raises(YFinanceError, match="rate limited"):
            fetch_price_history('VOO', start=date(2024, 1, 1), end=date(2024, 1, 31))


class TestValidation:
    """Tests for date and ticker validation."""

    def test_start_after_end(self):
        with pytest.raises(YFinanceError, match="must be <="):
            _validate_date_range(date(2024, 2, 1), date(2024, 1, 1))

    def test_future_dates(self):
        tomorrow = date.today() + timedelta(days=1)
        with pytest.raises(YFinanceError, match="Future"):
            _validate_date_range(date.today(), tomorrow)

    def test_range_too_long(self):
        with pytest.raises(YFinanceError, match="too long"):
            _validate_date_range(date(2000, 1, 1), date(2020, 1, 1))

    @pytest.mark.parametrize('ticker', ['VOO', 'BRK-B', 'RDS.A', '^GSPC', 'CL=F'])
    def test_valid_tickers(self, ticker):
        _validate_ticker(ticker)

    @pytest.mark.parametrize('ticker', ['', 'A' * 13, 'VO O', 'X;Y'])
    def test_invalid_tickers(self, ticker):
        with pytest.raises(YFinanceError):
            _validate_ticker(ticker)
