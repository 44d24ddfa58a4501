"""
Tests for holdings CSV import.
"""

import math

import pytest

from ingestion.transforms.holdings_csv import (
    HoldingsCSVError,
    parse_holdings_csv,
    read_holdings_frame,
)


class TestReadHoldingsFrame:
    """Tests for read_holdings_frame."""

    def test_headers_lowercased(self):
        frame = read_holdings_frame(" Ticker , Market_Value\nVOO,100\n")
        assert list(frame.columns) == ['ticker', 'market_value']

    def test_missing_file(self, tmp_path):
        with pytest.raises(HoldingsCSVError):
            read_holdings_frame(tmp_path / 'missing.csv')


class TestParseHoldingsCsv:
    """Tests for parse_holdings_csv."""

    def test_market_value_and_options(self):
        text = (
            "ticker,market_value,kind,underlying,delta,expiration\n"
            "voo,600000,equity,,,\n"
            "XOMC,5000,Option,xom,0.6,2026-01-16\n"
        )

        holdings = parse_holdings_csv(text)

        assert holdings[0]['ticker'] == 'VOO'
        assert holdings[0]['market_value'] == 600000.0
        assert holdings[0]['kind'] == 'equity'
        assert math.isnan(holdings[0]['delta'])
        assert holdings[1] == {
            'ticker': 'XOMC', 'market_value': 5000.0, 'kind': 'option',
            'underlying': 'XOM', 'delta': 0.6, 'expiration': '2026-01-16',
        }

    def test_shares_times_price(self):
        holdings = parse_holdings_csv("ticker,shares,price\nXLE,10,90.5\n")
        assert holdings[0]['market_value'] == pytest.approx(905.0)
        assert holdings[0]['kind'] == 'equity'

    def test_unusable_rows_dropped(self):
        text = "ticker,market_value\n,100\nVOO,0\nXLE,abc\nXOM,-5\nHAP,250\n"
        assert [h['ticker'] for h in parse_holdings_csv(text)] == ['HAP']

    def test_file_path(self, tmp_path):
        path = tmp_path / 'holdings.csv'
        path.write_text("Ticker,Market_Value\nVOO,100\n")

        assert parse_holdings_csv(path)[0]['ticker'] == 'VOO'
        assert parse_holdings_csv(str(path))[0]['market_value'] == 100.0

    def test_missing_ticker_column(self):
        with pytest.raises(HoldingsCSVError, match="ticker"):
            parse_holdings_csv("symbol,market_value\nVOO,100\n")

    def test_missing_value_columns(self):
        with pytest.raises(HoldingsCSVError, match="market_value"):
            parse_holdings_csv("ticker,shares\nVOO,10\n")
