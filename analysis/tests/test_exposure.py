"""
Tests for exposure aggregation.
Holding normalization, option delta handling and weight normalization.
"""

import math

import pytest

from analysis.calculations.exposure import (
    EquityHolding,
    OptionHolding,
    ExposureError,
    aggregate_exposure,
    clamp_delta,
    normalize_holding,
    normalize_holdings,
)


class TestNormalizeHolding:
    """Tests for normalize_holding."""

    def test_equity_defaults(self):
        """Kind defaults to equity and tickers are uppercased."""
        holding = normalize_holding({'ticker': ' voo ', 'market_value': '600000'})

        assert isinstance(holding, EquityHolding)
        assert holding.ticker == 'VOO'
        assert holding.market_value == 600000.0
        assert holding.effective_ticker == 'VOO'
        assert holding.exposure_value == 600000.0

    def test_unknown_kind_is_equity(self):
        holding = normalize_holding({'ticker': 'XLE', 'market_value': 10, 'kind': 'future'})
        assert isinstance(holding, EquityHolding)

    def test_camel_case_market_value(self):
        holding = normalize_holding({'ticker': 'XOM', 'marketValue': 120000})
        assert holding.market_value == 120000.0

    def test_option_uses_underlying(self):
        """Option exposure is delta-adjusted and priced off the underlying."""
        holding = normalize_holding({
            'ticker': 'XOM250117C00100000',
            'market_value': 1000,
            'kind': 'option',
            'underlying': 'xom',
            'delta': 0.5,
            'expiration': '2025-01-17',
        })

        assert isinstance(holding, OptionHolding)
        assert holding.effective_ticker == 'XOM'
        assert holding.exposure_value == pytest.approx(500.0)
        assert not holding.uses_proxy_ticker

    def test_option_without_underlying_uses_own_ticker(self):
        holding = normalize_holding({'ticker': 'OPT1', 'market_value': 100, 'kind': 'option'})

        assert holding.effective_ticker == 'OPT1'
        assert holding.uses_proxy_ticker
        assert holding.delta == 1.0

    def test_unparseable_market_value_is_nan(self):
        holding = normalize_holding({'ticker': 'VOO', 'market_value': 'abc'})
        assert math.isnan(holding.market_value)

    def test_rejects_non_dict(self):
        with pytest.raises(ExposureError):
            normalize_holding(['VOO', 100])


class TestClampDelta:
    """Tests for clamp_delta."""

    @pytest.mark.parametrize('raw, expected', [
        (0.4, 0.4),
        (2.0, 1.0),
        (-3.0, -1.0),
        (None, 1.0),
        ('', 1.0),
        (float('nan'), 1.0),
        (float('inf'), 1.0),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_delta(raw) == expected


class TestNormalizeHoldings:
    """Tests for filtering malformed holdings."""

    def test_drops_invalid_rows(self):
        raw = [
            {'ticker': 'VOO', 'market_value': 100},
            {'ticker': '', 'market_value': 100},
            {'ticker': 'XLE', 'market_value': 0},
            {'ticker': 'XOM', 'market_value': -5},
            {'ticker': 'DVN', 'market_value': None},
        ]

        holdings = normalize_holdings(raw)

        assert [h.ticker for h in holdings] == ['VOO']

    def test_does_not_mutate_input(self):
        raw = [{'ticker': 'voo', 'market_value': '100'}]
        normalize_holdings(raw)
        assert raw == [{'ticker': 'voo', 'market_value': '100'}]


class TestAggregateExposure:
    """Tests for aggregate_exposure."""

    def test_absolute_weights_sum_to_one(self):
        """Weights are fractions of gross exposure."""
        raw = [
            {'ticker': 'VOO', 'market_value': 600},
            {'ticker': 'VXUS', 'market_value': 200},
            {'ticker': 'PUT', 'market_value': 100, 'kind': 'option',
             'underlying': 'XLE', 'delta': -0.5, 'expiration': '2026-01-16'},
        ]

        result = aggregate_exposure(raw)

        assert result['tickers'] == ['VOO', 'VXUS', 'XLE']
        assert result['gross_exposure'] == pytest.approx(850.0)
        assert sum(abs(w) for w in result['weights'].values()) == pytest.approx(1.0, abs=1e-9)
        assert result['weights']['XLE'] == pytest.approx(-50 / 850)

    def test_equity_and_option_net_on_same_underlying(self):
        raw = [
            {'ticker': 'XOM', 'market_value': 100},
            {'ticker': 'XOMP', 'market_value': 100, 'kind': 'option',
             'underlying': 'XOM', 'delta': -1},
        ]

        result = aggregate_exposure(raw)

        assert result['gross_exposure'] == 0
        assert result['weights'] == {'XOM': 0.0}

    def test_empty_holdings(self):
        result = aggregate_exposure([])
        assert result == {'weights': {}, 'tickers': [], 'gross_exposure': 0}
