"""
Tests for analysis guardrails.
Structural and data-quality warnings.
"""

from datetime import date

from analysis.calculations.exposure import EquityHolding, OptionHolding
from analysis.guardrails import (
    MIN_PRICE_OBSERVATIONS,
    option_structure_warnings,
    price_history_warnings,
    unique_warnings,
    window_coverage_warnings,
)


class TestOptionStructureWarnings:
    """Tests for option_structure_warnings."""

    def test_flags_missing_fields(self):
        holdings = [
            EquityHolding('VOO', 100.0),
            OptionHolding('OPT1', 10.0),
            OptionHolding('OPT2', 10.0, underlying='XOM', expiration='2026-01-16'),
        ]

        warnings = option_structure_warnings(holdings)

        assert warnings == [
            'OPT1: option missing underlying (using ticker as proxy)',
            'OPT1: option missing expiration date',
        ]

    def test_equities_only(self):
        assert option_structure_warnings([EquityHolding('VOO', 1.0)]) == []


class TestPriceHistoryWarnings:
    """Tests for price_history_warnings."""

    def test_missing_and_short_history(self):
        short = [{'date': date(2025, 1, i + 1), 'close': 10.0} for i in range(5)]
        long = [{'date': i, 'close': 10.0} for i in range(MIN_PRICE_OBSERVATIONS)]

        warnings = price_history_warnings({'A': short, 'B': long}, ['A', 'B', 'C'])

        assert warnings == ['A: insufficient history (5 days)', 'C: no price data']


class TestWindowCoverage:
    """Tests for window_coverage_warnings."""

    def test_only_uncovered_windows(self):
        warnings = window_coverage_warnings(100, [21, 63, 126], 'Correlation')
        assert warnings == ['Correlation window 126d exceeds available history (100 days)']


class TestUniqueWarnings:
    """Tests for unique_warnings."""

    def test_first_seen_order(self):
        assert unique_warnings(['b', 'a'], ['a', 'c'], []) == ['b', 'a', 'c']
