"""
Tests for display formatters.
"""

from datetime import date, datetime

import pytest

from reports.formatters import (
    NOT_AVAILABLE,
    FormatterError,
    format_currency,
    format_date_display,
    format_percentage,
    format_ratio,
    format_window_display,
)


class TestFormatPercentage:
    """Tests for format_percentage."""

    def test_basic(self):
        assert format_percentage(0.0845) == "8.45%"
        assert format_percentage(-0.0123, 1) == "-1.2%"

    @pytest.mark.parametrize('value', [None, float('nan'), float('inf')])
    def test_undefined(self, value):
        assert format_percentage(value) == NOT_AVAILABLE

    def test_non_numeric(self):
        with pytest.raises(FormatterError):
            format_percentage('8%')


class TestFormatRatio:
    """Tests for format_ratio."""

    def test_basic(self):
        assert format_ratio(1.23456) == "1.23"
        assert format_ratio(0.5, 3) == "0.500"

    def test_nan(self):
        assert format_ratio(float('nan')) == NOT_AVAILABLE


class TestFormatCurrency:
    """Tests for format_currency."""

    @pytest.mark.parametrize('value,expected', [
        (0, "$0"),
        (12.5, "$12.50"),
        (24059.4, "$24,059"),
        (1_234_567, "$1.2M"),
        (2_500_000_000, "$2.5B"),
        (-1500, "-$1,500"),
    ])
    def test_scales(self, value, expected):
        assert format_currency(value) == expected


class TestFormatDateDisplay:
    """Tests for format_date_display."""

    def test_inputs(self):
        assert format_date_display(date(2025, 7, 15)) == "July 15, 2025"
        assert format_date_display(datetime(2025, 7, 15, 9, 30)) == "July 15, 2025"
        assert format_date_display("2025-07-15T12:00:00") == "July 15, 2025"
        assert format_date_display(None) == NOT_AVAILABLE

    def test_invalid(self):
        with pytest.raises(FormatterError):
            format_date_display("yesterday")
        with pytest.raises(FormatterError):
            format_date_display(20250715)


class TestFormatWindowDisplay:
    """Tests for format_window_display."""

    def test_basic(self):
        assert format_window_display(21) == "(21-day)"

    @pytest.mark.parametrize('value', [0, -5, 2.5, True])
    def test_invalid(self, value):
        with pytest.raises(FormatterError):
            format_window_display(value)
