"""
Tests for CSV exports.
"""

import pandas as pd

from analysis.calculations.regression import RegressionResult
from analysis.results import FactorAnalysis, NamedRegression
from reports.csv_export import (
    FACTOR_SUMMARY_HEADER,
    correlation_matrix_csv,
    factor_summary_csv,
    group_weights_csv,
    weights_csv,
)


def _regression(alpha=0.00012):
    return RegressionResult(
        factor_names=['alpha', 'Mkt-RF'],
        coefficients=[alpha, 1.02346],
        standard_errors=[0.0001, 0.05],
        t_statistics=[1.2, 20.468],
        r_squared=0.91234,
        annualized_alpha=0.0307,
        observations=60,
    )


class TestCorrelationMatrixCsv:
    """Tests for correlation_matrix_csv."""

    def test_layout_and_nan(self):
        matrix = pd.DataFrame(
            [[1.0, 0.25], [0.25, float('nan')]],
            index=['VOO', 'XLE'], columns=['VOO', 'XLE'],
        )

        text = correlation_matrix_csv(matrix)

        assert text.splitlines() == [
            ',VOO,XLE',
            'VOO,1.0,0.25',
            'XLE,0.25,NaN',
        ]


class TestFactorSummaryCsv:
    """Tests for factor_summary_csv."""

    def test_rows(self):
        analysis = FactorAnalysis(
            model='FF5 only (momentum unavailable)',
            factor_names=['alpha', 'Mkt-RF'],
            window_days=60,
            regressions=(NamedRegression('Portfolio', _regression()),),
        )

        lines = factor_summary_csv(analysis).splitlines()

        assert lines[0] == FACTOR_SUMMARY_HEADER
        assert lines[1] == 'Portfolio,"0.0001|1.0235","1.20|20.47",0.912,0.0307'

    def test_nan_statistics(self):
        reg = RegressionResult(['alpha'], [0.0], [float('nan')], [float('nan')], float('nan'), 0.0, 6)
        analysis = FactorAnalysis('FF5 + MOM', ['alpha'], 252, (NamedRegression('A', reg),))

        assert factor_summary_csv(analysis).splitlines()[1] == 'A,"0.0000","NaN",NaN,0.0000'

    def test_header_only_when_empty(self):
        analysis = FactorAnalysis('FF5 + MOM', [], 252, ())
        assert factor_summary_csv(analysis) == FACTOR_SUMMARY_HEADER


class TestGroupWeightsCsv:
    """Tests for weights_csv and group_weights_csv."""

    def test_weights_sorted_descending(self):
        text = weights_csv({'Energy': 0.25, 'Broad US Equity': 0.75}, 'sector')
        assert text.splitlines() == [
            'sector,weight_percent',
            'Broad US Equity,75.0000',
            'Energy,25.0000',
        ]

    def test_sections(self):
        groups = {
            'sector': {'Energy': 1.0},
            'region': {'US': 0.6, 'Global': 0.4},
            'factor': {},
        }

        text = group_weights_csv(groups)

        assert text == (
            '# Sector groups\nsector,weight_percent\nEnergy,100.0000\n\n'
            '# Region groups\nregion,weight_percent\nUS,60.0000\nGlobal,40.0000\n\n'
            '# Factor bucket groups\nfactor_bucket,weight_percent'
        )
