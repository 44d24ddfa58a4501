"""
CSV exports for analysis results.
Pure functions returning CSV text; writing is left to the caller.
"""

import math
from typing import Iterable, List, Mapping, Tuple

import pandas as pd

from analysis.results import FactorAnalysis


FACTOR_SUMMARY_HEADER = 'name,coef,tstat,r2,alpha_annual'

GROUP_SECTIONS = [
    ('sector', 'Sector groups', 'sector'),
    ('region', 'Region groups', 'region'),
    ('factor', 'Factor bucket groups', 'factor_bucket'),
]


def _fixed(value: float, places: int) -> str:
    if math.isnan(value):
        return 'NaN'
    return f"{value:.{places}f}"


def _plain(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    return repr(float(value))


def correlation_matrix_csv(matrix: pd.DataFrame) -> str:
    """
    Render a correlation matrix as CSV.

    The first row is an empty corner cell followed by the tickers; each
    following row is a ticker and its correlations in column order.
    """
    tickers = [str(t) for t in matrix.columns]
    lines = [',' + ','.join(tickers)]
    for row_ticker in matrix.index:
        values = [_plain(matrix.loc[row_ticker, col]) for col in matrix.columns]
        lines.append(','.join([str(row_ticker)] + values))
    return '\n'.join(lines)


def factor_summary_csv(analysis: FactorAnalysis) -> str:
    """
    Render regression results as CSV.

    Coefficients (4 dp) and t-statistics (2 dp) are pipe-joined in factor
    order and quoted; R² has 3 dp and annualized alpha 4 dp.
    """
    lines = [FACTOR_SUMMARY_HEADER]
    for entry in analysis.regressions:
        reg = entry.result
        coefs = '|'.join(_fixed(b, 4) for b in reg.coefficients)
        tstats = '|'.join(_fixed(t, 2) for t in reg.t_statistics)
        lines.append(
            f'{entry.name},"{coefs}","{tstats}",'
            f'{_fixed(reg.r_squared, 3)},{_fixed(reg.annualized_alpha, 4)}'
        )
    return '\n'.join(lines)


def weights_csv(weights: Mapping[str, float], header: str) -> str:
    """One group map as '<header>,weight_percent' rows, largest weight first."""
    ranked: List[Tuple[str, float]] = sorted(weights.items(), key=lambda kv: kv[1], reverse=True)
    lines = [f'{header},weight_percent']
    lines.extend(f'{name},{weight * 100:.4f}' for name, weight in ranked)
    return '\n'.join(lines)


def group_weights_csv(groups: Mapping[str, Mapping[str, float]]) -> str:
    """
    Render sector, region and factor-bucket weights as one sectioned CSV.

    Sections are headed by '# Sector groups' style comment lines and
    separated by a blank line.
    """
    blocks: Iterable[str] = (
        f'# {title}\n{weights_csv(groups.get(key, {}), header)}'
        for key, title, header in GROUP_SECTIONS
    )
    return '\n\n'.join(blocks)
