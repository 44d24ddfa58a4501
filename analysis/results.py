"""
Result records for a portfolio analysis run.
Immutable snapshots passed from the orchestrator to reporting and export.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from analysis.calculations.exposure import Holding
from analysis.calculations.portfolio_returns import PortfolioReturnRow
from analysis.calculations.regression import RegressionResult


@dataclass(frozen=True)
class NamedRegression:
    """Regression result labelled with the series it was run on."""
    name: str
    result: RegressionResult


@dataclass(frozen=True)
class FactorAnalysis:
    """Factor regression output for the portfolio and optionally each asset."""
    model: str
    factor_names: List[str]
    window_days: int
    regressions: Tuple[NamedRegression, ...]
    skipped: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def for_name(self, name: str) -> Optional[RegressionResult]:
        for entry in self.regressions:
            if entry.name == name:
                return entry.result
        return None


@dataclass(frozen=True)
class AnalysisResult:
    """
    Everything computed by one analysis run.

    Built once by run_portfolio_analysis and never mutated; a new run
    produces a new result.
    """
    holdings: Tuple[Holding, ...]
    weights: Mapping[str, float]
    tickers: Tuple[str, ...]
    gross_exposure: float
    prices: Mapping[str, List[Dict[str, Any]]]
    portfolio_rows: Tuple[PortfolioReturnRow, ...]
    statistics: Mapping[str, float]
    concentration: Mapping[str, Any]
    classifications: Mapping[str, Mapping[str, str]]
    groups: Mapping[str, Mapping[str, float]]
    correlations: Mapping[int, pd.DataFrame]
    top_pairs: Tuple[Dict[str, Any], ...]
    portfolio_correlations: Mapping[int, List[Dict[str, Any]]]
    shocks: Tuple[Dict[str, Any], ...]
    warnings: Tuple[str, ...]
    factors: Optional[FactorAnalysis] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
