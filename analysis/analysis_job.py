"""
Orchestrated analysis job - holdings to immutable AnalysisResult.
Calls providers for market data, then pure calculation functions.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from analysis.calculations.concentration import (
    ConcentrationError,
    group_weights,
    herfindahl_index,
    holding_concentration,
    scenario_shocks,
)
from analysis.calculations.correlation import (
    compute_correlation_matrix,
    correlation_vs_portfolio,
    top_pairs,
)
from analysis.calculations.exposure import aggregate_exposure, normalize_holdings
from analysis.calculations.portfolio_returns import (
    portfolio_return_series,
    synthesize_portfolio_returns,
)
from analysis.calculations.regression import (
    SingularMatrixError,
    factor_columns,
    run_factor_regression,
)
from analysis.calculations.returns import compute_returns
from analysis.calculations.statistics import compute_statistics
from analysis.classification import classify_holdings, merge_classifications
from analysis.guardrails import (
    option_structure_warnings,
    price_history_warnings,
    unique_warnings,
    window_coverage_warnings,
)
from analysis.results import AnalysisResult, FactorAnalysis, NamedRegression


logger = logging.getLogger(__name__)

DEFAULT_WINDOWS = {
    'correlation': [21, 63, 126],
    'top_pairs': 126,
    'portfolio_correlation': [30, 90, 180],
    'factor': 252,
}

PORTFOLIO_SERIES = 'Portfolio'
GROUP_KEYS = ['sector', 'region', 'factor']

PriceProvider = Callable[[List[str]], Dict[str, Any]]
ClassificationProvider = Callable[[List[str]], Dict[str, Any]]


class AnalysisJobError(Exception):
    """Raised when analysis job fails."""
    pass


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load portfolio configuration from YAML.

    Args:
        config_path: Path to config file (defaults to PORTFOLIO_CONFIG env var)

    Returns:
        Dictionary with defaults, classifications, windows and shocks

    Raises:
        AnalysisJobError: If config file cannot be loaded
    """
    if config_path is None:
        config_path = os.getenv('PORTFOLIO_CONFIG', './config/portfolio.yml')

    config_file = Path(config_path)
    if not config_file.exists():
        raise AnalysisJobError(f"Portfolio config file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise AnalysisJobError(f"Failed to load portfolio config: {e}") from e

    if 'holdings' not in (config.get('defaults') or {}):
        raise AnalysisJobError("Portfolio config missing 'defaults.holdings' section")

    config['windows'] = {**DEFAULT_WINDOWS, **(config.get('windows') or {})}
    _validate_windows(config['windows'])
    config.setdefault('classifications', {})
    config.setdefault('sector_map', {})
    config.setdefault('shocks', [])
    return config


def _is_window(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_windows(windows: Mapping[str, Any]) -> None:
    """Every configured window must be a positive integer number of trading days."""
    for key, value in windows.items():
        values = value if isinstance(value, list) else [value]
        if not values or not all(_is_window(v) for v in values):
            raise AnalysisJobError(
                f"Portfolio config 'windows.{key}' must be positive integers, got {value!r}"
            )


def run_portfolio_analysis(
    raw_holdings: List[Dict[str, Any]],
    price_provider: PriceProvider,
    classification_provider: Optional[ClassificationProvider] = None,
    manual_classifications: Optional[Mapping[str, Mapping[str, str]]] = None,
    shocks: Optional[List[Dict[str, Any]]] = None,
    risk_free_rate: float = 0.0,
    windows: Optional[Mapping[str, Any]] = None
) -> AnalysisResult:
    """
    Run the full portfolio analysis for a set of holdings.

    Stages:
    1. Normalize holdings and aggregate exposure weights
    2. Load prices for the effective tickers
    3. Synthesize portfolio returns and summary statistics
    4. Correlation matrices, top pairs and portfolio-relative correlation
    5. Classification, concentration, group weights and shocks
    6. Guardrail warnings

    Args:
        raw_holdings: Holding dictionaries (see exposure.normalize_holding)
        price_provider: tickers -> {'prices', 'warnings'}
        classification_provider: tickers -> {'classifications', 'warnings'}
        manual_classifications: {ticker: {'region', 'sector', 'factor'}}
        shocks: Scenario shock definitions
        risk_free_rate: Annual risk-free rate as decimal
        windows: Overrides for DEFAULT_WINDOWS

    Returns:
        AnalysisResult

    Raises:
        AnalysisJobError: If no valid holdings remain after normalization
    """
    windows = {**DEFAULT_WINDOWS, **(windows or {})}

    holdings = normalize_holdings(raw_holdings)
    if not holdings:
        raise AnalysisJobError("No valid holdings (need ticker and positive market value)")

    exposure = aggregate_exposure(holdings)
    weights = exposure['weights']
    tickers = exposure['tickers']
    logger.info(f"Analyzing {len(holdings)} holdings across {len(tickers)} tickers")

    loaded = price_provider(tickers)
    prices = {t: loaded['prices'][t] for t in tickers if loaded['prices'].get(t)}

    rows = synthesize_portfolio_returns(prices, weights)
    statistics = compute_statistics(portfolio_return_series(rows), risk_free_rate)

    correlations = {
        w: compute_correlation_matrix(rows, tickers, w)
        for w in windows['correlation']
    }
    pair_window = windows['top_pairs']
    pair_matrix = correlations.get(pair_window)
    if pair_matrix is None:
        pair_matrix = compute_correlation_matrix(rows, tickers, pair_window)

    portfolio_correlations = {
        w: correlation_vs_portfolio(rows, tickers, w)
        for w in windows['portfolio_correlation']
    }

    fetched = {'classifications': {}, 'warnings': []}
    if classification_provider is not None:
        fetched = classification_provider(tickers)
    classifications = merge_classifications(
        manual_classifications or {},
        fetched.get('classifications', {})
    )

    classified = classify_holdings(holdings, classifications)
    concentration, groups = _concentration_and_groups(holdings, classified)

    warnings = unique_warnings(
        loaded.get('warnings', []),
        fetched.get('warnings', []),
        option_structure_warnings(holdings),
        price_history_warnings(prices, tickers),
        window_coverage_warnings(len(rows), windows['correlation'], 'Correlation'),
    )
    for warning in warnings:
        logger.warning(warning)

    return AnalysisResult(
        holdings=tuple(holdings),
        weights=dict(weights),
        tickers=tuple(tickers),
        gross_exposure=exposure['gross_exposure'],
        prices=prices,
        portfolio_rows=tuple(rows),
        statistics=statistics,
        concentration=concentration,
        classifications={t: classifications.get(t, {}) for t in tickers},
        groups=groups,
        correlations=correlations,
        top_pairs=tuple(top_pairs(pair_matrix)),
        portfolio_correlations=portfolio_correlations,
        shocks=tuple(scenario_shocks(weights, shocks or [])),
        warnings=tuple(warnings),
        metadata={
            'run_at': datetime.now().isoformat(timespec='seconds'),
            'risk_free_rate': risk_free_rate,
            'windows': windows,
            'observations': len(rows),
            'first_date': rows[0].date if rows else None,
            'last_date': rows[-1].date if rows else None,
        },
    )


def _concentration_and_groups(holdings, classified):
    """Holding concentration plus sector/region/factor group weights and HHI."""
    try:
        concentration = holding_concentration(holdings)
    except ConcentrationError as e:
        raise AnalysisJobError(f"Concentration failed: {e}") from e

    total = concentration['total_market_value']
    groups = {key: group_weights(classified, key, total) for key in GROUP_KEYS}
    concentration['group_hhi'] = {
        key: herfindahl_index(groups[key].values()) for key in GROUP_KEYS
    }
    return concentration, groups


def run_factor_analysis(
    result: AnalysisResult,
    factor_data: Mapping[str, Any],
    window_days: int = DEFAULT_WINDOWS['factor'],
    include_assets: bool = False
) -> FactorAnalysis:
    """
    Regress the portfolio (and optionally each instrument) on factor returns.

    Series without enough aligned observations are skipped; a singular
    factor matrix for one series becomes a warning and the others still run.

    Args:
        result: Output of run_portfolio_analysis
        factor_data: {'factors', 'has_momentum', 'warnings'} from the factor pipeline
        window_days: Trailing regression window in trading days
        include_assets: Also regress each ticker's own returns

    Returns:
        FactorAnalysis

    Raises:
        AnalysisJobError: If there are no factor rows
    """
    factors = factor_data.get('factors') or []
    if not factors:
        raise AnalysisJobError("No factor data available")

    has_momentum = bool(factor_data.get('has_momentum'))
    model = 'FF5 + MOM' if has_momentum else 'FF5 only (momentum unavailable)'
    factor_rows_by_date = {row['date']: row for row in factors}

    series = [(PORTFOLIO_SERIES, portfolio_return_series(list(result.portfolio_rows)))]
    if include_assets:
        series.extend(
            (ticker, compute_returns(result.prices[ticker]))
            for ticker in result.tickers if ticker in result.prices
        )

    regressions = []
    skipped = []
    warnings = list(factor_data.get('warnings') or [])

    for name, returns in series:
        try:
            regression = run_factor_regression(
                returns, factor_rows_by_date, window_days, has_momentum
            )
        except SingularMatrixError as e:
            logger.warning(f"Factor regression failed for {name}: {e}")
            warnings.append(f"{name}: factor regression failed (singular matrix)")
            continue

        if regression is None:
            skipped.append(name)
            continue
        regressions.append(NamedRegression(name=name, result=regression))

    if skipped:
        warnings.append(f"Insufficient overlapping factor history: {', '.join(skipped)}")

    logger.info(f"Factor analysis ({model}): {len(regressions)} regressions, {len(skipped)} skipped")

    return FactorAnalysis(
        model=model,
        factor_names=factor_columns(has_momentum),
        window_days=window_days,
        regressions=tuple(regressions),
        skipped=tuple(skipped),
        warnings=tuple(unique_warnings(warnings)),
    )
