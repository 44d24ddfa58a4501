"""
Market data pipeline - prices, factors and classifications for an analysis run.
Composes: Provider → Transform → Validate. Failures degrade to warnings where possible.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from analysis.classification import factor_bucket
from ingestion.providers.classification_adapter import (
    ClassificationError,
    fetch_spark_classifications,
)
from ingestion.providers.french_factors_adapter import (
    FrenchFactorsError,
    fetch_five_factors_csv,
    fetch_momentum_csv,
)
from ingestion.providers.yfinance_adapter import YFinanceError, fetch_price_history
from ingestion.transforms.normalizers import (
    NormalizationError,
    normalize_factor_rows,
    normalize_prices,
    parse_french_csv,
)
from ingestion.transforms.validators import (
    ValidationError,
    check_date_monotonicity,
    validate_factor_row,
    validate_price_row,
)


logger = logging.getLogger(__name__)


def _validated(rows: List[Dict[str, Any]], validate: Callable, label: str) -> List[Dict[str, Any]]:
    """Keep rows that pass validation, logging the ones that do not."""
    valid = []
    for row in rows:
        try:
            validate(row)
        except ValidationError as e:
            logger.warning(f"Validation warning for {label} {row.get('date', 'unknown')}: {e}")
            continue
        valid.append(row)
    return valid


def fetch_prices(
    tickers: List[str],
    fetcher: Callable[[str], List[Dict[str, Any]]] = fetch_price_history
) -> Dict[str, Any]:
    """
    Fetch, normalize and validate daily closes for each ticker.

    A provider failure for one ticker is reported as a warning and the
    ticker is left out of the price map; the run continues.

    Args:
        tickers: Effective tickers to load
        fetcher: Raw provider function, ticker -> provider rows

    Returns:
        Dictionary with:
        - prices: {ticker: [{'date', 'close'}, ...]}
        - warnings: list of messages for failed tickers
    """
    prices = {}
    warnings = []

    for ticker in tickers:
        try:
            raw_rows = fetcher(ticker)
        except YFinanceError as e:
            logger.error(f"Price fetch failed for {ticker}: {e}")
            warnings.append(f"{ticker}: price fetch failed ({e})")
            continue

        series = _validated(normalize_prices(raw_rows), validate_price_row, ticker)
        try:
            check_date_monotonicity(series, ticker)
        except ValidationError as e:
            warnings.append(f"{ticker}: {e}")
            continue

        if series:
            prices[ticker] = series

    logger.info(f"Loaded prices for {len(prices)} of {len(tickers)} tickers")
    return {'prices': prices, 'warnings': warnings}


def fetch_factor_data(
    five_factor_fetcher: Callable[[], str] = fetch_five_factors_csv,
    momentum_fetcher: Callable[[], str] = fetch_momentum_csv
) -> Dict[str, Any]:
    """
    Load daily Fama-French five factors joined with momentum.

    Momentum is optional: if it cannot be loaded the result is FF5 only
    and a warning is attached.

    Returns:
        Dictionary with:
        - factors: ascending canonical factor rows
        - has_momentum: whether rows carry 'MOM'
        - warnings: degradation messages

    Raises:
        FrenchFactorsError: If the five-factor file cannot be loaded
    """
    warnings = []

    try:
        five_rows = parse_french_csv(five_factor_fetcher())
    except NormalizationError as e:
        raise FrenchFactorsError(f"Five-factor file unreadable: {e}") from e

    if not five_rows:
        raise FrenchFactorsError("Five-factor file contained no data rows")

    momentum_rows: Optional[List[Dict[str, Any]]] = None
    try:
        momentum_rows = parse_french_csv(momentum_fetcher())
    except (FrenchFactorsError, NormalizationError) as e:
        logger.warning(f"Momentum factor unavailable: {e}")
        warnings.append(f"Momentum factor unavailable, using FF5 only ({e})")

    has_momentum = bool(momentum_rows)
    factors = normalize_factor_rows(five_rows, momentum_rows if has_momentum else None)
    factors = _validated(
        factors,
        lambda row: validate_factor_row(row, include_momentum=has_momentum),
        'factors'
    )

    logger.info(f"Loaded {len(factors)} factor rows (momentum: {has_momentum})")
    return {'factors': factors, 'has_momentum': has_momentum, 'warnings': warnings}


def classify_from_sector_map(sector: str) -> Dict[str, str]:
    """Classification row for a ticker listed in the S&P 500 sector map."""
    return {
        'region': 'US',
        'sector': sector,
        'factor': factor_bucket(sector),
        'source': 'sp500_sector_map',
    }


def fetch_classifications(
    tickers: List[str],
    fetcher: Callable[[List[str]], Dict[str, Any]] = fetch_spark_classifications,
    sector_map: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Look up provider classifications for tickers.

    Tickers in the sector map (S&P 500 constituent -> GICS sector) are
    classified from it; only the rest go to the provider. A failed lookup
    is not fatal: those tickers are then left for the manual
    classifications and the failure becomes a warning.

    Returns:
        Dictionary with:
        - classifications: {ticker: {'region', 'sector', 'factor', 'source'}}
        - warnings: lookup failures
    """
    sector_map = {str(t).upper(): s for t, s in (sector_map or {}).items()}
    classifications = {
        t: classify_from_sector_map(sector_map[t]) for t in tickers if t in sector_map
    }
    remaining = [t for t in tickers if t not in classifications]
    if not remaining:
        return {'classifications': classifications, 'warnings': []}

    try:
        result = fetcher(remaining)
    except ClassificationError as e:
        logger.error(f"Classification lookup failed: {e}")
        return {
            'classifications': classifications,
            'warnings': [f"Classification lookup failed ({e})"],
        }

    classifications.update(result.get('classifications', {}))
    return {
        'classifications': classifications,
        'warnings': list(result.get('failures', [])),
    }
