"""
Exposure aggregation utilities.
Pure functions for turning equity and option holdings into normalized weights.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union


class ExposureError(Exception):
    """Raised when a holding cannot be interpreted."""
    pass


@dataclass(frozen=True)
class EquityHolding:
    """Equity or ETF position held directly."""
    ticker: str
    market_value: float

    kind = 'equity'

    @property
    def effective_ticker(self) -> str:
        return self.ticker

    @property
    def exposure_value(self) -> float:
        return self.market_value


@dataclass(frozen=True)
class OptionHolding:
    """
    Option position, exposed to its underlying through delta.

    If the underlying is missing the option's own ticker is used as a proxy
    for the price series.
    """
    ticker: str
    market_value: float
    underlying: str = ''
    delta: float = 1.0
    expiration: str = ''

    kind = 'option'

    @property
    def uses_proxy_ticker(self) -> bool:
        return not self.underlying

    @property
    def effective_ticker(self) -> str:
        return self.underlying or self.ticker

    @property
    def exposure_value(self) -> float:
        return self.market_value * self.delta


Holding = Union[EquityHolding, OptionHolding]


def _as_float(value: Any) -> float:
    """Coerce user input to float, NaN when it cannot be parsed."""
    if value is None:
        return math.nan
    if isinstance(value, str) and not value.strip():
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def clamp_delta(value: Any) -> float:
    """
    Clamp an option delta to [-1, 1].

    Missing or non-finite deltas default to 1 (full exposure).
    """
    delta = _as_float(value)
    if not math.isfinite(delta):
        return 1.0
    return max(-1.0, min(1.0, delta))


def normalize_holding(raw: Union[Dict[str, Any], Holding]) -> Holding:
    """
    Build a typed holding from a loosely shaped input row.

    Args:
        raw: Dictionary with 'ticker', 'market_value' and optionally 'kind',
            'underlying', 'delta', 'expiration'. Typed holdings pass through.

    Returns:
        EquityHolding or OptionHolding

    Raises:
        ExposureError: If raw is neither a dict nor a holding
    """
    if isinstance(raw, (EquityHolding, OptionHolding)):
        return raw

    if not isinstance(raw, dict):
        raise ExposureError(f"Holding must be a dict, got {type(raw)}")

    ticker = str(raw.get('ticker') or '').upper().strip()
    market_value = _as_float(raw.get('market_value', raw.get('marketValue')))
    kind = str(raw.get('kind') or 'equity').lower().strip()

    if kind != 'option':
        return EquityHolding(ticker=ticker, market_value=market_value)

    return OptionHolding(
        ticker=ticker,
        market_value=market_value,
        underlying=str(raw.get('underlying') or '').upper().strip(),
        delta=clamp_delta(raw.get('delta')),
        expiration=str(raw.get('expiration') or '').strip(),
    )


def is_valid_holding(holding: Holding) -> bool:
    """Check that a holding can take part in exposure computation."""
    if not holding.effective_ticker:
        return False
    if not math.isfinite(holding.market_value) or holding.market_value <= 0:
        return False
    return math.isfinite(holding.exposure_value)


def normalize_holdings(raw_holdings: Iterable[Union[Dict[str, Any], Holding]]) -> List[Holding]:
    """
    Normalize raw holdings and drop malformed ones.

    Holdings with an empty ticker or a market value that is not a finite
    positive number are silently excluded.

    Args:
        raw_holdings: Iterable of holding dicts or typed holdings

    Returns:
        List of valid typed holdings in input order
    """
    holdings = (normalize_holding(raw) for raw in raw_holdings)
    return [h for h in holdings if is_valid_holding(h)]


def aggregate_exposure(holdings: Iterable[Union[Dict[str, Any], Holding]]) -> Dict[str, Any]:
    """
    Aggregate signed exposure by effective ticker and normalize by gross exposure.

    Equity and option exposure on the same underlying net out. Weights are
    signed fractions of gross exposure, so the absolute weights sum to 1
    unless gross exposure is zero, in which case every weight is zero.

    Args:
        holdings: Holding dicts or typed holdings (invalid ones are dropped)

    Returns:
        Dictionary with:
        - weights: {effective_ticker: signed weight}
        - tickers: effective tickers in first-seen order
        - gross_exposure: sum of absolute aggregated exposure
    """
    by_ticker: Dict[str, float] = {}
    for holding in normalize_holdings(holdings):
        ticker = holding.effective_ticker
        by_ticker[ticker] = by_ticker.get(ticker, 0.0) + holding.exposure_value

    gross = sum(abs(v) for v in by_ticker.values())

    weights = {
        ticker: (value / gross if gross else 0.0)
        for ticker, value in by_ticker.items()
    }

    return {
        'weights': weights,
        'tickers': list(weights.keys()),
        'gross_exposure': gross,
    }
