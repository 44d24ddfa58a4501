"""
Ticker classification - region, sector and factor bucket per ticker.
Merges hand-maintained classifications with provider lookups.
"""

from typing import Any, Dict, Iterable, List, Mapping

from analysis.calculations.exposure import Holding


UNKNOWN = 'Unknown'
UNASSIGNED = 'Unassigned'

# GICS sector -> coarse factor bucket
SECTOR_BUCKETS = {
    'Information Technology': 'Tech/Growth',
    'Communication Services': 'Tech/Growth',
    'Energy': 'Cyclicals/Real Assets',
    'Materials': 'Cyclicals/Real Assets',
    'Industrials': 'Cyclicals/Real Assets',
    'Utilities': 'Defensive/Quality',
    'Consumer Staples': 'Defensive/Quality',
    'Health Care': 'Defensive/Quality',
    'Financials': 'Financials',
    'Real Estate': 'Rate Sensitive',
}


def unknown_classification() -> Dict[str, str]:
    return {'region': UNKNOWN, 'sector': UNKNOWN, 'factor': UNASSIGNED}


def factor_bucket(sector: Any) -> str:
    """
    Map a sector name to a factor bucket.

    Unmapped sectors are their own bucket; empty or unknown sectors are
    Unassigned.
    """
    name = str(sector or '').strip()
    if not name or name == UNKNOWN:
        return UNASSIGNED
    return SECTOR_BUCKETS.get(name, name)


def merge_classifications(
    manual: Mapping[str, Mapping[str, str]],
    fetched: Mapping[str, Mapping[str, str]]
) -> Dict[str, Dict[str, str]]:
    """
    Overlay fetched classifications onto manual ones.

    Manual values always win; fetched values only fill fields that are
    missing, Unknown or Unassigned. A fetched row without a factor gets
    the bucket of its sector. Inputs are not modified.

    Args:
        manual: {ticker: {'region', 'sector', 'factor'}}
        fetched: {ticker: {'region', 'sector', 'factor'?}}

    Returns:
        New {ticker: classification} dictionary keyed by uppercase ticker
    """
    merged = {t.upper(): {**unknown_classification(), **dict(c)} for t, c in manual.items()}

    for ticker, cls in fetched.items():
        key = ticker.upper()
        current = dict(merged.get(key, unknown_classification()))

        if not current.get('region') or current['region'] == UNKNOWN:
            current['region'] = cls.get('region') or UNKNOWN
        if not current.get('sector') or current['sector'] == UNKNOWN:
            current['sector'] = cls.get('sector') or UNKNOWN
        if not current.get('factor') or current['factor'] == UNASSIGNED:
            current['factor'] = cls.get('factor') or factor_bucket(cls.get('sector'))

        merged[key] = current

    return merged


def classify_holdings(
    holdings: Iterable[Holding],
    classifications: Mapping[str, Mapping[str, str]]
) -> List[Dict[str, Any]]:
    """
    Attach classification fields to each holding's effective ticker.

    Returns:
        List of {'ticker', 'kind', 'market_value', 'region', 'sector', 'factor'}
    """
    rows = []
    for holding in holdings:
        ticker = holding.effective_ticker
        cls = classifications.get(ticker) or unknown_classification()
        rows.append({
            'ticker': ticker,
            'kind': holding.kind,
            'market_value': holding.market_value,
            'region': cls.get('region') or UNKNOWN,
            'sector': cls.get('sector') or UNKNOWN,
            'factor': cls.get('factor') or UNASSIGNED,
        })
    return rows
