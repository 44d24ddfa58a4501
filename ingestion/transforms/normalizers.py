"""
Normalizers for transforming provider data to canonical shape.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional


# Keep roughly six years of trading days per ticker
MAX_PRICE_OBSERVATIONS = 756 * 2

FACTOR_COLUMNS = ['Mkt-RF', 'SMB', 'HML', 'RMW', 'CMA', 'RF']

# French library placeholder for missing observations
MISSING_SENTINELS = {-99.99, -999.0}

_FRENCH_DATE = re.compile(r'^\d{8}$')


class NormalizationError(Exception):
    """Raised when provider data cannot be put into canonical shape."""
    pass


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def normalize_prices(
    raw_rows: List[Dict[str, Any]],
    *,
    max_observations: int = MAX_PRICE_OBSERVATIONS
) -> List[Dict[str, Any]]:
    """
    Transform provider-native price rows to a canonical close series.

    Minimal normalization:
    - Date strings to date objects
    - Adjusted close preferred over close
    - Rows without a usable positive close dropped
    - Deduplication by date (keep last to handle corrections)
    - Ascending order, trimmed to the most recent max_observations

    Args:
        raw_rows: List of provider-specific price dictionaries
        max_observations: Maximum number of rows to keep

    Returns:
        List of {'date', 'close'} dictionaries
    """
    if not raw_rows:
        return []

    by_date: Dict[date, float] = {}
    for raw in raw_rows:
        close = raw.get('Adj Close', raw.get('Close'))
        if close is None:
            continue
        close = float(close)
        if not math.isfinite(close) or close <= 0:
            continue
        by_date[_parse_date(raw.get('Date'))] = close

    series = [{'date': d, 'close': by_date[d]} for d in sorted(by_date)]
    return series[-max_observations:]


def parse_french_csv(text: str) -> List[Dict[str, Any]]:
    """
    Parse the first data block of a French data library CSV.

    The files open with free-text notes, then a header line starting with
    a comma, then rows keyed by YYYYMMDD. The block ends at the first line
    that is not a data row.

    Args:
        text: Raw CSV text

    Returns:
        List of {'Date': 'YYYYMMDD', <column>: float (percent)}

    Raises:
        NormalizationError: If no header line is found
    """
    columns: Optional[List[str]] = None
    rows = []

    for line in text.splitlines():
        fields = [f.strip() for f in line.split(',')]

        if columns is None:
            if len(fields) > 1 and fields[0] == '' and all(fields[1:]):
                columns = fields[1:]
            continue

        if not _FRENCH_DATE.match(fields[0]):
            if rows:
                break
            continue

        row = {'Date': fields[0]}
        for name, value in zip(columns, fields[1:]):
            row[name] = float(value) if value else None
        rows.append(row)

    if columns is None:
        raise NormalizationError("No header line found in French data file")

    return rows


def _to_fraction(value: Optional[float]) -> Optional[float]:
    if value is None or value in MISSING_SENTINELS:
        return None
    return value / 100.0


def normalize_factor_rows(
    five_factor_rows: List[Dict[str, Any]],
    momentum_rows: Optional[List[Dict[str, Any]]] = None
) -> List[Dict[str, Any]]:
    """
    Convert parsed French rows to canonical factor rows.

    Normalization justified: the library publishes percentages, the
    regression works in fractional returns. Momentum is joined by date
    under the 'MOM' key when available.

    Args:
        five_factor_rows: Parsed 5-factor rows
        momentum_rows: Parsed momentum rows (column 'Mom'), optional

    Returns:
        Ascending list of {'date', 'Mkt-RF', 'SMB', 'HML', 'RMW', 'CMA', 'RF', 'MOM'?}
    """
    momentum_by_date = {}
    for raw in momentum_rows or []:
        value = raw.get('Mom', raw.get('MOM'))
        momentum_by_date[raw['Date']] = _to_fraction(value)

    factors = []
    for raw in five_factor_rows:
        row = {'date': datetime.strptime(raw['Date'], '%Y%m%d').date()}
        for column in FACTOR_COLUMNS:
            row[column] = _to_fraction(raw.get(column))
        if momentum_rows is not None:
            row['MOM'] = momentum_by_date.get(raw['Date'])
        factors.append(row)

    factors.sort(key=lambda r: r['date'])
    return factors
