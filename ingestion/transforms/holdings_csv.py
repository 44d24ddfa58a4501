"""
Holdings CSV import - raw CSV text or file to raw holding dictionaries.
Output feeds analysis.calculations.exposure.normalize_holdings.
"""

import io
import math
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd


OPTIONAL_COLUMNS = ['kind', 'underlying', 'delta', 'expiration']


class HoldingsCSVError(Exception):
    """Raised when a holdings CSV cannot be interpreted."""
    pass


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ''
    return str(value).strip()


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float('nan')


def read_holdings_frame(source: Union[str, Path]) -> pd.DataFrame:
    """
    Read a holdings CSV into a DataFrame with lowercase column names.

    Args:
        source: Path to a CSV file, or the CSV text itself

    Returns:
        DataFrame with stripped, lowercased headers (all cells as strings)

    Raises:
        HoldingsCSVError: If the file is missing or unparseable
    """
    try:
        if isinstance(source, Path) or (isinstance(source, str) and '\n' not in source):
            frame = pd.read_csv(source, dtype=str, skipinitialspace=True)
        else:
            frame = pd.read_csv(io.StringIO(source.strip()), dtype=str, skipinitialspace=True)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise HoldingsCSVError(f"Cannot read holdings CSV: {e}") from e

    frame.columns = [str(c).strip().lower() for c in frame.columns]
    return frame


def parse_holdings_csv(source: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Parse a holdings CSV into raw holding dictionaries.

    Requires a 'ticker' column and either 'market_value' or 'shares' plus
    'price'. Rows with an empty ticker or a non-finite or non-positive
    market value are dropped.

    Args:
        source: Path to a CSV file, or the CSV text itself

    Returns:
        List of {'ticker', 'market_value', 'kind', 'underlying', 'delta', 'expiration'}

    Raises:
        HoldingsCSVError: If required columns are absent
    """
    frame = read_holdings_frame(source)
    columns = set(frame.columns)

    if 'ticker' not in columns:
        raise HoldingsCSVError("Holdings CSV needs a 'ticker' column")

    has_market_value = 'market_value' in columns
    if not has_market_value and not {'shares', 'price'} <= columns:
        raise HoldingsCSVError(
            "Holdings CSV needs 'market_value' or both 'shares' and 'price' columns"
        )

    holdings = []
    for record in frame.to_dict(orient='records'):
        ticker = _text(record.get('ticker')).upper()

        if has_market_value:
            market_value = _number(record.get('market_value'))
        else:
            market_value = _number(record.get('shares')) * _number(record.get('price'))

        if not ticker or not math.isfinite(market_value) or market_value <= 0:
            continue

        kind = 'option' if _text(record.get('kind')).lower() == 'option' else 'equity'
        holdings.append({
            'ticker': ticker,
            'market_value': market_value,
            'kind': kind,
            'underlying': _text(record.get('underlying')).upper(),
            'delta': _number(record.get('delta')),
            'expiration': _text(record.get('expiration')),
        })

    return holdings
