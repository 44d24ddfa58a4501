"""
Core validators for canonical data rows.
Pure functions - no IO, network, or side effects.
"""

import math
from datetime import date
from typing import Dict, Any, List, Optional

from ingestion.transforms.normalizers import FACTOR_COLUMNS


class ValidationError(ValueError):
    """Raised when data validation fails."""
    pass


def validate_price_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical price row.

    Args:
        row: Dictionary with 'date' and 'close'

    Raises:
        ValidationError: If validation fails
    """
    missing = {'date', 'close'} - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    if not isinstance(row['date'], date):
        raise ValidationError(f"date must be date, got {type(row['date'])}")

    close = row['close']
    if not isinstance(close, (int, float)):
        raise ValidationError(f"close must be numeric, got {type(close)}")

    if not math.isfinite(close):
        raise ValidationError(f"close must be finite, got {close}")

    if close <= 0:
        raise ValidationError(f"close must be positive, got {close}")


def validate_factor_row(row: Dict[str, Any], include_momentum: bool = False) -> None:
    """
    Validate a canonical factor row.

    Factor values may be None (missing observation) but never non-finite.

    Args:
        row: Dictionary with 'date' and factor columns
        include_momentum: Whether 'MOM' must be present

    Raises:
        ValidationError: If validation fails
    """
    required = {'date', *FACTOR_COLUMNS}
    if include_momentum:
        required.add('MOM')

    missing = required - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    if not isinstance(row['date'], date):
        raise ValidationError(f"date must be date, got {type(row['date'])}")

    for field in required - {'date'}:
        value = row[field]
        if value is None:
            continue
        if not isinstance(value, (int, float)):
            raise ValidationError(f"{field} must be numeric, got {type(value)}")
        if not math.isfinite(value):
            raise ValidationError(f"{field} must be finite, got {value}")


def check_date_monotonicity(rows: List[Dict[str, Any]], label: Optional[str] = None) -> None:
    """
    Check that dates are strictly increasing.

    Args:
        rows: Rows with a 'date' field, in series order
        label: Series name used in error messages

    Raises:
        ValidationError: If dates repeat or go backwards
    """
    name = label or 'series'
    for i in range(1, len(rows)):
        previous, current = rows[i - 1]['date'], rows[i]['date']
        if current <= previous:
            raise ValidationError(
                f"{name} dates not monotonic: {previous} >= {current}"
            )
