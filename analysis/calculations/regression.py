"""
Factor regression utilities.
Ordinary least squares of excess returns on Fama-French factors via normal equations.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from analysis.calculations.statistics import TRADING_DAYS


FF5_COLUMNS = ['Mkt-RF', 'SMB', 'HML', 'RMW', 'CMA']
MOMENTUM_COLUMN = 'MOM'
INTERCEPT_COLUMN = 'alpha'

# Observations required beyond the number of regressors
MIN_EXTRA_OBSERVATIONS = 5


class RegressionError(Exception):
    """Raised when a regression cannot be set up."""
    pass


class SingularMatrixError(RegressionError):
    """Raised when the normal-equation matrix cannot be inverted."""
    pass


@dataclass(frozen=True)
class RegressionResult:
    """OLS estimates for one regressed series."""
    factor_names: List[str]
    coefficients: List[float]
    standard_errors: List[float]
    t_statistics: List[float]
    r_squared: float
    annualized_alpha: float
    observations: int

    def coefficient(self, name: str) -> float:
        return self.coefficients[self.factor_names.index(name)]


def factor_columns(include_momentum: bool) -> List[str]:
    """Design-matrix column names, intercept first."""
    columns = [INTERCEPT_COLUMN] + FF5_COLUMNS
    if include_momentum:
        columns.append(MOMENTUM_COLUMN)
    return columns


def invert_matrix(matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Invert a square matrix by Gauss-Jordan elimination with partial pivoting.

    At each step the row with the largest absolute value in the pivot
    column is swapped into the pivot position.

    Args:
        matrix: Square matrix

    Returns:
        Inverse as a 2-D numpy array

    Raises:
        SingularMatrixError: If a pivot is exactly zero
        RegressionError: If the matrix is not square
    """
    a = np.array(matrix, dtype=float)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise RegressionError(f"Matrix must be square, got shape {a.shape}")

    n = a.shape[0]
    augmented = np.hstack([a, np.eye(n)])

    for i in range(n):
        pivot = i
        for r in range(i + 1, n):
            if abs(augmented[r, i]) > abs(augmented[pivot, i]):
                pivot = r
        if pivot != i:
            augmented[[i, pivot]] = augmented[[pivot, i]]

        divisor = augmented[i, i]
        if divisor == 0 or math.isnan(divisor):
            raise SingularMatrixError("Singular matrix")

        augmented[i] = augmented[i] / divisor
        for r in range(n):
            if r != i:
                augmented[r] = augmented[r] - augmented[r, i] * augmented[i]

    return augmented[:, n:]


def ols(
    y: Sequence[float],
    x: Sequence[Sequence[float]],
    column_names: List[str]
) -> RegressionResult:
    """
    Fit y = X beta + e by ordinary least squares.

    beta = (X'X)^-1 X'y, R^2 = 1 - SSE/SST, sigma^2 = SSE/(n - k),
    se_i = sqrt(|inv_ii * sigma^2|), t_i = beta_i / se_i.

    The first column is treated as a daily intercept; its annualized value
    is compounded: (1 + alpha)^252 - 1.

    Args:
        y: Dependent variable
        x: Design matrix rows (first column is the constant)
        column_names: Names for the columns of x

    Returns:
        RegressionResult

    Raises:
        SingularMatrixError: If X'X is singular
        RegressionError: If dimensions do not line up
    """
    ys = np.asarray(y, dtype=float)
    xs = np.asarray(x, dtype=float)

    if xs.ndim != 2 or xs.shape[0] != ys.shape[0] or xs.shape[0] == 0:
        raise RegressionError(f"Design matrix shape {xs.shape} does not match {ys.shape[0]} observations")

    n, k = xs.shape
    if len(column_names) != k:
        raise RegressionError(f"Expected {k} column names, got {len(column_names)}")

    xtx = xs.T @ xs
    xty = xs.T @ ys
    inverse = invert_matrix(xtx)

    beta = inverse @ xty
    residuals = ys - xs @ beta
    sse = float(np.sum(residuals ** 2))
    sst = float(np.sum((ys - ys.mean()) ** 2))

    with np.errstate(divide='ignore', invalid='ignore'):
        r_squared = float(1 - np.float64(sse) / np.float64(sst))
        sigma2 = np.float64(sse) / np.float64(n - k)
        standard_errors = np.sqrt(np.abs(np.diag(inverse) * sigma2))
        t_statistics = beta / standard_errors

    return RegressionResult(
        factor_names=list(column_names),
        coefficients=[float(b) for b in beta],
        standard_errors=[float(s) for s in standard_errors],
        t_statistics=[float(t) for t in t_statistics],
        r_squared=r_squared,
        annualized_alpha=float((1 + beta[0]) ** TRADING_DAYS - 1),
        observations=n,
    )


def run_factor_regression(
    return_series: List[Dict[str, Any]],
    factor_rows_by_date: Mapping[Any, Mapping[str, Any]],
    window_days: int,
    include_momentum: bool
) -> Optional[RegressionResult]:
    """
    Regress trailing excess returns on the factor model.

    The last window_days returns are joined to factor rows by date; returns
    without a factor row are dropped. The dependent variable is return - RF.
    Missing factor values count as 0.

    Args:
        return_series: {'date', 'return'} rows in ascending order
        factor_rows_by_date: {date: {'Mkt-RF', 'SMB', ..., 'RF', 'MOM'?}}
        window_days: Trailing window length in trading days
        include_momentum: Whether to add the MOM column

    Returns:
        RegressionResult, or None when fewer than k + 5 observations align

    Raises:
        RegressionError: If window_days is not a positive integer
        SingularMatrixError: If the factor columns are collinear or constant
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise RegressionError(f"Window must be a positive integer, got {window_days!r}")

    columns = factor_columns(include_momentum)

    y = []
    x = []
    for row in return_series[-window_days:]:
        factors = factor_rows_by_date.get(row['date'])
        if not factors:
            continue
        y.append(row['return'] - (factors.get('RF') or 0.0))
        x.append([1.0] + [factors.get(c) or 0.0 for c in columns[1:]])

    if len(x) < len(columns) + MIN_EXTRA_OBSERVATIONS:
        return None

    return ols(y, x, columns)
