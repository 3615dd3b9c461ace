# models/regression.py
"""Closed-form ordinary least squares for one independent variable.

``fit_linear_regression`` is a pure function: the same rows always produce
the same :class:`FitResult`, and a result is never modified after creation.
Consumers compare results with :func:`results_close` to decide whether a
recomputation actually changed anything.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .errors import IdenticalIndependentValuesError, NotEnoughDataError

# |Sxx| or |SSTotal| below this is treated as zero spread.
ZERO_SPREAD_EPS = 1e-9
DEFAULT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class FitResult:
    slope: float
    intercept: float
    r_squared: float
    standard_error: float
    standard_error_slope: float
    standard_error_intercept: float
    p_value_slope: float
    p_value_intercept: float
    n: int
    residuals: Tuple[float, ...]
    row_indices: Tuple[int, ...]
    x_values: Tuple[float, ...] = field(repr=False)
    regression_line: Tuple[Tuple[float, float], Tuple[float, float]] = ((0.0, 0.0), (0.0, 0.0))

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x

    @property
    def residual_points(self) -> List[Tuple[int, float, float]]:
        """(row index, x, residual) triples for a residual plot."""
        return list(zip(self.row_indices, self.x_values, self.residuals))

    def residual_for_row(self, row_index: int) -> Optional[float]:
        try:
            return self.residuals[self.row_indices.index(row_index)]
        except ValueError:
            return None

    def equation(self, x_name: str = "x", y_name: str = "y", decimals: int = 4) -> str:
        sign = "-" if self.slope < 0 else "+"
        return (f"{y_name} = {self.intercept:.{decimals}f} {sign} "
                f"{abs(self.slope):.{decimals}f} * {x_name}")


def _valid_pairs(rows: Sequence[Mapping[str, float]], x_field: str, y_field: str,
                 indices: Optional[Sequence[int]]):
    xs, ys, idx = [], [], []
    for pos, row in enumerate(rows):
        x = row.get(x_field)
        y = row.get(y_field)
        if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            continue
        if isinstance(x, bool) or isinstance(y, bool):
            continue
        if not (math.isfinite(x) and math.isfinite(y)):
            continue
        xs.append(float(x))
        ys.append(float(y))
        idx.append(int(indices[pos]) if indices is not None else pos)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float), tuple(idx)


def _two_sided_p(coef: float, se: float, dof: int) -> float:
    if dof <= 0 or not math.isfinite(se):
        return math.nan
    if se == 0.0:
        return 0.0 if coef != 0.0 else 1.0
    return float(2.0 * stats.t.sf(abs(coef / se), dof))


def fit_linear_regression(rows: Sequence[Mapping[str, float]], x_field: str, y_field: str,
                          indices: Optional[Sequence[int]] = None) -> FitResult:
    """Fit ``y = intercept + slope * x`` over rows with finite x and y.

    ``indices`` maps each entry of *rows* to its index in the original
    dataset; ``FitResult.row_indices`` reports those for the rows that took
    part in the fit, in the same order as the residuals.

    Raises NotEnoughDataError or IdenticalIndependentValuesError.
    """
    if indices is not None and len(indices) != len(rows):
        raise ValueError("indices must have the same length as rows")

    x, y, row_indices = _valid_pairs(rows, x_field, y_field, indices)
    n = int(x.size)
    if n < 2:
        raise NotEnoughDataError()

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    sum_y2 = float(np.sum(y * y))
    mean_x = sum_x / n
    mean_y = sum_y / n

    sxx = sum_x2 - (sum_x * sum_x) / n
    if abs(sxx) < ZERO_SPREAD_EPS:
        raise IdenticalIndependentValuesError()

    x_min = float(np.min(x))
    x_max = float(np.max(x))
    x_values = tuple(float(v) for v in x)

    ss_total = sum_y2 - (sum_y * sum_y) / n
    if abs(ss_total) < ZERO_SPREAD_EPS:
        # Flat data: every y equals the mean, the fit is horizontal and exact.
        return FitResult(
            slope=0.0,
            intercept=mean_y,
            r_squared=1.0,
            standard_error=0.0,
            standard_error_slope=0.0,
            standard_error_intercept=0.0,
            p_value_slope=_two_sided_p(0.0, 0.0, n - 2),
            p_value_intercept=_two_sided_p(mean_y, 0.0, n - 2),
            n=n,
            residuals=tuple(0.0 for _ in range(n)),
            row_indices=row_indices,
            x_values=x_values,
            regression_line=((x_min, mean_y), (x_max, mean_y)),
        )

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = mean_y - slope * mean_x

    residual_arr = y - (intercept + slope * x)
    ss_residual = float(np.sum(residual_arr * residual_arr))
    r_squared = 1.0 - ss_residual / ss_total

    dof = n - 2
    if dof > 0:
        standard_error = math.sqrt(ss_residual / dof)
        mse = standard_error * standard_error
        se_slope = math.sqrt(mse / sxx)
        se_intercept = math.sqrt(mse * (1.0 / n + (mean_x * mean_x) / sxx))
    else:
        # two points: the line is exact but its uncertainty is undefined
        standard_error = se_slope = se_intercept = math.nan

    return FitResult(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        standard_error=standard_error,
        standard_error_slope=se_slope,
        standard_error_intercept=se_intercept,
        p_value_slope=_two_sided_p(slope, se_slope, dof),
        p_value_intercept=_two_sided_p(intercept, se_intercept, dof),
        n=n,
        residuals=tuple(float(r) for r in residual_arr),
        row_indices=row_indices,
        x_values=x_values,
        regression_line=((x_min, intercept + slope * x_min), (x_max, intercept + slope * x_max)),
    )


_SCALAR_FIELDS = (
    "slope", "intercept", "r_squared", "standard_error",
    "standard_error_slope", "standard_error_intercept",
    "p_value_slope", "p_value_intercept",
)


def _close(a: float, b: float, tol: float) -> bool:
    if math.isnan(a) or math.isnan(b):
        return math.isnan(a) and math.isnan(b)
    if math.isinf(a) or math.isinf(b):
        return a == b
    return abs(a - b) <= tol


def _all_close(a: Iterable[float], b: Iterable[float], tol: float) -> bool:
    return all(_close(u, v, tol) for u, v in zip(a, b))


def results_close(a: Optional[FitResult], b: Optional[FitResult],
                  tol: float = DEFAULT_TOLERANCE) -> bool:
    """True when two results agree field by field within absolute *tol*."""
    if a is None or b is None:
        return a is b
    if a is b:
        return True
    if a.n != b.n or a.row_indices != b.row_indices:
        return False
    if not all(_close(getattr(a, f), getattr(b, f), tol) for f in _SCALAR_FIELDS):
        return False
    if not _all_close(a.residuals, b.residuals, tol):
        return False
    if not _all_close(a.x_values, b.x_values, tol):
        return False
    return all(_all_close(p, q, tol) for p, q in zip(a.regression_line, b.regression_line))
