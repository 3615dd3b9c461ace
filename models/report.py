# models/report.py
"""Plain-text summary of a regression, as shown in the summary panel."""
import math
from typing import Optional

from .regression import FitResult


def _fmt(value: float, decimals: int = 6) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:.{decimals}f}"


def format_report(result: FitResult, x_name: str = "x", y_name: str = "y",
                  title: Optional[str] = None) -> str:
    lines = [
        title or "Linear Regression Analysis Report",
        "===================================",
        "",
        f"Observations: {result.n}",
        "",
        "Summary Statistics:",
        f"R-Squared: {_fmt(result.r_squared)}",
        f"Standard Error: {_fmt(result.standard_error)}",
        "",
        "Coefficients:",
        f"Slope (b1): {_fmt(result.slope)} "
        f"(SE: {_fmt(result.standard_error_slope)}, p-value: {_fmt(result.p_value_slope)})",
        f"Intercept (b0): {_fmt(result.intercept)} "
        f"(SE: {_fmt(result.standard_error_intercept)}, p-value: {_fmt(result.p_value_intercept)})",
        "",
        f"Regression Equation: {result.equation(x_name, y_name)}",
    ]
    return "\n".join(lines)
