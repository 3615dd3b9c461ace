# models/__init__.py

"""Public API for the models package.

Pure, Qt-free state and statistics for the regression explorer:

  - fit_linear_regression(rows, x, y) -> FitResult - the OLS kernel
  - results_close(a, b, tol) - field-by-field tolerance comparison
  - Dataset - ordered numeric rows plus column names
  - SessionState - one open file: fields, inclusion/highlight sets, viewport
  - ViewportState - axis domains and active plot tool
  - error types carrying a stable ErrorCode
"""

from .dataset import Dataset, to_number, is_finite_number
from .errors import (
    ErrorCode,
    ERROR_MESSAGES,
    message_for,
    RegressionError,
    NotEnoughDataError,
    IdenticalIndependentValuesError,
    IdenticalFieldSelectionError,
    MissingFieldSelectionError,
    InvalidColumnOperationError,
    InvalidRowError,
)
from .regression import FitResult, fit_linear_regression, results_close, DEFAULT_TOLERANCE
from .report import format_report
from .session_state import (
    SessionState,
    SessionSnapshot,
    FitInput,
    reindex_after_delete,
    TAB_ANALYSIS,
    TAB_SIMULATION,
)
from .viewport import (
    ViewportState,
    AUTO,
    TOOL_PAN,
    TOOL_SELECT,
    padded_domain,
    rows_in_box,
)

__all__ = [
    "Dataset",
    "to_number",
    "is_finite_number",
    "ErrorCode",
    "ERROR_MESSAGES",
    "message_for",
    "RegressionError",
    "NotEnoughDataError",
    "IdenticalIndependentValuesError",
    "IdenticalFieldSelectionError",
    "MissingFieldSelectionError",
    "InvalidColumnOperationError",
    "InvalidRowError",
    "FitResult",
    "fit_linear_regression",
    "results_close",
    "DEFAULT_TOLERANCE",
    "format_report",
    "SessionState",
    "SessionSnapshot",
    "FitInput",
    "reindex_after_delete",
    "TAB_ANALYSIS",
    "TAB_SIMULATION",
    "ViewportState",
    "AUTO",
    "TOOL_PAN",
    "TOOL_SELECT",
    "padded_domain",
    "rows_in_box",
]
