# models/errors.py
"""Typed failures raised by the regression engine.

Every failure carries a stable :class:`ErrorCode` so the presentation layer
can translate it into a localized message without parsing exception text.
"""
from enum import Enum


class ErrorCode(str, Enum):
    NOT_ENOUGH_DATA = "NOT_ENOUGH_DATA"
    IDENTICAL_X_VALUES = "IDENTICAL_X_VALUES"
    SAME_VARIABLES = "SAME_VARIABLES"
    MISSING_VARIABLES = "MISSING_VARIABLES"
    INVALID_COLUMN_OPERATION = "INVALID_COLUMN_OPERATION"
    INVALID_ROW = "INVALID_ROW"
    LOAD_FAILED = "LOAD_FAILED"
    IMPORT_FAILED = "IMPORT_FAILED"
    SAVE_FAILED = "SAVE_FAILED"


# English defaults; a UI may swap these for its own translations.
ERROR_MESSAGES = {
    ErrorCode.NOT_ENOUGH_DATA: "At least two rows with numeric values are needed for a regression.",
    ErrorCode.IDENTICAL_X_VALUES: "All independent variable values are identical; the slope is undefined.",
    ErrorCode.SAME_VARIABLES: "Independent and dependent variables cannot be the same.",
    ErrorCode.MISSING_VARIABLES: "Please select variables before plotting.",
    ErrorCode.INVALID_COLUMN_OPERATION: "Invalid column operation.",
    ErrorCode.INVALID_ROW: "Row index out of range.",
    ErrorCode.LOAD_FAILED: "Failed to parse CSV file. Please check its format.",
    ErrorCode.IMPORT_FAILED: "Could not import the session snapshot.",
    ErrorCode.SAVE_FAILED: "Could not write the file.",
}


def message_for(code) -> str:
    """Return the default user-facing message for *code*."""
    try:
        return ERROR_MESSAGES[ErrorCode(code)]
    except ValueError:
        return f"Analysis failed: {code}"


class RegressionError(Exception):
    """Base class for recoverable engine failures."""

    code = ErrorCode.NOT_ENOUGH_DATA

    def __init__(self, message=None):
        super().__init__(message or message_for(self.code))


class NotEnoughDataError(RegressionError):
    """Fewer than two rows hold finite values in both fields."""
    code = ErrorCode.NOT_ENOUGH_DATA


class IdenticalIndependentValuesError(RegressionError):
    """The independent values have (numerically) zero spread."""
    code = ErrorCode.IDENTICAL_X_VALUES


class IdenticalFieldSelectionError(RegressionError):
    """Independent and dependent field are the same column."""
    code = ErrorCode.SAME_VARIABLES


class MissingFieldSelectionError(RegressionError):
    """One of the two fields has not been chosen."""
    code = ErrorCode.MISSING_VARIABLES


class InvalidColumnOperationError(RegressionError):
    """Column add/rename/delete rejected (empty, duplicate or unknown name)."""
    code = ErrorCode.INVALID_COLUMN_OPERATION


class InvalidRowError(RegressionError, IndexError):
    """A row index does not exist in the dataset."""
    code = ErrorCode.INVALID_ROW
