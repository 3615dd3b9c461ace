# viewmodel/recompute.py
"""Recomputation scheduler: keeps a session's fit consistent with its inputs.

States
------
IDLE    no fit requested, or inputs incomplete
STALE   inputs changed, recompute pending
FITTED  a valid FitResult is held
FAILED  the last attempt produced a typed failure; no result is held

Every input change goes through :meth:`RecomputeScheduler.invalidate`, which
recomputes synchronously from one snapshot of the session. A new result
that matches the held one within tolerance is discarded so the held object
(and any view memoized on it) stays the same.
"""
from __future__ import annotations

import contextlib
from enum import Enum
from typing import Optional

from PySide6.QtCore import QObject, Signal

from models import (
    DEFAULT_TOLERANCE,
    ErrorCode,
    FitResult,
    IdenticalFieldSelectionError,
    MissingFieldSelectionError,
    NotEnoughDataError,
    RegressionError,
    SessionState,
    fit_linear_regression,
    results_close,
)
from .logging_helpers import log_message, safe_emit


class FitStatus(str, Enum):
    IDLE = "idle"
    STALE = "stale"
    FITTED = "fitted"
    FAILED = "failed"


class RecomputeScheduler(QObject):
    """Dirty-flag scheduler for one session's regression."""

    fit_changed = Signal(object)          # new FitResult, or None when cleared
    fit_failed = Signal(str, str)         # error code, message
    status_changed = Signal(str)          # FitStatus value

    def __init__(self, state: SessionState, tolerance: float = DEFAULT_TOLERANCE, parent=None):
        super().__init__(parent)
        self.state = state
        self.tolerance = float(tolerance)
        self._status = FitStatus.IDLE
        self._fit_result: Optional[FitResult] = None
        self._error_code: Optional[ErrorCode] = None
        self._error_message: Optional[str] = None
        self._defer_depth = 0
        self._pending = False
        self.kernel_runs = 0

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------
    @property
    def status(self) -> FitStatus:
        return self._status

    @property
    def fit_result(self) -> Optional[FitResult]:
        return self._fit_result

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self._error_code

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    def invalidate(self) -> FitStatus:
        """Mark the fit stale and recompute unless inside :meth:`deferred`."""
        self._set_status(FitStatus.STALE)
        if self._defer_depth > 0:
            self._pending = True
            return self._status
        return self.recompute()

    @contextlib.contextmanager
    def deferred(self):
        """Coalesce invalidations (e.g. during a drag) into one recompute on exit."""
        self._defer_depth += 1
        try:
            yield self
        finally:
            self._defer_depth -= 1
            if self._defer_depth == 0 and self._pending:
                self._pending = False
                self.recompute()

    def recompute(self) -> FitStatus:
        inp = self.state.fit_input()

        # cheap precondition checks before touching the kernel
        if not inp.is_fitted:
            self._clear(FitStatus.IDLE, None)
            return self._status
        if not inp.x_field or not inp.y_field:
            self._clear(FitStatus.IDLE, MissingFieldSelectionError())
            return self._status
        try:
            if inp.x_field == inp.y_field:
                raise IdenticalFieldSelectionError()
            if len(inp.rows) < 2:
                raise NotEnoughDataError()
            self.kernel_runs += 1
            result = fit_linear_regression(inp.rows, inp.x_field, inp.y_field, indices=inp.indices)
        except RegressionError as exc:
            self._clear(FitStatus.FAILED, exc)
            return self._status

        self._error_code = None
        self._error_message = None
        if self._fit_result is not None and results_close(self._fit_result, result, self.tolerance):
            self._set_status(FitStatus.FITTED)
            return self._status

        self._fit_result = result
        self._set_status(FitStatus.FITTED)
        safe_emit(self.fit_changed, result, vm=self, signal_name="fit_changed")
        return self._status

    def reset(self) -> None:
        """Drop any held result and go back to IDLE."""
        self._clear(FitStatus.IDLE, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _clear(self, status: FitStatus, error: Optional[RegressionError]) -> None:
        had_result = self._fit_result is not None
        self._fit_result = None
        if error is not None:
            code_changed = self._error_code != error.code
            self._error_code = error.code
            self._error_message = str(error)
        else:
            code_changed = False
            self._error_code = None
            self._error_message = None
        self._set_status(status)
        if had_result:
            safe_emit(self.fit_changed, None, vm=self, signal_name="fit_changed")
        if error is not None and (code_changed or had_result):
            log_message(f"Fit cleared for '{self.state.name}': {error}", vm=self.parent())
            safe_emit(self.fit_failed, error.code.value, str(error), vm=self, signal_name="fit_failed")

    def _set_status(self, status: FitStatus) -> None:
        if status != self._status:
            self._status = status
            self.status_changed.emit(status.value)
