# viewmodel/session_vm.py
from __future__ import annotations

import contextlib
import typing as _typing

from PySide6.QtCore import QObject, Signal

from models import (
    DEFAULT_TOLERANCE,
    ErrorCode,
    FitResult,
    IdenticalFieldSelectionError,
    MissingFieldSelectionError,
    RegressionError,
    SessionSnapshot,
    SessionState,
    TAB_ANALYSIS,
    TAB_SIMULATION,
    format_report,
)
from models.viewport import DEFAULT_PADDING
from .logging_helpers import log_exception, log_message
from .recompute import FitStatus, RecomputeScheduler

DEFAULT_ZOOM_STEP = 1.25


class SessionViewModel(QObject):
    """
    Mutation entry point for one open file.

    Views read :meth:`snapshot` (or the signals' payloads) and call the
    methods below; they never touch the underlying :class:`SessionState`.
    Rejected operations return False and emit ``error_occurred`` instead of
    raising.
    """

    data_changed = Signal()                 # rows or columns changed
    selection_changed = Signal()            # inclusion or highlight changed
    viewport_changed = Signal(object)       # ViewportState dict
    fields_changed = Signal(object, object) # independent, dependent
    fit_changed = Signal(object)            # FitResult or None
    status_changed = Signal(str)
    error_occurred = Signal(str, str)       # error code, message
    log_message = Signal(str)

    def __init__(self, state: SessionState, tolerance: float = DEFAULT_TOLERANCE,
                 padding: float = DEFAULT_PADDING, zoom_step: float = DEFAULT_ZOOM_STEP,
                 parent=None):
        super().__init__(parent)
        self.state = state
        self.padding = float(padding)
        self.zoom_step = float(zoom_step)
        self.simulation: _typing.Optional["SessionViewModel"] = None
        self.scheduler = RecomputeScheduler(state, tolerance=tolerance, parent=self)
        self.scheduler.fit_changed.connect(self.fit_changed.emit)
        self.scheduler.status_changed.connect(self.status_changed.emit)
        self.scheduler.fit_failed.connect(self.error_occurred.emit)

    def start(self) -> FitStatus:
        """Run the first fit for a state restored with a fit already requested.

        Call after connecting listeners so a failing restored fit is reported.
        """
        if self.state.is_fitted:
            return self.scheduler.invalidate()
        return self.scheduler.status

    # --------------------------
    # Read access
    # --------------------------
    @property
    def id(self) -> str:
        return self.state.id

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def fit_result(self) -> _typing.Optional[FitResult]:
        return self.scheduler.fit_result

    @property
    def status(self) -> FitStatus:
        return self.scheduler.status

    @property
    def error_code(self) -> _typing.Optional[ErrorCode]:
        return self.scheduler.error_code

    @property
    def inclusion(self) -> frozenset:
        return frozenset(self.state.inclusion)

    @property
    def highlight(self) -> frozenset:
        return frozenset(self.state.highlight)

    def snapshot(self) -> SessionSnapshot:
        code = self.scheduler.error_code
        return self.state.snapshot(
            fit_result=self.scheduler.fit_result,
            status=self.scheduler.status.value,
            error_code=code.value if code is not None else None,
            has_simulation=self.simulation is not None,
        )

    def report(self) -> _typing.Optional[str]:
        result = self.scheduler.fit_result
        if result is None:
            return None
        return format_report(result, self.state.independent_field or "x",
                             self.state.dependent_field or "y",
                             title=f"Linear Regression Analysis Report: {self.state.name}")

    # --------------------------
    # Helpers
    # --------------------------
    def _report(self, exc: RegressionError) -> bool:
        log_message(f"{self.state.name}: {exc}", vm=self)
        self.error_occurred.emit(exc.code.value, str(exc))
        return False

    @contextlib.contextmanager
    def _guarded(self, context: str):
        try:
            yield
        except RegressionError:
            raise
        except Exception as exc:
            log_exception(f"{context} failed for '{self.state.name}'", exc, vm=self)
            raise

    def batch(self):
        """Apply several edits with a single recompute at the end."""
        return self.scheduler.deferred()

    # --------------------------
    # Fit control
    # --------------------------
    def set_fields(self, independent: _typing.Optional[str] = None,
                   dependent: _typing.Optional[str] = None) -> bool:
        try:
            with self._guarded("set_fields"):
                changed = self.state.set_fields(independent, dependent)
        except RegressionError as exc:
            return self._report(exc)
        if changed:
            self.fields_changed.emit(self.state.independent_field, self.state.dependent_field)
            self.scheduler.invalidate()
        return True

    def plot(self) -> bool:
        """Request a fit for the chosen fields (the "Plot Data" action)."""
        x, y = self.state.independent_field, self.state.dependent_field
        if not self.state.row_count or not x or not y:
            return self._report(MissingFieldSelectionError())
        if x == y:
            return self._report(IdenticalFieldSelectionError())
        self.state.is_fitted = True
        status = self.scheduler.invalidate()
        if status == FitStatus.FITTED and self.state.viewport.is_auto():
            # first plot starts from the data-fitted view
            self.state.viewport.reset(self.state.included_bounds(self.padding))
            self.viewport_changed.emit(self.state.viewport.to_dict())
        return status == FitStatus.FITTED

    def clear_fit(self) -> None:
        self.state.is_fitted = False
        self.scheduler.invalidate()

    # --------------------------
    # Inclusion set (changes the fit)
    # --------------------------
    def toggle_row(self, index: int, included: bool) -> bool:
        try:
            changed = self.state.toggle_row(index, included)
        except RegressionError as exc:
            return self._report(exc)
        if changed:
            self.selection_changed.emit()
            self.scheduler.invalidate()
        return True

    def select_all(self) -> bool:
        if self.state.select_all():
            self.selection_changed.emit()
            self.scheduler.invalidate()
        return True

    def select_none(self) -> bool:
        if self.state.select_none():
            self.selection_changed.emit()
            self.scheduler.invalidate()
        return True

    # --------------------------
    # Table edits
    # --------------------------
    def delete_rows(self, indices: _typing.Iterable[int]) -> bool:
        try:
            with self._guarded("delete_rows"):
                removed = self.state.delete_rows(list(indices))
        except RegressionError as exc:
            return self._report(exc)
        if removed:
            self.data_changed.emit()
            self.selection_changed.emit()
            self.scheduler.invalidate()
        return True

    def delete_selected_rows(self) -> bool:
        """Delete the rows checked in the table; the inclusion set ends up empty."""
        selected = sorted(self.state.inclusion)
        if not selected:
            return True
        return self.delete_rows(selected)

    def add_row(self, values: _typing.Optional[dict] = None) -> int:
        index = self.state.add_row(values)
        self.data_changed.emit()
        self.selection_changed.emit()
        self.scheduler.invalidate()
        return index

    def set_cell(self, row: int, column: str, value) -> bool:
        try:
            self.state.set_cell(row, column, value)
        except RegressionError as exc:
            return self._report(exc)
        self.data_changed.emit()
        if self.state.affects_fit(int(row), column):
            self.scheduler.invalidate()
        return True

    def add_column(self, name: str, fill: float = 0.0) -> bool:
        try:
            self.state.add_column(name, fill)
        except RegressionError as exc:
            return self._report(exc)
        self.data_changed.emit()
        return True

    def delete_column(self, name: str) -> bool:
        fields = (self.state.independent_field, self.state.dependent_field)
        try:
            self.state.delete_column(name)
        except RegressionError as exc:
            return self._report(exc)
        self.data_changed.emit()
        if name in fields:
            self.fields_changed.emit(self.state.independent_field, self.state.dependent_field)
            self.scheduler.invalidate()
        return True

    def rename_column(self, old: str, new: str) -> bool:
        fields = (self.state.independent_field, self.state.dependent_field)
        try:
            self.state.rename_column(old, new)
        except RegressionError as exc:
            return self._report(exc)
        self.data_changed.emit()
        if old in fields and old != new:
            self.fields_changed.emit(self.state.independent_field, self.state.dependent_field)
            self.scheduler.invalidate()
        return True

    # --------------------------
    # Highlight set (never changes the fit)
    # --------------------------
    def select_box(self, x0: float, y0: float, x1: float, y1: float) -> _typing.List[int]:
        """Union the rows inside the dragged rectangle into the highlight set."""
        hits = self.state.rows_in_box(x0, y0, x1, y1)
        if self.state.highlight_rows(hits):
            self.selection_changed.emit()
        return hits

    def highlight_rows(self, indices: _typing.Iterable[int]) -> bool:
        try:
            changed = self.state.highlight_rows(indices)
        except RegressionError as exc:
            return self._report(exc)
        if changed:
            self.selection_changed.emit()
        return True

    def clear_highlight(self) -> bool:
        if self.state.clear_highlight():
            self.selection_changed.emit()
        return True

    # --------------------------
    # Viewport
    # --------------------------
    def data_bounds(self):
        return self.state.included_bounds(self.padding)

    def _viewport_updated(self) -> None:
        self.viewport_changed.emit(self.state.viewport.to_dict())

    def pan_by(self, dx: float, dy: float) -> bool:
        if self.state.viewport.pan_by(dx, dy, self.data_bounds()):
            self._viewport_updated()
            return True
        return False

    def zoom_by(self, factor: float, center: _typing.Optional[_typing.Tuple[float, float]] = None) -> bool:
        if self.state.viewport.zoom_by(factor, center, self.data_bounds()):
            self._viewport_updated()
            return True
        return False

    def zoom_in(self) -> bool:
        return self.zoom_by(1.0 / self.zoom_step)

    def zoom_out(self) -> bool:
        return self.zoom_by(self.zoom_step)

    def set_domains(self, x_domain=None, y_domain=None) -> bool:
        try:
            self.state.viewport.set_domains(x_domain, y_domain)
        except (TypeError, ValueError) as exc:
            log_message(f"Ignoring invalid domain: {exc}", vm=self)
            return False
        self._viewport_updated()
        return True

    def reset_view(self) -> None:
        self.state.viewport.reset(self.data_bounds())
        self._viewport_updated()

    def set_tool(self, tool) -> bool:
        try:
            self.state.viewport.set_tool(tool)
        except ValueError as exc:
            log_message(str(exc), vm=self)
            return False
        self._viewport_updated()
        return True

    def toggle_tool(self, tool) -> _typing.Optional[str]:
        try:
            active = self.state.viewport.toggle_tool(tool)
        except ValueError as exc:
            log_message(str(exc), vm=self)
            return self.state.viewport.active_tool
        self._viewport_updated()
        return active

    # --------------------------
    # Tabs
    # --------------------------
    def set_active_tab(self, tab: str) -> bool:
        if tab not in (TAB_ANALYSIS, TAB_SIMULATION):
            log_message(f"Unknown tab '{tab}'", vm=self)
            return False
        self.state.active_tab = tab
        return True
