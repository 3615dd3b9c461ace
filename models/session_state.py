# models/session_state.py
import bisect
import logging
import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from .dataset import Dataset
from .errors import InvalidColumnOperationError, InvalidRowError
from .regression import FitResult
from .viewport import DEFAULT_PADDING, Bounds, ViewportState, padded_domain, rows_in_box

logger = logging.getLogger(__name__)

TAB_ANALYSIS = "analysis"
TAB_SIMULATION = "simulation"


def new_session_id() -> str:
    return uuid.uuid4().hex[:12]


def reindex_after_delete(indices: Iterable[int], removed: List[int]) -> Set[int]:
    """Map row indices across a deletion.

    Indices that were removed are dropped; every other index shifts down by
    the number of removed indices below it. *removed* must be sorted.
    """
    removed_set = set(removed)
    return {i - bisect.bisect_left(removed, i) for i in indices if i not in removed_set}


@dataclass(frozen=True)
class FitInput:
    """Consistent view of what the next fit will see."""
    rows: Tuple[Mapping[str, float], ...]
    indices: Tuple[int, ...]
    x_field: Optional[str]
    y_field: Optional[str]
    is_fitted: bool


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a session for renderers and cross-session comparison."""
    id: str
    name: str
    columns: Tuple[str, ...]
    rows: Tuple[Mapping[str, float], ...]
    independent_field: Optional[str]
    dependent_field: Optional[str]
    is_fitted: bool
    inclusion: FrozenSet[int]
    highlight: FrozenSet[int]
    x_domain: Any
    y_domain: Any
    active_tool: Optional[str]
    active_tab: str
    fit_result: Optional[FitResult]
    status: str
    error_code: Optional[str]
    has_simulation: bool = False


class SessionState:
    """
    Holds one open dataset and everything derived from user interaction:
    chosen fields, which rows take part in the fit (inclusion) and which are
    merely emphasized on the plot (highlight), plus the plot viewport.

    Methods raise typed errors before mutating anything, so a rejected
    operation leaves the state untouched.
    """

    def __init__(self, dataset: Optional[Dataset] = None, name: str = "Untitled",
                 session_id: Optional[str] = None,
                 independent_field: Optional[str] = None,
                 dependent_field: Optional[str] = None):
        self.id = session_id or new_session_id()
        self.name = name
        self.dataset = dataset if dataset is not None else Dataset()
        columns = self.dataset.columns
        # default to the first two columns, like a freshly loaded file
        if independent_field is None and len(columns) >= 1:
            independent_field = columns[0]
        if dependent_field is None and len(columns) >= 2:
            dependent_field = columns[1]
        self.independent_field: Optional[str] = independent_field
        self.dependent_field: Optional[str] = dependent_field
        self.is_fitted = False
        self.inclusion: Set[int] = set(range(len(self.dataset)))
        self.highlight: Set[int] = set()
        self.viewport = ViewportState()
        self.active_tab = TAB_ANALYSIS
        self.file_info: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def row_count(self) -> int:
        return len(self.dataset)

    @property
    def columns(self) -> List[str]:
        return self.dataset.columns

    def fit_input(self) -> FitInput:
        order = sorted(i for i in self.inclusion if 0 <= i < len(self.dataset))
        return FitInput(
            rows=tuple(self.dataset[i] for i in order),
            indices=tuple(order),
            x_field=self.independent_field,
            y_field=self.dependent_field,
            is_fitted=self.is_fitted,
        )

    def included_bounds(self, padding: float = DEFAULT_PADDING) -> Bounds:
        """Padded data domains of the included rows for the chosen fields."""
        inp = self.fit_input()
        bx = by = None
        if inp.x_field:
            bx = padded_domain((r.get(inp.x_field) for r in inp.rows), padding)
        if inp.y_field:
            by = padded_domain((r.get(inp.y_field) for r in inp.rows), padding)
        return bx, by

    def affects_fit(self, row: int, column: str) -> bool:
        return row in self.inclusion and column in (self.independent_field, self.dependent_field)

    # ------------------------------------------------------------------
    # Inclusion set
    # ------------------------------------------------------------------
    def _check_row(self, index: int) -> int:
        index = int(index)
        if index < 0 or index >= len(self.dataset):
            raise InvalidRowError(f"Row {index} does not exist ({len(self.dataset)} rows).")
        return index

    def toggle_row(self, index: int, included: bool) -> bool:
        """Include or exclude one row. Returns True when the set changed."""
        index = self._check_row(index)
        if included:
            if index in self.inclusion:
                return False
            self.inclusion.add(index)
        else:
            if index not in self.inclusion:
                return False
            self.inclusion.discard(index)
        return True

    def select_all(self) -> bool:
        everything = set(range(len(self.dataset)))
        if self.inclusion == everything:
            return False
        self.inclusion.clear()
        self.inclusion.update(everything)
        return True

    def select_none(self) -> bool:
        if not self.inclusion:
            return False
        self.inclusion.clear()
        return True

    # ------------------------------------------------------------------
    # Highlight set
    # ------------------------------------------------------------------
    def highlight_rows(self, indices: Iterable[int]) -> bool:
        new = {self._check_row(i) for i in indices} - self.highlight
        self.highlight.update(new)
        return bool(new)

    def clear_highlight(self) -> bool:
        if not self.highlight:
            return False
        self.highlight.clear()
        return True

    def rows_in_box(self, x0: float, y0: float, x1: float, y1: float) -> List[int]:
        if not self.independent_field or not self.dependent_field:
            return []
        return rows_in_box(self.dataset.rows, self.independent_field, self.dependent_field,
                           x0, y0, x1, y1)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def delete_rows(self, indices: Iterable[int]) -> List[int]:
        """Remove rows and shift both index sets to match the new row order."""
        indices = [self._check_row(i) for i in indices]
        removed = self.dataset.delete_rows(indices)
        if removed:
            self.inclusion = reindex_after_delete(self.inclusion, removed)
            self.highlight = reindex_after_delete(self.highlight, removed)
        return removed

    def add_row(self, values: Optional[Mapping[str, Any]] = None) -> int:
        index = self.dataset.append_row(values)
        self.inclusion.add(index)
        return index

    def set_cell(self, row: int, column: str, value: Any) -> float:
        row = self._check_row(row)
        if not self.dataset.has_column(column):
            raise InvalidColumnOperationError(f"Unknown column '{column}'.")
        return self.dataset.set_cell(row, column, value)

    # ------------------------------------------------------------------
    # Columns and field choice
    # ------------------------------------------------------------------
    def _check_new_name(self, name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise InvalidColumnOperationError("Column name cannot be empty.")
        name = name.strip()
        if self.dataset.has_column(name):
            raise InvalidColumnOperationError(f"A column named '{name}' already exists.")
        return name

    def _check_existing(self, name: str) -> str:
        if not self.dataset.has_column(name):
            raise InvalidColumnOperationError(f"Unknown column '{name}'.")
        return name

    def add_column(self, name: str, fill: float = 0.0) -> str:
        name = self._check_new_name(name)
        self.dataset.add_column(name, fill)
        return name

    def delete_column(self, name: str) -> None:
        self._check_existing(name)
        self.dataset.delete_column(name)
        if self.independent_field == name:
            self.independent_field = None
        if self.dependent_field == name:
            self.dependent_field = None

    def rename_column(self, old: str, new: str) -> str:
        self._check_existing(old)
        if new == old:
            return old
        new = self._check_new_name(new)
        self.dataset.rename_column(old, new)
        if self.independent_field == old:
            self.independent_field = new
        if self.dependent_field == old:
            self.dependent_field = new
        return new

    def set_fields(self, independent: Optional[str] = None, dependent: Optional[str] = None) -> bool:
        for name in (independent, dependent):
            if name is not None:
                self._check_existing(name)
        changed = False
        if independent is not None and independent != self.independent_field:
            self.independent_field = independent
            changed = True
        if dependent is not None and dependent != self.dependent_field:
            self.dependent_field = dependent
            changed = True
        return changed

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------
    def copy(self, session_id: Optional[str] = None, name: Optional[str] = None) -> "SessionState":
        """Deep structural copy sharing no mutable structure with *self*."""
        clone = SessionState.__new__(SessionState)
        clone.id = session_id or new_session_id()
        clone.name = name if name is not None else self.name
        clone.dataset = self.dataset.copy()
        clone.independent_field = self.independent_field
        clone.dependent_field = self.dependent_field
        clone.is_fitted = self.is_fitted
        clone.inclusion = set(self.inclusion)
        clone.highlight = set(self.highlight)
        clone.viewport = self.viewport.copy()
        clone.active_tab = self.active_tab
        clone.file_info = dict(self.file_info) if self.file_info else None
        return clone

    def snapshot(self, fit_result: Optional[FitResult] = None, status: str = "idle",
                 error_code: Optional[str] = None, has_simulation: bool = False) -> SessionSnapshot:
        return SessionSnapshot(
            id=self.id,
            name=self.name,
            columns=tuple(self.dataset.columns),
            rows=tuple(MappingProxyType(dict(r)) for r in self.dataset),
            independent_field=self.independent_field,
            dependent_field=self.dependent_field,
            is_fitted=self.is_fitted,
            inclusion=frozenset(self.inclusion),
            highlight=frozenset(self.highlight),
            x_domain=self.viewport.x_domain,
            y_domain=self.viewport.y_domain,
            active_tool=self.viewport.active_tool,
            active_tab=self.active_tab,
            fit_result=fit_result,
            status=status,
            error_code=error_code,
            has_simulation=has_simulation,
        )
