# models/dataset.py
"""Tabular dataset held by a session.

Rows are plain dicts mapping column name to float (``nan`` marks a missing or
non-numeric cell). A row dict is never modified after it has been placed in
a dataset: edits build a replacement dict so snapshots handed out earlier
keep their values.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

Row = Dict[str, float]


def to_number(value: Any) -> float:
    """Coerce a cell value to float, returning ``nan`` when not numeric."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return math.nan


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class Dataset:
    """Ordered rows plus ordered column names."""

    def __init__(self, rows: Optional[Iterable[Mapping[str, Any]]] = None,
                 columns: Optional[Sequence[str]] = None):
        rows = list(rows or [])
        if columns is None:
            columns = []
            for row in rows:
                for key in row:
                    if key not in columns:
                        columns.append(key)
        self._columns: List[str] = [str(c) for c in columns]
        self._rows: List[Row] = [self._coerce_row(r) for r in rows]

    def _coerce_row(self, row: Mapping[str, Any]) -> Row:
        return {c: to_number(row.get(c)) for c in self._columns}

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def rows(self) -> List[Row]:
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> Row:
        return self._rows[index]

    def __iter__(self):
        return iter(self._rows)

    def has_column(self, name: str) -> bool:
        return name in self._columns

    def column_values(self, name: str) -> List[float]:
        return [row.get(name, math.nan) for row in self._rows]

    def copy(self) -> "Dataset":
        """Structural copy; row dicts are duplicated so the copies never alias."""
        clone = Dataset.__new__(Dataset)
        clone._columns = list(self._columns)
        clone._rows = [dict(r) for r in self._rows]
        return clone

    # ------------------------------------------------------------------
    # Mutation (row dicts are replaced, never edited in place)
    # ------------------------------------------------------------------
    def set_cell(self, index: int, column: str, value: Any) -> float:
        if column not in self._columns:
            raise KeyError(column)
        number = to_number(value)
        new_row = dict(self._rows[index])
        new_row[column] = number
        self._rows[index] = new_row
        return number

    def append_row(self, values: Optional[Mapping[str, Any]] = None) -> int:
        values = values or {}
        self._rows.append({c: to_number(values.get(c, 0.0)) for c in self._columns})
        return len(self._rows) - 1

    def delete_rows(self, indices: Iterable[int]) -> List[int]:
        """Remove rows by index; returns the sorted unique indices removed."""
        doomed = sorted({int(i) for i in indices})
        for i in doomed:
            if i < 0 or i >= len(self._rows):
                raise IndexError(i)
        doomed_set = set(doomed)
        self._rows = [r for i, r in enumerate(self._rows) if i not in doomed_set]
        return doomed

    def add_column(self, name: str, fill: float = 0.0) -> None:
        self._columns.append(name)
        self._rows = [{**r, name: float(fill)} for r in self._rows]

    def delete_column(self, name: str) -> None:
        self._columns.remove(name)
        self._rows = [{k: v for k, v in r.items() if k != name} for r in self._rows]

    def rename_column(self, old: str, new: str) -> None:
        self._columns = [new if c == old else c for c in self._columns]
        self._rows = [{(new if k == old else k): v for k, v in r.items()} for r in self._rows]

    def __repr__(self) -> str:
        return f"Dataset(rows={len(self._rows)}, columns={self._columns!r})"
