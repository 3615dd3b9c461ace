# dataio/session_io.py
"""
Session snapshot export/import.

Provides functionality to:
1. Convert a SessionState into a portable dict (sets become sorted index
   lists, missing cells become None, "auto" domains are kept as-is)
2. Rebuild an equivalent SessionState from such a dict
3. Save/load those dicts as JSON (``.json``) or YAML (``.yaml``/``.yml``)

Fit results are not stored; they are recomputed from the restored inputs.
"""
import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from models import Dataset, SessionState, TAB_ANALYSIS, TAB_SIMULATION, ViewportState

logger = logging.getLogger(__name__)

# Constants
SESSION_FILE_VERSION = 1
YAML_SUFFIXES = (".yaml", ".yml")


class SessionFormatError(ValueError):
    """Raised when a session snapshot is malformed."""


def _cell_out(value: float) -> Optional[float]:
    return None if value is None or not math.isfinite(value) else float(value)


def _cell_in(value: Any) -> float:
    return math.nan if value is None else float(value)


def export_session(state: SessionState, simulation: Optional[SessionState] = None) -> Dict[str, Any]:
    """Extract a serializable dict from *state* (and its simulation fork)."""
    columns = state.dataset.columns
    data = {
        "version": SESSION_FILE_VERSION,
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "id": state.id,
        "name": state.name,
        "columns": list(columns),
        "rows": [[_cell_out(row.get(c)) for c in columns] for row in state.dataset],
        "independent_field": state.independent_field,
        "dependent_field": state.dependent_field,
        "is_fitted": bool(state.is_fitted),
        "inclusion": sorted(state.inclusion),
        "highlight": sorted(state.highlight),
        "viewport": state.viewport.to_dict(),
        "active_tab": state.active_tab,
        "source": dict(state.file_info) if state.file_info else {},
        "simulation": export_session(simulation) if simulation is not None else None,
    }
    return data


def _index_set(values, n_rows: int, label: str) -> set:
    if values is not None and not isinstance(values, (list, tuple)):
        raise SessionFormatError(f"{label} must be a list of row indices")
    result = set()
    for v in values or []:
        try:
            i = int(v)
        except (TypeError, ValueError) as exc:
            raise SessionFormatError(f"{label} index {v!r} is not an integer") from exc
        if i < 0 or i >= n_rows:
            raise SessionFormatError(f"{label} index {i} out of range for {n_rows} rows")
        result.add(i)
    return result


def import_session(data: Dict[str, Any]) -> SessionState:
    """Rebuild a SessionState from :func:`export_session` output.

    The nested ``simulation`` entry, if any, is left for the caller to import.
    """
    if not isinstance(data, dict):
        raise SessionFormatError("session snapshot must be a mapping")
    try:
        version = int(data.get("version", SESSION_FILE_VERSION))
    except (TypeError, ValueError) as exc:
        raise SessionFormatError(f"invalid session version {data.get('version')!r}") from exc
    if version > SESSION_FILE_VERSION:
        raise SessionFormatError(f"unsupported session version {version}")

    raw_columns = data.get("columns") or []
    raw_rows = data.get("rows") or []
    if not isinstance(raw_columns, list) or not isinstance(raw_rows, list):
        raise SessionFormatError("columns and rows must be lists")
    columns = [str(c) for c in raw_columns]
    rows = []
    for n, raw in enumerate(raw_rows):
        if not isinstance(raw, (list, tuple)) or len(raw) != len(columns):
            raise SessionFormatError(f"row {n} does not have {len(columns)} values")
        try:
            rows.append({c: _cell_in(v) for c, v in zip(columns, raw)})
        except (TypeError, ValueError) as exc:
            raise SessionFormatError(f"row {n} has a non-numeric value: {exc}") from exc
    dataset = Dataset(rows, columns)

    for key in ("independent_field", "dependent_field"):
        name = data.get(key)
        if name is not None and name not in columns:
            raise SessionFormatError(f"{key} '{name}' is not a column")

    state = SessionState(dataset, name=data.get("name") or "Untitled", session_id=data.get("id"))
    # fields are restored verbatim, including a deliberately cleared one
    state.independent_field = data.get("independent_field")
    state.dependent_field = data.get("dependent_field")
    state.is_fitted = bool(data.get("is_fitted", False))
    state.inclusion = _index_set(data.get("inclusion"), len(dataset), "inclusion")
    state.highlight = _index_set(data.get("highlight"), len(dataset), "highlight")
    try:
        state.viewport = ViewportState.from_dict(data.get("viewport"))
    except (TypeError, ValueError) as exc:
        raise SessionFormatError(f"invalid viewport: {exc}") from exc
    tab = data.get("active_tab", TAB_ANALYSIS)
    state.active_tab = tab if tab in (TAB_ANALYSIS, TAB_SIMULATION) else TAB_ANALYSIS
    source = data.get("source")
    state.file_info = dict(source) if isinstance(source, dict) and source else None
    return state


def save_session_file(data: Dict[str, Any], path) -> Path:
    """Write an exported session to *path* (YAML for .yaml/.yml, else JSON)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        else:
            json.dump(data, f, indent=2, allow_nan=False)
    tmp.replace(path)
    logger.info("Saved session '%s' to %s", data.get("name"), path)
    return path


def load_session_file(path) -> Dict[str, Any]:
    """Read a session dict written by :func:`save_session_file`."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise SessionFormatError(f"could not parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise SessionFormatError(f"{path.name} does not contain a session")
    return data
