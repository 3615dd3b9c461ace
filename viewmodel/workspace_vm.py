# viewmodel/workspace_vm.py
from __future__ import annotations

import os
import typing as _typing

from PySide6.QtCore import QObject, Signal

from models import Dataset, ErrorCode, SessionState, TAB_SIMULATION
from models.session_state import new_session_id
from dataio import (
    DataLoadError,
    SessionFormatError,
    export_session,
    import_session,
    load_data_from_file,
    load_session_file,
    save_dataset,
    save_report,
    save_session_file,
)
from .logging_helpers import log_exception, log_message
from .session_vm import SessionViewModel


def _dispose(vm: SessionViewModel) -> None:
    # detach from the workspace so the QObject is freed with its last reference
    vm.setParent(None)


class WorkspaceViewModel(QObject):
    """
    Registry of open files ("sessions").

    Each session owns its data, fit, selection and viewport; nothing is
    shared between sessions. At most one session is active. A session may be
    forked into a simulation clone kept alongside it for comparison.
    """

    sessions_updated = Signal(object)               # list of (id, name) in creation order
    active_session_changed = Signal(object)         # session id or None
    log_message = Signal(str)
    error_occurred = Signal(str, str)               # error code / kind, message

    def __init__(self, config=None, parent=None):
        super().__init__(parent)
        if config is None:
            from dataio import get_config
            config = get_config()
        self.config = config
        self._sessions: _typing.Dict[str, SessionViewModel] = {}   # insertion = creation order
        self._active_id: _typing.Optional[str] = None

    def _log_message(self, message: str) -> None:
        """Emit a message via the shared logging helper."""
        log_message(message, vm=self)

    def _log_exception(self, context: str, exc: Exception) -> None:
        """Emit an exception context via the shared logging helper."""
        log_exception(context, exc, vm=self)

    # --------------------------
    # Registry
    # --------------------------
    def _make_vm(self, state: SessionState) -> SessionViewModel:
        vm = SessionViewModel(
            state,
            tolerance=self.config.fit_tolerance,
            padding=self.config.domain_padding,
            zoom_step=self.config.zoom_step,
            parent=self,
        )
        vm.log_message.connect(self.log_message.emit)
        vm.error_occurred.connect(self.error_occurred.emit)
        vm.start()
        return vm

    def _emit_sessions(self) -> None:
        self.sessions_updated.emit([(sid, vm.name) for sid, vm in self._sessions.items()])

    def _unique_id(self, wanted: _typing.Optional[str]) -> str:
        if wanted and wanted not in self._sessions and not self._is_simulation_id(wanted):
            return wanted
        return new_session_id()

    def _is_simulation_id(self, sid: str) -> bool:
        return any(vm.simulation is not None and vm.simulation.id == sid for vm in self._sessions.values())

    def create_session(self, dataset: Dataset, name: str = "Untitled",
                       activate: bool = True, file_info: _typing.Optional[dict] = None) -> SessionViewModel:
        state = SessionState(dataset, name=name, session_id=self._unique_id(None))
        state.file_info = dict(file_info) if file_info else None
        return self._register(state, activate)

    def _register(self, state: SessionState, activate: bool) -> SessionViewModel:
        vm = self._make_vm(state)
        self._sessions[state.id] = vm
        self._log_message(f"Opened '{state.name}' ({state.row_count} rows).")
        self._emit_sessions()
        if activate or self._active_id is None:
            self.activate(state.id)
        return vm

    def new_table(self, columns: _typing.Sequence[str] = ("x", "y"), n_rows: int = 0,
                  name: str = "New Table") -> SessionViewModel:
        """Open an empty, zero-filled table."""
        rows = [{c: 0.0 for c in columns} for _ in range(max(0, int(n_rows)))]
        return self.create_session(Dataset(rows, list(columns)), name=name)

    def sessions(self) -> _typing.List[SessionViewModel]:
        return list(self._sessions.values())

    def get(self, session_id: str) -> _typing.Optional[SessionViewModel]:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def active_session(self) -> _typing.Optional[SessionViewModel]:
        return self._sessions.get(self._active_id) if self._active_id else None

    @property
    def active_id(self) -> _typing.Optional[str]:
        return self._active_id

    def activate(self, session_id: _typing.Optional[str]) -> bool:
        if session_id is not None and session_id not in self._sessions:
            self._log_message(f"No open file with id '{session_id}'.")
            return False
        if session_id == self._active_id:
            return True
        self._active_id = session_id
        self.active_session_changed.emit(session_id)
        return True

    def close_session(self, session_id: str) -> bool:
        if session_id not in self._sessions:
            return False
        order = list(self._sessions)
        idx = order.index(session_id)
        vm = self._sessions.pop(session_id)
        self._log_message(f"Closed '{vm.name}'.")
        if vm.simulation is not None:
            _dispose(vm.simulation)
            vm.simulation = None
        _dispose(vm)

        if self._active_id == session_id:
            remaining = list(self._sessions)
            if remaining:
                # the session that followed the closed one, else the new last one
                next_id = remaining[idx] if idx < len(remaining) else remaining[-1]
            else:
                next_id = None
            self._active_id = None
            self._emit_sessions()
            if next_id is not None:
                self.activate(next_id)
            else:
                self.active_session_changed.emit(None)
        else:
            self._emit_sessions()
        return True

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.close_session(sid)

    # --------------------------
    # Simulation fork
    # --------------------------
    def fork(self, session_id: str) -> _typing.Optional[SessionViewModel]:
        """Seed (or re-seed) the simulation clone of *session_id*."""
        source = self._sessions.get(session_id)
        if source is None:
            self._log_message(f"No open file with id '{session_id}'.")
            return None
        state = source.state.copy(session_id=self._unique_id(None), name=f"{source.name} (simulation)")
        state.active_tab = TAB_SIMULATION
        if source.simulation is not None:
            _dispose(source.simulation)
        clone = self._make_vm(state)
        source.simulation = clone
        self._log_message(f"Forked '{source.name}' into a simulation.")
        return clone

    def discard_simulation(self, session_id: str) -> bool:
        source = self._sessions.get(session_id)
        if source is None or source.simulation is None:
            return False
        _dispose(source.simulation)
        source.simulation = None
        return True

    # --------------------------
    # File I/O
    # --------------------------
    def load_file(self, path: str, activate: bool = True) -> _typing.Optional[SessionViewModel]:
        try:
            dataset, info = load_data_from_file(path)
        except DataLoadError as exc:
            self._log_message(str(exc))
            self.error_occurred.emit(ErrorCode.LOAD_FAILED.value, str(exc))
            return None
        self._remember(path)
        return self.create_session(dataset, name=info.get("name") or os.path.basename(path),
                                   activate=activate, file_info=info)

    def _remember(self, path: str) -> None:
        try:
            self.config.remember_file(path)
            self.config.save()
        except OSError as exc:
            self._log_exception("Could not persist last loaded file", exc)

    def export_session(self, session_id: str) -> _typing.Optional[dict]:
        vm = self._sessions.get(session_id)
        if vm is None:
            return None
        sim = vm.simulation.state if vm.simulation is not None else None
        return export_session(vm.state, sim)

    def import_session(self, data: dict, activate: bool = True) -> _typing.Optional[SessionViewModel]:
        try:
            state = import_session(data)
            sim_data = data.get("simulation")
            sim_state = import_session(sim_data) if sim_data else None
        except SessionFormatError as exc:
            self._log_message(f"Could not import session: {exc}")
            self.error_occurred.emit(ErrorCode.IMPORT_FAILED.value, str(exc))
            return None
        state.id = self._unique_id(state.id)
        vm = self._register(state, activate)
        if sim_state is not None:
            sim_state.id = self._unique_id(sim_state.id)
            vm.simulation = self._make_vm(sim_state)
        return vm

    def save_session(self, session_id: str, path) -> bool:
        data = self.export_session(session_id)
        if data is None:
            return False
        try:
            save_session_file(data, path)
        except OSError as exc:
            self._log_exception(f"Could not save session to {path}", exc)
            self.error_occurred.emit(ErrorCode.SAVE_FAILED.value, str(exc))
            return False
        self._log_message(f"Saved session to {path}")
        return True

    def load_session(self, path) -> _typing.Optional[SessionViewModel]:
        try:
            data = load_session_file(path)
        except (OSError, SessionFormatError) as exc:
            self._log_message(f"Could not load session from {path}: {exc}")
            self.error_occurred.emit(ErrorCode.IMPORT_FAILED.value, str(exc))
            return None
        return self.import_session(data)

    def save_table(self, session_id: str, path, included_only: bool = False) -> bool:
        vm = self._sessions.get(session_id)
        if vm is None:
            return False
        rows = vm.state.inclusion if included_only else None
        try:
            save_dataset(vm.state.dataset, str(path), rows=rows, fit_result=vm.fit_result)
        except OSError as exc:
            self._log_exception(f"Could not save table to {path}", exc)
            self.error_occurred.emit(ErrorCode.SAVE_FAILED.value, str(exc))
            return False
        return True

    def save_report(self, session_id: str, path) -> bool:
        vm = self._sessions.get(session_id)
        text = vm.report() if vm is not None else None
        if text is None:
            self._log_message("No fit to report.")
            return False
        try:
            save_report(text, str(path))
        except OSError as exc:
            self._log_exception(f"Could not save report to {path}", exc)
            self.error_occurred.emit(ErrorCode.SAVE_FAILED.value, str(exc))
            return False
        return True
