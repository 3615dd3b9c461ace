import pytest

from models import Dataset, ErrorCode, TAB_SIMULATION, results_close
from viewmodel import FitStatus, WorkspaceViewModel


def _dataset(n=5, slope=2.0):
    return Dataset([{"x": float(i), "y": slope * i + (0.2 if i % 2 else 0.0)} for i in range(n)], ["x", "y"])


@pytest.fixture
def workspace(config):
    return WorkspaceViewModel(config=config)


def test_create_activate_and_close_order(workspace):
    a = workspace.create_session(_dataset(), name="a")
    b = workspace.create_session(_dataset(), name="b")
    c = workspace.create_session(_dataset(), name="c", activate=False)
    assert workspace.active_id == b.id
    assert [vm.name for vm in workspace.sessions()] == ["a", "b", "c"]

    assert workspace.close_session(b.id) is True
    assert workspace.active_id == c.id
    workspace.close_session(c.id)
    assert workspace.active_id == a.id
    workspace.close_session(a.id)
    assert workspace.active_id is None
    assert len(workspace) == 0


def test_activate_unknown_id_is_ignored(workspace):
    a = workspace.create_session(_dataset(), name="a")
    assert workspace.activate("missing") is False
    assert workspace.active_id == a.id
    assert workspace.close_session("missing") is False


def test_sessions_do_not_share_state(workspace):
    a = workspace.create_session(_dataset(), name="a")
    b = workspace.create_session(_dataset(slope=-1.0), name="b")
    a.plot()
    b.plot()
    a.toggle_row(0, False)
    assert b.inclusion == frozenset(range(5))
    assert a.fit_result.slope == pytest.approx(2.0, abs=0.2)
    assert b.fit_result.slope == pytest.approx(-1.0, abs=0.2)


def test_fork_is_independent_both_ways(workspace):
    src = workspace.create_session(_dataset(), name="data")
    src.plot()
    sim = workspace.fork(src.id)
    assert sim.id != src.id
    assert sim.name == "data (simulation)"
    assert sim.state.active_tab == TAB_SIMULATION
    assert sim.status == FitStatus.FITTED
    assert sim.fit_result == src.fit_result

    sim.set_cell(0, "y", 100.0)
    sim.toggle_row(4, False)
    assert src.state.dataset[0]["y"] == 0.0
    assert 4 in src.inclusion

    src.delete_rows([1])
    assert sim.state.row_count == 5
    assert src.fit_result != sim.fit_result


def test_fork_again_replaces_previous(workspace):
    src = workspace.create_session(_dataset(), name="data")
    first = workspace.fork(src.id)
    first.add_row()
    second = workspace.fork(src.id)
    assert src.simulation is second
    assert second.state.row_count == 5
    assert workspace.discard_simulation(src.id) is True
    assert src.simulation is None
    assert workspace.discard_simulation(src.id) is False


def test_new_table_is_zero_filled(workspace):
    vm = workspace.new_table(("a", "b", "c"), n_rows=3)
    assert vm.state.columns == ["a", "b", "c"]
    assert vm.state.row_count == 3
    assert vm.state.dataset[2] == {"a": 0.0, "b": 0.0, "c": 0.0}
    assert workspace.active_id == vm.id


def test_export_import_round_trip(workspace, line_dataset):
    src = workspace.create_session(line_dataset, name="lines")
    src.plot()
    src.toggle_row(1, False)
    src.highlight_rows([0, 3])
    src.set_tool("pan")
    workspace.fork(src.id)

    data = workspace.export_session(src.id)
    copy = workspace.import_session(data)
    assert copy.id != src.id
    assert copy.state.columns == src.state.columns
    assert copy.inclusion == src.inclusion
    assert copy.highlight == src.highlight
    assert copy.state.viewport == src.state.viewport
    assert copy.status == FitStatus.FITTED
    assert results_close(copy.fit_result, src.fit_result, 1e-9)
    assert copy.simulation is not None
    assert copy.simulation.name == "lines (simulation)"
    assert copy.simulation.id not in (src.id, copy.id, src.simulation.id)


def test_import_rejects_bad_snapshot(workspace):
    errors = []
    workspace.error_occurred.connect(lambda code, msg: errors.append(code))
    bad = {"columns": ["x", "y"], "rows": [[1.0]]}
    assert workspace.import_session(bad) is None
    assert errors == [ErrorCode.IMPORT_FAILED.value]
    assert len(workspace) == 0


def test_load_file_remembers_path(workspace, config, tmp_path):
    path = tmp_path / "points.csv"
    path.write_text("time,temp\n1,2\n2,4\n3,6.5\n")
    vm = workspace.load_file(str(path))
    assert vm is not None
    assert vm.name == "points.csv"
    assert vm.state.independent_field == "time"
    assert config.last_loaded_file == str(path)
    assert config.config_path.exists()


def test_load_file_failure_is_reported(workspace, tmp_path):
    errors = []
    workspace.error_occurred.connect(lambda code, msg: errors.append(code))
    assert workspace.load_file(str(tmp_path / "missing.csv")) is None
    assert errors == [ErrorCode.LOAD_FAILED.value]


def test_save_and_load_session_file(workspace, line_dataset, tmp_path):
    src = workspace.create_session(line_dataset, name="lines")
    src.plot()
    path = tmp_path / "session.yaml"
    assert workspace.save_session(src.id, path) is True
    again = workspace.load_session(path)
    assert again.fit_result.slope == pytest.approx(src.fit_result.slope, abs=1e-9)


def test_save_report_needs_fit(workspace, line_dataset, tmp_path):
    src = workspace.create_session(line_dataset, name="lines")
    target = tmp_path / "report.txt"
    assert workspace.save_report(src.id, target) is False
    src.plot()
    assert workspace.save_report(src.id, target) is True
    assert "Regression Equation" in target.read_text()


def test_import_with_bad_cell_is_reported(workspace):
    errors = []
    workspace.error_occurred.connect(lambda code, msg: errors.append(code))
    data = {"columns": ["x", "y"], "rows": [["abc", 1.0], [2.0, 3.0]]}
    assert workspace.import_session(data) is None
    data = {"version": "2", "columns": ["x", "y"], "rows": []}
    assert workspace.import_session(data) is None
    assert errors == [ErrorCode.IMPORT_FAILED.value] * 2


def test_import_reports_failing_restored_fit(workspace):
    errors = []
    workspace.error_occurred.connect(lambda code, msg: errors.append(code))
    data = {
        "columns": ["x", "y"],
        "rows": [[2.0, 1.0], [2.0, 5.0], [2.0, 9.0]],
        "independent_field": "x",
        "dependent_field": "y",
        "is_fitted": True,
        "inclusion": [0, 1, 2],
    }
    vm = workspace.import_session(data)
    assert vm.status == FitStatus.FAILED
    assert errors == [ErrorCode.IDENTICAL_X_VALUES.value]
