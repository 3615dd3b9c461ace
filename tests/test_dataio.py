"""Config persistence, CSV load/save and session snapshot files."""
import json
import math

import pandas as pd
import pytest

from dataio import (
    DataLoadError,
    SessionFormatError,
    export_session,
    import_session,
    load_data_from_file,
    load_data_from_text,
    load_session_file,
    save_dataset,
    save_session_file,
)
from dataio.configuration import Config
from models import AUTO, SessionState, fit_linear_regression


def test_config_round_trip(config):
    config.fit_tolerance = 1e-6
    config.remember_file("/data/a.csv")
    config.remember_file("/data/b.csv")
    config.remember_file("/data/a.csv")
    config.save()

    loaded = Config.load(config.config_path)
    assert loaded.fit_tolerance == 1e-6
    assert loaded.last_loaded_file == "/data/a.csv"
    assert loaded.recent_files == ["/data/a.csv", "/data/b.csv"]


def test_config_bad_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    cfg = Config.load(path)
    assert cfg.fit_tolerance == 1e-9
    assert cfg.config_folder == str(tmp_path)


def test_config_ignores_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"zoom_step": 2.0, "theme": "dark"}))
    assert Config.load(path).zoom_step == 2.0


def test_text_load_coerces_non_numeric():
    ds = load_data_from_text("a,b\n1,2\nx,3\n4,\n")
    assert ds.columns == ["a", "b"]
    assert len(ds) == 3
    assert math.isnan(ds[1]["a"])
    assert math.isnan(ds[2]["b"])


def test_file_load_sniffs_separator(tmp_path):
    path = tmp_path / "semi.csv"
    path.write_text("a;b\n1;2\n3;4\n")
    ds, info = load_data_from_file(str(path))
    assert ds.columns == ["a", "b"]
    assert ds[1] == {"a": 3.0, "b": 4.0}
    assert info["name"] == "semi.csv"


def test_single_column_is_rejected(tmp_path):
    path = tmp_path / "one.csv"
    path.write_text("a\n1\n2\n")
    with pytest.raises(DataLoadError):
        load_data_from_file(str(path))


def test_save_dataset_adds_residuals(tmp_path, line_dataset):
    result = fit_linear_regression(line_dataset.rows, "x", "y", indices=[0, 1, 2, 3])
    out = tmp_path / "out" / "table.csv"
    save_dataset(line_dataset, str(out), rows=[0, 4, 1], fit_result=result)
    df = pd.read_csv(out)
    assert list(df.columns) == ["x", "y", "z", "Residual"]
    assert list(df["x"]) == [1.0, 2.0, 5.0]
    assert df["Residual"][0] == pytest.approx(result.residuals[0])
    assert math.isnan(df["Residual"][2])


@pytest.mark.parametrize("suffix", [".json", ".yaml"])
def test_session_file_round_trip(tmp_path, line_dataset, suffix):
    state = SessionState(line_dataset, name="lines")
    state.is_fitted = True
    state.inclusion = {0, 2, 5}
    state.viewport.set_domains((0, 10), AUTO)
    path = save_session_file(export_session(state), tmp_path / f"s{suffix}")

    restored = import_session(load_session_file(path))
    assert restored.id == state.id
    assert restored.inclusion == {0, 2, 5}
    assert restored.viewport.x_domain == (0.0, 10.0)
    assert restored.viewport.y_domain == AUTO
    assert math.isnan(restored.dataset[5]["x"])
    assert restored.is_fitted


def test_cleared_field_survives_round_trip(line_dataset):
    state = SessionState(line_dataset)
    state.delete_column("y")
    restored = import_session(export_session(state))
    assert restored.dependent_field is None
    assert restored.independent_field == "x"


def test_import_validates_snapshot():
    with pytest.raises(SessionFormatError):
        import_session({"columns": ["x", "y"], "rows": [[1.0, 2.0]], "inclusion": [3]})
    with pytest.raises(SessionFormatError):
        import_session({"columns": ["x"], "rows": [], "independent_field": "q"})
    with pytest.raises(SessionFormatError):
        import_session({"version": 99})
    with pytest.raises(SessionFormatError):
        import_session(["not", "a", "dict"])


def test_unparseable_session_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[1, 2")
    with pytest.raises(SessionFormatError):
        load_session_file(path)


@pytest.mark.parametrize("snapshot", [
    {"columns": ["x", "y"], "rows": [["abc", 1.0], [2.0, 3.0]]},
    {"version": "two", "columns": ["x", "y"], "rows": []},
    {"version": "2", "columns": ["x", "y"], "rows": []},
    {"columns": ["x", "y"], "rows": [[1.0, 2.0]], "inclusion": ["first"]},
    {"columns": ["x", "y"], "rows": [[1.0, 2.0]], "highlight": 0},
    {"columns": "x,y", "rows": []},
    {"columns": ["x", "y"], "rows": [5]},
])
def test_malformed_values_raise_format_error(snapshot):
    with pytest.raises(SessionFormatError):
        import_session(snapshot)
