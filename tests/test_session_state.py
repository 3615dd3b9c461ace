"""Inclusion/highlight bookkeeping and column operations on SessionState."""
import math

import pytest

from models import (
    Dataset,
    InvalidColumnOperationError,
    InvalidRowError,
    SessionState,
    reindex_after_delete,
)


def _state(n=5):
    rows = [{"a": float(i), "b": float(2 * i)} for i in range(n)]
    return SessionState(Dataset(rows, ["a", "b"]), name="t")


def test_defaults_pick_first_two_columns_and_include_everything():
    state = _state()
    assert state.independent_field == "a"
    assert state.dependent_field == "b"
    assert state.inclusion == {0, 1, 2, 3, 4}
    assert state.highlight == set()
    assert not state.is_fitted


def test_delete_rows_reindexes_inclusion():
    state = _state()
    state.inclusion = {0, 2, 4}
    state.delete_rows([2])
    assert state.inclusion == {0, 3}
    assert state.row_count == 4
    assert state.dataset[2]["a"] == 3.0


def test_delete_rows_reindexes_highlight_and_never_points_past_the_end():
    state = _state(8)
    state.highlight = {1, 3, 6, 7}
    state.delete_rows([0, 3, 5])
    assert state.highlight == {0, 3, 4}
    assert all(i < state.row_count for i in state.inclusion | state.highlight)


def test_reindex_helper():
    assert reindex_after_delete({0, 1, 5, 9}, [1, 4]) == {0, 3, 7}


def test_delete_rows_rejects_bad_index_without_mutating():
    state = _state()
    with pytest.raises(InvalidRowError):
        state.delete_rows([1, 7])
    assert state.row_count == 5
    assert state.inclusion == {0, 1, 2, 3, 4}


def test_select_all_is_idempotent():
    state = _state()
    state.toggle_row(1, False)
    assert state.select_all() is True
    after_first = set(state.inclusion)
    assert state.select_all() is False
    assert state.inclusion == after_first


def test_toggle_row_and_select_none():
    state = _state()
    assert state.toggle_row(3, False) is True
    assert state.toggle_row(3, False) is False
    assert 3 not in state.inclusion
    assert state.select_none() is True
    assert state.inclusion == set()
    with pytest.raises(InvalidRowError):
        state.toggle_row(5, True)


def test_add_row_is_included_and_zero_filled():
    state = _state()
    idx = state.add_row()
    assert idx == 5
    assert idx in state.inclusion
    assert state.dataset[idx] == {"a": 0.0, "b": 0.0}


def test_set_cell_replaces_row_object():
    state = _state()
    before = state.dataset[1]
    state.set_cell(1, "b", "7.5")
    assert state.dataset[1]["b"] == 7.5
    assert before["b"] == 2.0
    state.set_cell(1, "b", "abc")
    assert math.isnan(state.dataset[1]["b"])


def test_rename_column_follows_fields():
    state = _state()
    state.rename_column("a", "hours")
    assert state.independent_field == "hours"
    assert state.columns == ["hours", "b"]
    assert state.dataset[2]["hours"] == 2.0
    assert state.inclusion == {0, 1, 2, 3, 4}


def test_rename_to_existing_or_empty_name_is_rejected():
    state = _state()
    with pytest.raises(InvalidColumnOperationError):
        state.rename_column("a", "b")
    with pytest.raises(InvalidColumnOperationError):
        state.rename_column("a", "  ")
    assert state.columns == ["a", "b"]
    assert state.independent_field == "a"


def test_add_and_delete_column():
    state = _state()
    state.add_column("c")
    assert state.columns == ["a", "b", "c"]
    assert state.dataset[0]["c"] == 0.0
    with pytest.raises(InvalidColumnOperationError):
        state.add_column("c")
    state.delete_column("b")
    assert state.dependent_field is None
    assert "b" not in state.dataset[0]
    assert state.inclusion == {0, 1, 2, 3, 4}


def test_box_hits_include_bounds():
    state = _state()
    assert state.rows_in_box(1, 2, 3, 6) == [1, 2, 3]
    assert state.highlight_rows([1, 2]) is True
    assert state.highlight_rows([2]) is False
    assert state.inclusion == {0, 1, 2, 3, 4}


def test_copy_shares_nothing():
    state = _state()
    clone = state.copy()
    assert clone.id != state.id
    clone.toggle_row(0, False)
    clone.set_cell(1, "a", 99)
    clone.viewport.set_tool("pan")
    clone.highlight.add(4)
    assert 0 in state.inclusion
    assert state.dataset[1]["a"] == 1.0
    assert state.viewport.active_tool is None
    assert state.highlight == set()


def test_included_bounds_use_only_included_rows():
    state = _state()
    state.inclusion = {1, 2}
    (x_lo, x_hi), (y_lo, y_hi) = state.included_bounds(padding=0.1)
    assert (x_lo, x_hi) == pytest.approx((0.9, 2.1))
    assert (y_lo, y_hi) == pytest.approx((1.8, 4.2))


def test_snapshot_is_read_only():
    state = _state()
    snap = state.snapshot()
    with pytest.raises(TypeError):
        snap.rows[0]["a"] = 5.0
    state.toggle_row(0, False)
    assert 0 in snap.inclusion
