import pytest

from models import AUTO, ViewportState, padded_domain, rows_in_box


def test_padded_domain():
    assert padded_domain([0.0, 10.0], 0.1) == pytest.approx((-1.0, 11.0))
    assert padded_domain([3.0, 3.0], 0.1) == (2.0, 4.0)
    assert padded_domain([float("nan")]) is None


def test_pan_on_auto_axis_resolves_from_bounds():
    vp = ViewportState()
    assert vp.pan_by(1.0, -2.0, bounds=((0.0, 10.0), (0.0, 5.0))) is True
    assert vp.x_domain == (1.0, 11.0)
    assert vp.y_domain == (-2.0, 3.0)


def test_pan_without_bounds_keeps_auto():
    vp = ViewportState(x_domain=(0, 1))
    vp.pan_by(1.0, 1.0)
    assert vp.x_domain == (1.0, 2.0)
    assert vp.y_domain == AUTO


def test_zoom_about_center():
    vp = ViewportState(x_domain=(0, 10), y_domain=(0, 4))
    vp.zoom_by(0.5)
    assert vp.x_domain == pytest.approx((2.5, 7.5))
    assert vp.y_domain == pytest.approx((1.0, 3.0))
    vp.zoom_by(2.0, center=(2.5, 1.0))
    assert vp.x_domain == pytest.approx((2.5, 12.5))
    assert vp.y_domain == pytest.approx((1.0, 5.0))


def test_zoom_rejects_bad_factor():
    vp = ViewportState(x_domain=(0, 10), y_domain=(0, 4))
    assert vp.zoom_by(0) is False
    assert vp.zoom_by(float("nan")) is False
    assert vp.x_domain == (0.0, 10.0)


def test_reset_clears_tool():
    vp = ViewportState(x_domain=(0, 1), y_domain=(0, 1), active_tool="select")
    vp.reset(((-1.0, 2.0), None))
    assert vp.x_domain == (-1.0, 2.0)
    assert vp.y_domain == AUTO
    assert vp.active_tool is None


def test_tools():
    vp = ViewportState()
    vp.set_tool("pan")
    assert vp.active_tool == "pan"
    assert vp.toggle_tool("pan") is None
    assert vp.toggle_tool("select") == "select"
    vp.set_tool("none")
    assert vp.active_tool is None
    with pytest.raises(ValueError):
        vp.set_tool("lasso")


def test_dict_round_trip_keeps_auto():
    vp = ViewportState(x_domain=(1, 2), y_domain=AUTO, active_tool="pan")
    again = ViewportState.from_dict(vp.to_dict())
    assert again == vp
    assert again.y_domain == AUTO


def test_rows_in_box_uses_given_indices():
    rows = [{"x": 0.0, "y": 0.0}, {"x": 1.0, "y": 1.0}, {"x": float("nan"), "y": 1.0}]
    assert rows_in_box(rows, "x", "y", 1, 1, 0, 0, indices=[7, 8, 9]) == [7, 8]
