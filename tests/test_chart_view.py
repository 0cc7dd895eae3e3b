from __future__ import annotations

import pytest

from rubber_chart.chart_view import (
    ViewWindow,
    autoscale_bounds,
    in_view_count,
    should_autoscale,
    view_covers_bounds,
    zoomed_window,
)
from conftest import positioned


def _approx(window: ViewWindow, x_range, y_range) -> None:
    assert window.x_range == pytest.approx(x_range)
    assert window.y_range == pytest.approx(y_range)


def test_autoscale_uses_minimum_pad_for_small_spans() -> None:
    window = autoscale_bounds([positioned(1, 1), positioned(3, 5)])
    assert window == ViewWindow((0.5, 3.5), (0.5, 5.5))


def test_autoscale_pads_by_fraction_of_span() -> None:
    window = autoscale_bounds([positioned(0, 0), positioned(100, 20)])
    _approx(window, (-5.0, 105.0), (-1.0, 21.0))


def test_autoscale_of_single_point_is_not_degenerate() -> None:
    window = autoscale_bounds([positioned(7, 3)])
    assert window == ViewWindow((6.5, 7.5), (2.5, 3.5))
    assert not window.is_degenerate


def test_autoscale_ignores_unpositioned_items() -> None:
    from rubber_chart.CatalogItem import Item

    assert autoscale_bounds([]) is None
    assert autoscale_bounds([Item(brand="X", name="A")]) is None


def test_should_autoscale_only_when_something_falls_outside() -> None:
    window = ViewWindow((0, 10), (0, 10))
    assert should_autoscale([positioned(5, 5), positioned(10, 0)], window) is False
    assert should_autoscale([positioned(5, 5), positioned(11, 0)], window) is True
    assert should_autoscale([positioned(5, 5)], None) is False
    assert should_autoscale([], window) is False


def test_zoom_in_preserves_the_anchor_point() -> None:
    window = ViewWindow((0, 10), (0, 10))
    bounds = ViewWindow((0, 100), (0, 100))
    zoomed = zoomed_window(window, 0.5, 0.25, 0.75, bounds)
    _approx(zoomed, (1.25, 6.25), (3.75, 8.75))
    assert zoomed.data_point(0.25, 0.75) == pytest.approx(window.data_point(0.25, 0.75))


def test_zoom_in_stops_at_the_minimum_span() -> None:
    window = ViewWindow((0, 10), (0, 10))
    bounds = ViewWindow((0, 100), (0, 100))
    zoomed = zoomed_window(window, 0.1, 0.5, 0.5, bounds)
    assert zoomed.x_span == pytest.approx(5.0)
    assert zoomed.y_span == pytest.approx(5.0)
    _approx(zoomed, (2.5, 7.5), (2.5, 7.5))


def test_zoom_out_is_refused_once_the_bounds_are_visible() -> None:
    bounds = ViewWindow((0, 10), (0, 10))
    assert zoomed_window(ViewWindow((-1, 11), (-1, 11)), 1 / 0.6, 0.5, 0.5, bounds) is None
    assert view_covers_bounds(bounds, ViewWindow((0, 10), (0, 10)))
    assert view_covers_bounds(None, ViewWindow((0, 1), (0, 1)))


def test_zoom_out_is_clamped_to_the_bounds() -> None:
    window = ViewWindow((10, 20), (10, 20))
    bounds = ViewWindow((0, 22), (0, 22))
    zoomed = zoomed_window(window, 2.0, 0.5, 0.5, bounds)
    _approx(zoomed, (5.0, 22.0), (5.0, 22.0))


def test_zoom_out_beyond_the_bounds_is_shifted_back_in() -> None:
    bounds = ViewWindow((0, 10), (0, 10))
    zoomed = zoomed_window(ViewWindow((20, 24), (-8, -4)), 2.0, 0.5, 0.5, bounds)
    _approx(zoomed, (2.0, 10.0), (0.0, 8.0))


def test_zoom_without_bounds_is_unclamped() -> None:
    zoomed = zoomed_window(ViewWindow((0, 10), (0, 10)), 2.0, 0.0, 0.0, None)
    _approx(zoomed, (0.0, 20.0), (0.0, 20.0))


@pytest.mark.parametrize("scale", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_scale_is_a_no_op(scale: float) -> None:
    assert zoomed_window(ViewWindow((0, 10), (0, 10)), scale, 0.5, 0.5, None) is None


def test_degenerate_window_is_a_no_op() -> None:
    degenerate = ViewWindow((1, 1), (0, 10))
    assert degenerate.is_degenerate
    assert zoomed_window(degenerate, 0.5, 0.5, 0.5, None) is None


def test_pan_shifts_by_fraction_of_span() -> None:
    panned = ViewWindow((0, 10), (0, 4)).panned(0.1, -0.5)
    _approx(panned, (1.0, 11.0), (-2.0, 2.0))


def test_in_view_count_is_inclusive() -> None:
    items = [positioned(0, 0), positioned(5, 5), positioned(10, 10), positioned(11, 5)]
    window = ViewWindow((0, 10), (0, 10))
    assert in_view_count(items, window) == 3
    assert in_view_count(items, None) == 4
    assert in_view_count([], window) == 0
