"""Property-based checks for the numeric core of the chart.

These cover the hardness conversions, the projection tiers, the zoom
arithmetic and the declutter pass with generated inputs, beyond the
example-based unit tests.
"""

from __future__ import annotations

import pytest

from rubber_chart.HardnessScale import HARDNESS_SCALES, from_canonical, to_canonical
from rubber_chart.chart_declutter import select, to_pixels
from rubber_chart.chart_view import ViewWindow, zoomed_window
from rubber_chart.rank_projection import control_tiers
from conftest import positioned

try:
    from hypothesis import given
    from hypothesis import strategies as st
except ModuleNotFoundError:  # pragma: no cover - environment-specific fallback
    pytest.skip("hypothesis is required for property-based tests", allow_module_level=True)


COUNTRIES = st.sampled_from(sorted(HARDNESS_SCALES))
HARDNESS = st.floats(min_value=0.0, max_value=100.0, allow_nan=False, allow_infinity=False)
FRACTION = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
COORD = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)
SPAN = st.floats(min_value=1e-2, max_value=1e3, allow_nan=False, allow_infinity=False)

ITEMS = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=100),
        st.integers(min_value=0, max_value=100),
        st.integers(min_value=1, max_value=10),
    ),
    max_size=40,
).map(lambda rows: [positioned(x, y, priority=p, name=f"i{n}") for n, (x, y, p) in enumerate(rows)])

UNIT_WINDOW = ViewWindow((0, 100), (0, 100))


@given(value=HARDNESS, country=COUNTRIES)
def test_hardness_round_trips_through_canonical(value: float, country: str) -> None:
    """Converting to the canonical scale and back recovers the native value."""
    assert from_canonical(to_canonical(value, country), country) == pytest.approx(value, abs=1e-9)


@given(a=HARDNESS, b=HARDNESS, country=COUNTRIES)
def test_hardness_conversion_preserves_order(a: float, b: float, country: str) -> None:
    """Harder stays harder on the canonical scale, including in the tails."""
    lo, hi = sorted((a, b))
    assert to_canonical(lo, country) <= to_canonical(hi, country)


@given(total=st.integers(min_value=1, max_value=500), data=st.data())
def test_control_discretizations_agree(total: int, data) -> None:
    """Better control rank never gets a smaller marker or a harder tier."""
    better = data.draw(st.integers(min_value=1, max_value=total))
    worse = data.draw(st.integers(min_value=better, max_value=total))
    a, b = control_tiers(better, total), control_tiers(worse, total)
    order = {"Easy": 0, "Med": 1, "Hard": 2}
    assert a.marker_size >= b.marker_size
    assert a.level <= b.level
    assert order[a.tier] <= order[b.tier]


@given(
    x0=COORD, y0=COORD, w=SPAN, h=SPAN,
    scale=st.floats(min_value=0.05, max_value=20.0),
    fx=FRACTION, fy=FRACTION,
)
def test_unbounded_zoom_keeps_the_anchor_fixed(x0, y0, w, h, scale, fx, fy) -> None:
    """The data point under the anchor is the same before and after a zoom."""
    window = ViewWindow((x0, x0 + w), (y0, y0 + h))
    zoomed = zoomed_window(window, scale, fx, fy, None)
    assert zoomed is not None
    before = window.data_point(fx, fy)
    after = zoomed.data_point(fx, fy)
    assert after[0] == pytest.approx(before[0], rel=1e-9, abs=1e-6)
    assert after[1] == pytest.approx(before[1], rel=1e-9, abs=1e-6)
    assert zoomed.x_span == pytest.approx(w * scale, rel=1e-6)


@given(
    x0=COORD, y0=COORD, w=SPAN, h=SPAN,
    scale=st.floats(min_value=1.01, max_value=20.0),
    fx=FRACTION, fy=FRACTION,
)
def test_zoom_out_stays_a_valid_window_inside_the_bounds(x0, y0, w, h, scale, fx, fy) -> None:
    """Zoom-out from anywhere, even panned off the data, lands inside the bounds."""
    bounds = ViewWindow((0, 100), (0, 100))
    window = ViewWindow((x0, x0 + w), (y0, y0 + h))
    zoomed = zoomed_window(window, scale, fx, fy, bounds)
    if zoomed is None:
        assert window.covers(bounds)
        return
    assert not zoomed.is_degenerate
    for lo, hi in (zoomed.x_range, zoomed.y_range):
        assert lo >= -1e-9
        assert hi <= 100 + 1e-9


@given(
    w=st.floats(min_value=5.0, max_value=100.0),
    h=st.floats(min_value=5.0, max_value=100.0),
    scale=st.floats(min_value=1e-3, max_value=0.999),
    fx=FRACTION, fy=FRACTION,
)
def test_zoom_in_never_goes_below_minimum_span(w, h, scale, fx, fy) -> None:
    """Zoom-in is clamped to a fraction of the bounds span on both axes."""
    bounds = ViewWindow((0, 100), (0, 100))
    window = ViewWindow((0, w), (0, h))
    zoomed = zoomed_window(window, scale, fx, fy, bounds, min_span_fraction=0.05)
    assert zoomed.x_span >= 5.0 - 1e-9
    assert zoomed.y_span >= 5.0 - 1e-9
    assert zoomed.x_span <= w + 1e-9
    assert zoomed.y_span <= h + 1e-9


@given(items=ITEMS, dx=st.floats(0, 60), dy=st.floats(0, 60))
def test_declutter_is_deterministic_and_idempotent(items, dx, dy) -> None:
    first = select(items, UNIT_WINDOW, 100, 100, dx, dy)
    assert select(items, UNIT_WINDOW, 100, 100, dx, dy) == first
    assert select(first, UNIT_WINDOW, 100, 100, dx, dy) == first


@given(items=ITEMS, dx=st.floats(0, 60), dy=st.floats(0, 60))
def test_declutter_result_is_collision_free_and_maximal(items, dx, dy) -> None:
    """Accepted labels never collide; every rejected label collides with one."""
    accepted = select(items, UNIT_WINDOW, 100, 100, dx, dy)
    pts = to_pixels(accepted, UNIT_WINDOW, 100, 100)

    def collides(p, q) -> bool:
        return abs(p[0] - q[0]) < dx and abs(p[1] - q[1]) < dy

    for i in range(len(accepted)):
        for j in range(i + 1, len(accepted)):
            assert not collides(pts[i], pts[j])

    accepted_ids = {id(item) for item in accepted}
    for item in items:
        if id(item) in accepted_ids:
            continue
        [p] = to_pixels([item], UNIT_WINDOW, 100, 100)
        assert any(collides(p, q) for q in pts)
