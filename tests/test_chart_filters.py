from __future__ import annotations

import dataclasses

import pytest

from rubber_chart.chart_filters import (
    FilterBounds,
    FilterState,
    RangeSelection,
    apply_filters,
    hardness_bounds_by_country,
    measurement_bounds,
    name_options,
)


def _abbrs(items) -> list[str]:
    return [item.abbr for item in items]


@pytest.fixture
def bounds(sample_catalog) -> FilterBounds:
    return FilterBounds.from_items(sample_catalog)


def test_bounds_use_canonical_hardness(bounds) -> None:
    assert bounds.hardness == (47.5, 55.0)
    assert bounds.weight == (47.0, 52.0)


def test_default_state_passes_everything(sample_catalog, bounds) -> None:
    state = FilterState()
    assert apply_filters(sample_catalog, state, bounds) == sample_catalog
    assert state.summary(bounds) == "No filters"


def test_brand_filter(sample_catalog, bounds) -> None:
    state = FilterState().with_brands({"Butterfly"})
    assert _abbrs(apply_filters(sample_catalog, state, bounds)) == ["T05", "D09C"]
    assert state.summary(bounds) == "1 filter active"


@pytest.mark.parametrize("field", ["with_brands", "with_names", "with_sheets"])
def test_empty_selection_yields_nothing(sample_catalog, bounds, field) -> None:
    state = getattr(FilterState(), field)(set())
    assert apply_filters(sample_catalog, state, bounds) == []


def test_sheet_and_name_filters(sample_catalog, bounds) -> None:
    assert _abbrs(apply_filters(sample_catalog, FilterState().with_sheets({"Hybrid"}), bounds)) == ["D09C"]
    state = FilterState().with_names({"DHS Hurricane 3", "Andro Rasanter R47"})
    assert _abbrs(apply_filters(sample_catalog, state, bounds)) == ["H3", "R47"]


def test_hardness_filter_compares_canonical_values(sample_catalog, bounds) -> None:
    state = FilterState().with_hardness(50, 60, bounds.hardness)
    assert state.hardness == RangeSelection(50, 55)
    assert _abbrs(apply_filters(sample_catalog, state, bounds)) == ["D09C"]


def test_full_width_range_is_not_active(sample_catalog, bounds) -> None:
    state = FilterState().with_hardness(40, 60, bounds.hardness).with_weight(0, 100, bounds.weight)
    assert state.active_count(bounds) == 0
    assert apply_filters(sample_catalog, state, bounds) == sample_catalog


def test_missing_measurement_only_excluded_by_active_range(sample_catalog, bounds) -> None:
    unknown = dataclasses.replace(sample_catalog[0], weight=None, full_name="Butterfly Mystery")
    items = sample_catalog + [unknown]
    assert unknown in apply_filters(items, FilterState(), bounds)
    narrowed = FilterState().with_weight(47.5, 52, bounds.weight)
    assert _abbrs(apply_filters(items, narrowed, bounds)) == ["T05", "H3", "D09C"]


def test_control_tier_filter(sample_catalog, bounds) -> None:
    state = FilterState().with_control_tiers(["Easy", "Bogus"])
    assert state.control_tiers == frozenset({"Easy"})
    assert _abbrs(apply_filters(sample_catalog, state, bounds)) == ["T05", "R47"]
    assert state.with_brands({"Andro"}).summary(bounds) == "2 filters active"


def test_bounds_default_to_the_items(sample_catalog) -> None:
    state = FilterState().with_hardness(50, 60)
    assert _abbrs(apply_filters(sample_catalog, state)) == ["D09C"]


def test_name_options_ignore_the_name_filter(sample_catalog, bounds) -> None:
    state = FilterState().with_brands({"Butterfly"}).with_names({"Butterfly Tenergy 05"})
    assert name_options(sample_catalog, state, bounds) == ["Butterfly Dignics 09C", "Butterfly Tenergy 05"]
    assert name_options(sample_catalog, FilterState().with_brands(()), bounds) == []


def test_range_selection_normalizes_and_rejects_missing_values() -> None:
    selection = RangeSelection(5, 1)
    assert (selection.lo, selection.hi) == (1.0, 5.0)
    assert selection.contains(1) and selection.contains(5)
    assert not selection.contains(None)
    assert not selection.contains(float("nan"))
    assert selection.clamped((2, 3)) == RangeSelection(2, 3)
    assert not selection.is_active(None)


def test_measurement_bounds_skip_missing() -> None:
    assert measurement_bounds([None, 3.0, float("nan"), 1.0]) == (1.0, 3.0)
    assert measurement_bounds([None]) is None


def test_hardness_bounds_on_every_scale(bounds) -> None:
    by_country = hardness_bounds_by_country(bounds.hardness)
    assert by_country["Germany"] == pytest.approx((47.5, 55.0))
    assert by_country["Japan"] == pytest.approx((36.0, 44.0))
    assert by_country["China"] == pytest.approx((39.0, 41.0))
    assert hardness_bounds_by_country(None)["Japan"] is None
