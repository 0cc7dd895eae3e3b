"""Filter state and the predicate that turns the catalog into the chart's item set.

Set-valued filters (brand, full name, sheet) use ``None`` for "no restriction"
and an empty set for "nothing selected"; an empty selection yields an empty
result. Range filters (canonical hardness, weight) only count as active when
narrowed inside the data bounds. An active range filter excludes items whose
measurement is missing, while an inactive one never does.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .HardnessScale import HARDNESS_SCALES, from_canonical
from .rank_projection import CONTROL_TIERS, item_tiers

Range = Tuple[float, float]


@dataclass(frozen=True)
class RangeSelection:
    """Closed numeric interval chosen by the user."""

    lo: float
    hi: float

    def __post_init__(self) -> None:
        lo, hi = float(self.lo), float(self.hi)
        if lo > hi:
            lo, hi = hi, lo
        object.__setattr__(self, "lo", lo)
        object.__setattr__(self, "hi", hi)

    def clamped(self, bounds: Range) -> "RangeSelection":
        """Return the selection clamped into ``bounds``."""
        b_lo, b_hi = bounds
        lo = min(max(self.lo, b_lo), b_hi)
        hi = min(max(self.hi, b_lo), b_hi)
        return RangeSelection(lo, hi)

    def is_active(self, bounds: Optional[Range]) -> bool:
        """Return whether the selection is narrower than ``bounds``."""
        if bounds is None:
            return False
        return self.lo > bounds[0] or self.hi < bounds[1]

    def contains(self, value: Optional[float]) -> bool:
        if value is None or not math.isfinite(value):
            return False
        return self.lo <= value <= self.hi


def measurement_bounds(values: Iterable[Optional[float]]) -> Optional[Range]:
    """Return ``(min, max)`` of the finite values, or ``None`` if there are none."""
    finite = [v for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return None
    return (min(finite), max(finite))


@dataclass(frozen=True)
class FilterBounds:
    """Data bounds the range filters are measured against."""

    hardness: Optional[Range] = None
    weight: Optional[Range] = None

    @classmethod
    def from_items(cls, items: Iterable[Any]) -> "FilterBounds":
        items = list(items)
        return cls(
            hardness=measurement_bounds(item.normalized_hardness for item in items),
            weight=measurement_bounds(item.weight for item in items),
        )


@dataclass(frozen=True)
class FilterState:
    """Immutable snapshot of every filter control.

    ``None`` for a set means "all"; ranges are ``None`` until the user narrows
    them. Use the ``with_*`` helpers to derive a new state.
    """

    brands: Optional[FrozenSet[str]] = None
    names: Optional[FrozenSet[str]] = None
    sheets: Optional[FrozenSet[str]] = None
    hardness: Optional[RangeSelection] = None
    weight: Optional[RangeSelection] = None
    control_tiers: FrozenSet[str] = field(default_factory=lambda: frozenset(CONTROL_TIERS))

    def with_brands(self, brands: Optional[Iterable[str]]) -> "FilterState":
        return replace(self, brands=None if brands is None else frozenset(brands))

    def with_names(self, names: Optional[Iterable[str]]) -> "FilterState":
        return replace(self, names=None if names is None else frozenset(names))

    def with_sheets(self, sheets: Optional[Iterable[str]]) -> "FilterState":
        return replace(self, sheets=None if sheets is None else frozenset(sheets))

    def with_control_tiers(self, tiers: Iterable[str]) -> "FilterState":
        return replace(self, control_tiers=frozenset(t for t in tiers if t in CONTROL_TIERS))

    def with_hardness(self, lo: float, hi: float, bounds: Optional[Range] = None) -> "FilterState":
        selection = RangeSelection(lo, hi)
        return replace(self, hardness=selection.clamped(bounds) if bounds else selection)

    def with_weight(self, lo: float, hi: float, bounds: Optional[Range] = None) -> "FilterState":
        selection = RangeSelection(lo, hi)
        return replace(self, weight=selection.clamped(bounds) if bounds else selection)

    def control_active(self) -> bool:
        return len(self.control_tiers) < len(CONTROL_TIERS)

    def active_count(self, bounds: FilterBounds = FilterBounds()) -> int:
        """Return the number of filters currently narrowing the result."""
        count = 0
        for selection in (self.brands, self.names, self.sheets):
            if selection is not None:
                count += 1
        if self.hardness is not None and self.hardness.is_active(bounds.hardness):
            count += 1
        if self.weight is not None and self.weight.is_active(bounds.weight):
            count += 1
        if self.control_active():
            count += 1
        return count

    def summary(self, bounds: FilterBounds = FilterBounds()) -> str:
        count = self.active_count(bounds)
        if count == 0:
            return "No filters"
        return f"{count} filter{'s' if count != 1 else ''} active"


def _passes(item: Any, state: FilterState, bounds: FilterBounds, *, check_names: bool = True) -> bool:
    if state.brands is not None and item.brand not in state.brands:
        return False
    if check_names and state.names is not None and item.full_name not in state.names:
        return False
    if state.sheets is not None and item.sheet not in state.sheets:
        return False
    if state.hardness is not None and state.hardness.is_active(bounds.hardness):
        if not state.hardness.contains(item.normalized_hardness):
            return False
    if state.weight is not None and state.weight.is_active(bounds.weight):
        if not state.weight.contains(item.weight):
            return False
    if state.control_active():
        tier = item_tiers(item).tier
        if tier is None or tier not in state.control_tiers:
            return False
    return True


def apply_filters(
    items: Sequence[Any], state: FilterState, bounds: Optional[FilterBounds] = None
) -> List[Any]:
    """Return the items that pass every filter, in catalog order."""
    if bounds is None:
        bounds = FilterBounds.from_items(items)
    for selection in (state.brands, state.names, state.sheets):
        if selection is not None and not selection:
            return []
    return [item for item in items if _passes(item, state, bounds)]


def name_options(
    items: Sequence[Any], state: FilterState, bounds: Optional[FilterBounds] = None
) -> List[str]:
    """Return the sorted full names selectable under every filter but the name filter."""
    if state.brands is not None and not state.brands:
        return []
    if bounds is None:
        bounds = FilterBounds.from_items(items)
    return sorted({item.full_name for item in items if _passes(item, state, bounds, check_names=False)})


def hardness_bounds_by_country(bounds: Optional[Range]) -> Dict[str, Optional[Range]]:
    """Express canonical hardness ``bounds`` on every known country scale."""
    if bounds is None:
        return {country: None for country in HARDNESS_SCALES}
    result: Dict[str, Optional[Range]] = {}
    for country in HARDNESS_SCALES:
        lo = from_canonical(bounds[0], country)
        hi = from_canonical(bounds[1], country)
        result[country] = None if lo is None or hi is None else (lo, hi)
    return result
