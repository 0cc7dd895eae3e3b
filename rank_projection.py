"""Projection of rank positions into chart coordinates and display tiers.

Purpose
-------
Turns an item's positions in the spin/speed/control rank tables into:

- continuous chart coordinates ``x = spinTotal - spinRank + 1`` and
  ``y = speedTotal - speedRank + 1`` (rank 1 sits at the highest coordinate),
- a 3-tier control category (``Easy``/``Med``/``Hard``),
- a finer N-level control indicator,
- a marker size from a fixed palette.

All three discretizations bucket the same normalized fraction
``(rank - 1) / total`` so they can never disagree about ordering.

Items missing from the spin or speed table have no chart position and are
dropped by :func:`project_catalog`; that is expected, not an error.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .CatalogItem import DEFAULT_PRIORITY, Item
from .RankTable import RankTables

logger = logging.getLogger(__name__)

CONTROL_TIERS: Tuple[str, ...] = ("Easy", "Med", "Hard")
CONTROL_TIER_THRESHOLDS: Tuple[float, float] = (0.4, 0.8)
CONTROL_LEVEL_COUNT = 5
MARKER_SIZES: Tuple[int, ...] = (20, 18, 16, 14, 12, 10, 8)
DEFAULT_MARKER_SIZE = 14
HALO_EXTRA_SIZE = 12


@dataclass(frozen=True)
class ControlTiers:
    """Discretized control attributes derived from one ``(rank, total)`` pair."""

    tier: Optional[str]
    level: Optional[int]
    marker_size: int


@dataclass(frozen=True)
class Projection:
    """Chart position and tiers of one item."""

    x: float
    y: float
    spin_rank: int
    speed_rank: int
    control_rank: Optional[int]
    control_total: int
    tiers: ControlTiers


def control_fraction(rank: Optional[int], total: Optional[int]) -> Optional[float]:
    """Normalize a 1-based rank into ``[0, 1)`` over the table size."""
    if rank is None or total is None or total <= 0:
        return None
    if not (math.isfinite(rank) and math.isfinite(total)):
        return None
    zero_based = min(max(rank - 1, 0), total - 1)
    return zero_based / total


def _bucket(fraction: float, count: int) -> int:
    return min(count - 1, int(math.floor(fraction * count)))


def control_tier(
    rank: Optional[int],
    total: Optional[int],
    thresholds: Sequence[float] = CONTROL_TIER_THRESHOLDS,
    labels: Sequence[str] = CONTROL_TIERS,
) -> Optional[str]:
    """Return the control tier label; the best-ranked 40% land in ``Easy``."""
    fraction = control_fraction(rank, total)
    if fraction is None:
        return None
    for threshold, label in zip(thresholds, labels):
        if fraction < threshold:
            return label
    return labels[-1]


def control_level(rank: Optional[int], total: Optional[int], levels: int = CONTROL_LEVEL_COUNT) -> Optional[int]:
    """Return the 1-based equal-width control level (1 = most control)."""
    fraction = control_fraction(rank, total)
    if fraction is None:
        return None
    return _bucket(fraction, levels) + 1


def marker_size(rank: Optional[int], total: Optional[int], sizes: Sequence[int] = MARKER_SIZES) -> int:
    """Return the marker size; better control ranks get bigger markers."""
    fraction = control_fraction(rank, total)
    if fraction is None:
        return DEFAULT_MARKER_SIZE
    return sizes[_bucket(fraction, len(sizes))]


def control_tiers(rank: Optional[int], total: Optional[int]) -> ControlTiers:
    """Compute every control discretization from one ``(rank, total)`` pair."""
    return ControlTiers(
        tier=control_tier(rank, total),
        level=control_level(rank, total),
        marker_size=marker_size(rank, total),
    )


def display_priority(item: Item, tables: RankTables) -> Tuple[int, bool]:
    """Return ``(priority, bestseller)``: bestsellers first, then the priority table."""
    bestseller_idx = tables.bestseller.index_of(item.brand, item.name, item.abbr)
    if bestseller_idx is not None:
        return bestseller_idx + 1, True
    priority_idx = tables.priority.index_of(item.brand, item.name, item.abbr)
    if priority_idx is not None:
        return len(tables.bestseller) + priority_idx + 1, False
    return DEFAULT_PRIORITY, False


def project(item: Item, tables: RankTables) -> Optional[Projection]:
    """Project ``item`` into chart space, or ``None`` when spin/speed rank is missing."""
    spin_rank = tables.spin.rank_of(item.brand, item.name, item.abbr)
    speed_rank = tables.speed.rank_of(item.brand, item.name, item.abbr)
    if spin_rank is None or speed_rank is None:
        return None
    control_rank = tables.control.rank_of(item.brand, item.name, item.abbr)
    control_total = len(tables.control)
    return Projection(
        x=float(len(tables.spin) - spin_rank + 1),
        y=float(len(tables.speed) - speed_rank + 1),
        spin_rank=spin_rank,
        speed_rank=speed_rank,
        control_rank=control_rank,
        control_total=control_total,
        tiers=control_tiers(control_rank, control_total),
    )


def apply_projection(item: Item, tables: RankTables) -> Optional[Item]:
    """Return a copy of ``item`` carrying its projection, priority and bestseller flag."""
    projection = project(item, tables)
    if projection is None:
        return None
    priority, bestseller = display_priority(item, tables)
    return dataclasses.replace(
        item,
        x=projection.x,
        y=projection.y,
        spin_rank=projection.spin_rank,
        speed_rank=projection.speed_rank,
        control_rank=projection.control_rank,
        control_total=projection.control_total,
        priority=priority,
        bestseller=bestseller,
    )


def project_catalog(items: Iterable[Item], tables: RankTables) -> List[Item]:
    """Project every item, excluding those without a spin or speed rank."""
    projected: List[Item] = []
    dropped = 0
    for item in items:
        result = apply_projection(item, tables)
        if result is None:
            dropped += 1
            continue
        projected.append(result)
    if dropped:
        logger.debug("excluded %d unranked items from the chart", dropped)
    return projected


def item_tiers(item: Item) -> ControlTiers:
    """Return the control tiers stored on a projected item."""
    return control_tiers(item.control_rank, item.control_total)
