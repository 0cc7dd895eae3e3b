"""View-window value type and the bounds helpers built on it.

Purpose
-------
``ViewWindow`` is the visible data-space region of the chart: a pair of closed
intervals. It is immutable; pan/zoom replace the window rather than mutate it.

The helpers here are pure functions over windows and item coordinates:

- ``autoscale_bounds`` pads the tight bounding box of the filtered items,
- ``should_autoscale`` decides whether a filter change must discard the view,
- ``view_covers_bounds`` blocks zoom-out past the data,
- ``zoomed_window`` is the anchor-preserving zoom with both clamps.

Degenerate inputs (empty item sets, zero-span windows) return ``None`` or the
identity instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

import numpy as np

Range = Tuple[float, float]


@dataclass(frozen=True)
class ViewWindow:
    """Visible region of the chart.

    Parameters
    ----------
    x_range : tuple[float, float]
        Closed x interval ``(lo, hi)``.
    y_range : tuple[float, float]
        Closed y interval ``(lo, hi)``.
    """

    x_range: Range
    y_range: Range

    def __post_init__(self) -> None:
        object.__setattr__(self, "x_range", (float(self.x_range[0]), float(self.x_range[1])))
        object.__setattr__(self, "y_range", (float(self.y_range[0]), float(self.y_range[1])))

    @classmethod
    def from_ranges(cls, x_range: Sequence[Any], y_range: Sequence[Any]) -> "ViewWindow":
        return cls((x_range[0], x_range[1]), (y_range[0], y_range[1]))

    @property
    def x_span(self) -> float:
        return self.x_range[1] - self.x_range[0]

    @property
    def y_span(self) -> float:
        return self.y_range[1] - self.y_range[0]

    @property
    def is_degenerate(self) -> bool:
        """Return ``True`` when either axis has zero or negative span."""
        return self.x_span <= 0 or self.y_span <= 0

    def contains(self, x: float, y: float) -> bool:
        """Return whether ``(x, y)`` lies inside the window (orientation-agnostic)."""
        x_lo, x_hi = sorted(self.x_range)
        y_lo, y_hi = sorted(self.y_range)
        return x_lo <= x <= x_hi and y_lo <= y <= y_hi

    def covers(self, other: "ViewWindow") -> bool:
        """Return whether ``other`` lies entirely inside this window."""
        return (
            self.x_range[0] <= other.x_range[0]
            and self.x_range[1] >= other.x_range[1]
            and self.y_range[0] <= other.y_range[0]
            and self.y_range[1] >= other.y_range[1]
        )

    def data_point(self, fx: float, fy: float) -> Tuple[float, float]:
        """Return the data-space point at fractional window position ``(fx, fy)``."""
        return (self.x_range[0] + fx * self.x_span, self.y_range[0] + fy * self.y_span)

    def panned(self, dfx: float, dfy: float) -> "ViewWindow":
        """Shift by fractions of the current span on each axis."""
        dx = dfx * self.x_span
        dy = dfy * self.y_span
        return ViewWindow(
            (self.x_range[0] + dx, self.x_range[1] + dx),
            (self.y_range[0] + dy, self.y_range[1] + dy),
        )


def coordinates(items: Iterable[Any]) -> np.ndarray:
    """Return an ``(n, 2)`` float array of positioned items' ``(x, y)``."""
    points = [(item.x, item.y) for item in items if item.x is not None and item.y is not None]
    if not points:
        return np.empty((0, 2), dtype=float)
    return np.asarray(points, dtype=float)


def autoscale_bounds(
    items: Iterable[Any],
    *,
    pad_fraction: float = 0.05,
    min_pad: float = 0.5,
) -> Optional[ViewWindow]:
    """Return the padded bounding box of ``items``, or ``None`` when empty."""
    pts = coordinates(items)
    if pts.shape[0] == 0:
        return None
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    pad = np.maximum(min_pad, (hi - lo) * pad_fraction)
    return ViewWindow(
        (lo[0] - pad[0], hi[0] + pad[0]),
        (lo[1] - pad[1], hi[1] + pad[1]),
    )


def should_autoscale(items: Iterable[Any], window: Optional[ViewWindow]) -> bool:
    """Return ``True`` when a window exists and some item lies outside it."""
    if window is None:
        return False
    pts = coordinates(items)
    if pts.shape[0] == 0:
        return False
    x0, x1 = window.x_range
    y0, y1 = window.y_range
    outside = (pts[:, 0] < x0) | (pts[:, 0] > x1) | (pts[:, 1] < y0) | (pts[:, 1] > y1)
    return bool(outside.any())


def view_covers_bounds(bounds: Optional[ViewWindow], window: ViewWindow) -> bool:
    """Return whether ``window`` already shows all of ``bounds`` (``True`` if no bounds)."""
    if bounds is None:
        return True
    return window.covers(bounds)


def in_view_count(items: Iterable[Any], window: Optional[ViewWindow]) -> int:
    """Count positioned items inside ``window`` (all of them when there is no window)."""
    pts = coordinates(items)
    if window is None:
        return int(pts.shape[0])
    x_lo, x_hi = sorted(window.x_range)
    y_lo, y_hi = sorted(window.y_range)
    inside = (pts[:, 0] >= x_lo) & (pts[:, 0] <= x_hi) & (pts[:, 1] >= y_lo) & (pts[:, 1] <= y_hi)
    return int(inside.sum())


def clamp_range(rng: Range, bounds: Range) -> Range:
    """Intersect ``rng`` with ``bounds``; a range entirely outside is shifted in instead."""
    lo, hi = max(rng[0], bounds[0]), min(rng[1], bounds[1])
    if lo < hi:
        return (lo, hi)
    span = min(rng[1] - rng[0], bounds[1] - bounds[0])
    if rng[0] >= bounds[1]:
        return (bounds[1] - span, bounds[1])
    return (bounds[0], bounds[0] + span)


def zoomed_window(
    window: ViewWindow,
    scale: float,
    anchor_fx: float,
    anchor_fy: float,
    bounds: Optional[ViewWindow],
    *,
    min_span_fraction: float = 0.05,
) -> Optional[ViewWindow]:
    """Zoom ``window`` by ``scale`` about a fractional anchor.

    Returns ``None`` (no-op) for a degenerate window or for a zoom-out request
    while the window already covers ``bounds``. Zoom-in is limited so neither
    span drops below ``min_span_fraction`` of the bounds span; the result is
    clamped to ``bounds`` only when the effective scale zooms out.
    """
    if window.is_degenerate or not np.isfinite(scale) or scale <= 0:
        return None
    x_span = window.x_span
    y_span = window.y_span

    if scale > 1 and bounds is not None and view_covers_bounds(bounds, window):
        return None

    x_anchor, y_anchor = window.data_point(anchor_fx, anchor_fy)

    effective = scale
    if bounds is not None and scale < 1:
        min_x_span = bounds.x_span * min_span_fraction
        min_y_span = bounds.y_span * min_span_fraction
        effective = max(scale, min_x_span / x_span, min_y_span / y_span)

    new_x_span = x_span * effective
    new_y_span = y_span * effective
    x_range = (x_anchor - anchor_fx * new_x_span, x_anchor + (1 - anchor_fx) * new_x_span)
    y_range = (y_anchor - anchor_fy * new_y_span, y_anchor + (1 - anchor_fy) * new_y_span)

    if effective > 1 and bounds is not None:
        x_range = clamp_range(x_range, bounds.x_range)
        y_range = clamp_range(y_range, bounds.y_range)

    return ViewWindow(x_range, y_range)
