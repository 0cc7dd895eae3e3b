"""Priority-ordered label decluttering for the current view and pixel density.

Every candidate is mapped to pixel space through the affine transform implied
by the view window and the plot-area size. Candidates are visited in ascending
``priority`` (stable, so ties keep catalog order) and accepted greedily unless
an already-accepted item lies within ``min_dx_px`` horizontally *and*
``min_dy_px`` vertically: an L-infinity exclusion box around each label, not a
circle.

Rejected items are absent from the render pass entirely, so the visible count
tells the user how much the current zoom level hides. The selection depends on
both the window and the filtered set and is recomputed on every change of
either; nothing here caches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from .chart_view import ViewWindow


@dataclass(frozen=True)
class DeclutterConfig:
    """Minimum pixel separation between accepted labels."""

    min_dx_px: float = 55.0
    min_dy_px: float = 24.0

    def __post_init__(self) -> None:
        if self.min_dx_px < 0 or self.min_dy_px < 0:
            raise ValueError("declutter distances must be >= 0")


def to_pixels(
    items: Sequence[Any], window: ViewWindow, pixel_width: float, pixel_height: float
) -> np.ndarray:
    """Return an ``(n, 2)`` array of pixel positions for ``items``."""
    if not items:
        return np.empty((0, 2), dtype=float)
    pts = np.asarray([(item.x, item.y) for item in items], dtype=float)
    px = (pts[:, 0] - window.x_range[0]) / window.x_span * pixel_width
    py = (pts[:, 1] - window.y_range[0]) / window.y_span * pixel_height
    return np.column_stack((px, py))


def select(
    items: Sequence[Any],
    window: Optional[ViewWindow],
    pixel_width: float,
    pixel_height: float,
    min_dx_px: float = DeclutterConfig.min_dx_px,
    min_dy_px: float = DeclutterConfig.min_dy_px,
) -> List[Any]:
    """Return the priority-ordered subset of ``items`` whose labels do not collide.

    Parameters
    ----------
    items : sequence
        Positioned candidates exposing ``x``, ``y`` and ``priority``.
    window : ViewWindow or None
        Current view. ``None`` or a degenerate window bypasses decluttering.
    pixel_width, pixel_height : float
        Plot-area size in pixels.
    min_dx_px, min_dy_px : float
        Exclusion box half-sizes.

    Returns
    -------
    list
        Accepted items, sorted by priority. For bypassed inputs the candidates
        are returned unchanged.
    """
    candidates = list(items)
    if window is None or window.is_degenerate or not candidates:
        return candidates

    order = sorted(range(len(candidates)), key=lambda i: candidates[i].priority)
    ordered = [candidates[i] for i in order]
    pixels = to_pixels(ordered, window, pixel_width, pixel_height)

    accepted: List[Any] = []
    occupied = np.empty((len(ordered), 2), dtype=float)
    count = 0
    for item, (px, py) in zip(ordered, pixels):
        if count:
            taken = occupied[:count]
            blocked = (np.abs(taken[:, 0] - px) < min_dx_px) & (np.abs(taken[:, 1] - py) < min_dy_px)
            if blocked.any():
                continue
        occupied[count] = (px, py)
        count += 1
        accepted.append(item)
    return accepted


def select_with_config(
    items: Sequence[Any],
    window: Optional[ViewWindow],
    pixel_width: float,
    pixel_height: float,
    config: DeclutterConfig = DeclutterConfig(),
) -> List[Any]:
    """:func:`select` with distances taken from ``config``."""
    return select(items, window, pixel_width, pixel_height, config.min_dx_px, config.min_dy_px)
