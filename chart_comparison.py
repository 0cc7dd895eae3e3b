"""Two-slot item comparison: selection, radar scores and the sidebar panel.

Clicking a chart point fills slot 1, the next click fills slot 2, and further
clicks keep alternating. The radar compares the selected items on five axes:

- speed, spin and control use the rank score ``(total - rank + 1) / total * 100``,
- weight and hardness use the value score ``(v - min) / (max - min) * 100`` over
  the catalog bounds, or ``50`` when the score is undefined.

Scores are remapped into ``50..100`` so traces start from the middle ring. When
both items share a brand colour the second one is drawn dotted.
"""

from __future__ import annotations

import html
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import ipywidgets as widgets
import plotly.graph_objects as go

from .chart_filters import FilterBounds
from .chart_traces import brand_color, control_indicator
from .rank_projection import item_tiers

RADAR_CATEGORIES: Tuple[str, ...] = (
    "Speed<br>(faster)",
    "Spin<br>(spinnier)",
    "Control<br>(more control)",
    "Weight<br>(heavier)",
    "Hardness<br>(harder)",
)


def rank_score(rank: Optional[float], total: Optional[float]) -> float:
    """Return the 0..100 score of a 1-based rank (0 when undefined)."""
    if rank is None or total is None or not (math.isfinite(rank) and math.isfinite(total)) or total <= 0:
        return 0.0
    return (total - rank + 1) / total * 100.0


def value_score(value: Optional[float], lo: Optional[float], hi: Optional[float]) -> float:
    """Return the 0..100 position of ``value`` in ``[lo, hi]`` (50 when undefined)."""
    if value is None or lo is None or hi is None:
        return 50.0
    if not all(math.isfinite(v) for v in (value, lo, hi)) or hi <= lo:
        return 50.0
    return (value - lo) / (hi - lo) * 100.0


def remap_score(score: float) -> float:
    return 50.0 + score * 0.5


def translucent(colour: str, alpha: float = 0.13) -> str:
    """Return ``#rrggbb`` as an ``rgba(...)`` string with the given opacity."""
    digits = colour.lstrip("#")
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r},{g},{b},{alpha})"


@dataclass(frozen=True)
class RadarScores:
    speed: float
    spin: float
    control: float
    weight: float
    hardness: float

    def values(self) -> List[float]:
        """Return the remapped scores in ``RADAR_CATEGORIES`` order."""
        return [remap_score(v) for v in (self.speed, self.spin, self.control, self.weight, self.hardness)]


def radar_scores(item: Any, catalog: Sequence[Any], bounds: Optional[FilterBounds] = None) -> RadarScores:
    """Score ``item`` against the whole ``catalog``."""
    spin_total = max((c.spin_rank for c in catalog if c.spin_rank is not None), default=1)
    speed_total = max((c.speed_rank for c in catalog if c.speed_rank is not None), default=1)
    control_total = item.control_total or spin_total
    if bounds is None:
        bounds = FilterBounds.from_items(catalog)
    w_lo, w_hi = bounds.weight or (None, None)
    h_lo, h_hi = bounds.hardness or (None, None)
    return RadarScores(
        speed=rank_score(item.speed_rank, speed_total),
        spin=rank_score(item.spin_rank, spin_total),
        control=rank_score(item.control_rank, control_total),
        weight=value_score(item.weight, w_lo, w_hi),
        hardness=value_score(item.normalized_hardness, h_lo, h_hi),
    )


def radar_trace(item: Any, scores: RadarScores, *, dashed: bool = False) -> go.Scatterpolar:
    colour = brand_color(item.brand)
    values = scores.values()
    line = dict(color=colour, width=2.5)
    if dashed:
        line["dash"] = "dot"
    return go.Scatterpolar(
        r=values + values[:1],
        theta=list(RADAR_CATEGORIES) + [RADAR_CATEGORIES[0]],
        fill="toself",
        fillcolor=translucent(colour),
        line=line,
        marker=dict(color=colour, size=5),
        name=f"{item.brand} {item.name}",
        hoverinfo="skip",
    )


def radar_traces(
    first: Optional[Any], second: Optional[Any], catalog: Sequence[Any]
) -> List[go.Scatterpolar]:
    """Return radar traces for the selected pair (a grid placeholder when empty)."""
    if first is None and second is None:
        return [
            go.Scatterpolar(
                r=[0] * len(RADAR_CATEGORIES),
                theta=list(RADAR_CATEGORIES),
                mode="none",
                hoverinfo="skip",
                showlegend=False,
            )
        ]
    bounds = FilterBounds.from_items(catalog)
    traces = []
    if first is not None:
        traces.append(radar_trace(first, radar_scores(first, catalog, bounds)))
    if second is not None:
        traces.append(
            radar_trace(second, radar_scores(second, catalog, bounds), dashed=shares_colour(first, second))
        )
    return traces


def radar_layout(height: int = 260) -> dict:
    grid = "rgba(158,150,137,0.18)"
    return dict(
        height=height,
        showlegend=False,
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(t=42, b=38, l=55, r=55),
        polar=dict(
            bgcolor="rgba(0,0,0,0)",
            radialaxis=dict(visible=True, range=[0, 105], showticklabels=False, gridcolor=grid),
            angularaxis=dict(
                categoryorder="array",
                categoryarray=list(RADAR_CATEGORIES),
                gridcolor=grid,
                tickfont=dict(color="#e8e0d0", size=11),
            ),
        ),
    )


def shares_colour(first: Optional[Any], second: Optional[Any]) -> bool:
    if first is None or second is None:
        return False
    return brand_color(first.brand) == brand_color(second.brand)


def info_html(item: Optional[Any], *, dashed: bool = False) -> str:
    """Return the detail card HTML shown next to the radar."""
    if item is None:
        return ""
    esc = html.escape
    colour = brand_color(item.brand)
    spin = f"#{item.spin_rank}" if item.spin_rank is not None else "-"
    speed = f"#{item.speed_rank}" if item.speed_rank is not None else "-"
    rows = [
        ("Speed", speed),
        ("Spin", spin),
        ("Control", control_indicator(item_tiers(item).level)),
        ("Weight", item.weight_label),
        ("Hardness", item.hardness_label),
        ("Release", item.release_year_label),
        ("Thickness", item.thickness_label),
        ("Player", item.player_label),
    ]
    key = "dotted" if dashed else "solid"
    body = "".join(f"<tr><td>{esc(k)}</td><td><b>{esc(str(v))}</b></td></tr>" for k, v in rows)
    return (
        f"<div style='color:{colour}'>{esc(item.brand)}</div>"
        f"<div style='color:{colour};font-weight:600'>{esc(item.name)}</div>"
        f"<div style='border-top:2.5px {key} {colour};width:28px;margin:4px 0'></div>"
        f"<table>{body}</table>"
    )


class ComparisonSelection:
    """Two alternating comparison slots."""

    def __init__(self) -> None:
        self._slots: List[Optional[Any]] = [None, None]
        self._next = 0

    @property
    def items(self) -> Tuple[Optional[Any], Optional[Any]]:
        return (self._slots[0], self._slots[1])

    @property
    def next_slot(self) -> int:
        """Return the 0-based slot the next selection will fill."""
        return self._next

    def select(self, item: Any) -> int:
        """Place ``item`` in the next slot and return that slot's index."""
        slot = self._next
        self._slots[slot] = item
        self._next = 1 - slot
        return slot

    def clear(self) -> None:
        self._slots = [None, None]
        self._next = 0


class ComparisonPanel:
    """Sidebar widget: radar figure plus one detail card per slot."""

    def __init__(self, *, height: int = 260) -> None:
        self.selection = ComparisonSelection()
        self.radar = go.FigureWidget(layout=radar_layout(height))
        self.first_info = widgets.HTML("", layout=widgets.Layout(width="50%"))
        self.second_info = widgets.HTML("", layout=widgets.Layout(width="50%"))
        self.widget = widgets.VBox(
            [self.radar, widgets.HBox([self.first_info, self.second_info], layout=widgets.Layout(width="100%"))],
            layout=widgets.Layout(width="100%"),
        )

    def select(self, item: Any, catalog: Sequence[Any]) -> int:
        slot = self.selection.select(item)
        self.refresh(catalog)
        return slot

    def refresh(self, catalog: Sequence[Any]) -> None:
        """Redraw the radar and cards from the current selection."""
        first, second = self.selection.items
        dashed = shares_colour(first, second)
        self.radar.data = ()
        self.radar.add_traces(radar_traces(first, second, catalog))
        self.first_info.value = info_html(first)
        self.second_info.value = info_html(second, dashed=dashed)
