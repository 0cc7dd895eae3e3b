"""Plotly trace and layout construction for the rank chart.

Everything here is a pure function of the visible items and a
:class:`ChartStyle`; nothing touches a live figure. ``RankChart`` feeds the
results to ``FigureWidget.add_traces`` / ``update_layout``.

Trace order matters: the bestseller halo layer comes first so it is drawn
behind the regular markers, then one trace per ``(brand, sheet)`` group in
first-appearance order of the (priority-sorted) visible items.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from .HardnessScale import hardness_category
from .chart_view import ViewWindow
from .rank_projection import CONTROL_LEVEL_COUNT, HALO_EXTRA_SIZE, MARKER_SIZES, item_tiers, marker_size

BRAND_COLORS: Dict[str, str] = {
    "Butterfly": "#f11b85",
    "DHS": "#43d1d9",
    "Andro": "#4bad33",
    "JOOLA": "#d4da03",
    "Xiom": "#FF7F00",
    "Tibhar": "#e3000b",
    "Nittaku": "#3E49AA",
    "Donic": "#5E7DCC",
    "Yasaka": "#7e67ff",
}
DEFAULT_BRAND_COLOR = "#999999"

SHEET_SYMBOLS: Dict[str, str] = {
    "Classic": "circle",
    "Chinese": "square",
    "Hybrid": "diamond",
}

CHART_FONT = "-apple-system, BlinkMacSystemFont, Segoe UI, Roboto, sans-serif"


@dataclass(frozen=True)
class ChartStyle:
    """Colours, fonts and sizes used by the chart traces and layout.

    ``fallback_plot_size`` is used for decluttering until the frontend has
    reported the real plot-area size.
    """

    background: str = "#2b2926"
    grid_color: str = "#3e3a34"
    text_color: str = "#e8e0d0"
    muted_color: str = "#9b9484"
    accent_color: str = "#d4c16a"
    font_family: str = CHART_FONT
    label_size: int = 11
    marker_sizes: Tuple[int, ...] = MARKER_SIZES
    marker_line_color: str = "#2b2926"
    halo_extra_size: int = HALO_EXTRA_SIZE
    halo_color: str = "rgba(212,193,106,0.18)"
    halo_line_color: str = "rgba(212,193,106,0.5)"
    fallback_plot_size: Tuple[int, int] = (640, 480)


def brand_color(brand: str) -> str:
    return BRAND_COLORS.get(brand, DEFAULT_BRAND_COLOR)


def sheet_symbol(sheet: str) -> str:
    return SHEET_SYMBOLS.get(sheet, "circle")


def item_marker_size(item: Any, style: ChartStyle = ChartStyle()) -> int:
    return marker_size(item.control_rank, item.control_total, style.marker_sizes)


def control_indicator(level: Optional[int], levels: int = CONTROL_LEVEL_COUNT) -> str:
    """Return a box string with ``levels - level + 1`` filled boxes (``-`` if unknown)."""
    if level is None:
        return "-"
    level = max(1, min(levels, int(level)))
    filled = levels - level + 1
    return "□" * (levels - filled) + "■" * filled


def hover_card(item: Any) -> str:
    """Return the Plotly hover HTML for one item."""
    esc = html.escape
    tiers = item_tiers(item)
    spin = f"#{item.spin_rank}" if item.spin_rank is not None else "-"
    speed = f"#{item.speed_rank}" if item.speed_rank is not None else "-"
    category = hardness_category(item.normalized_hardness)
    hardness = item.hardness_label if category is None else f"{item.hardness_label} ({category})"
    lines = [
        f"<b>{esc(item.name)}</b>" + (" ★ Bestseller" if item.bestseller else ""),
        f"<span style='color:{brand_color(item.brand)}'>{esc(item.brand)}</span>",
        f"Spin Rank: {spin}",
        f"Speed Rank: {speed}",
        f"Control: {control_indicator(tiers.level)}",
        f"Weight: {esc(item.weight_label)}",
        f"Sheet: {esc(item.sheet)}",
        f"Hardness: {esc(hardness)}",
    ]
    return "<br>".join(lines)


def group_items(items: Sequence[Any]) -> Dict[Tuple[str, str], List[Any]]:
    """Group ``items`` by ``(brand, sheet)`` preserving first-appearance order."""
    groups: Dict[Tuple[str, str], List[Any]] = {}
    for item in items:
        groups.setdefault((item.brand, item.sheet), []).append(item)
    return groups


def halo_trace(items: Sequence[Any], style: ChartStyle = ChartStyle()) -> Optional[go.Scattergl]:
    """Return the bestseller halo layer, or ``None`` when no bestseller is visible."""
    bestsellers = [item for item in items if item.bestseller]
    if not bestsellers:
        return None
    return go.Scattergl(
        x=[item.x for item in bestsellers],
        y=[item.y for item in bestsellers],
        mode="markers",
        name="Bestseller",
        showlegend=False,
        hoverinfo="skip",
        marker=dict(
            size=[item_marker_size(item, style) + style.halo_extra_size for item in bestsellers],
            color=style.halo_color,
            symbol="circle",
            line=dict(width=2, color=style.halo_line_color),
        ),
    )


def group_trace(brand: str, sheet: str, items: Sequence[Any], style: ChartStyle = ChartStyle()) -> go.Scattergl:
    """Return the labelled marker trace for one ``(brand, sheet)`` group."""
    return go.Scattergl(
        x=[item.x for item in items],
        y=[item.y for item in items],
        mode="markers+text",
        name=f"{brand} ({sheet})",
        showlegend=False,
        marker=dict(
            size=[item_marker_size(item, style) for item in items],
            color=brand_color(brand),
            symbol=sheet_symbol(sheet),
            line=dict(width=1, color=style.marker_line_color),
        ),
        text=[item.abbr for item in items],
        textposition="top center",
        textfont=dict(size=style.label_size, color=style.text_color, family=style.font_family),
        hovertext=[hover_card(item) for item in items],
        hovertemplate="%{hovertext}<extra></extra>",
        customdata=[item.full_name for item in items],
    )


def build_traces(visible: Sequence[Any], style: ChartStyle = ChartStyle()) -> List[go.Scattergl]:
    """Return every trace for the visible (decluttered) items, halo first."""
    traces: List[go.Scattergl] = []
    halo = halo_trace(visible, style)
    if halo is not None:
        traces.append(halo)
    for (brand, sheet), members in group_items(visible).items():
        traces.append(group_trace(brand, sheet, members, style))
    return traces


def base_layout(style: ChartStyle = ChartStyle()) -> Dict[str, Any]:
    """Return the static layout: dark theme, pan drag mode and axis captions."""
    axis = dict(
        zeroline=False,
        gridcolor=style.grid_color,
        linecolor=style.grid_color,
        tickfont=dict(color=style.muted_color),
        showticklabels=False,
    )
    caption = dict(color=style.accent_color, size=13, family=style.font_family)
    return dict(
        dragmode="pan",
        hovermode="closest",
        showlegend=False,
        plot_bgcolor=style.background,
        paper_bgcolor=style.background,
        margin=dict(l=10, r=10, t=30, b=30),
        xaxis=dict(axis),
        yaxis=dict(axis),
        hoverlabel=dict(
            bgcolor=style.grid_color,
            bordercolor=style.muted_color,
            font=dict(color=style.text_color, family=style.font_family),
        ),
        annotations=[
            dict(
                x=0.995, y=-0.04, xref="paper", yref="paper", text="Spin →",
                showarrow=False, xanchor="right", yanchor="bottom", font=caption,
            ),
            dict(
                x=0.005, y=1.04, xref="paper", yref="paper", text="Speed ↑",
                showarrow=False, xanchor="left", yanchor="top", font=caption,
            ),
        ],
    )


def range_update(window: Optional[ViewWindow]) -> Dict[str, Any]:
    """Return the layout update that pins both axes to ``window``."""
    if window is None:
        return dict(xaxis=dict(autorange=True), yaxis=dict(autorange=True))
    return dict(
        xaxis=dict(autorange=False, range=list(window.x_range)),
        yaxis=dict(autorange=False, range=list(window.y_range)),
    )
