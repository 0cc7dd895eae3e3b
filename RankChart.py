"""
RankChart: interactive spin/speed rank chart for Jupyter.

Purpose
-------
Ties the pure pieces of the package together into one notebook widget:

- the catalog of projected items and the filter state,
- a :class:`ViewportController` that owns the view window,
- the declutter pass that decides which labels fit at the current zoom,
- a Plotly ``FigureWidget`` inside a :class:`PlotlyPane` that renders the
  visible items and reports pan/zoom back,
- an optional comparison sidebar fed by point clicks.

Render pipeline
---------------
Every redraw follows the same sequence: the controller arms the re-entrancy
guard and notifies ``RankChart``; the declutter pass runs against the window
and the plot-area pixel size; traces are replaced; when the window originated
on the Python side, both axis ranges are pinned with autorange off. Range
echoes from Plotly arrive while the guard is armed and are dropped.

Logging
-------
Renders are logged at INFO at most once per second and window ranges at DEBUG
at most every 0.5 s. The module attaches a ``NullHandler`` so importing it
never configures global logging.

Examples
--------
>>> chart = RankChart.from_records(records, tables)  # doctest: +SKIP
>>> chart  # doctest: +SKIP
>>> chart.apply_filters(chart.filters.with_brands({"Butterfly", "DHS"}))  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import plotly.graph_objects as go
from IPython.display import display

from .PlotlyPane import PlotlyPane, PlotlyPaneStyle
from .RankTable import RankTables
from .catalog import build_catalog
from .chart_comparison import ComparisonPanel
from .chart_declutter import DeclutterConfig, select_with_config
from .chart_filters import FilterBounds, FilterState, apply_filters
from .chart_layout import ChartLayout
from .chart_traces import ChartStyle, base_layout, build_traces, range_update
from .chart_view import ViewWindow, in_view_count
from .chart_viewport import ViewChange, ViewportConfig, ViewportController

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def _same_items(a: Sequence[Any], b: Sequence[Any]) -> bool:
    return len(a) == len(b) and all(x is y for x, y in zip(a, b))


class RankChart:
    """
    Notebook widget plotting catalog items by spin rank (x) and speed rank (y).

    Parameters
    ----------
    items : iterable of Item
        Projected catalog items (see :func:`build_catalog`).
    title : str, optional
        Title HTML shown in the title bar.
    filters : FilterState, optional
        Initial filter state.
    initial_window : ViewWindow, optional
        Window restored from a previous session; otherwise the first render
        autoscales.
    viewport_config, declutter_config, style : optional
        Tuning dataclasses.
    comparison : bool, optional
        Show the comparison sidebar and enable click selection.
    """

    def __init__(
        self,
        items: Iterable[Any],
        *,
        title: str = "<b>Rubber Rank Chart</b>",
        filters: Optional[FilterState] = None,
        initial_window: Optional[ViewWindow] = None,
        viewport_config: ViewportConfig = ViewportConfig(),
        declutter_config: DeclutterConfig = DeclutterConfig(),
        style: ChartStyle = ChartStyle(),
        comparison: bool = True,
    ) -> None:
        self._catalog: Tuple[Any, ...] = tuple(item for item in items if item.has_position)
        self._by_name = {item.full_name: item for item in self._catalog}
        self._bounds = FilterBounds.from_items(self._catalog)
        self._filters = filters if filters is not None else FilterState()
        self._filtered: Tuple[Any, ...] = ()
        self._visible: List[Any] = []
        self._has_rendered = False
        self._style = style
        self._declutter = declutter_config
        self._render_info_last_log_t = 0.0
        self._render_debug_last_log_t = 0.0

        self._layout = ChartLayout(title)
        self._figure = go.FigureWidget()
        self._figure.update_layout(**base_layout(style))
        self._pane = PlotlyPane(
            self._figure,
            style=PlotlyPaneStyle(
                padding_px=8,
                border="1px solid rgba(15,23,42,0.08)",
                border_radius_px=10,
                overflow="hidden",
            ),
            defer_reveal=True,
        )
        self._layout.set_plot_widget(self._pane.widget, reflow_callback=self._pane.reflow)

        self._comparison = ComparisonPanel() if comparison else None
        if self._comparison is not None:
            self._comparison.refresh(self._catalog)
            self._layout.set_comparison_widget(self._comparison.widget)

        self._controller = ViewportController(config=viewport_config, initial_window=initial_window)
        self._controller.subscribe(self._on_view_change)
        self._figure.layout.on_change(self._on_backend_relayout, "xaxis.range", "yaxis.range")
        self._pane.on_wheel(self._controller.request_wheel)
        self._pane.on_pinch(self._on_pinch)
        self._pane.on_resize(lambda _w, _h: self._controller.refresh("resize"))
        self._layout.observe_zoom_buttons(
            zoom_in=self._controller.zoom_in,
            zoom_out=self._controller.zoom_out,
            autoscale=self._controller.request_autoscale,
        )

        self.apply_filters(self._filters, force=True)

    @classmethod
    def from_records(
        cls, records: Iterable[Any], tables: RankTables, **kwargs: Any
    ) -> "RankChart":
        """Normalize raw catalog ``records`` against ``tables`` and build a chart."""
        return cls(build_catalog(records, tables), **kwargs)

    # --- Properties ---

    @property
    def catalog(self) -> Tuple[Any, ...]:
        return self._catalog

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def filter_bounds(self) -> FilterBounds:
        return self._bounds

    @property
    def filtered_items(self) -> Tuple[Any, ...]:
        return self._filtered

    @property
    def visible_items(self) -> List[Any]:
        """Return the items drawn by the last render, in priority order."""
        return list(self._visible)

    @property
    def controller(self) -> ViewportController:
        return self._controller

    @property
    def figure_widget(self) -> go.FigureWidget:
        return self._figure

    @property
    def pane(self) -> PlotlyPane:
        return self._pane

    @property
    def layout(self) -> ChartLayout:
        return self._layout

    @property
    def comparison(self) -> Optional[ComparisonPanel]:
        return self._comparison

    @property
    def widget(self) -> Any:
        """Return the root ipywidget."""
        return self._layout.root_widget

    # --- Operations ---

    def apply_filters(self, state: Optional[FilterState] = None, *, force: bool = False) -> bool:
        """Apply ``state`` (or re-apply the current one) and redraw if needed.

        Returns ``False`` when the filtered sequence is unchanged and ``force``
        is not set, in which case nothing is redrawn.
        """
        if state is not None:
            self._filters = state
        self._layout.set_filter_summary(self._filters.summary(self._bounds))
        filtered = tuple(apply_filters(self._catalog, self._filters, self._bounds))
        if not force and self._has_rendered and self._filtered and _same_items(filtered, self._filtered):
            return False
        self._filtered = filtered
        self._controller.set_items(filtered, reason="filter")
        return True

    def zoom_in(self) -> Optional[ViewWindow]:
        return self._controller.zoom_in()

    def zoom_out(self) -> Optional[ViewWindow]:
        return self._controller.zoom_out()

    def autoscale(self) -> Optional[ViewWindow]:
        return self._controller.request_autoscale()

    def pan(self, dfx: float, dfy: float) -> Optional[ViewWindow]:
        return self._controller.request_pan(dfx, dfy)

    def select_item(self, item_or_name: Any) -> Optional[int]:
        """Put an item (or full name) into the next comparison slot."""
        if self._comparison is None:
            return None
        item = self._by_name.get(item_or_name) if isinstance(item_or_name, str) else item_or_name
        if item is None:
            return None
        return self._comparison.select(item, self._catalog)

    def render(self, reason: str = "manual") -> None:
        """Redraw the current window (pinning its ranges on the backend)."""
        self._controller.refresh(reason)

    # --- Render pipeline ---

    def _plot_size(self) -> Tuple[int, int]:
        return self._pane.plot_size() or self._style.fallback_plot_size

    def _on_view_change(self, change: ViewChange) -> None:
        window = change.window
        width, height = self._plot_size()
        self._visible = select_with_config(self._filtered, window, width, height, self._declutter)

        self._figure.data = ()
        self._figure.add_traces(build_traces(self._visible, self._style))
        if self._comparison is not None:
            for trace in self._figure.data:
                if trace.customdata is not None:
                    trace.on_click(self._on_point_click)
        if change.push:
            self._figure.update_layout(range_update(window))

        self._layout.set_in_view_count(in_view_count(self._filtered, window))
        self._has_rendered = True
        self._log_render(change.reason, window)

    def _on_backend_relayout(self, _layout: Any, x_range: Any, y_range: Any) -> None:
        self._controller.on_backend_view_change(x_range, y_range)

    def _on_pinch(self, phase: str, payload: Any) -> None:
        try:
            if phase == "start":
                self._controller.begin_pinch(
                    float(payload["distance"]), float(payload["fx"]), float(payload["fy"])
                )
            elif phase == "move":
                self._controller.update_pinch(float(payload["distance"]))
            elif phase == "end":
                self._controller.end_pinch(int(payload.get("remaining", 0)))
        except (KeyError, TypeError, ValueError):
            logger.debug("malformed pinch payload for %s: %r", phase, payload)

    def _on_point_click(self, trace: Any, points: Any, _selector: Any = None) -> None:
        indices = list(getattr(points, "point_inds", []) or [])
        if not indices:
            return
        name = trace.customdata[indices[0]]
        self.select_item(name)

    def _log_render(self, reason: str, window: Optional[ViewWindow]) -> None:
        """Log render information with rate-limiting."""
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._render_info_last_log_t) > 1.0:
            self._render_info_last_log_t = now
            logger.info(
                "render(reason=%s) filtered=%d visible=%d",
                reason, len(self._filtered), len(self._visible),
            )

        if logger.isEnabledFor(logging.DEBUG) and (now - self._render_debug_last_log_t) > 0.5:
            self._render_debug_last_log_t = now
            if window is None:
                logger.debug("ranges autorange")
            else:
                logger.debug("ranges x=%s y=%s", window.x_range, window.y_range)

    def _ipython_display_(self, **kwargs: Any) -> None:
        """Display the chart's root widget (once)."""
        display(self._layout.output_widget)
