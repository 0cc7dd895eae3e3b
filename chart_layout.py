"""Chart layout primitives.

This module builds the notebook widget tree used by :class:`RankChart`: a
title bar with the in-view tagline and zoom buttons, the plot area, and a
sidebar holding the comparison panel.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import ipywidgets as widgets
from IPython.display import display

# SECTION: OneShotOutput [id: OneShotOutput]
# =============================================================================


class OneShotOutput(widgets.Output):
    """
    An Output widget that can only be displayed once.

    Widgets are live objects bound to the frontend by a comm channel; showing
    the same instance twice leaves two copies that both update. Displaying a
    ``OneShotOutput`` a second time raises ``RuntimeError`` instead.

    Examples
    --------
    >>> out = OneShotOutput()  # doctest: +SKIP
    >>> display(out)  # doctest: +SKIP
    >>> display(out)  # doctest: +SKIP
    RuntimeError: OneShotOutput has already been displayed...
    """

    __slots__ = ("_displayed",)

    def __init__(self) -> None:
        super().__init__()
        self._displayed = False

    def _repr_mimebundle_(
        self, include: Any = None, exclude: Any = None, **kwargs: Any
    ) -> Any:
        """IPython rich display hook; refuses a second display."""
        if self._displayed:
            raise RuntimeError(
                "OneShotOutput has already been displayed. "
                "This widget supports only one-time display."
            )
        self._displayed = True
        return super()._repr_mimebundle_(include=include, exclude=exclude, **kwargs)


# =============================================================================
# SECTION: ChartLayout (The View) [id: ChartLayout]
# =============================================================================


class ChartLayout:
    """
    Widget hierarchy of a :class:`RankChart`.

    Responsibilities:
    - Building the title bar (title, "Showing N Rubbers" tagline, filter
      summary, zoom buttons, full-width toggle).
    - Providing a plot container with a real pixel height for Plotly sizing.
    - Hosting the comparison panel in a sidebar that wraps below the plot on
      narrow screens.

    Parameters
    ----------
    title : str, optional
        Initial title HTML.
    plot_height : str, optional
        CSS height of the plot container.
    """

    def __init__(self, title: str = "", *, plot_height: str = "60vh") -> None:
        self._reflow_callback: Callable[[], None] | None = None

        # 1. Title Bar
        self.title_html = widgets.HTML(value=title, layout=widgets.Layout(margin="0px"))
        self.tagline_html = widgets.HTML(value="", layout=widgets.Layout(margin="0 0 0 12px"))
        self.filter_summary_html = widgets.HTML(value="", layout=widgets.Layout(margin="0 0 0 12px"))
        self.zoom_in_button = self._tool_button("+", "Zoom in")
        self.zoom_out_button = self._tool_button("−", "Zoom out")
        self.autoscale_button = self._tool_button("⤢", "Show all")
        self.full_width_checkbox = widgets.Checkbox(
            value=False,
            description="Full width plot",
            indent=False,
            layout=widgets.Layout(width="160px", margin="0px"),
        )
        self._titlebar = widgets.HBox(
            [
                widgets.HBox(
                    [self.title_html, self.tagline_html, self.filter_summary_html],
                    layout=widgets.Layout(align_items="center"),
                ),
                widgets.HBox(
                    [
                        self.zoom_in_button,
                        self.zoom_out_button,
                        self.autoscale_button,
                        self.full_width_checkbox,
                    ],
                    layout=widgets.Layout(align_items="center", gap="4px"),
                ),
            ],
            layout=widgets.Layout(
                width="100%",
                align_items="center",
                justify_content="space-between",
                margin="0 0 6px 0",
            ),
        )

        # 2. Plot Area
        #    Ensure a real pixel height for Plotly sizing.
        self.plot_container = widgets.Box(
            children=(),
            layout=widgets.Layout(
                width="100%",
                height=plot_height,
                min_width="320px",
                min_height="260px",
                margin="0px",
                padding="0px",
                flex="1 1 560px",
            ),
        )

        # 3. Sidebar: hidden until a comparison widget is attached.
        self.comparison_header = widgets.HTML(
            "<b>Compare</b>", layout=widgets.Layout(margin="0")
        )
        self.comparison_box = widgets.VBox(
            layout=widgets.Layout(
                width="100%",
                padding="8px",
                border="1px solid rgba(15,23,42,0.08)",
                border_radius="10px",
            )
        )
        self.sidebar_container = widgets.VBox(
            [self.comparison_header, self.comparison_box],
            layout=widgets.Layout(
                margin="0px",
                padding="0px 0px 0px 10px",
                flex="0 1 380px",
                min_width="300px",
                max_width="400px",
                display="none",
            ),
        )

        # 4. Main Content Wrapper (Flex)
        self.left_panel = widgets.VBox(
            [self.plot_container],
            layout=widgets.Layout(width="100%", flex="1 1 560px", margin="0px", padding="0px"),
        )
        self.content_wrapper = widgets.Box(
            [self.left_panel, self.sidebar_container],
            layout=widgets.Layout(
                display="flex",
                flex_flow="row wrap",
                align_items="flex-start",
                width="100%",
                gap="8px",
            ),
        )

        # 5. Root Widget
        self.root_widget = widgets.VBox(
            [self._titlebar, self.content_wrapper],
            layout=widgets.Layout(width="100%", position="relative"),
        )

        self.full_width_checkbox.observe(self._on_full_width_change, names="value")

    @staticmethod
    def _tool_button(label: str, tooltip: str) -> widgets.Button:
        return widgets.Button(
            description=label,
            tooltip=tooltip,
            layout=widgets.Layout(width="34px", height="28px", padding="0px"),
        )

    @property
    def output_widget(self) -> OneShotOutput:
        """Return a OneShotOutput wrapping the layout, ready for display."""
        out = OneShotOutput()
        with out:
            display(self.root_widget)
        return out

    def get_title(self) -> str:
        return self.title_html.value

    def set_in_view_count(self, count: int) -> None:
        """Update the tagline with the number of filtered items inside the view."""
        self.tagline_html.value = f"Showing {int(count)} Rubbers"

    def set_filter_summary(self, text: str) -> None:
        self.filter_summary_html.value = text

    def set_plot_widget(
        self,
        widget: widgets.Widget,
        *,
        reflow_callback: Callable[[], None] | None = None,
    ) -> None:
        """Attach the plot widget and the callback used after layout changes.

        Parameters
        ----------
        widget : ipywidgets.Widget
            The plot widget to display.
        reflow_callback : callable, optional
            Called when the plot's available size changes (full-width toggle,
            sidebar visibility).
        """
        self.plot_container.children = (widget,)
        self._reflow_callback = reflow_callback

    def set_comparison_widget(self, widget: widgets.Widget | None) -> None:
        """Show ``widget`` in the sidebar, or hide the sidebar for ``None``."""
        self.comparison_box.children = () if widget is None else (widget,)
        self.sidebar_container.layout.display = "none" if widget is None else "flex"
        self._reflow()

    def observe_zoom_buttons(
        self,
        *,
        zoom_in: Callable[[], Any],
        zoom_out: Callable[[], Any],
        autoscale: Callable[[], Any],
    ) -> None:
        """Wire the title-bar buttons to controller callbacks."""
        self.zoom_in_button.on_click(lambda _button: zoom_in())
        self.zoom_out_button.on_click(lambda _button: zoom_out())
        self.autoscale_button.on_click(lambda _button: autoscale())

    def _reflow(self) -> None:
        if self._reflow_callback is not None:
            self._reflow_callback()

    def _on_full_width_change(self, change: dict[str, Any]) -> None:
        """Toggle CSS flex properties for full-width mode."""
        is_full = change["new"]
        layout = self.content_wrapper.layout
        plot_layout = self.left_panel.layout
        sidebar_layout = self.sidebar_container.layout

        if is_full:
            layout.flex_flow = "column"
            plot_layout.flex = "0 0 auto"
            sidebar_layout.flex = "0 0 auto"
            sidebar_layout.max_width = ""
            sidebar_layout.width = "100%"
            sidebar_layout.padding = "0px"
        else:
            layout.flex_flow = "row wrap"
            plot_layout.flex = "1 1 560px"
            sidebar_layout.flex = "0 1 380px"
            sidebar_layout.max_width = "400px"
            sidebar_layout.width = "auto"
            sidebar_layout.padding = "0px 0px 0px 10px"
        self._reflow()
