"""Top-level public API for the ``rubber_chart`` package.

This module re-exports the notebook-facing surface so users can import from a
single namespace, for example:

>>> from rubber_chart import RankChart, RankTables  # doctest: +SKIP

It exposes both the chart widget and the pure building blocks (hardness
scales, rank projection, decluttering, viewport control) for use outside a
notebook.
"""

from .CatalogItem import DEFAULT_PRIORITY, SHEET_TYPES, Item
from .HardnessScale import (
    CANONICAL_COUNTRY,
    HARDNESS_SCALES,
    HardnessScale,
    convert,
    from_canonical,
    hardness_category,
    interpolate_scale,
    scale_equivalents,
    to_canonical,
)
from .RankTable import RankTable, RankTables
from .rank_projection import (
    ControlTiers,
    Projection,
    control_level,
    control_tier,
    control_tiers,
    display_priority,
    marker_size,
    project,
    project_catalog,
)
from .catalog import build_catalog, item_from_record, parse_measurement
from .chart_filters import FilterBounds, FilterState, RangeSelection, apply_filters
from .chart_view import ViewWindow, autoscale_bounds, should_autoscale, zoomed_window
from .chart_declutter import DeclutterConfig, select as declutter
from .chart_guard import GuardState, ReentrancyGuard
from .chart_viewport import ViewChange, ViewportConfig, ViewportController, ViewportState
from .chart_traces import ChartStyle
from .chart_comparison import ComparisonPanel, ComparisonSelection, radar_scores
from .PlotlyPane import PlotlyPane, PlotlyPaneStyle
from .RankChart import RankChart
