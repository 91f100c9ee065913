from columnar_ui.annotations import MaxMin, add_comparison_line, add_max_min_labels, compute_max_min
from columnar_ui.base_chart import BaseChartComponent, RenderContext
from columnar_ui.column_chart import ColumnChart
from columnar_ui.config import (
    CHART_TYPES,
    DEFAULT_PALETTE,
    AxisSpec,
    ColumnChartConfig,
    ComparisonLine,
    SeriesDescriptor,
    config_from_attrs,
)
from columnar_ui.data import NormalizedTable, reduce_groups
from columnar_ui.legend import LegendSelectionController, toggle_selection
from columnar_ui.resize import ResizeCoordinator
from columnar_ui.tooltip import Tooltip, format_tooltip

__all__ = [
    "AxisSpec",
    "BaseChartComponent",
    "CHART_TYPES",
    "ColumnChart",
    "ColumnChartConfig",
    "ComparisonLine",
    "DEFAULT_PALETTE",
    "LegendSelectionController",
    "MaxMin",
    "NormalizedTable",
    "RenderContext",
    "ResizeCoordinator",
    "SeriesDescriptor",
    "Tooltip",
    "add_comparison_line",
    "add_max_min_labels",
    "compute_max_min",
    "config_from_attrs",
    "format_tooltip",
    "reduce_groups",
    "toggle_selection",
]
