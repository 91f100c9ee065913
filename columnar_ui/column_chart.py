from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Sequence

from columnar_plot.charts import BarDatum, CompositeChart, Margins
from columnar_plot.grouping import Group

from .annotations import add_comparison_line, add_max_min_labels, remove_inline_labels
from .base_chart import BaseChartComponent
from .composer import apply_hatching, compose_series, recolor_stacked_layers, x_units
from .legend import LegendSelectionController, build_legend_items, render_legend
from .placeholder import show_chart_not_available
from .ticks import decorate_current_interval_tick, plan_axis_ticks
from .tooltip import Tooltip, format_tooltip


LOGGER = logging.getLogger(__name__)

MARGIN_TOP = 10
MARGIN_RIGHT = 100
MARGIN_BOTTOM = 50
MARGIN_LEFT = 100
Y_AXIS_PADDING = 0.4


def _key_extent(groups: Sequence[Group]) -> tuple[Any, Any] | None:
    keys = [kv.key for g in groups for kv in g.all()]
    if not keys:
        return None
    return (min(keys), max(keys))


class ColumnChart(BaseChartComponent):
    """Time-series column chart: grouped, layered or stacked bar series."""

    class_names = ("chart", "column-chart")

    _layout: tuple[Any, ...] | None = None

    def layout_key(self) -> tuple[Any, ...]:
        """Settings baked into the chart handle; a change needs a full rebuild."""

        cfg = self.config
        return (
            cfg.is_chart_available,
            cfg.chart_type,
            cfg.height,
            cfg.width,
            cfg.show_legend,
            cfg.legend_width,
            len(cfg.groups),
            tuple(s.hatch for s in cfg.series),
        )

    def x_domain(self) -> tuple[Any, Any] | None:
        return self.config.x_axis.domain or _key_extent(self.config.groups)

    def planned_tick_values(self, domain: tuple[Any, Any]) -> list[dt.datetime] | None:
        cfg = self.config
        if cfg.current_interval is None or not cfg.show_current_indicator or not cfg.x_axis.ticks:
            return None
        return plan_axis_ticks(domain, cfg.x_axis.ticks, cfg.current_interval, show_current=True)

    def build_chart(self) -> CompositeChart | None:
        cfg = self.config
        domain = self.x_domain()
        if domain is None:
            LOGGER.debug("chart %s has no x domain and no keyed data; skipping rebuild", self.element_id)
            return None

        chart = CompositeChart(
            self.element,
            x_domain=domain,
            height=cfg.height,
            width=cfg.width,
            margins=Margins(
                top=MARGIN_TOP,
                right=cfg.legend_width if cfg.show_legend else MARGIN_RIGHT,
                bottom=MARGIN_BOTTOM,
                left=MARGIN_LEFT,
            ),
            elastic_y=True,
            y_axis_padding=Y_AXIS_PADDING,
        )
        self.compose(chart, domain)
        self._layout = self.layout_key()
        tooltip = self.create_tooltip()

        guard = self.context.token.guard
        chart.on("pretransition", guard(self.do_hatching))
        chart.on("renderlet", guard(lambda c: self.on_renderlet(c, tooltip)))
        return chart

    def compose(self, chart: CompositeChart, domain: tuple[Any, Any]) -> None:
        """Point `chart` at the current groups, axes and series."""

        cfg = self.config
        groups = cfg.groups
        chart.x_domain = (domain[0], domain[1])
        chart.x_ticks = cfg.x_axis.ticks
        chart.x_tick_values = self.planned_tick_values(domain)
        chart.y_ticks = cfg.y_axis.ticks
        chart.y_domain = cfg.y_axis.domain
        chart.dimension = cfg.dimension
        chart.x_units = lambda: x_units(cfg.chart_type, groups)
        compose_series(chart, cfg.chart_type, groups, cfg.series, cfg.palette)

    def refresh_chart(self, chart: CompositeChart) -> None:
        domain = self.x_domain()
        cfg = self.config
        stale = self.layout_key() != self._layout
        if domain is None or stale or not cfg.is_chart_available or not cfg.has_required_data:
            self.create_chart()
            return
        self.compose(chart, domain)
        chart.redraw()

    def create_tooltip(self) -> Tooltip:
        return Tooltip(self.element_id, html=self.tooltip_html)

    def tooltip_html(self, datum: BarDatum) -> str:
        cfg = self.config
        return format_tooltip(
            datum,
            self.data,
            cfg.titles,
            formatter=cfg.x_axis.formatter,
            date_format=cfg.tooltip_date_format,
        )

    def do_hatching(self, chart: CompositeChart) -> None:
        if chart.svg is not None:
            apply_hatching(chart.svg, self.config.series, self.config.palette)

    def on_renderlet(self, chart: CompositeChart, tooltip: Tooltip | None) -> None:
        cfg = self.config
        if cfg.chart_type == "STACKED":
            recolor_stacked_layers(chart, cfg.palette)

        self.add_click_handlers_and_tooltips(chart, tooltip)
        remove_inline_labels(chart)

        series_max_min = cfg.series_max_min
        if cfg.show_max_min and isinstance(series_max_min, int) and not isinstance(series_max_min, bool):
            if chart.select_all("g.sub._0 rect.bar"):
                add_max_min_labels(
                    chart,
                    cfg.groups,
                    series_max_min,
                    palette=cfg.palette,
                    formatter=cfg.x_axis.formatter,
                )

        if cfg.show_comparison_line and cfg.comparison_line is not None and not self.data.is_empty:
            add_comparison_line(chart, cfg.comparison_line)

        if cfg.show_current_indicator and cfg.current_interval is not None:
            axis = chart.select("g.axis.x")
            if axis is not None:
                decorate_current_interval_tick(axis, chart.x_domain, cfg.x_axis.ticks, cfg.current_interval)

        if cfg.show_legend:
            self.add_legend(chart)

    def add_legend(self, chart: CompositeChart) -> LegendSelectionController:
        cfg = self.config
        controller = LegendSelectionController(build_legend_items(chart, cfg.chart_type, cfg.series, cfg.palette))
        self.context.legend = controller
        render_legend(chart, controller)
        return controller

    def show_chart_not_available(self) -> None:
        self._layout = self.layout_key()
        self.context.chart = show_chart_not_available(self.element, self.config, guard=self.context.token.guard)
