from __future__ import annotations

import datetime as dt
from typing import Callable

from columnar_plot.charts import BarChart, CompositeChart
from columnar_plot.grouping import Dimension, Group
from columnar_plot.scales import TimeScale
from columnar_plot.scene import SceneNode

from .config import ColumnChartConfig


HATCH_ID = "chartNotAvailableHatch"
MESSAGE_CLASS = "chart-not-available"
DAYS_PER_MONTH = 365.25 / 12.0
DEFAULT_PLACEHOLDER_TICKS = 30

ChartHook = Callable[[CompositeChart], None]
HookGuard = Callable[[ChartHook], ChartHook]


def placeholder_tick_count(domain: tuple[dt.datetime, dt.datetime]) -> int:
    """Bar density for the placeholder: daily past a month, else 30 / 24 / 30."""

    days = abs((domain[1] - domain[0]).total_seconds()) / 86400.0
    if days / DAYS_PER_MONTH >= 1:
        return max(1, int(days))
    if days >= 7:
        return 30
    if days >= 1:
        return 24
    return DEFAULT_PLACEHOLDER_TICKS


def placeholder_keys(domain: tuple[dt.datetime, dt.datetime]) -> list[dt.datetime]:
    ticks = TimeScale(domain=domain).ticks(placeholder_tick_count(domain))
    return ticks or [domain[0]]


def placeholder_group(domain: tuple[dt.datetime, dt.datetime]) -> tuple[Dimension, Group]:
    dimension = Dimension(placeholder_keys(domain), key=lambda d: d)
    return dimension, dimension.group_count()


def _hatch_bars(chart: CompositeChart, color: str) -> None:
    svg = chart.svg
    if svg is None:
        return
    defs = svg.select("defs")
    assert defs is not None
    for stale in defs.select_all(f"pattern#{HATCH_ID}"):
        stale.remove()
    pattern = defs.append(
        "pattern",
        {
            "id": HATCH_ID,
            "patternUnits": "userSpaceOnUse",
            "width": 4,
            "height": 4,
            "patternTransform": "rotate(45)",
        },
    )
    pattern.append("rect", {"x": 0, "y": 0, "width": 2, "height": 4, "fill": color})
    for bar in chart.select_all("rect.bar"):
        bar.set("fill", f"url(#{HATCH_ID})").set("opacity", ".7").set("rx", "2").set("stroke", "white")


def _show_message(chart: CompositeChart, message: str, text_color: str) -> None:
    svg = chart.svg
    if svg is None:
        return
    for stale in svg.select_all(f"svg > text.{MESSAGE_CLASS}"):
        stale.remove()
    svg.append(
        "text",
        {
            "style": f"fill: {text_color}",
            "text-anchor": "middle",
            "x": chart.width / 2.0,
            "y": chart.height / 2.0,
        },
        classes=(MESSAGE_CLASS,),
        text=message,
    )


def show_chart_not_available(
    anchor: SceneNode,
    config: ColumnChartConfig,
    *,
    guard: HookGuard | None = None,
    default_domain: tuple[dt.datetime, dt.datetime] | None = None,
) -> CompositeChart:
    """Render uniform hatched bars over the x domain with a centered message.

    Never reads the configured group; only the x axis domain and tick
    settings are used.
    """

    domain = config.x_axis.domain or default_domain
    if domain is None:
        midnight = dt.datetime.combine(dt.date.today(), dt.time())
        domain = (midnight, midnight + dt.timedelta(days=1))
    dimension, group = placeholder_group(domain)
    chart = CompositeChart(
        anchor,
        x_domain=domain,
        height=config.height,
        width=config.width,
        x_units=lambda: float(group.size() + 1),
        dimension=dimension,
        y_domain=(0.0, 1.0),
        x_ticks=config.x_axis.ticks,
        y_ticks=config.y_axis.ticks,
    )
    chart.compose([BarChart(group, color=config.chart_not_available_color)])
    wrap = guard or (lambda hook: hook)
    chart.on("pretransition", wrap(lambda c: _hatch_bars(c, config.chart_not_available_color)))
    chart.on(
        "postRender",
        wrap(lambda c: _show_message(c, config.chart_not_available_message, config.chart_not_available_text_color)),
    )
    chart.render()
    return chart
