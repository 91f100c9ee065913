from __future__ import annotations

from typing import Sequence

from columnar_plot.charts import BarChart, BarDatum, CompositeChart
from columnar_plot.grouping import Group
from columnar_plot.scene import SceneNode

from .config import DEFAULT_PALETTE, SeriesDescriptor


BACKING_COLOR = "white"
HATCH_PATTERN_SIZE = 4
HATCH_STROKE_WIDTH = 2
HATCH_OPACITY = ".7"


def palette_color(palette: Sequence[str], index: int) -> str:
    """Palette lookup; indices past the end wrap around."""

    return palette[index % len(palette)]


def hatch_pattern_id(index: int) -> str:
    return f"diagonalHatch{index}"


def series_descriptor(series: Sequence[SeriesDescriptor], index: int) -> SeriesDescriptor | None:
    return series[index] if 0 <= index < len(series) else None


def series_fill(series: Sequence[SeriesDescriptor], index: int, palette: Sequence[str] = DEFAULT_PALETTE) -> str:
    descriptor = series_descriptor(series, index)
    if descriptor is not None and descriptor.hatch:
        return f"url(#{hatch_pattern_id(index)})"
    return palette_color(palette, index)


def x_units(chart_type: str, groups: Sequence[Group]) -> float:
    """Bar slots across the x range; layered/stacked bars are wider than grouped ones."""

    if not groups:
        return 1.0
    width = groups[0].size() * (len(groups) + 1)
    if chart_type in ("LAYERED", "STACKED"):
        return width / len(groups)
    return float(width)


def index_for_hatch(series: Sequence[SeriesDescriptor], index: int) -> int:
    """Sub-chart index of series `index`, counting the backing bar of each hatched series."""

    hatched = sum(1 for i in range(index + 1) if i < len(series) and series[i].hatch)
    return index + hatched


def build_series(
    chart_type: str,
    groups: Sequence[Group],
    series: Sequence[SeriesDescriptor],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> list[BarChart]:
    if not groups:
        return []
    if chart_type == "STACKED":
        stacked = BarChart(groups[0], color=lambda d: palette_color(palette, d.layer))
        for g in groups[1:]:
            stacked.stack(g)
        return [stacked]

    charts: list[BarChart] = []
    for index, g in enumerate(groups):
        descriptor = series_descriptor(series, index)
        if descriptor is not None and descriptor.hatch:
            # Keeps the hatch visible over bars drawn by earlier series.
            charts.append(BarChart(g, color=BACKING_COLOR))
        charts.append(BarChart(g, color=series_fill(series, index, palette)))
    return charts


def compose_series(
    chart: CompositeChart,
    chart_type: str,
    groups: Sequence[Group],
    series: Sequence[SeriesDescriptor],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> list[BarChart]:
    children = build_series(chart_type, groups, series, palette)
    chart.compose(children)
    return children


def apply_hatching(
    svg: SceneNode,
    series: Sequence[SeriesDescriptor],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> list[SceneNode]:
    """Write one diagonal hatch pattern per hatched series into `svg > defs`."""

    defs = svg.select("defs")
    if defs is None:
        defs = svg.append("defs")
    patterns: list[SceneNode] = []
    for index, descriptor in enumerate(series):
        if not descriptor.hatch:
            continue
        pattern_id = hatch_pattern_id(index)
        for stale in defs.select_all(f"pattern#{pattern_id}"):
            stale.remove()
        angle = 45 if descriptor.hatch == "pos" else -45
        pattern = defs.append(
            "pattern",
            {
                "id": pattern_id,
                "patternUnits": "userSpaceOnUse",
                "width": HATCH_PATTERN_SIZE,
                "height": HATCH_PATTERN_SIZE,
                "patternTransform": f"rotate({angle})",
            },
        )
        pattern.append(
            "rect",
            {
                "width": HATCH_STROKE_WIDTH,
                "height": HATCH_PATTERN_SIZE,
                "fill": palette_color(palette, index),
                "opacity": HATCH_OPACITY,
            },
        )
        patterns.append(pattern)
    return patterns


def recolor_stacked_layers(chart: CompositeChart, palette: Sequence[str] = DEFAULT_PALETTE) -> int:
    bars = chart.select_all("g.stack rect.bar")
    for bar in bars:
        datum = bar.datum
        if isinstance(datum, BarDatum):
            bar.set("fill", palette_color(palette, datum.layer))
    return len(bars)
