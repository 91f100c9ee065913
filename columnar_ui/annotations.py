from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Sequence

import numpy as np

from columnar_plot.charts import CompositeChart
from columnar_plot.grouping import Group
from columnar_plot.scales import format_tick
from columnar_plot.scene import SceneNode

from .composer import palette_color
from .config import DEFAULT_PALETTE, ComparisonLine


LOGGER = logging.getLogger(__name__)

INLINE_LABELS_ID = "inline-labels"
COMPARISON_TEXT_ID = "comparison-text"
CARET_UP = "\uf0d8"
CARET_DOWN = "\uf0d7"
LABEL_FONT_SIZE = "12px"
MIN_LABEL_Y = 12


@dataclass(frozen=True)
class MaxMin:
    max_index: int
    max_value: float
    min_index: int
    min_value: float

    @property
    def same_bar(self) -> bool:
        return self.max_index == self.min_index


def compute_max_min(values: Sequence[float]) -> MaxMin | None:
    """Extremes over strictly positive values; the first occurrence wins ties."""

    arr = np.asarray(values, dtype=np.float64)
    candidates = np.flatnonzero(arr > 0)
    if candidates.size == 0:
        return None
    positive = arr[candidates]
    max_index = int(candidates[int(np.argmax(positive))])
    min_index = int(candidates[int(np.argmin(positive))])
    return MaxMin(
        max_index=max_index,
        max_value=float(arr[max_index]),
        min_index=min_index,
        min_value=float(arr[min_index]),
    )


def remove_inline_labels(chart: CompositeChart) -> None:
    for node in chart.select_all(f"#{INLINE_LABELS_ID}"):
        node.remove()


def _bar_center(bar: SceneNode) -> float:
    return float(bar.get("x", 0.0)) + float(bar.get("width", 0.0)) / 2.0


def add_max_min_labels(
    chart: CompositeChart,
    groups: Sequence[Group],
    series_index: int,
    *,
    palette: Sequence[str] = DEFAULT_PALETTE,
    formatter: Callable[[float], Any] | None = None,
) -> SceneNode | None:
    """Label the largest and smallest positive bar of one series.

    Labels sit above the tallest bar anywhere in the chart so no stacked or
    layered bar covers them. Returns the `#inline-labels` group, or None when
    nothing was drawn.
    """

    if not 0 <= series_index < len(groups):
        LOGGER.warning("series_max_min=%d is outside the %d configured group(s)", series_index, len(groups))
        return None
    bars = chart.select_all("g.sub._0 rect.bar")
    if not bars:
        return None
    extremes = compute_max_min(groups[series_index].values())
    if extremes is None:
        return None

    fmt = formatter or format_tick
    color = palette_color(palette, series_index)
    all_bars = chart.select_all("g.sub rect.bar")
    top_y = int(min(float(b.get("y", 0.0)) for b in all_bars))
    label_y = max(MIN_LABEL_Y, top_y - 2)

    assert bars[0].parent is not None
    labels = bars[0].parent.append("g", {"id": INLINE_LABELS_ID})
    if extremes.max_index < len(bars):
        x = _bar_center(bars[extremes.max_index])
        labels.append(
            "text",
            {"x": x, "y": label_y, "text-anchor": "middle", "font-size": LABEL_FONT_SIZE, "fill": color},
            classes=("max-value-text",),
            text=str(fmt(extremes.max_value)),
        )
        if not extremes.same_bar:
            labels.append(
                "text",
                {"x": x, "y": top_y - 12, "text-anchor": "middle"},
                classes=("caret-icon", "max-value-indicator"),
                text=CARET_UP,
            )
    if not extremes.same_bar and extremes.min_index < len(bars):
        x = _bar_center(bars[extremes.min_index])
        labels.append(
            "text",
            {"x": x, "y": label_y, "text-anchor": "middle", "font-size": LABEL_FONT_SIZE, "fill": color},
            classes=("min-value-text",),
            text=str(fmt(extremes.min_value)),
        )
        labels.append(
            "text",
            {"x": x, "y": top_y - 12, "text-anchor": "middle"},
            classes=("caret-icon", "min-value-indicator"),
            text=CARET_DOWN,
        )
    return labels


def add_comparison_line(chart: CompositeChart, line: ComparisonLine) -> list[SceneNode]:
    """Draw a horizontal threshold with end ticks and a value label; replaces any previous one."""

    root = chart.root
    if root is None:
        return []
    for node in chart.select_all(".comparison-line"):
        node.remove()
    for node in chart.select_all(f"#{COMPARISON_TEXT_ID}"):
        node.remove()

    margins = chart.margins
    y = chart.y(line.value)
    left = margins.left
    right = chart.width - margins.right
    style = f"stroke: {line.color}"
    drawn = [
        root.append(
            "line",
            {"x1": left, "x2": right, "y1": margins.top + y, "y2": margins.top + y, "style": style},
            classes=("comparison-line",),
        ),
        root.append(
            "line",
            {"x1": left, "x2": left, "y1": 15 + y, "y2": 5 + y, "style": style},
            classes=("comparison-line",),
        ),
        root.append(
            "line",
            {"x1": right, "x2": right, "y1": 15 + y, "y2": 5 + y, "style": style},
            classes=("comparison-line",),
        ),
    ]
    drawn.append(
        root.append(
            "text",
            {
                "x": 80,
                "y": 14 + y,
                "text-anchor": "middle",
                "font-size": LABEL_FONT_SIZE,
                "id": COMPARISON_TEXT_ID,
                "fill": line.text_color,
            },
            text=line.display_value,
        )
    )
    return drawn
