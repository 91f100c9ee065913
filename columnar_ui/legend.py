from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Mapping, Sequence

from columnar_plot.charts import CompositeChart
from columnar_plot.scene import SceneNode

from .composer import index_for_hatch, palette_color, series_fill
from .config import DEFAULT_PALETTE, SeriesDescriptor


SelectionTag = Literal["neutral", "selected", "deselected"]
NEUTRAL: SelectionTag = "neutral"
SELECTED: SelectionTag = "selected"
DESELECTED: SelectionTag = "deselected"

LEGEND_SWATCH_PX = 18
LEGEND_ROW_PX = 22
LEGEND_LABEL_GAP_PX = 6


def legend_entry_id(index: int) -> str:
    return f"series-{index}"


def toggle_selection(
    clicked_id: str,
    entry_ids: Sequence[str],
    selection: Mapping[str, SelectionTag],
) -> dict[str, SelectionTag]:
    """Next selection map after a click on `clicked_id`.

    - neutral entry: isolate it (it becomes selected, every other entry deselected);
    - selected entry while another entry is selected: demote it to deselected;
    - the only selected entry: return every entry to neutral;
    - deselected entry: promote it to selected.
    """

    current = {entry_id: selection.get(entry_id, NEUTRAL) for entry_id in entry_ids}
    state = current.get(clicked_id, NEUTRAL)
    any_other_selected = any(tag == SELECTED for entry_id, tag in current.items() if entry_id != clicked_id)

    if state == SELECTED:
        if any_other_selected:
            current[clicked_id] = DESELECTED
            return current
        return {entry_id: NEUTRAL for entry_id in current}
    if state == DESELECTED:
        current[clicked_id] = SELECTED
        return current
    return {entry_id: SELECTED if entry_id == clicked_id else DESELECTED for entry_id in current}


@dataclass
class LegendItem:
    entry_id: str
    title: str
    color: str
    elements: list[SceneNode] = field(default_factory=list)
    swatch: SceneNode | None = None


def series_bars(chart: CompositeChart, chart_type: str, series: Sequence[SeriesDescriptor], index: int) -> list[SceneNode]:
    if chart_type == "STACKED":
        return chart.select_all(f"g.sub._0 g.stack._{index} rect.bar")
    return chart.select_all(f"g.sub._{index_for_hatch(series, index)} rect.bar")


def build_legend_items(
    chart: CompositeChart,
    chart_type: str,
    series: Sequence[SeriesDescriptor],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> list[LegendItem]:
    """One item per declared series, whether or not it has rendered bars."""

    items: list[LegendItem] = []
    for index, descriptor in enumerate(series):
        bars = series_bars(chart, chart_type, series, index)
        entry_id = legend_entry_id(index)
        for bar in bars:
            bar.classed(entry_id, True)
        if chart_type == "STACKED":
            color = palette_color(palette, index)
        else:
            color = series_fill(series, index, palette)
        items.append(LegendItem(entry_id=entry_id, title=descriptor.title, color=color, elements=bars))
    return items


class LegendSelectionController:
    """Selection state for one render pass of legend items.

    State lives in an explicit entry-id -> tag map; `selected` / `deselected`
    classes on swatches and bars are derived from it after every click.
    """

    def __init__(
        self,
        items: Sequence[LegendItem],
        on_change: Callable[[dict[str, SelectionTag]], None] | None = None,
    ) -> None:
        self.items = list(items)
        self.on_change = on_change
        self._selection: dict[str, SelectionTag] = {item.entry_id: NEUTRAL for item in self.items}

    @property
    def entry_ids(self) -> list[str]:
        return [item.entry_id for item in self.items]

    @property
    def selection(self) -> dict[str, SelectionTag]:
        return dict(self._selection)

    def click(self, entry_id: str) -> dict[str, SelectionTag]:
        if entry_id not in self._selection:
            raise KeyError(entry_id)
        self._selection = toggle_selection(entry_id, self.entry_ids, self._selection)
        self.apply()
        if self.on_change is not None:
            self.on_change(self.selection)
        return self.selection

    def reset(self) -> None:
        self._selection = {entry_id: NEUTRAL for entry_id in self.entry_ids}
        self.apply()

    def apply(self) -> None:
        for item in self.items:
            tag = self._selection[item.entry_id]
            nodes = list(item.elements)
            if item.swatch is not None:
                nodes.append(item.swatch)
            for node in nodes:
                node.classed(SELECTED, tag == SELECTED)
                node.classed(DESELECTED, tag == DESELECTED)


def render_legend(chart: CompositeChart, controller: LegendSelectionController) -> SceneNode | None:
    """Draw the legend right of the plot; swatches are the click targets."""

    root = chart.root
    if root is None:
        return None
    for stale in chart.select_all("g.legend-container"):
        stale.remove()
    container = root.append(
        "g",
        {
            "transform": (
                f"translate({chart.width - chart.margins.right + 10},{chart.effective_height / 4})"
            )
        },
        classes=("legend-container",),
    )
    for i, item in enumerate(controller.items):
        row = container.append("g", classes=("legend-item",), datum=item)
        y = (i + 1) * LEGEND_ROW_PX
        item.swatch = row.append(
            "rect",
            {"y": y, "height": LEGEND_SWATCH_PX, "width": LEGEND_SWATCH_PX, "fill": item.color},
            classes=("legend-rect",),
            datum=item,
        )
        item.swatch.on("click", lambda node, entry_id=item.entry_id: controller.click(entry_id))
        row.append(
            "text",
            {
                "unselectable": "on",
                "x": LEGEND_SWATCH_PX + LEGEND_LABEL_GAP_PX,
                "y": y + LEGEND_SWATCH_PX * 0.75,
            },
            text=item.title,
        )
    controller.apply()
    return container
