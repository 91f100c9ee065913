from __future__ import annotations

import datetime as dt
from html import escape
from typing import Any, Callable, Sequence

from columnar_plot.charts import BarDatum
from columnar_plot.scales import format_tick
from columnar_plot.scene import SceneNode

from .data import NormalizedTable


TOOLTIP_CLASS = "d3-tip"
PRIMARY_CLASS = "primary-stat"
SHORT_DATE_FORMAT = "%m/%d/%Y"


def _format_time(key: Any, date_format: str) -> str:
    if isinstance(key, (dt.datetime, dt.date)):
        return key.strftime(date_format)
    return str(key)


def _format_value(value: Any, formatter: Callable[[Any], Any] | None) -> str:
    if formatter is not None:
        return str(formatter(value))
    if isinstance(value, (int, float)):
        return format_tick(float(value))
    return str(value)


def format_tooltip(
    datum: BarDatum,
    table: NormalizedTable,
    titles: Sequence[str],
    *,
    formatter: Callable[[Any], Any] | None = None,
    date_format: str = "%b %d, %Y %I:%M %p",
) -> str:
    """Tooltip markup for one hovered bar.

    With series titles, every series value at the bar's key is listed and the
    one equal to the hovered bar's own value is marked primary, which tells
    apart equal-looking bars in a stack.
    """

    if titles:
        parts = [f'<span class="tooltip-time">{escape(_format_time(datum.key, date_format))}</span>']
        row = table.get(datum.key) or []
        for i, title in enumerate(titles):
            value = row[i] if i < len(row) else None
            css = PRIMARY_CLASS if value is not None and value == datum.y else ""
            shown = "" if value is None else _format_value(value, formatter)
            parts.append(
                '<span class="tooltip-list-item">'
                f'<span class="tooltip-label {css}">{escape(title)}</span>'
                f'<span class="tooltip-value {css}">{escape(shown)}</span>'
                "</span>"
            )
        return "".join(parts)
    return (
        f"<span>{escape(_format_time(datum.key, SHORT_DATE_FORMAT))}</span><br/>"
        f'<span class="tooltip-value">{escape(_format_value(datum.y, formatter))}</span>'
    )


class Tooltip:
    """Hover tooltip node injected into the host document, tagged with the component id."""

    def __init__(self, element_id: str, html: Callable[[BarDatum], str]) -> None:
        self.element_id = element_id
        self.html = html
        self.node: SceneNode | None = None

    def attach(self, document: SceneNode) -> SceneNode:
        if self.node is None or self.node.parent is None:
            self.node = document.append(
                "div",
                {"id": self.element_id, "style": "opacity: 0; pointer-events: none"},
                classes=(TOOLTIP_CLASS,),
            )
        return self.node

    def show(self, target: SceneNode) -> None:
        if self.node is None or not isinstance(target.datum, BarDatum):
            return
        self.node.text = self.html(target.datum)
        self.node.set("style", "opacity: 1; pointer-events: all")

    def hide(self, target: SceneNode | None = None) -> None:
        if self.node is None:
            return
        self.node.set("style", "opacity: 0; pointer-events: none")


def remove_stray_tooltips(document: SceneNode, element_id: str) -> int:
    stray = document.select_all(f"div.{TOOLTIP_CLASS}#{element_id}")
    for node in stray:
        node.remove()
    return len(stray)
