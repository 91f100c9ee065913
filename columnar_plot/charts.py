from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import logging
import math
from typing import Any, Callable, Iterable, Sequence, Union

import numpy as np

from columnar_plot.errors import ChartDataError
from columnar_plot.grouping import Group
from columnar_plot.scales import LinearScale, TimeScale, format_ticks_for_axis, format_time_tick, linear_ticks
from columnar_plot.scene import SceneNode


LOGGER = logging.getLogger(__name__)

DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 200
DEFAULT_BAR_COLOR = "#3182bd"
TICK_SIZE = 6
MIN_BAR_WIDTH = 1
HOOK_NAMES = ("pretransition", "renderlet", "postRender")

ChartHook = Callable[["CompositeChart"], None]
BarColor = Union[str, Callable[["BarDatum"], str]]


@dataclass(frozen=True)
class Margins:
    top: int = 10
    right: int = 100
    bottom: int = 50
    left: int = 100

    def __post_init__(self) -> None:
        if min(self.top, self.right, self.bottom, self.left) < 0:
            raise ValueError("margins must be >= 0")


@dataclass(frozen=True)
class BarDatum:
    """One drawn bar: `y` is this layer's value, `y0` the stack baseline."""

    key: Any
    y: float
    y0: float = 0.0
    layer: int = 0


class BarChart:
    """One bar series (optionally stacked) drawn inside a composite chart."""

    def __init__(
        self,
        group: Group,
        *,
        color: BarColor | None = None,
        center_bar: bool = True,
        bar_padding: float = 0.0,
        render_title: bool = False,
        elastic_y: bool = True,
    ) -> None:
        if not 0.0 <= bar_padding < 1.0:
            raise ValueError("bar_padding must be in [0, 1)")
        self.layers: list[Group] = [group]
        self.color = color
        self.center_bar = center_bar
        self.bar_padding = bar_padding
        self.render_title = render_title
        self.elastic_y = elastic_y

    def stack(self, group: Group) -> "BarChart":
        self.layers.append(group)
        return self

    def layer_data(self) -> list[list[BarDatum]]:
        baselines: dict[Any, float] = {}
        out: list[list[BarDatum]] = []
        for layer_index, group in enumerate(self.layers):
            rows: list[BarDatum] = []
            for kv in group.all():
                y0 = baselines.get(kv.key, 0.0)
                rows.append(BarDatum(key=kv.key, y=kv.value, y0=y0, layer=layer_index))
                baselines[kv.key] = y0 + kv.value
            out.append(rows)
        return out

    def y_extent(self) -> tuple[float, float] | None:
        points = [d for layer in self.layer_data() for d in layer]
        if not points:
            return None
        lows = np.asarray([d.y0 + d.y if d.y < 0 else d.y0 for d in points], dtype=np.float64)
        highs = np.asarray([d.y0 + d.y if d.y > 0 else d.y0 for d in points], dtype=np.float64)
        return (float(lows.min()), float(highs.max()))

    def fill_for(self, datum: BarDatum) -> str:
        if self.color is None:
            return DEFAULT_BAR_COLOR
        if callable(self.color):
            return self.color(datum)
        return self.color


class CompositeChart:
    """Time-x composite of bar charts sharing one dimension and coordinate space.

    `render()` rebuilds the SVG under `anchor` from scratch and fires
    `pretransition`, `renderlet` and `postRender`. `redraw()` keeps the SVG
    (and anything hooks appended to it) and only replaces sub-charts and axes,
    firing `pretransition` and `renderlet`.
    """

    def __init__(
        self,
        anchor: SceneNode,
        *,
        x_domain: tuple[dt.datetime, dt.datetime],
        height: int = DEFAULT_HEIGHT,
        width: int | None = None,
        margins: Margins | None = None,
        x_units: Callable[[], float] | None = None,
        dimension: Any = None,
        elastic_y: bool = True,
        y_axis_padding: float = 0.4,
        y_domain: tuple[float, float] | None = None,
        x_ticks: int | None = None,
        x_tick_values: Sequence[dt.datetime] | None = None,
        y_ticks: int | None = None,
    ) -> None:
        if height <= 0:
            raise ValueError("height must be > 0")
        if width is not None and width <= 0:
            raise ValueError("width must be > 0")
        self.anchor = anchor
        self.x_domain = (x_domain[0], x_domain[1])
        self.height = int(height)
        self.width = int(width) if width is not None else DEFAULT_WIDTH
        self.margins = margins or Margins()
        self.x_units = x_units
        self.dimension = dimension
        self.elastic_y = elastic_y
        self.y_axis_padding = y_axis_padding
        self.y_domain = y_domain
        self.x_ticks = x_ticks
        self.x_tick_values = None if x_tick_values is None else list(x_tick_values)
        self.y_ticks = y_ticks
        self.children: list[BarChart] = []
        self.svg: SceneNode | None = None
        self._hooks: dict[str, ChartHook] = {}
        self._y: LinearScale | None = None

    def compose(self, children: Iterable[BarChart]) -> "CompositeChart":
        self.children = list(children)
        return self

    def on(self, name: str, hook: ChartHook | None) -> "CompositeChart":
        if name not in HOOK_NAMES:
            raise ValueError(f"unknown chart hook: {name}")
        if hook is None:
            self._hooks.pop(name, None)
        else:
            self._hooks[name] = hook
        return self

    def has_hook(self, name: str) -> bool:
        return name in self._hooks

    def hook(self, name: str) -> ChartHook | None:
        return self._hooks.get(name)

    @property
    def effective_width(self) -> int:
        return max(1, self.width - self.margins.left - self.margins.right)

    @property
    def effective_height(self) -> int:
        return max(1, self.height - self.margins.top - self.margins.bottom)

    @property
    def x(self) -> TimeScale:
        return TimeScale(domain=self.x_domain, range=(0.0, float(self.effective_width)))

    @property
    def y(self) -> LinearScale:
        if self._y is None:
            self._y = self._compute_y_scale()
        return self._y

    @property
    def root(self) -> SceneNode | None:
        if self.svg is None:
            return None
        return self.svg.select("svg > g")

    def select(self, selector: str) -> SceneNode | None:
        return self.anchor.select(selector)

    def select_all(self, selector: str) -> list[SceneNode]:
        return self.anchor.select_all(selector)

    def x_unit_count(self) -> float:
        if self.x_units is not None:
            return float(self.x_units())
        keys = {d.key for c in self.children for layer in c.layer_data() for d in layer}
        return float(max(1, len(keys)))

    def bar_width(self, child: BarChart) -> int:
        units = self.x_unit_count()
        if units <= 0 or not math.isfinite(units):
            return MIN_BAR_WIDTH
        return max(MIN_BAR_WIDTH, int(math.floor(self.effective_width * (1.0 - child.bar_padding) / units)))

    def render(self) -> None:
        LOGGER.debug("rendering composite chart with %d sub-charts", len(self.children))
        self.anchor.clear()
        self.svg = self.anchor.append("svg", {"width": self.width, "height": self.height})
        self.svg.append("defs")
        self.svg.append("g")
        self._draw()
        self._fire("pretransition")
        self._fire("renderlet")
        self._fire("postRender")

    def redraw(self) -> None:
        if self.svg is None:
            self.render()
            return
        self._draw()
        self._fire("pretransition")
        self._fire("renderlet")

    def _fire(self, name: str) -> None:
        hook = self._hooks.get(name)
        if hook is not None:
            hook(self)

    def _draw(self) -> None:
        root = self.root
        assert root is not None
        for node in list(root.children):
            if node.has_class("sub") or node.has_class("axis"):
                node.remove()
        self._y = self._compute_y_scale()
        for index, child in enumerate(self.children):
            sub = root.append(
                "g",
                {"transform": f"translate({self.margins.left},{self.margins.top})"},
                classes=("sub", f"_{index}"),
            )
            self._draw_bars(sub, child)
        self._draw_x_axis(root)
        self._draw_y_axis(root)

    def _compute_y_scale(self) -> LinearScale:
        out_range = (float(self.effective_height), 0.0)
        if self.y_domain is not None:
            return LinearScale(domain=(float(self.y_domain[0]), float(self.y_domain[1])), range=out_range, round_output=True)
        extents = [e for e in (c.y_extent() for c in self.children if self.elastic_y and c.elastic_y) if e is not None]
        if not extents:
            return LinearScale(domain=(0.0, 1.0), range=out_range, round_output=True)
        lo = min(e[0] for e in extents)
        hi = max(e[1] for e in extents)
        lo -= abs(lo) * self.y_axis_padding
        hi += abs(hi) * self.y_axis_padding
        if lo == hi:
            hi = lo + 1.0
        return LinearScale(domain=(lo, hi), range=out_range, round_output=True)

    def _draw_bars(self, sub: SceneNode, child: BarChart) -> None:
        body = sub.append("g", classes=("chart-body",))
        width = self.bar_width(child)
        x = self.x
        y = self.y
        for layer_index, rows in enumerate(child.layer_data()):
            layer = body.append("g", classes=("stack", f"_{layer_index}"))
            for datum in rows:
                if not isinstance(datum.key, dt.datetime):
                    raise ChartDataError(f"bar key must be a datetime, got {datum.key!r}")
                cx = x(datum.key)
                left = cx - width / 2.0 if child.center_bar else cx
                top = y(datum.y0 + datum.y)
                base = y(datum.y0)
                layer.append(
                    "rect",
                    {
                        "x": left,
                        "y": min(top, base),
                        "width": width,
                        "height": abs(base - top),
                        "fill": child.fill_for(datum),
                    },
                    classes=("bar",),
                    datum=datum,
                )

    def _draw_x_axis(self, root: SceneNode) -> None:
        axis = root.append(
            "g",
            {"transform": f"translate({self.margins.left},{self.margins.top + self.effective_height})"},
            classes=("axis", "x"),
        )
        axis.append("path", {"d": f"M0,0H{self.effective_width}"}, classes=("domain",))
        x = self.x
        if self.x_tick_values is not None:
            ticks = sorted(self.x_tick_values, key=x)
        else:
            ticks = x.ticks(self.x_ticks)
        for value in ticks:
            tick = axis.append("g", {"transform": f"translate({x(value)},0)"}, classes=("tick",), datum=value)
            tick.append("line", {"y2": TICK_SIZE})
            tick.append("text", {"y": TICK_SIZE + 3, "text-anchor": "middle"}, text=format_time_tick(value))

    def _draw_y_axis(self, root: SceneNode) -> None:
        axis = root.append(
            "g",
            {"transform": f"translate({self.margins.left},{self.margins.top})"},
            classes=("axis", "y"),
        )
        axis.append("path", {"d": f"M0,0V{self.effective_height}"}, classes=("domain",))
        y = self.y
        values = linear_ticks(y.domain[0], y.domain[1], 10 if self.y_ticks is None else self.y_ticks)
        for value, label in zip(values.tolist(), format_ticks_for_axis(values), strict=False):
            tick = axis.append("g", {"transform": f"translate(0,{y(value)})"}, classes=("tick",), datum=value)
            tick.append("line", {"x2": -TICK_SIZE})
            tick.append("text", {"x": -(TICK_SIZE + 3), "text-anchor": "end"}, text=label)
