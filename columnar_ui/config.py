from __future__ import annotations

from dataclasses import dataclass, fields, replace
import datetime as dt
from typing import Any, Callable, Literal, Mapping, Sequence

from columnar_plot.grouping import Group


ChartType = Literal["GROUPED", "LAYERED", "STACKED"]
HatchDirection = Literal["pos", "neg"]

CHART_TYPES: tuple[str, ...] = ("GROUPED", "LAYERED", "STACKED")
HATCH_DIRECTIONS: tuple[str, ...] = ("pos", "neg")

DEFAULT_PALETTE: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)


@dataclass(frozen=True)
class SeriesDescriptor:
    title: str
    hatch: HatchDirection | None = None

    def __post_init__(self) -> None:
        if self.hatch is not None and self.hatch not in HATCH_DIRECTIONS:
            raise ValueError(f"hatch must be one of {HATCH_DIRECTIONS}, got {self.hatch!r}")


@dataclass(frozen=True)
class AxisSpec:
    domain: tuple[Any, Any] | None = None
    ticks: int | None = None
    formatter: Callable[[Any], Any] | None = None

    def __post_init__(self) -> None:
        if self.domain is not None:
            if len(self.domain) != 2:
                raise ValueError("axis domain must be a (start, end) pair")
            object.__setattr__(self, "domain", (self.domain[0], self.domain[1]))
        if self.ticks is not None and int(self.ticks) <= 0:
            raise ValueError("axis ticks must be > 0")


@dataclass(frozen=True)
class ComparisonLine:
    value: float
    display_value: str = ""
    color: str = "#2CD02C"
    text_color: str = "#000000"


@dataclass(frozen=True)
class ColumnChartConfig:
    """Validated host attributes for a column chart component."""

    group: Group | Sequence[Group] | None = None
    dimension: Any = None
    series: tuple[SeriesDescriptor, ...] = ()
    chart_type: ChartType = "GROUPED"
    x_axis: AxisSpec = AxisSpec()
    y_axis: AxisSpec = AxisSpec()
    height: int = 200
    width: int | None = None
    show_legend: bool = False
    legend_width: int = 250
    show_max_min: bool = False
    series_max_min: int | None = None
    show_comparison_line: bool = False
    comparison_line: ComparisonLine | None = None
    show_current_indicator: bool = False
    current_interval: dt.datetime | None = None
    is_chart_available: bool = True
    chart_not_available_message: str = "Chart not available for this view"
    chart_not_available_color: str = "#b3b3b3"
    chart_not_available_text_color: str = "#888888"
    tooltip_date_format: str = "%b %d, %Y %I:%M %p"
    instant_run: bool = False
    resize_wait_ms: int = 400
    on_click: Callable[[Any], None] | None = None
    palette: tuple[str, ...] = DEFAULT_PALETTE

    def __post_init__(self) -> None:
        if self.chart_type not in CHART_TYPES:
            raise ValueError(f"type must be one of {CHART_TYPES}, got {self.chart_type!r}")
        if self.height <= 0:
            raise ValueError("height must be > 0")
        if self.width is not None and self.width <= 0:
            raise ValueError("width must be > 0")
        if self.legend_width < 0:
            raise ValueError("legend_width must be >= 0")
        if self.resize_wait_ms < 0:
            raise ValueError("resize_wait_ms must be >= 0")
        if not self.palette:
            raise ValueError("palette must contain at least one color")

    @property
    def groups(self) -> list[Group]:
        if self.group is None:
            return []
        if isinstance(self.group, Group):
            return [self.group]
        return list(self.group)

    @property
    def has_required_data(self) -> bool:
        return self.group is not None and self.dimension is not None

    @property
    def titles(self) -> list[str]:
        return [s.title for s in self.series]


_ATTR_ALIASES = {
    "type": "chart_type",
    "xAxis": "x_axis",
    "yAxis": "y_axis",
    "showLegend": "show_legend",
    "legendWidth": "legend_width",
    "showMaxMin": "show_max_min",
    "seriesMaxMin": "series_max_min",
    "showComparisonLine": "show_comparison_line",
    "comparisonLine": "comparison_line",
    "showCurrentIndicator": "show_current_indicator",
    "currentInterval": "current_interval",
    "isChartAvailable": "is_chart_available",
    "chartNotAvailableMessage": "chart_not_available_message",
    "chartNotAvailableColor": "chart_not_available_color",
    "chartNotAvailableTextColor": "chart_not_available_text_color",
    "tooltipDateFormat": "tooltip_date_format",
    "instantRun": "instant_run",
    "resizeWaitMs": "resize_wait_ms",
    "onClick": "on_click",
}
_FIELD_NAMES = frozenset(f.name for f in fields(ColumnChartConfig))


def config_from_attrs(
    attrs: Mapping[str, Any] | None = None,
    *,
    base: ColumnChartConfig | None = None,
) -> ColumnChartConfig:
    """Merge host attributes (snake_case or camelCase) over `base`.

    Plain mappings are coerced into `AxisSpec`, `SeriesDescriptor` and
    `ComparisonLine`; unknown attribute names are rejected.
    """

    config = base or ColumnChartConfig()
    if not attrs:
        return config
    changes: dict[str, Any] = {}
    for raw_key, value in attrs.items():
        key = _ATTR_ALIASES.get(raw_key, raw_key)
        if key not in _FIELD_NAMES:
            raise ValueError(f"Unknown chart attribute: {raw_key}")
        changes[key] = _coerce_attr(key, value)
    return replace(config, **changes)


def _coerce_attr(key: str, value: Any) -> Any:
    if key in ("x_axis", "y_axis"):
        return _coerce_axis(value)
    if key == "series":
        return tuple(_coerce_series(item) for item in (value or ()))
    if key == "comparison_line":
        return _coerce_comparison_line(value)
    if key == "current_interval":
        # Interval objects (e.g. a week or month bucket) are marked by their start.
        return _coerce_interval(getattr(value, "start", value))
    if key == "palette":
        return tuple(value)
    return value


def _coerce_interval(value: Any) -> dt.datetime | None:
    if value is None or isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    raise ValueError(f"current interval must be a date or datetime, got {value!r}")


def _coerce_axis(value: Any) -> AxisSpec:
    if value is None:
        return AxisSpec()
    if isinstance(value, AxisSpec):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"axis must be an AxisSpec or mapping, got {type(value)!r}")
    unknown = set(value) - {"domain", "ticks", "formatter"}
    if unknown:
        raise ValueError(f"Unknown axis option(s): {', '.join(sorted(unknown))}")
    domain = value.get("domain")
    return AxisSpec(
        domain=None if domain is None else (domain[0], domain[1]),
        ticks=value.get("ticks"),
        formatter=value.get("formatter"),
    )


def _coerce_series(value: Any) -> SeriesDescriptor:
    if isinstance(value, SeriesDescriptor):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"series entry must be a SeriesDescriptor or mapping, got {type(value)!r}")
    return SeriesDescriptor(title=str(value.get("title", "")), hatch=value.get("hatch"))


def _coerce_comparison_line(value: Any) -> ComparisonLine | None:
    if value is None or isinstance(value, ComparisonLine):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"comparison line must be a ComparisonLine or mapping, got {type(value)!r}")
    return ComparisonLine(
        value=float(value["value"]),
        display_value=str(value.get("displayValue", value.get("display_value", ""))),
        color=value.get("color") or "#2CD02C",
        text_color=value.get("textColor", value.get("text_color")) or "#000000",
    )
