from __future__ import annotations

import datetime as dt
from typing import Sequence

from columnar_plot.scales import TimeScale
from columnar_plot.scene import SceneNode


CURRENT_INTERVAL_GLYPH = "◆"


def align_marker(marker: dt.date, reference: dt.datetime) -> dt.datetime:
    """Express `marker` the way the domain keys are expressed.

    Dates become midnight datetimes. Naive datetimes are local time, so an
    aware marker on a naive domain is converted to local naive time and a naive
    marker on an aware domain is localized into the domain's zone.
    """

    if not isinstance(marker, dt.datetime):
        marker = dt.datetime.combine(marker, dt.time())
    if reference.tzinfo is None and marker.tzinfo is not None:
        return marker.astimezone().replace(tzinfo=None)
    if reference.tzinfo is not None and marker.tzinfo is None:
        return marker.astimezone(reference.tzinfo)
    return marker


def is_interval_included(ticks: Sequence[dt.datetime], marker: dt.datetime) -> bool:
    """Membership by string form, so equal instants with different types still match."""

    target = str(marker)
    return any(str(t) == target for t in ticks)


def is_interval_in_range(scale: TimeScale, marker: dt.date) -> bool:
    ticks = scale.ticks()
    if not ticks:
        return False
    marker = align_marker(marker, scale.domain[0])
    return ticks[0] <= marker <= ticks[-1]


def plan_axis_ticks(
    domain: tuple[dt.datetime, dt.datetime],
    count: int | None,
    marker: dt.date | None = None,
    *,
    show_current: bool = False,
) -> list[dt.datetime]:
    """Default time ticks for `domain`, plus the current-interval marker if it is missing.

    The marker is appended, not inserted; the axis orders ticks by position.
    """

    scale = TimeScale(domain=domain)
    ticks = scale.ticks(count)
    if marker is None or not show_current:
        return ticks
    marker = align_marker(marker, domain[0])
    if not is_interval_included(ticks, marker) and is_interval_in_range(scale, marker):
        ticks.append(marker)
    return ticks


def decorate_current_interval_tick(
    axis: SceneNode,
    domain: tuple[dt.datetime, dt.datetime],
    count: int | None,
    marker: dt.date,
) -> SceneNode | None:
    """Mark the rendered tick for `marker` with a diamond glyph.

    An organically generated tick keeps its label behind the glyph; a
    synthetic tick shows the glyph alone. Returns the decorated tick.
    """

    scale = TimeScale(domain=domain)
    marker = align_marker(marker, domain[0])
    if not is_interval_in_range(scale, marker):
        return None
    target = str(marker)
    for tick in axis.select_all("g.tick"):
        if str(tick.datum) != target:
            continue
        label = tick.select("text")
        if label is None or CURRENT_INTERVAL_GLYPH in label.text:
            return None
        if is_interval_included(scale.ticks(count), marker):
            label.text = f"{CURRENT_INTERVAL_GLYPH} {label.text}"
        else:
            label.text = CURRENT_INTERVAL_GLYPH
        tick.classed("current-interval", True)
        return tick
    return None
