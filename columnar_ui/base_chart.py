from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Mapping

from columnar_core.cancellation import CancellationToken
from columnar_core.resize import ResizeDetector, ResizeService
from columnar_core.scheduler import CooperativeScheduler
from columnar_plot.charts import HOOK_NAMES, CompositeChart
from columnar_plot.scene import SceneNode

from .config import ColumnChartConfig, config_from_attrs
from .data import NormalizedTable, reduce_groups
from .legend import LegendSelectionController
from .resize import ResizeCoordinator
from .tooltip import Tooltip, remove_stray_tooltips


LOGGER = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """Per-instance render state: the live chart handle and what teardown must cancel."""

    token: CancellationToken = field(default_factory=CancellationToken)
    chart: CompositeChart | None = None
    tooltip: Tooltip | None = None
    legend: LegendSelectionController | None = None
    coordinator: ResizeCoordinator | None = None


class BaseChartComponent:
    """Host-facing chart component: attributes in, rebuilds scheduled on resize.

    Lifecycle: construct (attributes are reduced immediately), `mount()`
    (subscribe to resize notifications and request the first paint),
    `update_attrs()` (re-reduce data and refresh the live chart in place),
    `destroy()` (unsubscribe, cancel the pending rebuild, invalidate every
    outstanding callback).
    """

    class_names: tuple[str, ...] = ("chart",)

    def __init__(
        self,
        element_id: str,
        *,
        document: SceneNode | None = None,
        resize_service: ResizeService | None = None,
        scheduler: CooperativeScheduler | None = None,
        attrs: Mapping[str, Any] | None = None,
        **extra_attrs: Any,
    ) -> None:
        if not element_id:
            raise ValueError("element_id must be non-empty")
        self.element_id = element_id
        self.config: ColumnChartConfig = config_from_attrs({**(attrs or {}), **extra_attrs})
        self.document = document if document is not None else SceneNode("body")
        self.element = self.document.append("div", {"id": element_id}, classes=self.class_names)
        self.resize_service: ResizeService = resize_service or ResizeDetector()
        self.scheduler = scheduler or CooperativeScheduler()
        self.context = RenderContext()
        self.data = NormalizedTable()
        self.did_receive_attrs()

    @property
    def chart(self) -> CompositeChart | None:
        return self.context.chart

    @property
    def is_destroyed(self) -> bool:
        return self.context.token.cancelled

    def mount(self) -> None:
        if self.is_destroyed:
            LOGGER.debug("mount ignored for destroyed component %s", self.element_id)
            return
        if self.context.coordinator is not None:
            return
        coordinator = ResizeCoordinator(
            f"#{self.element_id}",
            self.create_chart,
            service=self.resize_service,
            scheduler=self.scheduler,
            token=self.context.token,
            wait_ms=self.config.resize_wait_ms,
            instant=self.config.instant_run,
        )
        self.context.coordinator = coordinator
        coordinator.attach()
        coordinator.request()

    def request_rebuild(self) -> None:
        if self.context.coordinator is None:
            self.create_chart()
            return
        self.context.coordinator.request()

    def update_attrs(self, attrs: Mapping[str, Any] | None = None, **extra_attrs: Any) -> None:
        self.config = config_from_attrs({**(attrs or {}), **extra_attrs}, base=self.config)
        coordinator = self.context.coordinator
        if coordinator is not None:
            coordinator.instant = self.config.instant_run
            coordinator.wait_ms = self.config.resize_wait_ms
        self.did_receive_attrs()

    def did_receive_attrs(self) -> None:
        self.data = reduce_groups(self.config.group)
        chart = self.context.chart
        if chart is not None and not self.is_destroyed:
            self.refresh_chart(chart)

    def refresh_chart(self, chart: CompositeChart) -> None:
        """Bring the live chart up to date with the current config and data."""

        chart.redraw()

    def destroy(self) -> None:
        coordinator = self.context.coordinator
        if coordinator is not None:
            coordinator.detach()
        self.context.token.cancel()
        self.cleanup_current_chart()

    def create_chart(self) -> bool:
        """Rebuild the chart handle from scratch; False when nothing was drawn."""

        if self.is_destroyed:
            return False
        self.cleanup_current_chart()

        if not self.config.is_chart_available:
            self.show_chart_not_available()
            return True

        if not self.config.has_required_data:
            LOGGER.debug("chart %s has no group/dimension yet; skipping rebuild", self.element_id)
            return False

        chart = self.build_chart()
        if chart is None:
            return False
        self.context.chart = chart
        chart.render()
        return True

    def cleanup_current_chart(self) -> None:
        chart = self.context.chart
        if chart is not None:
            for name in HOOK_NAMES:
                chart.on(name, None)
        self.context.chart = None
        removed = remove_stray_tooltips(self.document, self.element_id)
        if removed:
            LOGGER.debug("removed %d stray tooltip(s) for %s", removed, self.element_id)
        self.context.tooltip = None
        self.context.legend = None

    def add_click_handlers_and_tooltips(
        self,
        chart: CompositeChart,
        tooltip: Tooltip | None,
        selector: str = "rect.bar",
    ) -> None:
        if tooltip is not None and chart.svg is not None:
            tooltip.attach(self.document)
            self.context.tooltip = tooltip
        for node in chart.select_all(selector):
            node.on("click", self._handle_bar_click)
            if tooltip is not None:
                node.on("mouseover.tip", tooltip.show)
                node.on("mouseout.tip", tooltip.hide)

    def _handle_bar_click(self, node: SceneNode) -> None:
        self.on_click(node.datum)

    def on_click(self, datum: Any) -> None:
        if self.config.on_click is not None:
            self.config.on_click(datum)

    def build_chart(self) -> CompositeChart | None:
        raise NotImplementedError

    def show_chart_not_available(self) -> None:
        raise NotImplementedError

    def create_tooltip(self) -> Tooltip | None:
        raise NotImplementedError
