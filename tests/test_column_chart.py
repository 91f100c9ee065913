from __future__ import annotations

import datetime as dt
from typing import Any
import unittest

from columnar_core import CooperativeScheduler, ManualClock, ResizeDetector
from columnar_plot import BarDatum, Dimension, Group, SceneNode
from columnar_ui import ColumnChart
from columnar_ui.config import DEFAULT_PALETTE
from columnar_ui.legend import DESELECTED, SELECTED
from columnar_ui.ticks import CURRENT_INTERVAL_GLYPH


NOV_1 = dt.datetime(2016, 11, 1)
NOV_5 = dt.datetime(2016, 11, 5)

RECORDS = [
    {"date": dt.datetime(2016, 11, 2), "fruits": 42, "citrus": 20, "oranges": 8},
    {"date": dt.datetime(2016, 11, 3), "fruits": 38, "citrus": 33, "oranges": 12},
    {"date": dt.datetime(2016, 11, 4), "fruits": 52, "citrus": 52, "oranges": 25},
]

SERIES = [
    {"title": "Total Fruit Eaten", "hatch": "pos"},
    {"title": "Citrus Fruit Eaten", "hatch": "neg"},
    {"title": "Oranges Eaten"},
]


class ColumnChartTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock()
        self.scheduler = CooperativeScheduler(clock=self.clock)
        self.detector = ResizeDetector()
        self.document = SceneNode("body")
        self.dimension = Dimension(RECORDS, key=lambda r: r["date"])
        self.groups = [self.dimension.group_sum(lambda r, name=name: r[name]) for name in ("fruits", "citrus", "oranges")]

    def _chart(self, **attrs: Any) -> ColumnChart:
        base: dict[str, Any] = {
            "group": self.groups,
            "dimension": self.dimension,
            "type": "LAYERED",
            "series": SERIES,
            "xAxis": {"domain": (NOV_1, NOV_5), "ticks": 5},
            "yAxis": {"ticks": 3},
        }
        base.update(attrs)
        return ColumnChart(
            "column-chart-1",
            document=self.document,
            resize_service=self.detector,
            scheduler=self.scheduler,
            attrs=base,
        )

    def _mounted(self, **attrs: Any) -> ColumnChart:
        component = self._chart(**attrs)
        component.mount()
        self.clock.advance(1.0)
        self.scheduler.run_due()
        return component

    def test_renders_axes_from_configured_tick_counts(self) -> None:
        component = self._mounted()
        assert component.chart is not None
        self.assertEqual(len(component.chart.select_all("g.axis.x g.tick")), 5)
        self.assertEqual(len(component.chart.select_all("g.axis.y g.tick")), 4)

    def test_first_sub_chart_has_one_bar_per_key(self) -> None:
        component = self._mounted()
        self.assertEqual(len(component.element.select_all("g.sub._0 .chart-body rect.bar")), 3)
        self.assertTrue(component.element.has_class("column-chart"))

    def test_mount_defers_first_paint_until_the_wait_elapses(self) -> None:
        component = self._chart()
        component.mount()
        self.assertIsNone(component.chart)
        self.assertEqual(self.detector.listener_count("#column-chart-1"), 1)
        self.clock.advance(1.0)
        self.scheduler.run_due()
        self.assertIsNotNone(component.chart)

    def test_unavailable_chart_shows_placeholder(self) -> None:
        component = self._mounted(isChartAvailable=False)
        self.assertIsNotNone(component.element.select(".chart-not-available"))
        self.assertTrue(all(b.get("fill") == "url(#chartNotAvailableHatch)" for b in component.element.select_all("rect.bar")))

    def test_comparison_line(self) -> None:
        component = self._mounted(showComparisonLine=True, comparisonLine={"value": 40, "displayValue": "40 eaten"})
        self.assertEqual(len(component.element.select_all(".comparison-line")), 3)
        self.assertEqual(len(component.element.select_all("#comparison-text")), 1)

    def test_max_min_labels_for_selected_series(self) -> None:
        component = self._mounted(showMaxMin=True, seriesMaxMin=2)
        for selector in (".max-value-text", ".max-value-indicator", ".min-value-text", ".min-value-indicator"):
            self.assertIsNotNone(component.element.select(selector), selector)
        max_text = component.element.select(".max-value-text")
        assert max_text is not None
        self.assertEqual(max_text.text, "25")

    def test_legend_has_one_item_per_series(self) -> None:
        component = self._mounted(showLegend=True)
        self.assertEqual(len(component.element.select_all(".legend-container > .legend-item")), 3)

    def test_legend_without_data(self) -> None:
        component = self._mounted(showLegend=True, group=[])
        self.assertEqual(len(component.element.select_all(".legend-container > .legend-item")), 3)

    def test_legend_click_selects_series_bars(self) -> None:
        component = self._mounted(showLegend=True)
        swatch = component.element.select_all(".legend-rect")[0]
        swatch.dispatch("click")
        selected = component.element.select_all("g.sub._1 rect.bar")
        self.assertTrue(all(b.has_class(SELECTED) and b.has_class("series-0") for b in selected))
        others = component.element.select_all("g.sub._4 rect.bar")
        self.assertTrue(all(b.has_class(DESELECTED) for b in others))
        assert component.context.legend is not None
        self.assertEqual(component.context.legend.selection["series-0"], SELECTED)

    def test_repeated_rebuilds_do_not_duplicate_decorations(self) -> None:
        component = self._mounted(showLegend=True, showComparisonLine=True, comparisonLine={"value": 40})
        component.create_chart()
        component.create_chart()
        self.assertEqual(len(component.element.select_all("g.legend-container")), 1)
        self.assertEqual(len(component.element.select_all(".comparison-line")), 3)
        self.assertEqual(len(self.document.select_all("div.d3-tip")), 1)

    def test_bar_click_and_hover(self) -> None:
        clicked: list[BarDatum] = []
        component = self._mounted(onClick=clicked.append)
        bar = component.element.select_all("g.sub._1 rect.bar")[0]
        bar.dispatch("click")
        self.assertEqual(clicked[0].y, 42.0)
        bar.dispatch("mouseover")
        tip = self.document.select("div.d3-tip")
        assert tip is not None
        self.assertIn("tooltip-time", tip.text)
        self.assertIn("opacity: 1", tip.get("style"))

    def test_current_interval_tick_is_marked(self) -> None:
        component = self._mounted(showCurrentIndicator=True, currentInterval=dt.datetime(2016, 11, 3, 12))
        ticks = component.element.select_all("g.axis.x g.tick")
        self.assertEqual(len(ticks), 6)
        marked = component.element.select_all("g.axis.x g.tick.current-interval")
        self.assertEqual(len(marked), 1)
        self.assertEqual(marked[0].select("text").text, CURRENT_INTERVAL_GLYPH)  # type: ignore[union-attr]

    def test_stacked_layers_use_palette_colors(self) -> None:
        component = self._mounted(type="STACKED")
        self.assertEqual(len(component.element.select_all("g.sub")), 1)
        layer_two = component.element.select_all("g.sub._0 g.stack._2 rect.bar")
        self.assertEqual(len(layer_two), 3)
        self.assertTrue(all(b.get("fill") == DEFAULT_PALETTE[2] for b in layer_two))

    def test_missing_dimension_skips_rebuild(self) -> None:
        component = self._chart(dimension=None)
        self.assertFalse(component.create_chart())
        self.assertIsNone(component.element.select("svg"))

    def test_update_attrs_redraws_in_place(self) -> None:
        component = self._mounted()
        svg = component.element.select("svg")
        component.update_attrs(showComparisonLine=True, comparisonLine={"value": 30})
        self.assertIs(component.element.select("svg"), svg)
        self.assertEqual(len(component.element.select_all(".comparison-line")), 3)

    def test_update_attrs_recomposes_bars_from_new_groups(self) -> None:
        component = self._mounted(showMaxMin=True, seriesMaxMin=2)
        svg = component.element.select("svg")
        days = [r["date"] for r in RECORDS]
        groups = [Group(zip(days, values)) for values in ((30, 10, 20), (5, 6, 7), (9, 3, 15))]
        component.update_attrs(group=groups)
        self.assertIs(component.element.select("svg"), svg)
        self.assertEqual(component.data[days[0]], [30.0, 5.0, 9.0])
        fruit_bars = component.element.select_all("g.sub._1 rect.bar")
        self.assertEqual([b.datum.y for b in fruit_bars], [30.0, 10.0, 20.0])
        max_text = component.element.select(".max-value-text")
        assert max_text is not None
        self.assertEqual(max_text.text, "15")
        orange = component.element.select_all("g.sub._4 rect.bar")[2]
        self.assertEqual(orange.datum.y, 15.0)
        self.assertEqual(max_text.get("x"), float(orange.get("x")) + float(orange.get("width")) / 2.0)

    def test_type_change_rebuilds_with_layer_colors(self) -> None:
        component = self._mounted(type="GROUPED")
        component.update_attrs(type="STACKED")
        self.assertEqual(len(component.element.select_all("g.sub")), 1)
        layer_one = component.element.select_all("g.sub._0 g.stack._1 rect.bar")
        self.assertEqual(len(layer_one), 3)
        self.assertTrue(all(b.get("fill") == DEFAULT_PALETTE[1] for b in layer_one))

    def test_failed_rebuild_drops_the_old_chart_handle(self) -> None:
        component = self._mounted()
        component.update_attrs(dimension=None)
        self.assertIsNone(component.chart)
        component.update_attrs(showComparisonLine=True, comparisonLine={"value": 40})
        self.assertEqual(component.element.select_all(".comparison-line"), [])

    def test_render_hook_after_destroy_is_a_no_op(self) -> None:
        component = self._mounted(showLegend=True)
        chart = component.chart
        assert chart is not None
        renderlet = chart.hook("renderlet")
        assert renderlet is not None
        component.destroy()
        self.assertIsNone(renderlet(chart))
        self.assertEqual(len(component.element.select_all("g.legend-container")), 1)
        self.assertEqual(self.document.select_all("div.d3-tip"), [])
        self.assertIsNone(component.chart)

    def test_destroy_stops_pending_and_future_rebuilds(self) -> None:
        component = self._chart()
        component.mount()
        component.destroy()
        self.assertEqual(self.detector.listener_count("#column-chart-1"), 0)
        self.clock.advance(1.0)
        self.assertEqual(self.scheduler.run_due(), 0)
        self.assertIsNone(component.chart)
        self.assertFalse(component.create_chart())

    def test_unknown_attribute_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self._chart(colour="red")


if __name__ == "__main__":
    unittest.main()
