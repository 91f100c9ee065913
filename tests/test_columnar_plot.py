from __future__ import annotations

import datetime as dt
import unittest

import numpy as np

from columnar_plot import BarChart, ChartDataError, CompositeChart, Dimension, Group, SceneNode, TimeScale
from columnar_plot.scales import (
    format_tick,
    format_ticks_for_axis,
    format_time_tick,
    linear_ticks,
    select_time_interval,
    tick_increment,
    time_ticks,
)


NOV_1 = dt.datetime(2016, 11, 1)
NOV_5 = dt.datetime(2016, 11, 5)


def _day(n: int) -> dt.datetime:
    return dt.datetime(2016, 11, n)


class SceneNodeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.root = SceneNode("svg")
        self.sub = self.root.append("g", classes=("sub", "_0"))
        self.body = self.sub.append("g", classes=("chart-body",))
        self.bar = self.body.append("rect", {"id": "first"}, classes=("bar",))

    def test_descendant_and_child_selectors(self) -> None:
        self.assertEqual(self.root.select_all("g.sub._0 .chart-body rect.bar"), [self.bar])
        self.assertEqual(self.root.select_all("svg > g"), [self.sub])
        self.assertEqual(self.root.select_all("g.sub > rect.bar"), [])
        self.assertIs(self.root.select("#first"), self.bar)

    def test_rejects_dangling_child_combinator(self) -> None:
        with self.assertRaises(ValueError):
            self.root.select_all("g >")

    def test_remove_detaches_node(self) -> None:
        self.bar.remove()
        self.assertIsNone(self.bar.parent)
        self.assertEqual(self.root.select_all("rect"), [])

    def test_dispatch_matches_namespaced_handlers(self) -> None:
        seen: list[str] = []
        self.bar.on("mouseover.tip", lambda node: seen.append("tip"))
        self.bar.on("click", lambda node: seen.append("click"))
        self.assertEqual(self.bar.dispatch("mouseover"), 1)
        self.assertEqual(seen, ["tip"])
        self.bar.on("mouseover.tip", None)
        self.assertEqual(self.bar.dispatch("mouseover"), 0)

    def test_to_svg_exports_classes_and_integral_floats(self) -> None:
        self.bar.set("width", 12.0)
        markup = self.root.to_svg()
        self.assertIn('class="sub _0"', markup)
        self.assertIn('width="12"', markup)


class ScaleTests(unittest.TestCase):
    def test_tick_increment_uses_nice_steps(self) -> None:
        self.assertEqual(tick_increment(0, 10, 10), 1.0)
        self.assertEqual(tick_increment(0, 72.8, 3), 20.0)
        self.assertEqual(tick_increment(0, 1, 5), -5.0)

    def test_linear_ticks_for_padded_elastic_domain(self) -> None:
        self.assertEqual(linear_ticks(0.0, 72.8, 3).tolist(), [0.0, 20.0, 40.0, 60.0])

    def test_linear_ticks_fractional_steps(self) -> None:
        self.assertTrue(np.allclose(linear_ticks(0.0, 1.0, 5), [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]))

    def test_axis_labels_keep_integer_zeros(self) -> None:
        self.assertEqual(format_ticks_for_axis([0.0, 20.0, 40.0, 60.0]), ["0", "20", "40", "60"])

    def test_tick_labels_precision_and_extremes(self) -> None:
        self.assertEqual(format_tick(0.25, step=0.05), "0.25")
        self.assertEqual(format_tick(2_500_000.0), "2.5000e+06")
        self.assertEqual(format_tick(-0.0), "0")
        self.assertEqual(format_ticks_for_axis([1.5, 2.0, 2.5]), ["1.5", "2", "2.5"])

    def test_daily_ticks_for_four_day_domain(self) -> None:
        ticks = time_ticks(NOV_1, NOV_5, 5)
        self.assertEqual(ticks, [_day(n) for n in range(1, 6)])

    def test_hourly_ticks_for_one_day(self) -> None:
        ticks = time_ticks(NOV_1, _day(2), 4)
        self.assertEqual([t.hour for t in ticks], [0, 6, 12, 18, 0])

    def test_interval_selection_for_one_year(self) -> None:
        self.assertEqual(select_time_interval(dt.datetime(2016, 1, 1), dt.datetime(2017, 1, 1), 10), ("month", 1))

    def test_time_scale_maps_linearly(self) -> None:
        scale = TimeScale(domain=(NOV_1, NOV_5), range=(0.0, 400.0))
        self.assertEqual(scale(_day(3)), 200.0)
        self.assertEqual(len(scale.ticks(5)), 5)

    def test_multi_scale_time_labels(self) -> None:
        self.assertEqual(format_time_tick(NOV_1), "November")
        self.assertEqual(format_time_tick(_day(2)), "Wed 02")
        self.assertEqual(format_time_tick(dt.datetime(2016, 1, 1)), "2016")


class GroupingTests(unittest.TestCase):
    def test_group_sum_sorts_and_accumulates(self) -> None:
        records = [
            {"date": _day(3), "v": 2},
            {"date": _day(2), "v": 5},
            {"date": _day(3), "v": "1.5"},
        ]
        dim = Dimension(records, key=lambda r: r["date"])
        group = dim.group_sum(lambda r: r["v"])
        self.assertEqual(group.keys(), [_day(2), _day(3)])
        self.assertEqual(group.values(), [5.0, 3.5])
        self.assertEqual(dim.group_count().values(), [1.0, 2.0])

    def test_non_numeric_values_raise_chart_data_error(self) -> None:
        with self.assertRaises(ChartDataError):
            Group({_day(2): "lots"})
        self.assertTrue(issubclass(ChartDataError, ValueError))


class CompositeChartTests(unittest.TestCase):
    def _chart(self, *groups: Group, **kwargs: object) -> CompositeChart:
        chart = CompositeChart(SceneNode("div"), x_domain=(NOV_1, NOV_5), **kwargs)  # type: ignore[arg-type]
        chart.compose([BarChart(g) for g in groups])
        return chart

    def test_render_draws_bars_axes_and_fires_all_hooks(self) -> None:
        chart = self._chart(Group([(_day(2), 10), (_day(3), 20)]), x_ticks=5, y_ticks=3)
        fired: list[str] = []
        for name in ("pretransition", "renderlet", "postRender"):
            chart.on(name, lambda c, name=name: fired.append(name))
        chart.render()
        self.assertEqual(len(chart.select_all("g.sub._0 .chart-body rect.bar")), 2)
        self.assertEqual(len(chart.select_all("g.axis.x g.tick")), 5)
        self.assertEqual(fired, ["pretransition", "renderlet", "postRender"])

    def test_redraw_keeps_svg_and_skips_post_render(self) -> None:
        chart = self._chart(Group([(_day(2), 10)]))
        fired: list[str] = []
        chart.on("postRender", lambda c: fired.append("postRender"))
        chart.on("renderlet", lambda c: fired.append("renderlet"))
        chart.render()
        svg = chart.svg
        assert chart.root is not None
        marker = chart.root.append("g", classes=("legend-container",))
        chart.redraw()
        self.assertIs(chart.svg, svg)
        self.assertIn(marker, chart.root.children)
        self.assertEqual(len(chart.select_all("g.sub")), 1)
        self.assertEqual(fired, ["renderlet", "postRender", "renderlet"])

    def test_elastic_y_pads_extent(self) -> None:
        chart = self._chart(Group([(_day(2), 42), (_day(3), 52)]), Group([(_day(2), 8)]))
        chart.render()
        lo, hi = chart.y.domain
        self.assertEqual(lo, 0.0)
        self.assertAlmostEqual(hi, 72.8)

    def test_stacked_layers_carry_baselines(self) -> None:
        bar = BarChart(Group([(_day(2), 3)])).stack(Group([(_day(2), 4)]))
        layers = bar.layer_data()
        self.assertEqual(layers[1][0].y0, 3.0)
        self.assertEqual(bar.y_extent(), (0.0, 7.0))

    def test_unknown_hook_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self._chart().on("afterRender", lambda c: None)

    def test_non_time_keys_raise_chart_data_error(self) -> None:
        chart = self._chart(Group([("monday", 1)]))
        with self.assertRaises(ChartDataError):
            chart.render()


if __name__ == "__main__":
    unittest.main()
