from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import unittest

from columnar_plot import Group
from columnar_ui.config import AxisSpec, ColumnChartConfig, ComparisonLine, SeriesDescriptor, config_from_attrs
from columnar_ui.data import reduce_groups


NOV_2 = dt.datetime(2016, 11, 2)
NOV_3 = dt.datetime(2016, 11, 3)


@dataclass(frozen=True)
class _Week:
    start: dt.datetime


class ConfigTests(unittest.TestCase):
    def test_camel_case_attributes_are_coerced(self) -> None:
        cfg = config_from_attrs(
            {
                "type": "LAYERED",
                "xAxis": {"domain": [NOV_2, NOV_3], "ticks": 5},
                "yAxis": {"ticks": 3},
                "series": [{"title": "Total", "hatch": "pos"}, {"title": "Oranges"}],
                "seriesMaxMin": 2,
                "comparisonLine": {"value": 40, "displayValue": "40 eaten", "textColor": "#333"},
            }
        )
        self.assertEqual(cfg.chart_type, "LAYERED")
        self.assertEqual(cfg.x_axis, AxisSpec(domain=(NOV_2, NOV_3), ticks=5))
        self.assertEqual(cfg.y_axis.ticks, 3)
        self.assertEqual(cfg.series[0], SeriesDescriptor("Total", "pos"))
        self.assertEqual(cfg.titles, ["Total", "Oranges"])
        self.assertEqual(cfg.series_max_min, 2)
        self.assertEqual(cfg.comparison_line, ComparisonLine(value=40.0, display_value="40 eaten", text_color="#333"))

    def test_updates_merge_over_base(self) -> None:
        base = config_from_attrs({"height": 300, "showLegend": True})
        cfg = config_from_attrs({"show_legend": False}, base=base)
        self.assertEqual(cfg.height, 300)
        self.assertFalse(cfg.show_legend)

    def test_interval_objects_are_marked_by_start(self) -> None:
        cfg = config_from_attrs({"currentInterval": _Week(start=NOV_2)})
        self.assertEqual(cfg.current_interval, NOV_2)

    def test_current_interval_accepts_dates_and_rejects_other_values(self) -> None:
        cfg = config_from_attrs({"currentInterval": dt.date(2016, 11, 2)})
        self.assertEqual(cfg.current_interval, NOV_2)
        with self.assertRaises(ValueError):
            config_from_attrs({"currentInterval": "2016-11-02"})

    def test_invalid_attributes_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            config_from_attrs({"colour": "red"})
        with self.assertRaises(ValueError):
            config_from_attrs({"type": "PIE"})
        with self.assertRaises(ValueError):
            config_from_attrs({"series": [{"title": "x", "hatch": "sideways"}]})
        with self.assertRaises(ValueError):
            config_from_attrs({"xAxis": {"ticks": 0}})
        with self.assertRaises(ValueError):
            config_from_attrs({"yAxis": {"tickCount": 3}})
        with self.assertRaises(ValueError):
            ColumnChartConfig(height=0)

    def test_groups_normalizes_single_and_list(self) -> None:
        g = Group([(NOV_2, 1)])
        self.assertEqual(ColumnChartConfig(group=g).groups, [g])
        self.assertEqual(ColumnChartConfig(group=[g, g]).groups, [g, g])
        self.assertEqual(ColumnChartConfig().groups, [])
        self.assertFalse(ColumnChartConfig(group=g).has_required_data)


class ReduceGroupsTests(unittest.TestCase):
    def test_single_group_accumulates_total(self) -> None:
        table = reduce_groups(Group([(NOV_2, 42), (NOV_3, 38)]))
        self.assertEqual(table[NOV_2], [42.0])
        self.assertEqual(table.total, 80.0)

    def test_single_group_repeated_keys_append_and_keep_total(self) -> None:
        table = reduce_groups(Group([(NOV_2, 1), (NOV_2, 2)]))
        self.assertEqual(table[NOV_2], [1.0, 2.0])
        self.assertEqual(table.total, 3.0)

    def test_group_list_rows_follow_series_order(self) -> None:
        table = reduce_groups([Group([(NOV_2, 42), (NOV_3, 38)]), Group([(NOV_2, 20)])])
        self.assertEqual(table[NOV_2], [42.0, 20.0])
        self.assertEqual(table[NOV_3], [38.0])
        self.assertIsNone(table.total)
        self.assertEqual(len(table), 2)

    def test_missing_group_gives_empty_table(self) -> None:
        self.assertTrue(reduce_groups(None).is_empty)
        self.assertTrue(reduce_groups([]).is_empty)


if __name__ == "__main__":
    unittest.main()
