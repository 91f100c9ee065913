from columnar_plot.charts import BarChart, BarDatum, CompositeChart, Margins
from columnar_plot.errors import ChartDataError
from columnar_plot.grouping import Dimension, Group, KeyValue
from columnar_plot.scales import LinearScale, TimeScale, linear_ticks, time_ticks
from columnar_plot.scene import SceneNode

__all__ = [
    "BarChart",
    "BarDatum",
    "ChartDataError",
    "CompositeChart",
    "Dimension",
    "Group",
    "KeyValue",
    "LinearScale",
    "Margins",
    "SceneNode",
    "TimeScale",
    "linear_ticks",
    "time_ticks",
]
