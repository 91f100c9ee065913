from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from columnar_plot.errors import ChartDataError


@dataclass(frozen=True)
class KeyValue:
    key: Any
    value: float


class Group:
    """Ordered key/value aggregation backing one bar series.

    Groups built by `Dimension` are sorted by key and have unique keys. Groups
    built directly keep the caller's order, repeated keys included.
    """

    def __init__(self, entries: Iterable[tuple[Any, Any]] | Mapping[Any, Any] = ()) -> None:
        items = entries.items() if isinstance(entries, Mapping) else entries
        self._entries = tuple(
            KeyValue(key=key, value=_coerce_value(value, label=f"value for key {key!r}")) for key, value in items
        )

    def all(self) -> tuple[KeyValue, ...]:
        return self._entries

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[Any]:
        return [kv.key for kv in self._entries]

    def values(self) -> list[float]:
        return [kv.value for kv in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Group(size={len(self._entries)})"


class Dimension:
    """Key accessor over a record list; builds reduce-sum / reduce-count groups."""

    def __init__(self, records: Sequence[Any], key: Callable[[Any], Any]) -> None:
        self.records = tuple(records)
        self.key = key

    def keys(self) -> list[Any]:
        return sorted({self.key(r) for r in self.records})

    def group_sum(self, value: Callable[[Any], Any]) -> Group:
        totals: dict[Any, float] = {}
        for i, record in enumerate(self.records):
            k = self.key(record)
            totals[k] = totals.get(k, 0.0) + _coerce_value(value(record), label=f"record {i}")
        return Group(sorted(totals.items(), key=lambda kv: kv[0]))

    def group_count(self) -> Group:
        counts: dict[Any, float] = {}
        for record in self.records:
            k = self.key(record)
            counts[k] = counts.get(k, 0.0) + 1.0
        return Group(sorted(counts.items(), key=lambda kv: kv[0]))


def _coerce_value(raw: Any, *, label: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ChartDataError(f"{label} is not numeric: {raw!r}") from exc
