from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from columnar_plot.grouping import Group


@dataclass(frozen=True)
class NormalizedTable:
    """Time key -> one value per series, in series-declaration order.

    `total` is only accumulated for the single-group case; summing series with
    different scales has no meaning.
    """

    rows: dict[Any, list[float]] = field(default_factory=dict)
    total: float | None = None

    def __getitem__(self, key: Any) -> list[float]:
        return self.rows[key]

    def __contains__(self, key: object) -> bool:
        return key in self.rows

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.rows)

    def get(self, key: Any, default: list[float] | None = None) -> list[float] | None:
        return self.rows.get(key, default)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def reduce_groups(group: Group | Sequence[Group] | None) -> NormalizedTable:
    if group is None:
        return NormalizedTable()
    rows: dict[Any, list[float]] = {}
    if isinstance(group, Group):
        total = 0.0
        for kv in group.all():
            rows.setdefault(kv.key, []).append(kv.value)
            total += kv.value
        return NormalizedTable(rows=rows, total=total)
    for g in group:
        for kv in g.all():
            rows.setdefault(kv.key, []).append(kv.value)
    return NormalizedTable(rows=rows)
