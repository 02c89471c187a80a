# src/coopcache/network/popularity.py
"""
Per-entity file popularity counters.

Every file, client, small cell and cache storage owns a PopularityTable that
keeps two views of the same demand:
  - period(pid): requests per file inside period `pid`
  - accumulated(pid): requests per file from the start of the run through `pid`
"""
from bisect import bisect_left, bisect_right, insort
from collections import Counter
from typing import Dict, Hashable, Iterable, List, Optional

FileId = Hashable


class Popularities(Counter):
    """Mapping file id -> request count."""

    def sum(self) -> int:
        return sum(self.values())

    def normalize(self) -> Dict[FileId, float]:
        """Counts as fractions of the total. Empty when the total is zero."""
        total = self.sum()
        if total == 0:
            return {}
        return {f: v / total for f, v in self.items()}

    def files(self) -> List[FileId]:
        """Files with non-zero demand."""
        return [f for f, v in self.items() if v > 0]

    def restrict(self, files: Iterable[FileId]) -> "Popularities":
        return Popularities({f: self.get(f, 0) for f in files})


class PopularityTable:
    """Periodic and accumulated popularity of one entity.

    Accumulated counters are stored as snapshots keyed by the periods in which
    the entity saw demand; a lookup for any other period falls back to the
    latest earlier snapshot.
    """

    def __init__(self):
        self._period: Dict[int, Popularities] = {}
        self._accumulated: Dict[int, Popularities] = {}
        self._keys: List[int] = []

    def add(self, period_id: int, file_id: FileId, count: int = 1):
        """Add `count` requests for `file_id` in `period_id`.

        Negative counts are used by ownership transfer to take demand out of
        an aggregate.
        """
        if count == 0:
            return
        self._period.setdefault(period_id, Popularities())[file_id] += count
        if period_id not in self._accumulated:
            self._accumulated[period_id] = Popularities(self.accumulated(period_id))
            insort(self._keys, period_id)
        # later snapshots already include this period
        for key in self._keys[bisect_left(self._keys, period_id):]:
            self._accumulated[key][file_id] += count

    def merge(self, other: "PopularityTable", sign: int = 1):
        """Add (sign=1) or subtract (sign=-1) every counter of `other`."""
        for period_id in other.period_ids():
            for file_id, count in other.period(period_id).items():
                self.add(period_id, file_id, sign * count)

    def period(self, period_id: int) -> Popularities:
        return self._period.get(period_id, Popularities())

    def accumulated(self, period_id: int) -> Popularities:
        i = bisect_right(self._keys, period_id)
        if i == 0:
            return Popularities()
        return self._accumulated[self._keys[i - 1]]

    def period_ids(self) -> List[int]:
        return sorted(self._period)

    def net_demand(self, start: int, end: int) -> Popularities:
        """Demand strictly inside the window [start, end].

        accumulated(end) - accumulated(start) + period(start)
        """
        acc_end = self.accumulated(end)
        acc_start = self.accumulated(start)
        first = self.period(start)
        demand = Popularities()
        for f, pop in acc_end.items():
            demand[f] = pop - acc_start.get(f, 0) + first.get(f, 0)
        return demand

    def is_empty(self, period_id: Optional[int] = None) -> bool:
        """True when there is no accumulated demand through `period_id`."""
        if period_id is None:
            return not self._keys
        return self.accumulated(period_id).sum() == 0

    def __repr__(self):
        return f"PopularityTable(periods={self.period_ids()})"
