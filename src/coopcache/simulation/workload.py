# src/coopcache/simulation/workload.py
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from coopcache.network.entities import Request


@dataclass
class PeriodWindow:
    id: int
    start: object
    end: object
    requests: List[Request] = field(default_factory=list)


@dataclass
class Workload:
    """Immutable request stream sliced into consecutive periods."""
    windows: List[PeriodWindow]

    def __len__(self):
        return len(self.windows)

    @property
    def num_requests(self) -> int:
        return sum(len(w.requests) for w in self.windows)


def build_workload(requests: pd.DataFrame, period_duration, origin=None) -> Workload:
    """
    Slice a request table into periods of `period_duration`.

    `requests` needs columns time, file_id, client_id. Times may be numbers or
    timestamps as long as `period_duration` has the matching type. Periods
    without requests are kept so that period ids stay contiguous.
    """
    if requests.empty:
        return Workload([])
    df = requests.sort_values("time", kind="stable")
    if origin is None:
        origin = df["time"].iloc[0]
    index = ((df["time"] - origin) // period_duration).astype(int)
    if (index < 0).any():
        raise ValueError("requests before the workload origin")

    windows = [PeriodWindow(i, origin + i * period_duration, origin + (i + 1) * period_duration)
               for i in range(int(index.max()) + 1)]
    for pid, t, f, c in zip(index, df["time"], df["file_id"], df["client_id"]):
        windows[pid].requests.append(Request(t, f, c))
    return Workload(windows)
