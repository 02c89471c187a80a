# src/coopcache/simulation/context.py
from typing import Dict, Hashable, List, Optional

from coopcache.network.entities import (CacheStorage, Client, File, Period, SmallCell,
                                        set_popular_files)


class SimulationContext:
    """
    All mutable state of one simulation run.

    Files and clients are created lazily the first time they are seen. Each
    run builds its own context, so runs never share popularity counters or
    cell/storage membership.
    """

    def __init__(self, cfg, workload=None):
        self.cfg = cfg
        self.files: Dict[Hashable, File] = {}
        self.clients: Dict[Hashable, Client] = {}
        self.small_cells: List[SmallCell] = []
        self.cache_storages: List[CacheStorage] = []
        self.oracle = None
        self.training = None
        self.period_no = 0
        self.periods: List[Period] = []
        if workload is not None:
            self.periods = [Period(w.id, w.start, w.end, w.requests) for w in workload.windows]
            set_popular_files(self.periods)

    def file(self, file_id) -> File:
        f = self.files.get(file_id)
        if f is None:
            f = File(file_id, self.cfg.FILE_SIZE if self.cfg is not None else 0)
            self.files[file_id] = f
        return f

    def client(self, client_id) -> Client:
        c = self.clients.get(client_id)
        if c is None:
            c = Client(client_id)
            self.clients[client_id] = c
        return c

    def reset_small_cells(self, n: int) -> List[SmallCell]:
        """Drop every cell/storage relation and create `n` empty small cells."""
        for c in self.clients.values():
            c.small_cell = None
        self.small_cells = [SmallCell(i) for i in range(n)]
        self.cache_storages = []
        return self.small_cells

    def period(self, period_id: int) -> Optional[Period]:
        if 0 <= period_id < len(self.periods):
            return self.periods[period_id]
        return None
