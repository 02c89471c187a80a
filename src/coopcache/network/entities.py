# src/coopcache/network/entities.py
"""
Entities of the cellular network: files, clients, small cells, cache storages
and periods.

Relations between entities are plain object handles. They are only changed
through coopcache.network.ownership, which keeps both sides and the
aggregated popularity counters consistent.
"""
from collections import Counter
from enum import Enum
from typing import Dict, Hashable, List, NamedTuple, Optional

from coopcache.caching.cache_base import CacheBase
from coopcache.errors import PeriodStateError
from coopcache.network.popularity import PopularityTable


class Request(NamedTuple):
    time: object
    file_id: Hashable
    client_id: Hashable


class File:
    def __init__(self, file_id, size: int = 0):
        self.id = file_id
        self.size = size
        self.popularity = PopularityTable()

    def __repr__(self):
        return f"File({self.id!r}, size={self.size})"


class Client:
    def __init__(self, client_id):
        self.id = client_id
        self.popularity = PopularityTable()
        self.small_cell: Optional["SmallCell"] = None

    def __repr__(self):
        cell = self.small_cell.id if self.small_cell is not None else None
        return f"Client({self.id!r}, small_cell={cell})"


class SmallCell:
    def __init__(self, cell_id: int):
        self.id = cell_id
        self.clients: Dict[Hashable, Client] = {}
        self.popularity = PopularityTable()
        self.cache_storage: Optional["CacheStorage"] = None

    def __len__(self):
        return len(self.clients)

    def __repr__(self):
        storage = self.cache_storage.id if self.cache_storage is not None else None
        return f"SmallCell({self.id}, clients={len(self.clients)}, cache_storage={storage})"


class CacheStorage:
    """A cooperation group: small cells sharing one logical cache."""

    def __init__(self, storage_id: int, content: Optional[CacheBase] = None):
        self.id = storage_id
        self.small_cells: List[SmallCell] = []
        self.popularity = PopularityTable()
        self.content = content
        self.popular_files: Dict[int, list] = {}
        self.served = 0
        self.downloaded = 0

    @property
    def size(self) -> int:
        return self.content.capacity if self.content is not None else 0

    @property
    def space(self) -> int:
        return self.content.space if self.content is not None else 0

    def has_file(self, file_id) -> bool:
        return self.content is not None and self.content.has(file_id)

    def cache_file(self, file):
        return self.content.cache_file(file)

    def set_popular_files(self, period_id: int):
        """Rank files by accumulated demand of the member cells."""
        pop = self.popularity.accumulated(period_id)
        self.popular_files[period_id] = [f for f, v in pop.most_common() if v > 0]

    def __repr__(self):
        return f"CacheStorage({self.id}, small_cells={[sc.id for sc in self.small_cells]})"


class PeriodState(Enum):
    IDLE = "idle"
    SERVING = "serving"
    ENDING = "ending"
    CLOSED = "closed"


_TRANSITIONS = {
    PeriodState.IDLE: PeriodState.SERVING,
    PeriodState.SERVING: PeriodState.ENDING,
    PeriodState.ENDING: PeriodState.CLOSED,
}


class Period:
    def __init__(self, period_id: int, start, end, requests: List[Request]):
        self.id = period_id
        self.start = start
        self.end = end
        self.requests = sorted(requests, key=lambda r: r.time)
        self.new_clients: List[Client] = []
        self.served = 0
        self.downloaded = 0
        self.hit_rate = None
        self.state = PeriodState.IDLE
        counts = Counter(r.file_id for r in self.requests)
        self.popular_files = [f for f, _ in counts.most_common()]
        self.popular_files_accumulated: List[Hashable] = []

    def advance(self, state: PeriodState):
        if _TRANSITIONS.get(self.state) is not state:
            raise PeriodStateError(f"period {self.id}: {self.state.value} -> {state.value}")
        self.state = state

    def cal_rate(self) -> float:
        total = self.served + self.downloaded
        self.hit_rate = self.served / total if total > 0 else 0.0
        return self.hit_rate

    def top_files(self, limit: int) -> Optional[List[Hashable]]:
        """The `limit` most requested files, or None when limit <= 0."""
        if limit <= 0:
            return None
        return self.popular_files[:limit]

    def __repr__(self):
        return f"Period({self.id}, requests={len(self.requests)}, state={self.state.value})"


def set_popular_files(periods: List[Period]):
    """Fill in the cumulative ranking of every period from its predecessors."""
    counts = Counter()
    for p in periods:
        counts.update(r.file_id for r in p.requests)
        p.popular_files_accumulated = [f for f, _ in counts.most_common()]
