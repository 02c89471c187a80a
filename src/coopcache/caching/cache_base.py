# src/coopcache/caching/cache_base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Hashable, Optional, Tuple


@dataclass
class CachedFile:
    """Per-file metadata held by a cache storage."""
    file_id: Hashable
    size_cached: int = 0
    count: int = 0
    last_request: Optional[float] = None


class CacheBase(ABC):
    def __init__(self, capacity: int):
        self.capacity = capacity
        self.space = capacity
        self.store: Dict[Hashable, CachedFile] = {}

    def __contains__(self, file_id) -> bool:
        return self.has(file_id)

    def has(self, file_id) -> bool:
        cf = self.store.get(file_id)
        return cf is not None and cf.size_cached > 0

    def stats(self):
        return {"capacity": self.capacity, "space": self.space, "files": len(self.store)}

    @abstractmethod
    def cache_file(self, file) -> Tuple[int, CachedFile]:
        """Serve one request for `file`.

        Returns the number of bytes that were resident before this request and
        the metadata handle of the file. The caller updates count and
        last_request on the handle.
        """

    def clear(self):
        self.store.clear()
        self.space = self.capacity
