# src/coopcache/caching/admission.py
from enum import Enum

from coopcache.caching.cache_base import CacheBase, CachedFile
from coopcache.errors import ConfigError


class FillCache(CacheBase):
    """Admit requested bytes while free space remains. Nothing is evicted."""

    def cache_file(self, file):
        cf = self.store.get(file.id)
        if cf is None:
            cf = CachedFile(file.id)
            self.store[file.id] = cf
        resident = cf.size_cached
        missing = file.size - resident
        if missing > 0 and self.space > 0:
            admitted = min(missing, self.space)
            cf.size_cached += admitted
            self.space -= admitted
        return resident, cf


class NoCache(CacheBase):
    """Every request is downloaded."""

    def cache_file(self, file):
        cf = self.store.get(file.id)
        if cf is None:
            cf = CachedFile(file.id)
            self.store[file.id] = cf
        return 0, cf


class CachePolicy(Enum):
    FILL = "fill"
    NONE = "none"

    @classmethod
    def from_name(cls, name):
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ConfigError(f"Unknown CACHE_POLICY: {name}") from None

    def build(self, capacity: int) -> CacheBase:
        if self is CachePolicy.FILL:
            return FillCache(capacity)
        return NoCache(capacity)
