from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, Optional

from backend.core.abstractions import CacheEntry, FusedResponse


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WaterLevelCache:
    """In-process TTL store holding the last fused response per station.

    Expired entries are kept until overwritten or invalidated so the health
    endpoint can tell "expired" apart from "empty". ``lock(station)`` hands out
    one lock per station for serialising the miss/fetch/write cycle.
    """

    def __init__(self, ttl: float = 5 * 60, clock: Callable[[], datetime] = utcnow) -> None:
        self.ttl = ttl
        self._clock = clock
        self._storage: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, Lock] = {}
        self._guard = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, station: str, count: bool = True) -> Optional[CacheEntry]:
        with self._guard:
            entry = self._storage.get(station)
            if entry is None or not self._is_valid(entry):
                if count:
                    self.misses += 1
                return None
            if count:
                self.hits += 1
            return entry

    def peek(self, station: str) -> Optional[CacheEntry]:
        with self._guard:
            return self._storage.get(station)

    def put(self, station: str, response: FusedResponse) -> CacheEntry:
        entry = CacheEntry(payload=response, stored_at=self._clock())
        with self._guard:
            self._storage[station] = entry
        return entry

    def invalidate(self, station: Optional[str] = None) -> None:
        with self._guard:
            if station is None:
                self._storage.clear()
            else:
                self._storage.pop(station, None)
        logger.info("Cache cleared for %s", station or "all stations")

    def state(self, station: Optional[str] = None) -> str:
        """``valid``, ``expired`` or ``empty`` for one station or across all."""
        with self._guard:
            if station is None:
                entries = list(self._storage.values())
            else:
                entries = [self._storage[station]] if station in self._storage else []
            if not entries:
                return "empty"
            if any(self._is_valid(entry) for entry in entries):
                return "valid"
            return "expired"

    def states(self) -> Dict[str, str]:
        with self._guard:
            return {
                station: "valid" if self._is_valid(entry) else "expired"
                for station, entry in self._storage.items()
            }

    def age_seconds(self, entry: CacheEntry) -> int:
        return max(0, int((self._clock() - entry.stored_at).total_seconds()))

    def lock(self, station: str) -> Lock:
        with self._guard:
            return self._locks.setdefault(station, Lock())

    def stats(self) -> Dict[str, int]:
        with self._guard:
            return {"hits": self.hits, "misses": self.misses, "keys": len(self._storage)}

    def _is_valid(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.stored_at).total_seconds() < self.ttl


__all__ = ["WaterLevelCache", "utcnow"]
