"""In-memory state behind the ``/health`` endpoint.

Remembers when each station last went through a fetch cycle, how often each
source adapter failed and the latest cache counters. Reset on restart.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime
from threading import Lock
from typing import Dict, Mapping, Optional

from backend.core.abstractions import format_datetime


class HealthRegistry:
    def __init__(self) -> None:
        self._last_fetch: Dict[str, datetime] = {}
        self._adapter_failures: Counter = Counter()
        self._cache: Dict[str, int] = {"hits": 0, "misses": 0, "keys": 0}
        self._lock = Lock()

    def record_fetch(self, station: str, when: datetime) -> None:
        if not station:
            raise ValueError("station must be provided")
        with self._lock:
            self._last_fetch[station] = when

    def record_provider_error(self, adapter: str) -> None:
        if not adapter:
            raise ValueError("adapter must be provided")
        with self._lock:
            self._adapter_failures[adapter] += 1

    def set_cache_stats(self, stats: Optional[Mapping[str, int]]) -> None:
        stats = stats or {}
        with self._lock:
            self._cache = {key: int(stats.get(key, 0)) for key in ("hits", "misses", "keys")}

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "lastFetch": {name: format_datetime(when) for name, when in self._last_fetch.items()},
                "providers": dict(self._adapter_failures),
                "cache": dict(self._cache),
            }


__all__ = ["HealthRegistry"]
