"""Water-level pipeline: cache gate, concurrent adapter fan-out, fusion."""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from backend.core.abstractions import (
    AdapterResult,
    CacheEntry,
    Failure,
    FailureKind,
    FusedResponse,
    SourceAdapter,
    Station,
    format_datetime,
)
from backend.core.cache import WaterLevelCache, utcnow
from backend.core.health import HealthRegistry
from backend.core.services.fusion import FusionEngine
from backend.core.stations import StationCatalogue


logger = logging.getLogger(__name__)

DEFAULT_ADAPTER_TIMEOUT = 15.0


class WaterLevelServiceError(RuntimeError):
    """Raised when the pipeline finds itself in an impossible state."""


@dataclass(frozen=True)
class WaterLevelResult:
    response: FusedResponse
    cached: bool
    cache_age_seconds: Optional[int] = None

    def as_payload(self) -> Dict[str, Any]:
        payload = self.response.as_payload()
        payload["cached"] = self.cached
        if self.cached:
            payload["cacheAgeSeconds"] = self.cache_age_seconds
        return payload


class WaterLevelService:
    """Serve fused water levels per station with a TTL cache in front.

    A request either returns a still valid cached response unchanged or runs
    exactly one fetch/fuse/write cycle. Cycles are serialised per station so
    concurrent misses for the same station share one upstream fan-out.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        fusion: FusionEngine,
        cache: WaterLevelCache,
        *,
        catalogue: Optional[StationCatalogue] = None,
        registry: Optional[HealthRegistry] = None,
        clock: Callable[[], datetime] = utcnow,
        max_workers: Optional[int] = None,
    ) -> None:
        self._adapters: List[SourceAdapter] = list(adapters)
        self.fusion = fusion
        self.cache = cache
        self.catalogue = catalogue or StationCatalogue()
        self.registry = registry or HealthRegistry()
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or max(4, 2 * len(self._adapters)),
            thread_name_prefix="waterlevel-adapter",
        )

    @property
    def adapters(self) -> List[SourceAdapter]:
        return list(self._adapters)

    # Public API ---------------------------------------------------------
    def get_waterlevel(self, station_name: Optional[str] = None) -> WaterLevelResult:
        station = self.catalogue.resolve(station_name)
        if not station.known:
            logger.info("Unknown station %s, serving simulated tide data", station.name)
            return WaterLevelResult(response=self.fusion.simulated(self._clock(), station.name), cached=False)
        key = station.name

        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("Returning cached data for %s", key)
            return self._from_cache(entry)

        with self.cache.lock(key):
            # A concurrent request may have completed the cycle while we waited.
            entry = self.cache.get(key, count=False)
            if entry is not None:
                return self._from_cache(entry)
            response = self.fetch_and_fuse(station)
            self.cache.put(key, response)

        self.registry.set_cache_stats(self.cache.stats())
        return WaterLevelResult(response=response, cached=False)

    def fetch_and_fuse(self, station: Station) -> FusedResponse:
        logger.info("Fetching fresh data for %s from %d sources", station.name, len(self._adapters))
        results = self._gather(station)
        now = self._clock()
        response = self.fusion.fuse(results, now, station.name)
        self.registry.record_fetch(station.name, now)
        return response

    def simulated(self, station_name: Optional[str] = None) -> FusedResponse:
        station = self.catalogue.resolve(station_name)
        return self.fusion.simulated(self._clock(), station.name)

    def refresh(self, station_name: Optional[str] = None) -> Optional[str]:
        name = self.catalogue.resolve(station_name).name if station_name else None
        self.cache.invalidate(name)
        return name

    def health(self) -> Dict[str, Any]:
        self.registry.set_cache_stats(self.cache.stats())
        payload: Dict[str, Any] = {
            "status": "ok",
            "cacheState": self.cache.state(),
            "timestamp": format_datetime(self._clock()),
            "stations": self.cache.states(),
        }
        default_entry = self.cache.peek(self.catalogue.default)
        if default_entry is not None:
            payload["cacheAgeSeconds"] = self.cache.age_seconds(default_entry)
        payload.update(self.registry.snapshot())
        return payload

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    # Helpers ------------------------------------------------------------
    def _gather(self, station: Station) -> List[AdapterResult]:
        started = time.monotonic()
        pending: List[Tuple[SourceAdapter, Future]] = [
            (adapter, self._executor.submit(adapter.fetch, station)) for adapter in self._adapters
        ]
        results: List[AdapterResult] = []
        for adapter, future in pending:
            timeout = getattr(adapter, "timeout", None) or DEFAULT_ADAPTER_TIMEOUT
            remaining = max(0.0, started + timeout - time.monotonic())
            try:
                outcome = future.result(timeout=remaining)
            except FutureTimeout:
                # The worker keeps running; only the join stops waiting for it.
                outcome = Failure(
                    adapter=adapter.name,
                    kind=FailureKind.TIMEOUT,
                    reason=f"no answer within {timeout:.1f}s",
                )
                logger.warning("%s timed out for %s", adapter.name, station.name)
            except Exception as exc:  # noqa: BLE001 - an adapter broke its no-raise contract
                logger.error("%s raised past its boundary", adapter.name, exc_info=exc)
                outcome = Failure(adapter=adapter.name, kind=FailureKind.PARSE, reason=repr(exc))
            if isinstance(outcome, Failure) and outcome.kind is not FailureKind.UNSUPPORTED:
                self.registry.record_provider_error(adapter.name)
            results.append(AdapterResult(adapter=adapter.name, outcome=outcome))
        return results

    def _from_cache(self, entry: CacheEntry) -> WaterLevelResult:
        if not isinstance(entry.payload, FusedResponse):
            raise WaterLevelServiceError(f"malformed cache entry: {type(entry.payload).__name__}")
        return WaterLevelResult(
            response=entry.payload,
            cached=True,
            cache_age_seconds=self.cache.age_seconds(entry),
        )


__all__ = ["WaterLevelResult", "WaterLevelService", "WaterLevelServiceError"]
