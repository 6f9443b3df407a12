from __future__ import annotations

from datetime import datetime, timezone

from backend.core.cache import WaterLevelCache
from backend.core.services.fusion import FusionEngine
from backend.core.tide_model import TideModel


def _response(station: str):
    return FusionEngine(TideModel()).simulated(datetime(2024, 3, 10, 12, tzinfo=timezone.utc), station)


def test_entry_valid_until_ttl(clock) -> None:
    cache = WaterLevelCache(ttl=300, clock=clock)
    response = _response("Esbjerg Havn I")
    cache.put("Esbjerg Havn I", response)

    clock.advance(299)
    entry = cache.get("Esbjerg Havn I")
    assert entry is not None
    assert entry.payload is response
    assert cache.age_seconds(entry) == 299

    clock.advance(1)
    assert cache.get("Esbjerg Havn I") is None
    assert cache.peek("Esbjerg Havn I") is not None
    assert cache.state("Esbjerg Havn I") == "expired"


def test_put_overwrites_and_restamps(clock) -> None:
    cache = WaterLevelCache(ttl=60, clock=clock)
    cache.put("Nordby", _response("Nordby"))
    clock.advance(100)
    replacement = _response("Nordby")

    entry = cache.put("Nordby", replacement)

    assert entry.stored_at == clock()
    assert cache.get("Nordby").payload is replacement


def test_invalidate_single_and_all(clock) -> None:
    cache = WaterLevelCache(ttl=60, clock=clock)
    cache.put("Nordby", _response("Nordby"))
    cache.put("Havneby", _response("Havneby"))

    cache.invalidate("Nordby")
    assert cache.state("Nordby") == "empty"
    assert cache.state() == "valid"

    cache.invalidate()
    assert cache.state() == "empty"


def test_stats_and_locks(clock) -> None:
    cache = WaterLevelCache(ttl=60, clock=clock)
    cache.get("Nordby")
    cache.put("Nordby", _response("Nordby"))
    cache.get("Nordby")
    cache.get("Nordby", count=False)

    assert cache.stats() == {"hits": 1, "misses": 1, "keys": 1}
    assert cache.lock("Nordby") is cache.lock("Nordby")
    assert cache.lock("Nordby") is not cache.lock("Havneby")
