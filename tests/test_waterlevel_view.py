from __future__ import annotations

import pytest
from django.test import Client

from backend.api import views
from backend.core.cache import WaterLevelCache
from backend.core.providers.dmi_public import DmiPublicAdapter
from backend.core.providers.dmi_scrape import DmiScrapeAdapter
from backend.core.providers.harbor import HarborAuthorityAdapter
from backend.core.services.fusion import FusionEngine
from backend.core.services.waterlevel_service import WaterLevelService
from backend.core.tide_model import TideModel


@pytest.fixture
def service(static_adapter, failing_adapter, clock, monkeypatch) -> WaterLevelService:
    service = WaterLevelService(
        [failing_adapter("esbjerg-havn"), static_adapter("dmi-public", 48, label="DMI Public Data")],
        fusion=FusionEngine(TideModel()),
        cache=WaterLevelCache(ttl=300, clock=clock),
        clock=clock,
    )
    monkeypatch.setattr(views, "get_waterlevel_service", lambda: service)
    yield service
    service.close()


def test_waterlevel_endpoint_returns_payload(service, clock) -> None:
    client = Client()
    response = client.get("/api/waterlevel")

    assert response.status_code == 200
    payload = response.json()
    assert payload["station"] == "Esbjerg Havn I"
    assert payload["current"]["value"] == 48
    assert payload["current"]["time"].endswith("Z")
    assert payload["metadata"]["source"] == "DMI Public Data"
    assert payload["metadata"]["reference"] == "DVR90"
    assert payload["highlightPoint"]["label"] == "6 timer frem"
    assert "highlight" not in payload
    assert payload["cached"] is False
    assert "cacheAgeSeconds" not in payload
    assert len(payload["measured"]) == 49
    assert len(payload["forecast"]) == 48

    clock.advance(12)
    cached = client.get("/api/waterlevel").json()
    assert cached["cached"] is True
    assert cached["cacheAgeSeconds"] == 12
    assert cached["metadata"]["generatedAt"] == payload["metadata"]["generatedAt"]


def test_waterlevel_endpoint_accepts_station(service) -> None:
    client = Client()

    assert client.get("/api/waterlevel/Nordby").json()["station"] == "Nordby"
    assert client.get("/api/waterlevel/Esbjerg%20Havn%20I").json()["station"] == "Esbjerg Havn I"


def test_unknown_station_is_simulated_and_not_cached(service) -> None:
    client = Client()

    first = client.get("/api/waterlevel/Esbjerg%20Whatever").json()
    second = client.get("/api/waterlevel/Esbjerg%20Whatever").json()

    assert first["station"] == "Esbjerg Whatever"
    assert first["metadata"]["source"] == "simulated"
    assert second["cached"] is False
    assert client.get("/health").json()["cacheState"] == "empty"


def test_refresh_clears_cache(service) -> None:
    client = Client()
    client.get("/api/waterlevel")

    response = client.post("/api/refresh", {}, content_type="application/json")

    assert response.status_code == 200
    assert response.json()["status"] == "cleared"
    assert response.json()["station"] is None
    assert client.get("/api/waterlevel").json()["cached"] is False


def test_refresh_single_station(service) -> None:
    client = Client()
    client.get("/api/waterlevel/Nordby")
    client.get("/api/waterlevel")

    response = client.post("/api/refresh", {"station": "Nordby"}, content_type="application/json")

    assert response.json()["station"] == "Nordby"
    assert client.get("/api/waterlevel/Nordby").json()["cached"] is False
    assert client.get("/api/waterlevel").json()["cached"] is True


def test_refresh_rejects_get(service) -> None:
    response = Client().get("/api/refresh")

    assert response.status_code == 405


def test_stations_endpoint(service) -> None:
    payload = Client().get("/api/stations").json()

    assert payload["defaultStation"] == "Esbjerg Havn I"
    assert {s["id"] for s in payload["stations"]} == {"25149", "30336", "31573"}
    assert set(payload["stations"][0]) == {"name", "id", "status"}


def test_health_endpoint(service) -> None:
    client = Client()
    assert client.get("/health").json()["cacheState"] == "empty"

    client.get("/api/waterlevel")
    payload = client.get("/health").json()

    assert payload["status"] == "ok"
    assert payload["cacheState"] == "valid"
    assert payload["timestamp"].endswith("Z")
    assert payload["providers"] == {"esbjerg-havn": 1}


def test_internal_error_returns_simulated_payload(monkeypatch) -> None:
    class BrokenService:
        def get_waterlevel(self, station=None):
            raise RuntimeError("cache exploded")

    monkeypatch.setattr(views, "get_waterlevel_service", lambda: BrokenService())

    response = Client().get("/api/waterlevel/Nordby")

    assert response.status_code == 500
    payload = response.json()
    assert payload["message"] == "cache exploded"
    assert payload["error"] == "Internal server error"
    assert payload["station"] == "Nordby"
    assert payload["metadata"]["source"] == "simulated"
    assert payload["cached"] is False
    assert payload["measured"] and payload["forecast"]


def test_service_is_built_from_settings() -> None:
    views.get_waterlevel_service.cache_clear()
    try:
        service = views.get_waterlevel_service()
        assert [type(a) for a in service.adapters] == [
            HarborAuthorityAdapter,
            DmiScrapeAdapter,
            DmiPublicAdapter,
        ]
        assert service.cache.ttl == 300
        assert service.catalogue.default == "Esbjerg Havn I"
        assert views.get_waterlevel_service() is service
    finally:
        views.get_waterlevel_service().close()
        views.get_waterlevel_service.cache_clear()
