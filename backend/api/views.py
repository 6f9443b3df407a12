"""REST API views for water-level information."""
from __future__ import annotations

from functools import lru_cache

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.core.cache import WaterLevelCache
from backend.core.providers.base import RequestConfig
from backend.core.providers.dmi_public import DmiPublicAdapter
from backend.core.providers.dmi_scrape import DmiScrapeAdapter
from backend.core.providers.harbor import HarborAuthorityAdapter
from backend.core.services.fusion import FusionEngine
from backend.core.services.waterlevel_service import WaterLevelService
from backend.core.stations import StationCatalogue
from backend.core.tide_model import TideConfig, TideModel


def build_fusion_engine() -> FusionEngine:
    return FusionEngine(
        TideModel(TideConfig.from_settings(settings)),
        hours_back=settings.WATERLEVEL_HOURS_BACK,
        hours_forward=settings.WATERLEVEL_HOURS_FORWARD,
        highlight_hours=settings.WATERLEVEL_HIGHLIGHT_HOURS,
        highlight_label=settings.WATERLEVEL_HIGHLIGHT_LABEL,
    )


@lru_cache(maxsize=1)
def get_waterlevel_service() -> WaterLevelService:
    request_config = RequestConfig(
        timeout=settings.WATERLEVEL_REQUEST_TIMEOUT,
        retries=settings.WATERLEVEL_REQUEST_RETRIES,
    )
    plausible_range = (settings.WATERLEVEL_PLAUSIBLE_MIN, settings.WATERLEVEL_PLAUSIBLE_MAX)
    # Priority order: harbour authority, DMI website, DMI public endpoint.
    adapters = (
        HarborAuthorityAdapter(
            base_url=settings.HARBOR_URL,
            request_config=request_config,
            plausible_range=plausible_range,
            datum_offset_cm=settings.HARBOR_DATUM_OFFSET_CM,
        ),
        DmiScrapeAdapter(
            base_url=settings.DMI_SCRAPE_URL,
            request_config=request_config,
            plausible_range=plausible_range,
        ),
        DmiPublicAdapter(
            base_url=settings.DMI_PUBLIC_URL,
            request_config=request_config,
            plausible_range=plausible_range,
        ),
    )
    return WaterLevelService(
        adapters=adapters,
        fusion=build_fusion_engine(),
        cache=WaterLevelCache(ttl=settings.WATERLEVEL_CACHE_TTL),
        catalogue=StationCatalogue(default=settings.WATERLEVEL_DEFAULT_STATION),
    )


class WaterLevelView(APIView):
    """Current level, history and forecast for one station."""

    permission_classes = [AllowAny]

    def get(self, request, station=None, *args, **kwargs):  # noqa: D401
        """Return the fused water-level series, from cache when still valid."""
        result = get_waterlevel_service().get_waterlevel(station)
        return Response(result.as_payload(), status=status.HTTP_200_OK)


class RefreshView(APIView):
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        station = None
        if isinstance(request.data, dict):
            station = request.data.get("station")
        station = station or request.query_params.get("station")
        cleared = get_waterlevel_service().refresh(station)
        return Response(
            {
                "status": "cleared",
                "station": cleared,
                "message": "Next request will fetch fresh data",
            },
            status=status.HTTP_200_OK,
        )


class StationsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(get_waterlevel_service().catalogue.as_payload(), status=status.HTTP_200_OK)


class HealthView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(get_waterlevel_service().health(), status=status.HTTP_200_OK)
