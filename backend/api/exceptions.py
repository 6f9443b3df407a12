"""DRF exception handler that always answers with a water-level shaped body."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


logger = logging.getLogger(__name__)


def _fallback_payload(station: Optional[str]) -> Dict[str, Any]:
    # Built straight from settings so a broken service cannot break the fallback.
    from backend.api.views import build_fusion_engine

    engine = build_fusion_engine()
    name = station or settings.WATERLEVEL_DEFAULT_STATION
    payload = engine.simulated(datetime.now(timezone.utc), name).as_payload()
    payload["cached"] = False
    return payload


def waterlevel_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.error("Unhandled error in %s", view.__class__.__name__ if view else "view", exc_info=exc)
    station = (context.get("kwargs") or {}).get("station")
    payload = _fallback_payload(station)
    payload["error"] = "Internal server error"
    payload["message"] = str(exc) or exc.__class__.__name__
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = ["waterlevel_exception_handler"]
