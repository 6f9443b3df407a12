"""DMI public ocean-observation endpoint."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from backend.core.abstractions import Reading, Station, Unit
from backend.core.providers.base import (
    AdapterParseFailure,
    AdapterUnsupportedStation,
    HttpSourceAdapter,
)


class DmiPublicAdapter(HttpSourceAdapter):
    """Reads ``properties.sealev_dvr`` (cm DVR90) for a DMI station id."""

    name = "dmi-public"
    label = "DMI Public Data"
    base_url = "https://www.dmi.dk/NinJo2DmiDk/ninjo2dmidk"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def _fetch(self, station: Station) -> Reading:
        if not station.id:
            raise AdapterUnsupportedStation(f"no DMI id for {station.name}")
        params = {"cmd": "obj", "serviceid": "oceanobs", "id": station.id}
        response = self._request("GET", self.base_url, params=params)
        data = self._json(response)
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            raise AdapterParseFailure("unexpected payload")

        properties = data.get("properties") or {}
        value = _safe_float(properties.get("sealev_dvr"))
        if value is None and properties.get("sealev_dvr") is not None:
            raise AdapterParseFailure(f"unreadable sealev_dvr {properties['sealev_dvr']!r}")
        return Reading(
            value=value,
            unit=Unit.CM_DVR90,
            observed_at=self._parse_time(properties.get("observed")),
            provenance=self.label,
        )

    # helpers ------------------------------------------------------------
    def _json(self, response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterParseFailure("invalid json") from exc

    def _parse_time(self, value: Optional[str]) -> datetime:
        if not value:
            return datetime.now(timezone.utc)
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            self._log.warning("Unparseable observation time %r", value)
            return datetime.now(timezone.utc)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


def _safe_float(value: Optional[object]) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["DmiPublicAdapter"]
