"""Static catalogue of the Wadden Sea stations the service knows about."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from backend.core.abstractions import Station


DEFAULT_STATIONS: Sequence[Station] = (
    Station(name="Esbjerg Havn I", id="25149", status="live"),
    Station(name="Nordby", id="30336", status="dmi"),
    Station(name="Havneby", id="31573", status="dmi"),
)


class StationCatalogue:
    def __init__(self, stations: Iterable[Station] = DEFAULT_STATIONS, default: Optional[str] = None) -> None:
        self._stations: List[Station] = list(stations)
        if not self._stations:
            raise ValueError("at least one station must be configured")
        self.default = default or self._stations[0].name

    def all(self) -> List[Station]:
        return list(self._stations)

    def resolve(self, name_or_id: Optional[str]) -> Station:
        """Find a station by name or id; unknown names get a station without an id."""
        key = (name_or_id or "").strip() or self.default
        for station in self._stations:
            if key.lower() in (station.name.lower(), (station.id or "").lower()):
                return station
        return Station(name=key, id=None, status="unknown")

    def as_payload(self) -> dict:
        return {
            "stations": [station.as_dict() for station in self._stations],
            "defaultStation": self.default,
        }


__all__ = ["DEFAULT_STATIONS", "StationCatalogue"]
