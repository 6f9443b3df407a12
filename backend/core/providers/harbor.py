"""Direct harbour-authority reading scraped from the Port Esbjerg weather page."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from bs4 import BeautifulSoup

from backend.core.abstractions import Auxiliary, Reading, Station, Unit
from backend.core.providers.base import (
    AdapterParseFailure,
    AdapterUnsupportedStation,
    HttpSourceAdapter,
    parse_number,
)


_METERS_RE = re.compile(r"\d\s*m\b(?!/)")
_CM_RE = re.compile(r"\bcm\b", re.IGNORECASE)


def _unit_for(text: str) -> Unit:
    if _CM_RE.search(text):
        return Unit.CM
    if _METERS_RE.search(text):
        return Unit.METERS
    return Unit.CM


class HarborAuthorityAdapter(HttpSourceAdapter):
    """Reads the harbour level plus wind and waves from the port's table."""

    name = "esbjerg-havn"
    label = "Esbjerg Havn"
    base_url = "https://portesbjerg.dk/havneservice/vejrforhold"
    fallback_selector = ".vandstand-value, [data-vandstand], #vandstand"

    def __init__(
        self,
        base_url: Optional[str] = None,
        station_ids: Iterable[str] = ("25149",),
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.station_ids = frozenset(station_ids)
        self._log = logging.getLogger(self.__class__.__name__)

    def _fetch(self, station: Station) -> Reading:
        if station.id not in self.station_ids:
            raise AdapterUnsupportedStation(f"{self.label} does not cover {station.name}")
        response = self._request("GET", self.base_url)
        if not response.text.strip():
            raise AdapterParseFailure("empty page")
        soup = BeautifulSoup(response.text, "html.parser")
        level, unit = self._parse_level(soup)
        return Reading(
            value=level,
            unit=unit,
            observed_at=datetime.now(timezone.utc),
            provenance=self.label,
            auxiliary=self._parse_auxiliary(soup),
        )

    # helpers ------------------------------------------------------------
    def _rows(self, soup: BeautifulSoup):
        for row in soup.find_all("tr"):
            cells = row.find_all("td")
            if len(cells) >= 2:
                yield cells[0].get_text(" ", strip=True).lower(), cells[1].get_text(" ", strip=True)

    def _parse_level(self, soup: BeautifulSoup) -> Tuple[Optional[float], Unit]:
        for label, text in self._rows(soup):
            if "vandstand" in label and "havn" in label:
                value = parse_number(text)
                if value is None:
                    raise AdapterParseFailure(f"unreadable water level {text!r}")
                return value, _unit_for(f"{label} {text}")

        element = soup.select_one(self.fallback_selector)
        if element is None:
            return None, Unit.CM
        text = element.get("data-vandstand") or element.get_text(" ", strip=True)
        value = parse_number(text)
        if value is None:
            raise AdapterParseFailure(f"unreadable water level {text!r}")
        return value, _unit_for(text)

    def _parse_auxiliary(self, soup: BeautifulSoup) -> Auxiliary:
        wind_speed = wind_direction = wave_height = None
        for label, text in self._rows(soup):
            if "vindhastighed" in label:
                wind_speed = parse_number(text, allow_negative=False)
            elif "vindretning" in label:
                wind_direction = text or None
            elif "bølge" in label and "højde" in label:
                wave_height = parse_number(text, allow_negative=False)
        return Auxiliary(wind_speed=wind_speed, wind_direction=wind_direction, wave_height=wave_height)


__all__ = ["HarborAuthorityAdapter"]
