"""Scrape of the DMI water-level overview page."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup

from backend.core.abstractions import Reading, Station, Unit
from backend.core.providers.base import AdapterParseFailure, HttpSourceAdapter, parse_number


class DmiScrapeAdapter(HttpSourceAdapter):
    name = "dmi-website"
    label = "DMI Website"
    base_url = "https://www.dmi.dk/hav/vandstand/"
    row_selector = ".station-row, .vandstand-station"
    value_selector = ".current-value, .vandstand-value"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def _fetch(self, station: Station) -> Reading:
        response = self._request("GET", self.base_url)
        soup = BeautifulSoup(response.text, "html.parser")
        return Reading(
            value=self._find_level(soup, station),
            unit=Unit.CM_DVR90,
            observed_at=datetime.now(timezone.utc),
            provenance=self.label,
        )

    def _find_level(self, soup: BeautifulSoup, station: Station) -> Optional[float]:
        # DMI lists stations by place name without the gauge suffix ("Esbjerg", not "Esbjerg Havn I").
        needle = station.name.split()[0].lower()
        for row in soup.select(self.row_selector):
            name = row.select_one(".station-name")
            if name is None or needle not in name.get_text(strip=True).lower():
                continue
            element = row.select_one(self.value_selector)
            if element is None:
                return None
            text = element.get_text(strip=True)
            value = parse_number(text)
            if value is None:
                raise AdapterParseFailure(f"unreadable water level {text!r}")
            return value
        self._log.info("No DMI row for %s", station.name)
        return None


__all__ = ["DmiScrapeAdapter"]
