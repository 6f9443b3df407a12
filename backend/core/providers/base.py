from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from backend.core.abstractions import Failure, FailureKind, Outcome, Reading, Station, Unit


logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; VandstandBot/1.0)"
_NUMBER_RE = re.compile(r"[-−]?\d+(?:[.,]\d+)?")


class AdapterError(RuntimeError):
    """Base adapter error."""

    kind = FailureKind.UNREACHABLE


class AdapterUnreachable(AdapterError):
    """Raised when the upstream cannot be reached or answers with an error."""


class AdapterTimeout(AdapterUnreachable):
    kind = FailureKind.TIMEOUT


class AdapterParseFailure(AdapterError):
    """Raised when a body was obtained but the expected field could not be read."""

    kind = FailureKind.PARSE


class AdapterDataOutOfRange(AdapterError):
    """Raised when a parsed level lies outside the plausible band."""

    kind = FailureKind.OUT_OF_RANGE


class AdapterUnsupportedStation(AdapterError):
    kind = FailureKind.UNSUPPORTED


@dataclass
class RequestConfig:
    timeout: float = 10.0
    retries: int = 1
    backoff_factor: float = 0.3
    status_forcelist: Iterable[int] = (429, 500, 502, 503, 504)

    def total_timeout(self) -> float:
        """Upper bound for one fetch including retries and backoff sleeps."""
        backoff = sum(self.backoff_factor * (2 ** attempt) for attempt in range(self.retries))
        return self.timeout * (self.retries + 1) + backoff


def to_dvr90_cm(value: float, unit: Unit, datum_offset_cm: float = 0.0) -> float:
    """Convert a level in ``unit`` to centimetres relative to DVR90."""
    if unit is Unit.METERS:
        return value * 100 + datum_offset_cm
    if unit is Unit.CM:
        return value + datum_offset_cm
    return value


def parse_number(text: Optional[str], allow_negative: bool = True) -> Optional[float]:
    """Pull the first number out of scraped text such as ``"-23 cm"`` or ``"4,5 m/s"``."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    if match is None:
        return None
    value = float(match.group(0).replace(",", ".").replace("−", "-"))
    if not allow_negative:
        return abs(value)
    return value


class HttpSourceAdapter:
    """Base class that adds retry/timeouts, normalization and failure capture.

    Subclasses implement :meth:`_fetch` and may raise any :class:`AdapterError`;
    :meth:`fetch` never raises.
    """

    name = "http"
    label = "HTTP source"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
        plausible_range: Tuple[float, float] = (-400.0, 700.0),
        datum_offset_cm: float = 0.0,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self.plausible_range = plausible_range
        self.datum_offset_cm = datum_offset_cm
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def timeout(self) -> float:
        return self.request_config.total_timeout()

    # Public API ---------------------------------------------------------
    def fetch(self, station: Station) -> Outcome:
        try:
            reading = self._fetch(station)
            return self._check_range(self._normalize(reading))
        except AdapterError as exc:
            self._log.warning("%s failed for %s: %s", self.name, station.name, exc)
            return Failure(adapter=self.name, kind=exc.kind, reason=str(exc))
        except Exception as exc:  # noqa: BLE001 - adapter failures must stay inside the adapter
            self._log.error("%s crashed for %s", self.name, station.name, exc_info=exc)
            return Failure(adapter=self.name, kind=FailureKind.PARSE, reason=repr(exc))

    def _fetch(self, station: Station) -> Reading:
        raise NotImplementedError

    # Helpers ------------------------------------------------------------
    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=config.retries,
            backoff_factor=config.backoff_factor,
            status_forcelist=tuple(config.status_forcelist),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers["User-Agent"] = USER_AGENT
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code >= 400:
            self._log.error("Source returned %s: %s", response.status_code, response.text[:200])
            raise AdapterUnreachable(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            raise AdapterTimeout("timeout") from exc
        except requests.RequestException as exc:
            raise AdapterUnreachable(f"request failed: {exc}") from exc
        return self._handle_response(response)

    def _normalize(self, reading: Reading) -> Reading:
        if reading.unit is Unit.CM_DVR90:
            return reading
        value = reading.value
        if value is not None:
            value = to_dvr90_cm(value, reading.unit, self.datum_offset_cm)
        return replace(reading, value=value, unit=Unit.CM_DVR90)

    def _check_range(self, reading: Reading) -> Reading:
        if reading.value is None:
            return reading
        low, high = self.plausible_range
        if not low <= reading.value <= high:
            raise AdapterDataOutOfRange(
                f"{reading.value:.1f} cm outside plausible range [{low:.0f}, {high:.0f}]"
            )
        return reading


__all__ = [
    "AdapterDataOutOfRange",
    "AdapterError",
    "AdapterParseFailure",
    "AdapterTimeout",
    "AdapterUnreachable",
    "AdapterUnsupportedStation",
    "HttpSourceAdapter",
    "RequestConfig",
    "parse_number",
    "to_dvr90_cm",
]
