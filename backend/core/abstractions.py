"""Core abstractions for the water-level domain."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple, Union


REFERENCE_DATUM = "DVR90"
SIMULATED_SOURCE = "simulated"


def format_datetime(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class Unit(str, enum.Enum):
    """Units an upstream source may report a water level in."""

    CM = "cm"
    CM_DVR90 = "cm_DVR90"
    METERS = "meters"


class FailureKind(str, enum.Enum):
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    PARSE = "parse"
    OUT_OF_RANGE = "out_of_range"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Station:
    name: str
    id: Optional[str]
    status: str = "live"

    @property
    def known(self) -> bool:
        return self.status != "unknown"

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "id": self.id, "status": self.status}


@dataclass(frozen=True)
class TimedLevel:
    """A single water level in centimetres relative to DVR90."""

    time: datetime
    value: int

    def as_dict(self) -> Dict[str, Any]:
        return {"time": format_datetime(self.time), "value": self.value}


@dataclass(frozen=True)
class Auxiliary:
    """Optional harbour conditions reported next to a water level."""

    wind_speed: Optional[float] = None
    wind_direction: Optional[str] = None
    wave_height: Optional[float] = None

    def wind(self) -> Optional[Dict[str, Any]]:
        if self.wind_speed is None:
            return None
        return {"speed": self.wind_speed, "direction": self.wind_direction}

    def waves(self) -> Optional[Dict[str, Any]]:
        if self.wave_height is None:
            return None
        return {"height": self.wave_height}


@dataclass(frozen=True)
class Reading:
    """Normalized adapter result.

    ``value`` is ``None`` when the source answered but no level could be found
    in the answer. Failing to reach or understand the source is a
    :class:`Failure` instead.
    """

    value: Optional[float]
    unit: Unit
    observed_at: datetime
    provenance: str
    auxiliary: Auxiliary = field(default_factory=Auxiliary)

    @property
    def has_value(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class Failure:
    adapter: str
    kind: FailureKind
    reason: str


Outcome = Union[Reading, Failure]


@dataclass(frozen=True)
class AdapterResult:
    """Outcome of one adapter, kept in its priority slot."""

    adapter: str
    outcome: Outcome

    @property
    def status(self) -> str:
        if isinstance(self.outcome, Failure):
            return self.outcome.kind.value
        return "ok" if self.outcome.has_value else "no-data"


@dataclass(frozen=True)
class Highlight:
    point: TimedLevel
    label: str

    def as_dict(self) -> Dict[str, Any]:
        payload = self.point.as_dict()
        payload["label"] = self.label
        return payload


@dataclass(frozen=True)
class FusedResponse:
    """The unit of caching and the API payload."""

    station: str
    current: TimedLevel
    measured: Tuple[TimedLevel, ...]
    forecast: Tuple[TimedLevel, ...]
    highlight: Highlight
    source: str
    generated_at: datetime
    calibration: float = 0.0
    model: str = ""
    sources: Tuple[Tuple[str, str], ...] = ()
    auxiliary: Auxiliary = field(default_factory=Auxiliary)
    unit: str = Unit.CM.value
    reference: str = REFERENCE_DATUM

    @property
    def is_simulated(self) -> bool:
        return self.source == SIMULATED_SOURCE

    def as_payload(self) -> Dict[str, Any]:
        current = self.current.as_dict()
        current["station"] = self.station
        metadata: Dict[str, Any] = {
            "unit": self.unit,
            "reference": self.reference,
            "generatedAt": format_datetime(self.generated_at),
            "source": self.source,
            "calibration": round(self.calibration, 2),
            "model": self.model,
            "sources": dict(self.sources),
            "wind": self.auxiliary.wind(),
            "waves": self.auxiliary.waves(),
            "disclaimer": "Do not use for navigation or safety-critical decisions",
            "liveDataLinks": {
                "dmi": "https://www.dmi.dk/hav/vandstand/",
                "esbjergHavn": "https://portesbjerg.dk/havneservice/vejrforhold",
            },
        }
        if self.is_simulated:
            metadata["note"] = "Simulated data from the tide model. No live reading was available."
        return {
            "station": self.station,
            "current": current,
            "measured": [point.as_dict() for point in self.measured],
            "forecast": [point.as_dict() for point in self.forecast],
            "highlightPoint": self.highlight.as_dict(),
            "metadata": metadata,
        }


@dataclass(frozen=True)
class CacheEntry:
    payload: FusedResponse
    stored_at: datetime


class SourceAdapter(Protocol):
    """A fallible upstream source of water-level readings."""

    name: str
    label: str
    timeout: float

    def fetch(self, station: Station) -> Outcome:
        """Return a normalized reading or a failure; never raises."""
        ...


__all__ = [
    "AdapterResult",
    "Auxiliary",
    "CacheEntry",
    "Failure",
    "FailureKind",
    "FusedResponse",
    "Highlight",
    "Outcome",
    "REFERENCE_DATUM",
    "Reading",
    "SIMULATED_SOURCE",
    "SourceAdapter",
    "Station",
    "TimedLevel",
    "Unit",
    "format_datetime",
]
