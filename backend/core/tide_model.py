"""Deterministic tide model used as the backbone of every water-level series.

The model is not a harmonic solver. It combines a handful of periodic terms
that give a plausible Wadden Sea curve:

- a semi-diurnal primary term scaled by a spring/neap factor
- an M4 shallow-water harmonic at twice the primary frequency
- a diurnal inequality term
- a slowly varying "weather" term that is constant within 6-hour buckets
- an occasional synthetic storm surge

Every term is a pure function of the timestamp, so two calls with the same
instant and calibration always return the same integer.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Tuple

from backend.core.abstractions import TimedLevel


SYNODIC_MONTH_DAYS = 29.53059
WEATHER_BUCKET_MS = 6 * 60 * 60 * 1000


@dataclass(frozen=True)
class TideConfig:
    cycle_hours: float = 12.42
    amplitude: float = 120.0
    mean_level: float = 10.0
    spring_tide_boost: float = 1.15
    neap_tide_reduction: float = 0.85
    weather_variation: float = 20.0
    surge_amplitude: float = 50.0
    surge_threshold: float = 0.8
    shallow_water_ratio: float = 0.15
    diurnal_ratio: float = 0.10

    @classmethod
    def from_settings(cls, settings) -> "TideConfig":
        return cls(
            cycle_hours=settings.TIDE_CYCLE_HOURS,
            amplitude=settings.TIDE_AMPLITUDE,
            mean_level=settings.TIDE_MEAN_LEVEL,
            spring_tide_boost=settings.TIDE_SPRING_BOOST,
            neap_tide_reduction=settings.TIDE_NEAP_REDUCTION,
            weather_variation=settings.TIDE_WEATHER_VARIATION,
            surge_amplitude=settings.TIDE_SURGE_AMPLITUDE,
            surge_threshold=settings.TIDE_SURGE_THRESHOLD,
            shallow_water_ratio=settings.TIDE_SHALLOW_WATER_RATIO,
            diurnal_ratio=settings.TIDE_DIURNAL_RATIO,
        )

    def describe(self) -> str:
        return f"Semi-diurnal ({self.cycle_hours}h cycle)"


def moon_phase(day: date) -> float:
    """Approximate lunar phase in ``[0, 1)``; 0 is new moon, 0.5 full moon."""
    c = math.floor(365.25 * day.year)
    e = math.floor(30.6 * day.month)
    jd = c + e + day.day - 694039.09
    return (jd / SYNODIC_MONTH_DAYS) % 1


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TideModel:
    """Pure tide estimator configured by :class:`TideConfig`."""

    def __init__(self, config: TideConfig | None = None) -> None:
        self.config = config or TideConfig()

    def tide_factor(self, day: date) -> float:
        phase = moon_phase(day)
        if phase < 0.25 or phase > 0.75:
            return self.config.spring_tide_boost
        return self.config.neap_tide_reduction

    def estimate(self, t: datetime, offset_hours: float = 0.0, calibration: float = 0.0) -> int:
        """Estimated level in cm DVR90 at ``t + offset_hours``."""
        cfg = self.config
        when = _as_utc(t) + timedelta(hours=offset_hours)
        hour = when.hour + when.minute / 60

        tide_phase = hour / cfg.cycle_hours * 2 * math.pi
        primary = cfg.amplitude * math.sin(tide_phase) * self.tide_factor(when.date())
        shallow = cfg.amplitude * cfg.shallow_water_ratio * math.sin(2 * tide_phase + math.pi / 4)
        diurnal = cfg.amplitude * cfg.diurnal_ratio * math.sin(hour / 24 * 2 * math.pi)
        weather, surge = self._weather_terms(when)

        return round(cfg.mean_level + primary + shallow + diurnal + weather + surge + calibration)

    def series(
        self,
        now: datetime,
        hours_back: int,
        hours_forward: int,
        calibration: float = 0.0,
    ) -> Tuple[List[TimedLevel], List[TimedLevel]]:
        """Hourly points from ``now - hours_back`` to ``now`` and after ``now``."""
        now = _as_utc(now)
        measured = []
        for i in range(hours_back, -1, -1):
            t = now - timedelta(hours=i)
            measured.append(TimedLevel(time=t, value=self.estimate(t, 0, calibration)))
        forecast = []
        for i in range(1, hours_forward + 1):
            t = now + timedelta(hours=i)
            forecast.append(TimedLevel(time=t, value=self.estimate(t, 0, calibration)))
        return measured, forecast

    def _weather_terms(self, when: datetime) -> Tuple[float, float]:
        cfg = self.config
        epoch_ms = int(when.timestamp() * 1000)
        bucket = epoch_ms // WEATHER_BUCKET_MS
        weather = math.sin(bucket) * cfg.weather_variation
        surge = 0.0
        if math.sin(bucket * 0.1) > cfg.surge_threshold:
            surge = abs(math.sin(bucket * 0.2)) * cfg.surge_amplitude
        return weather, surge


__all__ = ["TideConfig", "TideModel", "moon_phase"]
