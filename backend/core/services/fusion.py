"""Fuse adapter readings with the tide model into one water-level series."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from backend.core.abstractions import (
    AdapterResult,
    Auxiliary,
    FusedResponse,
    Highlight,
    Reading,
    SIMULATED_SOURCE,
    TimedLevel,
)
from backend.core.tide_model import TideModel


logger = logging.getLogger(__name__)


class FusionEngine:
    """Anchor the simulated tide curve on the best available live reading.

    The entire simulated series is shifted by one constant so that it passes
    through the selected reading at ``now``; the curve keeps its shape. Without
    a usable reading the pure simulation is returned with source
    ``"simulated"``.
    """

    def __init__(
        self,
        model: TideModel,
        *,
        hours_back: int = 48,
        hours_forward: int = 48,
        highlight_hours: int = 6,
        highlight_label: str = "6 timer frem",
    ) -> None:
        self.model = model
        self.hours_back = hours_back
        self.hours_forward = hours_forward
        self.highlight_hours = highlight_hours
        self.highlight_label = highlight_label

    @staticmethod
    def select(results: Sequence[AdapterResult]) -> Optional[Reading]:
        """First reading with a value, in the order given (highest priority first)."""
        for result in results:
            if isinstance(result.outcome, Reading) and result.outcome.has_value:
                return result.outcome
        return None

    def fuse(self, results: Sequence[AdapterResult], now: datetime, station: str) -> FusedResponse:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        simulated_now = self.model.estimate(now, 0, 0)
        winner = self.select(results)

        if winner is None:
            calibration = 0.0
            current_value = simulated_now
            source = SIMULATED_SOURCE
            auxiliary = Auxiliary()
            logger.info("No live reading for %s, serving simulated tide data", station)
        else:
            calibration = winner.value - simulated_now
            current_value = round(winner.value)
            source = winner.provenance
            auxiliary = winner.auxiliary
            logger.info(
                "Using %s for %s: %s cm (calibration %+.1f cm)", source, station, current_value, calibration
            )

        measured, forecast = self.model.series(now, self.hours_back, self.hours_forward, calibration)
        current = TimedLevel(time=now, value=current_value)
        # Rounding the rebased curve can drift 1 cm from a fractional reading at now.
        if measured and measured[-1].time == now:
            measured[-1] = current
        return FusedResponse(
            station=station,
            current=current,
            measured=tuple(measured),
            forecast=tuple(forecast),
            highlight=self._highlight(forecast, current),
            source=source,
            generated_at=now,
            calibration=calibration,
            model=self.model.config.describe(),
            sources=tuple((result.adapter, result.status) for result in results),
            auxiliary=auxiliary,
        )

    def simulated(self, now: datetime, station: str) -> FusedResponse:
        return self.fuse((), now, station)

    def _highlight(self, forecast: Sequence[TimedLevel], current: TimedLevel) -> Highlight:
        if not forecast:
            return Highlight(point=current, label=self.highlight_label)
        target = current.time + timedelta(hours=self.highlight_hours)
        point = min(forecast, key=lambda p: abs((p.time - target).total_seconds()))
        return Highlight(point=point, label=self.highlight_label)


__all__ = ["FusionEngine"]
