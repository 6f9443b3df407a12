from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from backend.core.abstractions import Auxiliary, Failure, FailureKind, Reading, Station, Unit


class TimeController:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


class StaticAdapter:
    """Adapter stub returning a fixed value (or ``None``) and counting calls."""

    def __init__(
        self,
        name: str,
        value: Optional[float] = None,
        *,
        label: Optional[str] = None,
        auxiliary: Auxiliary = Auxiliary(),
        timeout: float = 1.0,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.name = name
        self.label = label or name
        self.value = value
        self.auxiliary = auxiliary
        self.timeout = timeout
        self.gate = gate
        self.started = threading.Event()
        self.calls = 0

    def fetch(self, station: Station):
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        return Reading(
            value=self.value,
            unit=Unit.CM_DVR90,
            observed_at=datetime.now(timezone.utc),
            provenance=self.label,
            auxiliary=self.auxiliary,
        )


class FailingAdapter:
    timeout = 1.0

    def __init__(self, name: str, kind: FailureKind = FailureKind.UNREACHABLE) -> None:
        self.name = name
        self.label = name
        self.kind = kind
        self.calls = 0

    def fetch(self, station: Station):
        self.calls += 1
        return Failure(adapter=self.name, kind=self.kind, reason="boom")


class RaisingAdapter:
    name = label = "raising"
    timeout = 1.0

    def fetch(self, station: Station):
        raise RuntimeError("adapter bug")


@pytest.fixture
def clock() -> TimeController:
    return TimeController()


@pytest.fixture
def static_adapter() -> Callable[..., StaticAdapter]:
    return StaticAdapter


@pytest.fixture
def failing_adapter() -> Callable[..., FailingAdapter]:
    return FailingAdapter


@pytest.fixture
def raising_adapter() -> RaisingAdapter:
    return RaisingAdapter()
