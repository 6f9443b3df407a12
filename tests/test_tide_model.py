from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from backend.core.tide_model import TideConfig, TideModel, moon_phase


def _primary_only(**overrides) -> TideModel:
    values = dict(
        shallow_water_ratio=0.0,
        diurnal_ratio=0.0,
        weather_variation=0.0,
        surge_amplitude=0.0,
        spring_tide_boost=1.0,
        neap_tide_reduction=1.0,
    )
    values.update(overrides)
    return TideModel(TideConfig(**values))


def test_estimate_is_deterministic() -> None:
    model = TideModel()
    t = datetime(2024, 3, 10, 14, 37, tzinfo=timezone.utc)

    assert model.estimate(t, 0, 12.5) == model.estimate(t, 0, 12.5)
    assert isinstance(model.estimate(t), int)


def test_midnight_with_only_primary_term_is_mean_level() -> None:
    model = _primary_only()
    midnight = datetime(2024, 3, 10, 0, 0, tzinfo=timezone.utc)

    assert model.estimate(midnight) == round(model.config.mean_level)


def test_quarter_cycle_reaches_full_amplitude() -> None:
    model = _primary_only()
    # 3.1 h is a quarter of the 12.42 h cycle.
    t = datetime(2024, 3, 10, 3, 6, tzinfo=timezone.utc)

    assert model.estimate(t) == round(model.config.mean_level + model.config.amplitude)


def test_calibration_shifts_result() -> None:
    model = TideModel()
    t = datetime(2024, 3, 10, 9, 15, tzinfo=timezone.utc)

    assert model.estimate(t, 0, 15) == model.estimate(t) + 15
    assert model.estimate(t, 0, -40) == model.estimate(t) - 40


def test_offset_moves_evaluation_instant() -> None:
    model = TideModel()
    t = datetime(2024, 3, 10, 9, 15, tzinfo=timezone.utc)

    assert model.estimate(t, 2.5) == model.estimate(t + timedelta(hours=2.5))


def test_naive_timestamps_are_treated_as_utc() -> None:
    model = TideModel()

    assert model.estimate(datetime(2024, 3, 10, 9, 15)) == model.estimate(
        datetime(2024, 3, 10, 9, 15, tzinfo=timezone.utc)
    )


def test_weather_term_is_constant_within_six_hour_bucket() -> None:
    model = TideModel(TideConfig(amplitude=0.0, mean_level=0.0))
    early = datetime(2024, 3, 10, 6, 5, tzinfo=timezone.utc)
    late = datetime(2024, 3, 10, 11, 55, tzinfo=timezone.utc)

    assert model.estimate(early) == model.estimate(late)
    assert abs(model.estimate(early)) <= model.config.weather_variation + model.config.surge_amplitude


@pytest.mark.parametrize("day", [date(2024, 1, 1) + timedelta(days=n) for n in range(0, 60, 7)])
def test_tide_factor_follows_moon_phase(day: date) -> None:
    model = TideModel()
    phase = moon_phase(day)

    assert 0 <= phase < 1
    expected = (
        model.config.spring_tide_boost
        if phase < 0.25 or phase > 0.75
        else model.config.neap_tide_reduction
    )
    assert model.tide_factor(day) == expected


def test_spring_and_neap_both_occur_within_a_month() -> None:
    model = TideModel()
    factors = {model.tide_factor(date(2024, 5, 1) + timedelta(days=n)) for n in range(30)}

    assert factors == {model.config.spring_tide_boost, model.config.neap_tide_reduction}


def test_series_is_hourly_and_ordered() -> None:
    model = TideModel()
    now = datetime(2024, 3, 10, 12, 30, tzinfo=timezone.utc)

    measured, forecast = model.series(now, 48, 48)

    assert len(measured) == 49
    assert len(forecast) == 48
    assert measured[-1].time == now
    assert measured[0].time == now - timedelta(hours=48)
    assert forecast[0].time == now + timedelta(hours=1)
    times = [p.time for p in measured + forecast]
    assert all(b - a == timedelta(hours=1) for a, b in zip(times, times[1:]))
