from datetime import datetime

import pandas as pd
import pytest
from inference.forecaster import (
    Forecaster,
    analyze_metric_trends,
    exponential_smoothing,
    get_forecaster,
    linear_trend,
    time_of_day_multiplier,
)


@pytest.fixture
def forecaster():
    return Forecaster(clock=lambda: datetime(2024, 1, 1, 22, 15))


def values(points):
    return [p.value for p in points]


def test_smoothing():
    assert exponential_smoothing([]) == []
    assert exponential_smoothing([10, 20]) == pytest.approx([10, 13])
    assert exponential_smoothing([10, 20], alpha=1.0) == pytest.approx([10, 20])


def test_linear_trend():
    assert linear_trend([1, 2, 3], 2) == pytest.approx([4, 5])
    assert linear_trend([7, 7, 7, 7], 3) == pytest.approx([7, 7, 7])


def test_linear_trend_short_series_unchanged():
    assert linear_trend([5], 3) == [5]
    assert linear_trend([], 3) == []


def test_linear_trend_floors_at_zero():
    assert linear_trend([10, 5, 0], 3) == [0, 0, 0]


def test_time_of_day_multiplier():
    assert time_of_day_multiplier(8) == 1.2
    assert time_of_day_multiplier(18) == 1.2
    assert time_of_day_multiplier(7) == 0.8
    assert time_of_day_multiplier(19) == 0.8


@pytest.mark.parametrize("history", [[], [400], [400, 420], [300, 350, 400, 380, 420]])
@pytest.mark.parametrize("hours", [1, 12, 24])
def test_energy_forecast_length(forecaster, history, hours):
    assert len(forecaster.predict_energy(history, hours=hours, current_hour=0)) == hours
    assert len(forecaster.predict_aqi(history, 30, 10, hours=hours)) == hours
    assert len(forecaster.predict_carbon(history, hours=hours, current_hour=0)) == hours


def test_energy_forecast_applies_time_of_day(forecaster):
    assert values(forecaster.predict_energy([100, 100, 100], hours=2, current_hour=9)) == [120, 120]
    assert values(forecaster.predict_energy([100, 100, 100], hours=2, current_hour=20)) == [80, 80]


def test_energy_forecast_labels_wrap(forecaster):
    points = forecaster.predict_energy([100, 100], hours=3, current_hour=23)
    assert [p.time for p in points] == ["23:00", "00:00", "01:00"]


def test_energy_forecast_uses_clock(forecaster):
    points = forecaster.predict_energy([100, 100], hours=2)
    assert [p.time for p in points] == ["22:00", "23:00"]


def test_energy_forecast_without_history_holds_baseline(forecaster):
    assert values(forecaster.predict_energy([], hours=2, current_hour=10)) == [600, 600]
    assert values(forecaster.predict_energy([250], hours=2, current_hour=10)) == [300, 300]


def test_aqi_forecast(forecaster):
    points = forecaster.predict_aqi([100] * 5, temperature=20, wind_speed=0, hours=3)
    assert [p.time for p in points] == ["+0h", "+1h", "+2h"]
    assert values(points) == [95, 95, 95]


def test_aqi_forecast_is_clamped(forecaster):
    rising = forecaster.predict_aqi([400, 450, 500], temperature=35, wind_speed=0)
    assert all(0 <= v <= 500 for v in values(rising))
    assert values(rising)[-1] == 500

    gale = forecaster.predict_aqi([100, 120, 140], temperature=35, wind_speed=200)
    assert all(v == 0 for v in values(gale))


def test_forecasts_are_non_negative(forecaster):
    falling = [900, 700, 500, 300, 100]
    assert all(v >= 0 for v in values(forecaster.predict_energy(falling, current_hour=12)))
    assert all(v >= 0 for v in values(forecaster.predict_carbon(falling, current_hour=12)))


def test_carbon_forecast(forecaster):
    assert values(forecaster.predict_carbon([100, 100, 100], hours=2, current_hour=9)) == [48, 48]
    assert values(forecaster.predict_carbon([100, 100], carbon_intensity=1.0, hours=1, current_hour=9)) == [120]


def test_predict_all(forecaster):
    frame = forecaster.predict_all([100, 100, 100], [80, 80, 80], temperature=30, wind_speed=0, hours=4, current_hour=8)
    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == ["step", "energy_time", "energy", "aqi", "carbon"]
    assert len(frame) == 4
    assert frame["energy_time"].iloc[0] == "08:00"
    assert frame["energy"].iloc[0] == 120


def test_metric_trends():
    assert analyze_metric_trends(100, 500, 200, 95, 480, 190) == ["📊 Environmental metrics stable"]

    notes = analyze_metric_trends(150, 700, 300, 100, 500, 200)
    assert notes == [
        "⚠️ Air quality deteriorating rapidly",
        "⚡ Energy consumption spike detected",
        "🔴 Carbon emissions increasing",
    ]

    improving = analyze_metric_trends(60, 400, 150, 100, 500, 200)
    assert "✅ Air quality improving significantly" in improving
    assert "🟢 Carbon footprint reducing" in improving


def test_factory():
    assert isinstance(get_forecaster(), Forecaster)
