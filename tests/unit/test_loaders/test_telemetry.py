import pytest
from unittest.mock import MagicMock, patch
from core.models import AirQualityData, EnergyReading, WeatherData
from inference.anomaly_detector import AnomalyDetector
from loaders.telemetry import (
    BUILDINGS,
    HISTORY_LENGTH,
    ROLLING_WINDOW,
    EnergyTelemetry,
    LiveFeed,
    calculate_carbon,
    carbon_breakdown,
)

WEATHER = WeatherData("Chennai", temperature=31.0, humidity=70.0, wind_speed=10.0, condition="Clear")
AIR = AirQualityData("Chennai", aqi=90.0)


@pytest.fixture
def telemetry():
    return EnergyTelemetry(seed=42, clock=lambda: 1_700_000_000.0)


def reading(building, usage, solar=0.0):
    return EnergyReading(building, usage, solar, 50.0, 0.0)


def test_calculate_carbon():
    assert calculate_carbon(reading("Building A", 500, solar=100)) == pytest.approx(197.4)


def test_carbon_breakdown():
    breakdown = carbon_breakdown(
        [reading("Building A", 100), reading("Building B", 200)],
        transport=10,
        waste=5,
    )
    assert breakdown.energy == pytest.approx(126.0)
    assert breakdown.total == pytest.approx(141.0)
    assert dict(breakdown.by_building)["Building B"] == pytest.approx(84.0)


def test_tick_generates_one_reading_per_building(telemetry):
    readings = telemetry.tick()
    assert [r.building_id for r in readings] == BUILDINGS
    for r in readings:
        assert 200 <= r.energy_usage < 800
        assert 50 <= r.solar_production < 250
        assert 0 <= r.traffic_index < 100
        assert r.timestamp == 1_700_000_000.0


def test_seed_is_reproducible():
    first = EnergyTelemetry(seed=7).tick()
    second = EnergyTelemetry(seed=7).tick()
    assert [r.energy_usage for r in first] == [r.energy_usage for r in second]


def test_windows_are_bounded(telemetry):
    for _ in range(ROLLING_WINDOW + 15):
        telemetry.tick()
    assert len(telemetry.usage_window) == ROLLING_WINDOW
    assert len(telemetry.energy_history) == HISTORY_LENGTH


def test_rolling_average(telemetry):
    assert telemetry.rolling_avg_usage == 0.0
    telemetry.tick()
    telemetry.tick()
    assert telemetry.rolling_avg_usage == pytest.approx(sum(telemetry.usage_window) / 2)


def test_state_without_weather_has_no_score(telemetry):
    telemetry.tick()
    state = telemetry.build_state(weather=None, air_quality=AIR)
    assert state.sustainability_score is None
    assert len(state.energy_readings) == 4
    assert state.carbon.total > 0


def test_state_with_conditions_is_scored(telemetry):
    telemetry.tick()
    state = telemetry.build_state(WEATHER, AIR)
    assert 0 <= state.sustainability_score <= 100

    telemetry.tick()
    later = telemetry.build_state(weather=None, air_quality=None)
    assert later.sustainability_score == state.sustainability_score


def test_state_merges_energy_spikes():
    telemetry = EnergyTelemetry(buildings=["Building A"], detector=AnomalyDetector())
    ticks = [[reading("Building A", 300)], [reading("Building A", 450)]]

    with patch.object(telemetry, "generate_readings", side_effect=ticks):
        telemetry.tick()
        telemetry.build_state()
        telemetry.tick()
        state = telemetry.build_state()

    assert [a.metric for a in state.anomalies] == ["Building A Energy"]
    assert state.energy_history == [300, 450]


def test_clean_conditions_score_above_sixty():
    telemetry = EnergyTelemetry(seed=1)
    typical = [reading(b, 500, solar=150) for b in BUILDINGS]
    weather = WeatherData("Chennai", temperature=25.0, humidity=60.0, wind_speed=8.0, condition="Clear")
    clean_air = AirQualityData("Chennai", aqi=10.0)

    with patch.object(telemetry, "generate_readings", return_value=typical):
        telemetry.tick()
        state = telemetry.build_state(weather, clean_air)

    # per building: energy 500/1000, carbon 191.1/500, aqi 10/300
    assert state.sustainability_score == 73
    assert state.sustainability_score > 60


def test_seeded_live_score_is_not_pinned_by_building_count():
    weather = WeatherData("Chennai", temperature=25.0, humidity=60.0, wind_speed=8.0, condition="Clear")
    clean_air = AirQualityData("Chennai", aqi=10.0)
    telemetry = EnergyTelemetry(seed=3)
    for _ in range(30):
        telemetry.tick()
        state = telemetry.build_state(weather, clean_air)
    assert state.sustainability_score > 60


def test_aqi_history_grows_once_per_reading(telemetry):
    first = AirQualityData("Chennai", aqi=80.0)
    second = AirQualityData("Chennai", aqi=95.0)

    for air in (first, first, first, second, second):
        telemetry.tick()
        telemetry.build_state(WEATHER, air)

    assert list(telemetry.aqi_history) == [80.0, 95.0]
    assert len(telemetry.energy_history) == 5


def test_repeated_reading_is_not_its_own_baseline():
    detector = AnomalyDetector()
    telemetry = EnergyTelemetry(seed=5, detector=detector)
    readings = [AirQualityData("Chennai", aqi=v) for v in (50, 52, 48, 51, 49, 50)]
    spike = AirQualityData("Chennai", aqi=300.0)

    for air in readings + [spike, spike]:
        telemetry.tick()
        state = telemetry.build_state(WEATHER, air)

    assert list(telemetry.aqi_history) == [50, 52, 48, 51, 49, 50, 300.0]
    assert "AQI" in [a.metric for a in state.anomalies]


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def feed_with(clock, conditions=None):
    load = MagicMock(side_effect=conditions or [
        (WEATHER, AirQualityData("Chennai", aqi=float(aqi))) for aqi in range(60, 80)
    ])
    feed = LiveFeed(EnergyTelemetry(seed=11), load, refresh_seconds=10, tick_seconds=5, clock=clock)
    return feed, load


def test_feed_reruns_inside_cadence_reuse_snapshot(clock):
    feed, load = feed_with(clock)

    first = feed.snapshot()
    for _ in range(4):
        clock.now += 1
        assert feed.snapshot() is first

    assert load.call_count == 1
    assert len(feed.telemetry.energy_history) == 1


def test_feed_ticks_and_refreshes_on_their_own_cadence(clock):
    feed, load = feed_with(clock)

    feed.snapshot()
    clock.now += 5
    feed.snapshot()
    assert load.call_count == 1
    assert len(feed.telemetry.energy_history) == 2

    clock.now += 5
    feed.snapshot()
    assert load.call_count == 2
    assert len(feed.telemetry.energy_history) == 3
    assert list(feed.telemetry.aqi_history) == [60.0, 61.0]


def test_feed_tracks_previous_score(clock):
    feed, _ = feed_with(clock)

    first = feed.snapshot()
    assert feed.previous_score is None

    clock.now += 5
    feed.snapshot()
    assert feed.previous_score == first.sustainability_score


def test_feed_keeps_last_weather_when_fetch_fails(clock):
    air = AirQualityData("Chennai", aqi=70.0, simulated=True)
    feed, _ = feed_with(clock, conditions=[(WEATHER, air), (None, air)])

    feed.snapshot()
    clock.now += 10
    state = feed.snapshot()

    assert feed.weather is WEATHER
    assert state.sustainability_score is not None
