"""
Energy Telemetry - Synthetic building meters and carbon accounting.

Generates per-building energy readings on each tick, keeps the rolling
usage window and short history the dashboard charts, and assembles the
DashboardState snapshot handed to the analytics layer.
"""

import time
import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Sequence, Tuple

import numpy as np

from core.models import (
    AirQualityData,
    Anomaly,
    CarbonBreakdown,
    DashboardState,
    EnergyReading,
    ScoreFactors,
    WeatherData,
)
from core.scoring import temperature_severity, get_scorer
from inference.anomaly_detector import AnomalyDetector, get_anomaly_detector

log = logging.getLogger(__name__)

BUILDINGS = ["Building A", "Building B", "Building C", "Building D"]

USAGE_RANGE_KWH = (200.0, 800.0)
SOLAR_RANGE_KWH = (50.0, 250.0)
TRAFFIC_RANGE = (0.0, 100.0)

GRID_EMISSION_FACTOR = 0.42  # kg CO2 per kWh
SOLAR_OFFSET_RATIO = 0.3

ROLLING_WINDOW = 60  # 5 minutes at a 5 second tick
HISTORY_LENGTH = 20

API_REFRESH_SECONDS = 10
ENERGY_TICK_SECONDS = 5


def calculate_carbon(reading: EnergyReading) -> float:
    """Net emissions for one reading in kg CO2."""
    net_usage = reading.energy_usage - reading.solar_production * SOLAR_OFFSET_RATIO
    return net_usage * GRID_EMISSION_FACTOR


def carbon_breakdown(
    readings: Sequence[EnergyReading],
    transport: float = 0.0,
    waste: float = 0.0
) -> CarbonBreakdown:
    """Aggregate per-building emissions into a CarbonBreakdown."""
    by_building = tuple((r.building_id, calculate_carbon(r)) for r in readings)
    energy = sum(value for _, value in by_building)
    return CarbonBreakdown(
        total=energy + transport + waste,
        energy=energy,
        transport=transport,
        waste=waste,
        by_building=by_building,
    )


class EnergyTelemetry:
    """
    Simulated energy meters for a fixed set of buildings.

    Usage:
        telemetry = EnergyTelemetry(seed=42)
        readings = telemetry.tick()
        state = telemetry.build_state(weather, air_quality)
    """

    def __init__(
        self,
        buildings: Optional[Sequence[str]] = None,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        detector: Optional[AnomalyDetector] = None
    ):
        self.buildings = list(buildings or BUILDINGS)
        self.rng = np.random.default_rng(seed)
        self.clock = clock
        self.detector = detector or get_anomaly_detector()
        self.scorer = get_scorer()

        self.readings: List[EnergyReading] = []
        self.previous_readings: List[EnergyReading] = []
        self.usage_window: Deque[float] = deque(maxlen=ROLLING_WINDOW)
        self.energy_history: Deque[float] = deque(maxlen=HISTORY_LENGTH)
        self.aqi_history: Deque[float] = deque(maxlen=HISTORY_LENGTH)
        self.carbon_history: Deque[float] = deque(maxlen=HISTORY_LENGTH)
        self.last_score: Optional[int] = None
        self.last_air_quality: Optional[AirQualityData] = None

    def generate_readings(self) -> List[EnergyReading]:
        """Draw one reading per building."""
        now = self.clock()
        n = len(self.buildings)
        usage = self.rng.uniform(*USAGE_RANGE_KWH, size=n)
        solar = self.rng.uniform(*SOLAR_RANGE_KWH, size=n)
        traffic = self.rng.uniform(*TRAFFIC_RANGE, size=n)
        return [
            EnergyReading(
                building_id=building,
                energy_usage=float(usage[i]),
                solar_production=float(solar[i]),
                traffic_index=float(traffic[i]),
                timestamp=now,
            )
            for i, building in enumerate(self.buildings)
        ]

    def tick(self) -> List[EnergyReading]:
        """Advance one tick and update the rolling window and history."""
        self.previous_readings = self.readings
        self.readings = self.generate_readings()

        total_usage = sum(r.energy_usage for r in self.readings)
        self.usage_window.append(total_usage)
        self.energy_history.append(round(total_usage))

        log.debug(f"Telemetry tick: {total_usage:.0f} kWh across {len(self.readings)} buildings")
        return self.readings

    @property
    def rolling_avg_usage(self) -> float:
        if not self.usage_window:
            return 0.0
        return float(np.mean(self.usage_window))

    def detect_anomalies(self, aqi: Optional[float] = None) -> List[Anomaly]:
        """
        Statistical anomalies on the history series plus building spikes.

        Each series' latest entry is the current value; the rest is its baseline.
        """
        metrics = {}
        if self.energy_history:
            metrics["Energy Consumption"] = {
                "current": self.energy_history[-1],
                "history": list(self.energy_history)[:-1],
            }
        if aqi is not None:
            metrics["AQI"] = {"current": aqi, "history": list(self.aqi_history)[:-1]}
        if self.carbon_history:
            metrics["Carbon Emissions"] = {
                "current": self.carbon_history[-1],
                "history": list(self.carbon_history)[:-1],
            }

        anomalies = self.detector.detect_all(metrics)
        anomalies.extend(self.detector.detect_energy_spikes(self.readings, self.previous_readings))
        return anomalies

    def build_state(
        self,
        weather: Optional[WeatherData] = None,
        air_quality: Optional[AirQualityData] = None
    ) -> DashboardState:
        """
        Assemble the current DashboardState.

        Carbon, anomalies and the sustainability score are computed from the
        latest tick. The score needs both weather and air quality; without
        them the previous score is carried.

        AQI history grows once per air quality reading, not once per tick:
        passing the same AirQualityData object again reuses the last entry.
        Energy and carbon are scored per building so the scorer's full
        scales apply to a single meter.
        """
        carbon = carbon_breakdown(self.readings)
        self.carbon_history.append(round(carbon.total, 1))

        aqi = air_quality.aqi if air_quality else None
        if air_quality is not None and air_quality is not self.last_air_quality:
            self.aqi_history.append(aqi)
            self.last_air_quality = air_quality
        anomalies = self.detect_anomalies(aqi)

        if weather is not None and air_quality is not None:
            n = max(len(self.buildings), 1)
            factors = ScoreFactors(
                aqi=air_quality.aqi,
                energy_consumption=self.rolling_avg_usage / n,
                carbon_emission=carbon.total / n,
                temperature_severity=temperature_severity(weather.temperature),
            )
            self.last_score = self.scorer.evaluate(factors, self.last_score).score

        return DashboardState(
            weather=weather,
            air_quality=air_quality,
            energy_readings=list(self.readings),
            rolling_avg_usage=round(self.rolling_avg_usage),
            energy_history=list(self.energy_history),
            carbon=carbon,
            anomalies=anomalies,
            sustainability_score=self.last_score,
        )


class LiveFeed:
    """
    Paces condition refreshes and energy ticks for an interactive session.

    Repeated snapshot() calls inside a cadence return the previous state
    untouched, so UI reruns neither refetch nor advance the meters.

    Usage:
        feed = LiveFeed(get_telemetry(), load_conditions)
        state = feed.snapshot()
    """

    def __init__(
        self,
        telemetry: EnergyTelemetry,
        load_conditions: Callable[[], Tuple[Optional[WeatherData], Optional[AirQualityData]]],
        refresh_seconds: float = API_REFRESH_SECONDS,
        tick_seconds: float = ENERGY_TICK_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.telemetry = telemetry
        self.load_conditions = load_conditions
        self.refresh_seconds = refresh_seconds
        self.tick_seconds = tick_seconds
        self.clock = clock

        self.weather: Optional[WeatherData] = None
        self.air_quality: Optional[AirQualityData] = None
        self.state: Optional[DashboardState] = None
        self.previous_score: Optional[int] = None
        self.refreshed_at: Optional[float] = None
        self.ticked_at: Optional[float] = None

    def refresh(self, now: float):
        weather, air_quality = self.load_conditions()
        self.weather = weather or self.weather
        self.air_quality = air_quality or self.air_quality
        self.refreshed_at = now

    def snapshot(self) -> DashboardState:
        now = self.clock()
        if self.refreshed_at is None or now - self.refreshed_at >= self.refresh_seconds:
            self.refresh(now)

        if self.state is None or now - self.ticked_at >= self.tick_seconds:
            if self.state is not None:
                self.previous_score = self.state.sustainability_score
            self.telemetry.tick()
            self.state = self.telemetry.build_state(self.weather, self.air_quality)
            self.ticked_at = now
        return self.state



def get_telemetry(seed: Optional[int] = None) -> EnergyTelemetry:
    """Factory function for the energy telemetry simulator."""
    return EnergyTelemetry(seed=seed)
