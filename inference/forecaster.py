"""
Forecaster for short-horizon energy, AQI and carbon predictions.

Deterministic exponential smoothing plus least-squares trend; no trained model.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

log = logging.getLogger("inference.forecaster")

DEFAULT_ALPHA = 0.3
DEFAULT_HORIZON_HOURS = 12
DEFAULT_CARBON_INTENSITY = 0.4  # kg CO2 per kWh

DEFAULT_BASELINE_ENERGY = 500.0  # kWh, used when history is too short to fit
DEFAULT_BASELINE_AQI = 0.0

PEAK_HOURS = (8, 18)  # inclusive
PEAK_MULTIPLIER = 1.2
OFF_PEAK_MULTIPLIER = 0.8

WIND_DISPERSAL_SCALE_KMH = 30.0
WIND_DISPERSAL_MAX = 0.3
OZONE_TEMPERATURE_C = 25.0
OZONE_FACTOR_HOT = 1.1
OZONE_FACTOR_MILD = 0.95
AQI_MAX = 500


@dataclass(frozen=True)
class PredictionPoint:
    """One forecast step: a time label and the predicted value."""
    time: str
    value: float

    def to_dict(self) -> Dict[str, object]:
        return {'time': self.time, 'value': self.value}


def exponential_smoothing(series: Sequence[float], alpha: float = DEFAULT_ALPHA) -> List[float]:
    """
    s[0] = x[0];  s[i] = alpha * x[i] + (1 - alpha) * s[i-1]

    Empty input yields an empty list.
    """
    if len(series) == 0:
        return []
    return pd.Series(series, dtype=float).ewm(alpha=alpha, adjust=False).mean().tolist()


def linear_trend(series: Sequence[float], steps: int) -> List[float]:
    """
    Fit value ~ index by ordinary least squares over the whole series and
    evaluate the line at indices [n, n + steps), floored at 0.

    Series shorter than 2 are returned unchanged.
    """
    if len(series) < 2:
        return list(series)

    y = np.asarray(series, dtype=float)
    n = len(y)
    x = np.arange(n, dtype=float)

    x_mean = x.mean()
    y_mean = y.mean()
    denominator = float(np.sum((x - x_mean) ** 2))
    slope = float(np.sum((x - x_mean) * (y - y_mean))) / denominator if denominator else 0.0
    intercept = y_mean - slope * x_mean

    future = np.arange(n, n + steps, dtype=float)
    return np.maximum(slope * future + intercept, 0.0).tolist()


def _project(series: Sequence[float], steps: int, default: float) -> List[float]:
    """Trend projection that always yields exactly `steps` values."""
    if len(series) >= 2:
        return linear_trend(series, steps)
    baseline = max(float(series[-1]), 0.0) if len(series) else default
    return [baseline] * steps


def _round(value: float) -> int:
    return int(np.floor(value + 0.5))


def time_of_day_multiplier(hour: int) -> float:
    """Daytime demand is higher: 1.2 for 08:00-18:00, 0.8 otherwise."""
    start, end = PEAK_HOURS
    return PEAK_MULTIPLIER if start <= hour <= end else OFF_PEAK_MULTIPLIER


def wind_dispersal_factor(wind_speed: float) -> float:
    """Wind disperses pollution: 1.0 at calm down to 0.7 at 30 km/h."""
    return 1 - (wind_speed / WIND_DISPERSAL_SCALE_KMH) * WIND_DISPERSAL_MAX


def ozone_factor(temperature: float) -> float:
    """Heat drives ozone formation."""
    return OZONE_FACTOR_HOT if temperature > OZONE_TEMPERATURE_C else OZONE_FACTOR_MILD


class Forecaster:
    """
    Short-horizon forecasts for the dashboard.

    The wall clock is only read through `clock`, and every predict_* call
    accepts `current_hour` explicitly, so forecasts are reproducible in tests.

    Usage:
        forecaster = Forecaster()
        energy = forecaster.predict_energy(history, hours=12, current_hour=9)
        aqi = forecaster.predict_aqi(aqi_history, temperature=31, wind_speed=12)
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now

    def _resolve_hour(self, current_hour: Optional[int]) -> int:
        if current_hour is None:
            return self.clock().hour
        return current_hour % 24

    def predict_energy(
        self,
        history: Sequence[float],
        hours: int = DEFAULT_HORIZON_HOURS,
        current_hour: Optional[int] = None
    ) -> List[PredictionPoint]:
        """
        Energy consumption forecast.

        Trend-extrapolates the history, then scales each step by the
        time-of-day multiplier for its wall-clock hour.
        """
        start_hour = self._resolve_hour(current_hour)
        projected = _project(history, hours, DEFAULT_BASELINE_ENERGY)

        points = []
        for offset, value in enumerate(projected):
            hour = (start_hour + offset) % 24
            points.append(PredictionPoint(
                time=f"{hour:02d}:00",
                value=_round(value * time_of_day_multiplier(hour)),
            ))
        return points

    def predict_aqi(
        self,
        history: Sequence[float],
        temperature: float,
        wind_speed: float,
        hours: int = DEFAULT_HORIZON_HOURS
    ) -> List[PredictionPoint]:
        """
        AQI forecast.

        Smooths, extrapolates, then applies wind dispersal and the
        temperature/ozone factor. Results are clamped to [0, 500].
        """
        smoothed = exponential_smoothing(history)
        projected = _project(smoothed, hours, DEFAULT_BASELINE_AQI)
        factor = wind_dispersal_factor(wind_speed) * ozone_factor(temperature)

        return [
            PredictionPoint(
                time=f"+{offset}h",
                value=max(0, min(AQI_MAX, _round(value * factor))),
            )
            for offset, value in enumerate(projected)
        ]

    def predict_carbon(
        self,
        history: Sequence[float],
        carbon_intensity: float = DEFAULT_CARBON_INTENSITY,
        hours: int = DEFAULT_HORIZON_HOURS,
        current_hour: Optional[int] = None
    ) -> List[PredictionPoint]:
        """Carbon forecast: the energy forecast scaled by carbon intensity."""
        return [
            PredictionPoint(time=point.time, value=_round(point.value * carbon_intensity))
            for point in self.predict_energy(history, hours, current_hour)
        ]

    def predict_all(
        self,
        energy_history: Sequence[float],
        aqi_history: Sequence[float],
        temperature: float,
        wind_speed: float,
        hours: int = DEFAULT_HORIZON_HOURS,
        carbon_intensity: float = DEFAULT_CARBON_INTENSITY,
        current_hour: Optional[int] = None
    ) -> pd.DataFrame:
        """
        All three forecasts side by side, one row per step.

        Columns: step, energy_time, energy, aqi, carbon.
        """
        start_hour = self._resolve_hour(current_hour)
        energy = self.predict_energy(energy_history, hours, start_hour)
        aqi = self.predict_aqi(aqi_history, temperature, wind_speed, hours)
        carbon = self.predict_carbon(energy_history, carbon_intensity, hours, start_hour)

        return pd.DataFrame({
            'step': [p.time for p in aqi],
            'energy_time': [p.time for p in energy],
            'energy': [p.value for p in energy],
            'aqi': [p.value for p in aqi],
            'carbon': [p.value for p in carbon],
        })


def analyze_metric_trends(
    current_aqi: float,
    current_energy: float,
    current_carbon: float,
    previous_aqi: float,
    previous_energy: float,
    previous_carbon: float
) -> List[str]:
    """Short notes on how each metric moved since the previous reading."""
    notes = []

    aqi_change = current_aqi - previous_aqi
    energy_change = current_energy - previous_energy
    carbon_change = current_carbon - previous_carbon

    if aqi_change > 20:
        notes.append("⚠️ Air quality deteriorating rapidly")
    elif aqi_change < -20:
        notes.append("✅ Air quality improving significantly")

    if energy_change > 100:
        notes.append("⚡ Energy consumption spike detected")
    elif energy_change < -50:
        notes.append("📉 Energy consumption decreasing")

    if carbon_change > 50:
        notes.append("🔴 Carbon emissions increasing")
    elif carbon_change < -30:
        notes.append("🟢 Carbon footprint reducing")

    if not notes:
        notes.append("📊 Environmental metrics stable")

    return notes


def get_forecaster() -> Forecaster:
    """Factory function for the forecaster."""
    return Forecaster()
