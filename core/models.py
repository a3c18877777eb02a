"""
Core data models for the Environmental Analytics Engine.

Ingestion-boundary records (weather, air quality, energy telemetry, zones)
and the shared value objects passed between the analytics modules.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AnomalySeverity(Enum):
    """Severity of a detected anomaly, derived from z-score magnitude."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ScoreFactors:
    """
    Inputs to the sustainability score.

    temperature_severity is the absolute deviation from a neutral
    temperature baseline (see core.scoring.temperature_severity).
    """
    aqi: float
    energy_consumption: float
    carbon_emission: float
    temperature_severity: float


@dataclass(frozen=True)
class Anomaly:
    """A reading that falls outside its historical distribution."""
    id: str
    metric: str
    current_value: float
    expected_value: float  # historical mean
    deviation: float  # |current - expected|
    severity: AnomalySeverity
    timestamp: datetime
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'metric': self.metric,
            'current_value': self.current_value,
            'expected_value': self.expected_value,
            'deviation': self.deviation,
            'severity': self.severity.value,
            'timestamp': self.timestamp.isoformat(),
            'description': self.description,
        }


@dataclass(frozen=True)
class WeatherData:
    """Current weather conditions for a city."""
    city: str
    temperature: float  # °C
    humidity: float  # %
    wind_speed: float  # km/h
    condition: str
    description: str = ""
    clouds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'city': self.city,
            'temperature': self.temperature,
            'humidity': self.humidity,
            'wind_speed': self.wind_speed,
            'condition': self.condition,
            'description': self.description,
            'clouds': self.clouds,
        }


@dataclass(frozen=True)
class AirQualityData:
    """Air quality reading. Pollutant concentrations are optional."""
    city: str
    aqi: float
    main_pollutant: str = ""
    pm25: Optional[float] = None  # µg/m³
    pm10: Optional[float] = None
    so2: Optional[float] = None
    no2: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    simulated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'city': self.city,
            'aqi': self.aqi,
            'main_pollutant': self.main_pollutant,
            'pm25': self.pm25,
            'pm10': self.pm10,
            'so2': self.so2,
            'no2': self.no2,
            'simulated': self.simulated,
        }


@dataclass(frozen=True)
class EnergyReading:
    """A single telemetry sample for one building."""
    building_id: str
    energy_usage: float  # kWh
    solar_production: float  # kWh
    traffic_index: float  # 0-100
    timestamp: float


@dataclass(frozen=True)
class CarbonBreakdown:
    """Carbon emissions for the current tick, split by source (kg CO2e)."""
    total: float
    energy: float
    transport: float = 0.0
    waste: float = 0.0
    by_building: Tuple[Tuple[str, float], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'energy': self.energy,
            'transport': self.transport,
            'waste': self.waste,
            'by_building': dict(self.by_building),
        }


@dataclass(frozen=True)
class ZoneRecord:
    """
    Canonical per-zone environmental snapshot.

    Built once at the ingestion boundary by loaders.zones.to_zone_record;
    analytics code only ever reads these field names.
    """
    id: str
    name: str
    latitude: float
    longitude: float
    temperature: float
    aqi: float
    energy_consumption: float
    carbon_emission: float
    area: str = ""
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    sustainability_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'temperature': self.temperature,
            'aqi': self.aqi,
            'energy_consumption': self.energy_consumption,
            'carbon_emission': self.carbon_emission,
            'area': self.area,
            'sustainability_score': self.sustainability_score,
        }


@dataclass
class DashboardState:
    """
    Snapshot of everything the dashboard knows at one instant.

    Assembled by the ingestion layer; the insight generator and the chat
    backend consume it read-only.
    """
    weather: Optional[WeatherData] = None
    air_quality: Optional[AirQualityData] = None
    energy_readings: List[EnergyReading] = field(default_factory=list)
    rolling_avg_usage: float = 0.0
    energy_history: List[float] = field(default_factory=list)
    carbon: Optional[CarbonBreakdown] = None
    anomalies: List[Anomaly] = field(default_factory=list)
    sustainability_score: Optional[int] = None  # None until first evaluation

    @property
    def current_usage(self) -> float:
        """Total energy usage across all buildings for the latest tick."""
        return sum(r.energy_usage for r in self.energy_readings)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict payload, e.g. for handing to an LLM chat backend as context."""
        return {
            'weather': self.weather.to_dict() if self.weather else None,
            'air_quality': self.air_quality.to_dict() if self.air_quality else None,
            'energy_readings': [
                {
                    'building_id': r.building_id,
                    'energy_usage': r.energy_usage,
                    'solar_production': r.solar_production,
                    'traffic_index': r.traffic_index,
                }
                for r in self.energy_readings
            ],
            'rolling_avg_usage': self.rolling_avg_usage,
            'energy_history': list(self.energy_history),
            'carbon': self.carbon.to_dict() if self.carbon else None,
            'anomalies': [a.to_dict() for a in self.anomalies],
            'sustainability_score': self.sustainability_score,
        }
