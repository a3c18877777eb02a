"""
Data loaders for the Environmental Analytics Engine.

Includes:
- Weather (OpenWeatherMap)
- Air quality (AirVisual, with simulated fallback)
- Energy telemetry (synthetic building meters)
- Zone catalog (static city zones)
"""

from loaders.weather import WeatherLoader, get_weather_loader
from loaders.air_quality import AirQualityLoader, get_air_quality_loader
from loaders.telemetry import EnergyTelemetry, LiveFeed, calculate_carbon, carbon_breakdown, get_telemetry
from loaders.zones import ZoneCatalog, CHENNAI_ZONES, to_zone_record, get_zone_catalog

__all__ = [
    "WeatherLoader",
    "get_weather_loader",
    "AirQualityLoader",
    "get_air_quality_loader",
    "EnergyTelemetry",
    "LiveFeed",
    "calculate_carbon",
    "carbon_breakdown",
    "get_telemetry",
    "ZoneCatalog",
    "CHENNAI_ZONES",
    "to_zone_record",
    "get_zone_catalog",
]
