"""
Weather Loader - Current conditions from OpenWeatherMap.

Uses the current weather endpoint in metric units. Requires an API key
(OPENWEATHER_API_KEY); without one the loader returns None.
"""

import os
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.models import WeatherData

log = logging.getLogger(__name__)

DEFAULT_CITY = "Chennai"
MS_TO_KMH = 3.6


class WeatherLoader:
    """
    Fetch current weather for a city.

    API Documentation:
    https://openweathermap.org/current
    """

    OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0):
        self.api_key = api_key or os.environ.get("OPENWEATHER_API_KEY", "")
        self.timeout = timeout
        self.session = requests.Session()

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    def _request(self, city: str) -> Dict[str, Any]:
        params = {"q": city, "appid": self.api_key, "units": "metric"}
        response = self.session.get(self.OPENWEATHER_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def parse(data: Dict[str, Any], city: str = DEFAULT_CITY) -> WeatherData:
        """Map an OpenWeatherMap payload onto WeatherData (wind in km/h)."""
        main = data["main"]
        conditions = data.get("weather") or [{}]
        return WeatherData(
            city=data.get("name") or city,
            temperature=float(main["temp"]),
            humidity=float(main.get("humidity", 0)),
            wind_speed=round(float(data.get("wind", {}).get("speed", 0)) * MS_TO_KMH, 1),
            condition=conditions[0].get("main", ""),
            description=conditions[0].get("description", ""),
            clouds=float(data.get("clouds", {}).get("all", 0)),
        )

    def get_weather(self, city: str = DEFAULT_CITY) -> Optional[WeatherData]:
        """
        Get current weather.

        Returns:
            WeatherData or None if not configured or the request failed
        """
        if not self.api_key:
            log.warning("OPENWEATHER_API_KEY not configured, skipping weather fetch")
            return None

        try:
            data = self._request(city)
        except requests.RequestException as e:
            log.error(f"Weather request failed for {city}: {e}")
            return None

        try:
            weather = self.parse(data, city)
        except (KeyError, ValueError, TypeError) as e:
            log.error(f"Failed to parse weather response: {e}")
            return None

        log.debug(f"Weather in {weather.city}: {weather.temperature:.1f}°C, {weather.condition}")
        return weather


def get_weather_loader(api_key: Optional[str] = None) -> WeatherLoader:
    """Factory function for the weather loader."""
    return WeatherLoader(api_key=api_key)
