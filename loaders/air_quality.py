"""
Air Quality Loader - City AQI from AirVisual (IQAir).

When no AIRVISUAL_API_KEY is configured, or the API fails, a simulated
reading is served instead and flagged `simulated=True`.
"""

import os
import random
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.models import AirQualityData

log = logging.getLogger(__name__)

DEFAULT_CITY = "Chennai"
DEFAULT_STATE = "Tamil Nadu"
DEFAULT_COUNTRY = "India"

POLLUTANTS = ["p2", "p1", "o3", "n2", "s2", "co"]
MS_TO_KMH = 3.6


class AirQualityLoader:
    """
    Fetch air quality for a city.

    API Documentation:
    https://api-docs.iqair.com/
    """

    AIRVISUAL_URL = "https://api.airvisual.com/v2/city"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        rng: Optional[random.Random] = None
    ):
        self.api_key = api_key or os.environ.get("AIRVISUAL_API_KEY", "")
        self.timeout = timeout
        self.session = requests.Session()
        self._rng = rng or random.Random()

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    def _request(self, city: str, state: str, country: str) -> Dict[str, Any]:
        params = {"city": city, "state": state, "country": country, "key": self.api_key}
        response = self.session.get(self.AIRVISUAL_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def parse(data: Dict[str, Any], city: str = DEFAULT_CITY) -> AirQualityData:
        """Map an AirVisual city payload onto AirQualityData."""
        if data.get("status") != "success":
            raise ValueError(f"AirVisual returned status {data.get('status')!r}")

        current = data["data"]["current"]
        pollution = current["pollution"]
        weather = current.get("weather", {})
        wind = weather.get("ws")
        return AirQualityData(
            city=data["data"].get("city") or city,
            aqi=float(pollution["aqius"]),
            main_pollutant=pollution.get("mainus", ""),
            temperature=weather.get("tp"),
            humidity=weather.get("hu"),
            wind_speed=round(float(wind) * MS_TO_KMH, 1) if wind is not None else None,
            simulated=False,
        )

    def simulate(self, city: str = DEFAULT_CITY) -> AirQualityData:
        """Plausible stand-in reading for when the API is unavailable."""
        return AirQualityData(
            city=city,
            aqi=float(30 + self._rng.randrange(80)),
            main_pollutant=self._rng.choice(POLLUTANTS),
            temperature=float(15 + round(self._rng.random() * 15)),
            humidity=float(40 + round(self._rng.random() * 40)),
            wind_speed=round(self._rng.random() * 8, 1),
            simulated=True,
        )

    def get_air_quality(
        self,
        city: str = DEFAULT_CITY,
        state: str = DEFAULT_STATE,
        country: str = DEFAULT_COUNTRY
    ) -> AirQualityData:
        """
        Get current air quality, falling back to a simulated reading.
        """
        if not self.api_key:
            log.info("AIRVISUAL_API_KEY not configured, serving simulated air quality")
            return self.simulate(city)

        try:
            return self.parse(self._request(city, state, country), city)
        except requests.RequestException as e:
            log.error(f"AirVisual request failed for {city}: {e}")
        except (KeyError, ValueError, TypeError) as e:
            log.error(f"Failed to parse AirVisual response: {e}")

        log.info("Falling back to simulated air quality")
        return self.simulate(city)


def get_air_quality_loader(api_key: Optional[str] = None) -> AirQualityLoader:
    """Factory function for the air quality loader."""
    return AirQualityLoader(api_key=api_key)
