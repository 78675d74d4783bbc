"""
OpenWeatherMap Client
Mandatory source: failures propagate to the caller, there is no fallback
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from smartcity.clients.http import RetryClient
from smartcity.config import Settings, settings as default_settings
from smartcity.errors import UnknownError
from smartcity.models.schemas import ForecastEntry, WeatherReading

logger = logging.getLogger(__name__)


class WeatherClient:
    """Client for the OpenWeatherMap current weather and forecast APIs"""

    def __init__(self, http: Optional[RetryClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.http = http or RetryClient()
        self.base_url = self.settings.weather_base_url.rstrip("/")
        self.api_key = self.settings.weather_api_key or ""

    async def fetch(self, city: str) -> WeatherReading:
        """
        Fetch current weather for a city

        Raises:
            SourceError: on any network, HTTP or payload failure
        """
        data = await self._get("weather", {"q": city})
        reading = self._parse_current(data)
        logger.info(f"Weather for {city}: {reading.temperature_c}°C, {reading.condition}")
        return reading

    async def fetch_by_coordinates(self, latitude: float, longitude: float) -> WeatherReading:
        data = await self._get("weather", {"lat": latitude, "lon": longitude})
        return self._parse_current(data)

    async def fetch_forecast(self, city: str) -> List[ForecastEntry]:
        """5-day / 3-hour forecast"""
        data = await self._get("forecast", {"q": city})
        try:
            return [
                ForecastEntry(
                    forecast_at=datetime.fromtimestamp(item["dt"], tz=timezone.utc),
                    temperature_c=float(item["main"]["temp"]),
                    humidity_pct=int(item["main"]["humidity"]),
                    condition=item["weather"][0]["description"],
                    icon=item["weather"][0].get("icon"),
                )
                for item in (data.get("list") or [])
            ]
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            raise UnknownError(f"Malformed forecast payload for {city}: {e}") from e

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.http.request_json(
            f"{self.base_url}/{endpoint}",
            params={**params, "appid": self.api_key, "units": "metric"},
            max_attempts=self.settings.http_retry_attempts,
            timeout_ms=self.settings.http_timeout_ms,
        )

    def _parse_current(self, data: Dict[str, Any]) -> WeatherReading:
        """Parse an OpenWeatherMap current weather response"""
        try:
            main = data["main"]
            observed_at = None
            if data.get("dt") is not None:
                observed_at = datetime.fromtimestamp(data["dt"], tz=timezone.utc)
            return WeatherReading(
                temperature_c=float(main["temp"]),
                feels_like_c=float(main["feels_like"]),
                humidity_pct=int(main["humidity"]),
                pressure_hpa=float(main["pressure"]),
                wind_speed_ms=float((data.get("wind") or {}).get("speed") or 0.0),
                condition=data["weather"][0]["description"],
                icon=data["weather"][0].get("icon"),
                city=data.get("name"),
                country=(data.get("sys") or {}).get("country"),
                observed_at=observed_at,
            )
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            raise UnknownError(f"Malformed weather payload: {e}") from e
