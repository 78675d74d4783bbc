"""
Air Quality API Client (Open-Meteo geocoding + air quality)
Failures are non-fatal: fetch() substitutes a fixed reading
"""
import logging
from typing import Dict, Optional
from smartcity.clients.http import RetryClient
from smartcity.config import Settings, settings as default_settings
from smartcity.errors import NotFoundError, UnknownError
from smartcity.models.schemas import AirQualityReading, AQIStatus, GeoLocation, PollutantLevel
from smartcity.services.derivations import aqi_status, round_half_up

logger = logging.getLogger(__name__)

CURRENT_FIELDS = [
    "us_aqi", "pm10", "pm2_5", "carbon_monoxide",
    "nitrogen_dioxide", "sulphur_dioxide", "ozone", "dust",
]

# Response field -> pollutant code kept on the reading
POLLUTANT_CODES = {
    "ozone": "O3",
    "nitrogen_dioxide": "NO2",
    "sulphur_dioxide": "SO2",
    "carbon_monoxide": "CO",
    "dust": "Dust",
}


class AirQualityClient:
    """Client for air quality data"""

    def __init__(self, http: Optional[RetryClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.http = http or RetryClient()

    async def fetch(self, city: str) -> AirQualityReading:
        """
        Air quality for a city, never raising

        Returns:
            Live reading, or the fixed estimate when any step fails
        """
        try:
            return await self.fetch_live(city)
        except Exception as e:
            logger.warning(f"Air quality unavailable for {city}: {e}, using fallback")
            return self.fallback_reading()

    async def fetch_live(self, city: str) -> AirQualityReading:
        """Geocode the city then read pollutant concentrations there"""
        location = await self.geocode(city)
        reading = await self.fetch_current(location.latitude, location.longitude)
        return reading.model_copy(update={"source_region": location.admin1 or None})

    async def geocode(self, city: str) -> GeoLocation:
        """
        Resolve a city name to coordinates

        Raises:
            NotFoundError: if the geocoder returns no results
        """
        data = await self.http.request_json(
            self.settings.geocoding_url,
            params={
                "name": f"{city}, {self.settings.geocoding_country}",
                "count": 1,
                "language": "en",
                "format": "json",
            },
            max_attempts=self.settings.air_quality_retry_attempts,
            timeout_ms=self.settings.air_quality_timeout_ms,
        )

        results = data.get("results") or []
        if not results:
            raise NotFoundError(f'City "{city}" not found')

        location = results[0]
        try:
            return GeoLocation(
                latitude=float(location["latitude"]),
                longitude=float(location["longitude"]),
                name=location.get("name", city),
                country=location.get("country"),
                admin1=location.get("admin1") or None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnknownError(f"Malformed geocoding result for {city}: {e}") from e

    async def fetch_current(self, latitude: float, longitude: float) -> AirQualityReading:
        """Current US AQI and pollutants at a coordinate"""
        data = await self.http.request_json(
            self.settings.air_quality_url,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "current": ",".join(CURRENT_FIELDS),
                "timezone": "auto",
            },
            max_attempts=self.settings.air_quality_retry_attempts,
            timeout_ms=self.settings.air_quality_timeout_ms,
        )

        current = data.get("current")
        if not current:
            raise UnknownError("No air quality data available")
        return self._parse_current(current)

    def _parse_current(self, current: Dict) -> AirQualityReading:
        aqi = round_half_up(max(0.0, float(current.get("us_aqi") or 0)))
        pollutants = tuple(
            PollutantLevel(code=code, value=float(current[field]))
            for field, code in POLLUTANT_CODES.items()
            if current.get(field) is not None
        )
        return AirQualityReading(
            aqi=aqi,
            status=aqi_status(aqi),
            pm25=max(0.0, float(current.get("pm2_5") or 0)),
            pm10=max(0.0, float(current.get("pm10") or 0)),
            pollutants=pollutants,
            estimated=False,
        )

    @staticmethod
    def fallback_reading() -> AirQualityReading:
        return AirQualityReading(
            aqi=50,
            status=AQIStatus.MODERATE,
            pm25=20.0,
            pm10=30.0,
            estimated=True,
        )
