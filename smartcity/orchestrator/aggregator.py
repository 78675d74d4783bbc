"""
City Aggregator
Fans out to every provider for one city search, keeps every outcome
(success or failure), applies the per-source fallback policy and builds
one immutable CitySnapshot:
- Weather: mandatory, failure aborts the aggregation
- Air quality: fixed fallback reading
- Traffic: pattern-table fallback flow, incidents layered in independently
- Energy: region resolved after air quality (region hint), never fatal
- Waste: simulated, bounded fallback
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional

from smartcity.clients.air_quality import AirQualityClient
from smartcity.clients.energy import EnergyClient
from smartcity.clients.http import RetryClient
from smartcity.clients.traffic import DEFAULT_INCIDENTS, TrafficClient
from smartcity.clients.waste import WasteClient
from smartcity.clients.weather import WeatherClient
from smartcity.config import Settings, settings as default_settings
from smartcity.data.lookups import CityTables, DEFAULT_TABLES
from smartcity.errors import AggregationFailed, classify_error
from smartcity.models.schemas import (
    AirQualityReading,
    CitySnapshot,
    EnergyReading,
    TrafficReading,
    WasteReading,
)

logger = logging.getLogger(__name__)


async def settle_all(**calls: Awaitable[Any]) -> Dict[str, Any]:
    """
    Run every awaitable concurrently and wait for all of them

    Returns:
        name -> result, or the exception that call raised
    """
    names = list(calls.keys())
    results = await asyncio.gather(*calls.values(), return_exceptions=True)
    return dict(zip(names, results))


class CityAggregator:
    """Builds a CitySnapshot from all providers for one city"""

    def __init__(
        self,
        weather_client: Optional[WeatherClient] = None,
        air_quality_client: Optional[AirQualityClient] = None,
        traffic_client: Optional[TrafficClient] = None,
        energy_client: Optional[EnergyClient] = None,
        waste_client: Optional[WasteClient] = None,
        settings: Optional[Settings] = None,
        tables: Optional[CityTables] = None,
        http: Optional[RetryClient] = None,
    ):
        """
        Args:
            *_client: Provider clients; built from settings/tables/http when omitted
            settings: Settings shared by default-built clients
            tables: Lookup tables shared by default-built clients
            http: RetryClient shared by default-built clients
        """
        settings = settings or default_settings
        tables = tables or DEFAULT_TABLES
        http = http or RetryClient()

        self.weather_client = weather_client or WeatherClient(http=http, settings=settings)
        self.air_quality_client = air_quality_client or AirQualityClient(http=http, settings=settings)
        self.traffic_client = traffic_client or TrafficClient(http=http, settings=settings, tables=tables)
        self.energy_client = energy_client or EnergyClient(http=http, settings=settings, tables=tables)
        self.waste_client = waste_client or WasteClient(settings=settings, tables=tables)

        self.last_aggregation_time: Optional[datetime] = None

    async def aggregate(self, city_name: str) -> CitySnapshot:
        """
        Aggregate all sources for a city

        Args:
            city_name: Free-text city name (case preserved in the snapshot)

        Returns:
            Complete snapshot, with fallbacks for every optional source

        Raises:
            AggregationFailed: if the weather source failed
        """
        city = (city_name or "").strip()
        if not city:
            raise AggregationFailed(city_name or "", reason="empty city name")

        logger.info(f"Aggregating city data for {city}")
        outcomes = await settle_all(
            weather=self.weather_client.fetch(city),
            air_quality=self.air_quality_client.fetch_live(city),
            traffic_flow=self.traffic_client.fetch_flow(city),
            traffic_incidents=self.traffic_client.fetch_incidents(city),
            waste=self.waste_client.fetch(city),
        )

        weather = outcomes["weather"]
        if isinstance(weather, BaseException):
            logger.error(f"Weather unavailable for {city} ({classify_error(weather).value}): {weather}")
            raise AggregationFailed(city, reason="weather unavailable", cause=weather) from weather

        estimated_sources: List[str] = []

        air_quality = self._resolve_air_quality(city, outcomes["air_quality"])
        if air_quality.estimated:
            estimated_sources.append("air_quality")

        traffic = self._resolve_traffic(city, outcomes["traffic_flow"], outcomes["traffic_incidents"])
        if traffic.estimated:
            estimated_sources.append("traffic")

        region = self.energy_client.resolve_region(city, air_quality.source_region)
        energy = await self._resolve_energy(city, region)
        if energy.estimated:
            estimated_sources.append("energy")

        waste = self._resolve_waste(city, outcomes["waste"])
        if waste.estimated:
            estimated_sources.append("waste")

        self.last_aggregation_time = datetime.utcnow()
        snapshot = CitySnapshot(
            city_name=city,
            weather=weather,
            air_quality=air_quality,
            traffic=traffic,
            energy=energy,
            waste=waste,
            estimated_sources=tuple(estimated_sources),
            generated_at=self.last_aggregation_time,
        )
        logger.info(f"Snapshot for {city} ready (estimated: {', '.join(estimated_sources) or 'none'})")
        return snapshot

    def _resolve_air_quality(self, city: str, outcome: Any) -> AirQualityReading:
        if isinstance(outcome, BaseException):
            logger.warning(f"Air quality data not available for {city} ({classify_error(outcome).value}), using fallback")
            return self.air_quality_client.fallback_reading()
        return outcome

    def _resolve_traffic(self, city: str, flow_outcome: Any, incidents_outcome: Any) -> TrafficReading:
        if isinstance(flow_outcome, BaseException):
            logger.warning(f"Traffic API not available for {city} ({classify_error(flow_outcome).value}), using city-specific fallback data")
            flow = self.traffic_client.fallback_flow(city)
        else:
            flow = flow_outcome

        if not isinstance(incidents_outcome, BaseException):
            incidents = incidents_outcome
        elif flow.is_fallback and flow.incidents is not None:
            incidents = flow.incidents
        else:
            incidents = DEFAULT_INCIDENTS

        return self.traffic_client.build_reading(flow, incidents)

    async def _resolve_energy(self, city: str, region: str) -> EnergyReading:
        try:
            return await self.energy_client.fetch(city, region)
        except Exception as e:
            logger.warning(f"Energy data not available for {city}: {e}, using fallback")
            return self.energy_client.default_reading(region)

    def _resolve_waste(self, city: str, outcome: Any) -> WasteReading:
        if isinstance(outcome, BaseException):
            logger.warning(f"Waste data not available for {city}: {outcome}, using mock data")
            return self.waste_client.fallback_reading()
        return outcome
