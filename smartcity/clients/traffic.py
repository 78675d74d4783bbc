"""
TomTom Traffic Client
Flow segment and incident data for a fixed set of known city centres,
with pattern-based fallback data when the live API is unavailable
"""
import logging
from typing import List, Optional, Tuple
from smartcity.clients.http import RetryClient
from smartcity.config import Settings, settings as default_settings
from smartcity.data.lookups import CityTables, DEFAULT_TABLES
from smartcity.errors import BlockedError, NotFoundError
from smartcity.models.schemas import TrafficFlow, TrafficReading
from smartcity.services.derivations import (
    congestion_label,
    congestion_pct,
    round_half_up,
    traffic_delay_minutes,
)

logger = logging.getLogger(__name__)

DEFAULT_INCIDENTS = 5
DEFAULT_AVG_SPEED = 30
DEFAULT_FREE_FLOW_SPEED = 55


class TrafficClient:
    """Client for TomTom Traffic Flow and Incident Details"""

    def __init__(
        self,
        http: Optional[RetryClient] = None,
        settings: Optional[Settings] = None,
        tables: Optional[CityTables] = None,
    ):
        self.settings = settings or default_settings
        self.http = http or RetryClient()
        self.tables = tables or DEFAULT_TABLES
        self.api_key = self.settings.traffic_api_key

    def resolve_coordinates(self, city: str) -> Tuple[float, float]:
        """
        Look up the centre of a known city

        Raises:
            NotFoundError: if the city is not in the coordinates table
        """
        coords = self.tables.coordinates_for(city)
        if coords is None:
            raise NotFoundError(
                f"Traffic data not available for {city}. Try: {', '.join(self.available_cities()[:7])}"
            )
        return coords

    async def fetch_flow(self, city: str) -> TrafficFlow:
        """Real-time flow segment at the city centre"""
        lat, lon = self.resolve_coordinates(city)
        self._require_key()

        url = f"{self.settings.traffic_base_url.rstrip('/')}/flowSegmentData/absolute/{self.settings.traffic_zoom}/json"
        data = await self.http.request_json(
            url,
            params={"point": f"{lat},{lon}", "key": self.api_key},
            max_attempts=self.settings.traffic_retry_attempts,
            timeout_ms=self.settings.traffic_timeout_ms,
        )

        segment = data.get("flowSegmentData") or {}
        flow = TrafficFlow(
            city=city,
            current_speed=float(segment.get("currentSpeed") or 0),
            free_flow_speed=float(segment.get("freeFlowSpeed") or 0),
            current_travel_time=float(segment.get("currentTravelTime") or 0),
            free_flow_travel_time=float(segment.get("freeFlowTravelTime") or 0),
            confidence=float(segment.get("confidence") or 0),
            road_closure=bool(segment.get("roadClosure") or False),
            latitude=lat,
            longitude=lon,
        )
        logger.info(f"Traffic flow for {city}: {flow.current_speed}/{flow.free_flow_speed} km/h")
        return flow

    async def fetch_incidents(self, city: str) -> int:
        """Number of incidents inside a small box around the city centre"""
        lat, lon = self.resolve_coordinates(city)
        self._require_key()

        delta = self.settings.traffic_bbox_delta
        bbox = f"{lon - delta},{lat - delta},{lon + delta},{lat + delta}"
        data = await self.http.request_json(
            self.settings.traffic_incidents_url,
            params={"bbox": bbox, "key": self.api_key},
            max_attempts=self.settings.traffic_retry_attempts,
            timeout_ms=self.settings.traffic_timeout_ms,
        )
        return len(data.get("incidents") or [])

    def fallback_flow(self, city: str) -> TrafficFlow:
        """Synthesize flow from typical traffic patterns for the city"""
        pattern = self.tables.traffic_pattern_for(city) or self.tables.default_traffic_pattern
        coords = self.tables.coordinates_for(city)
        return TrafficFlow(
            city=city,
            current_speed=pattern.avg_speed,
            free_flow_speed=pattern.free_flow_speed,
            current_travel_time=round_half_up((1000 / pattern.avg_speed) * 60),
            free_flow_travel_time=round_half_up((1000 / pattern.free_flow_speed) * 60),
            confidence=0,
            road_closure=False,
            latitude=coords[0] if coords else None,
            longitude=coords[1] if coords else None,
            is_fallback=True,
            incidents=pattern.incidents,
        )

    @staticmethod
    def build_reading(flow: TrafficFlow, incidents_count: int) -> TrafficReading:
        """Derive the dashboard traffic reading from a flow segment"""
        return TrafficReading(
            congestion_level_pct=congestion_pct(flow.current_speed, flow.free_flow_speed),
            congestion_label=congestion_label(flow.current_speed, flow.free_flow_speed),
            avg_speed_kmh=flow.current_speed or DEFAULT_AVG_SPEED,
            free_flow_speed_kmh=flow.free_flow_speed or DEFAULT_FREE_FLOW_SPEED,
            incidents_count=max(0, int(incidents_count)),
            delay_minutes=traffic_delay_minutes(flow.current_travel_time, flow.free_flow_travel_time),
            estimated=flow.is_fallback,
        )

    def available_cities(self) -> List[str]:
        return list(self.tables.coordinates.keys())

    def _require_key(self):
        if not self.api_key:
            raise BlockedError("Traffic API key not configured")
