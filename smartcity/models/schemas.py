"""
Pydantic schemas for readings, the city snapshot and API responses
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List, Tuple
from datetime import datetime


class FrozenModel(BaseModel):
    """Readings are values: once built they are never patched"""

    class Config:
        frozen = True


class AQIStatus(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    UNHEALTHY_SENSITIVE = "UnhealthySensitive"
    UNHEALTHY = "Unhealthy"
    VERY_UNHEALTHY = "VeryUnhealthy"
    HAZARDOUS = "Hazardous"


# Weather Schemas
class WeatherReading(FrozenModel):
    """Current conditions from the mandatory weather provider"""
    temperature_c: float
    condition: str
    humidity_pct: int = Field(ge=0, le=100)
    wind_speed_ms: float = Field(ge=0)
    feels_like_c: float
    pressure_hpa: float
    city: Optional[str] = None
    country: Optional[str] = None
    icon: Optional[str] = None
    observed_at: Optional[datetime] = None


class ForecastEntry(FrozenModel):
    forecast_at: datetime
    temperature_c: float
    humidity_pct: int = Field(ge=0, le=100)
    condition: str
    icon: Optional[str] = None


# Air Quality Schemas
class GeoLocation(FrozenModel):
    latitude: float
    longitude: float
    name: str
    country: Optional[str] = None
    admin1: Optional[str] = None  # state / province, used as the energy region hint


class PollutantLevel(FrozenModel):
    code: str  # O3, NO2, SO2, CO, Dust
    value: float


class AirQualityReading(FrozenModel):
    aqi: int = Field(ge=0)
    status: AQIStatus
    pm25: float = Field(ge=0)
    pm10: float = Field(ge=0)
    source_region: Optional[str] = None
    pollutants: Tuple[PollutantLevel, ...] = ()
    estimated: bool = False

    def pollutant(self, code: str) -> Optional[float]:
        for level in self.pollutants:
            if level.code == code:
                return level.value
        return None


# Traffic Schemas
class TrafficFlow(FrozenModel):
    """Flow segment as reported by the provider (or synthesized from patterns)"""
    city: str
    current_speed: float
    free_flow_speed: float
    current_travel_time: float = 0
    free_flow_travel_time: float = 0
    confidence: float = 0
    road_closure: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_fallback: bool = False
    incidents: Optional[int] = None  # canned count carried by fallback patterns


class TrafficReading(FrozenModel):
    congestion_level_pct: int = Field(ge=0, le=100)
    avg_speed_kmh: float
    incidents_count: int = Field(ge=0)
    free_flow_speed_kmh: float
    delay_minutes: int
    congestion_label: str = "Unknown"
    estimated: bool = False


# Energy Schemas
class EnergyReading(FrozenModel):
    usage_mw: int
    renewable_pct: int = Field(ge=0, le=100)
    peak_mw: int
    region: Optional[str] = None
    per_capita_kwh: Optional[float] = None
    city_consumption_gwh: Optional[float] = None
    data_source: str = "Estimated based on state averages"
    estimated: bool = True


# Waste Schemas
class WasteReading(FrozenModel):
    collected_tons: int
    recycled_pct: int = Field(ge=0, le=100)
    recycled_tons: int = Field(ge=0)
    next_collection_label: str
    bin_fill_level_pct: int = Field(ge=0, le=100)
    daily_target_tons: int
    collection_progress_pct: int = Field(ge=0, le=100)
    collection_status: str
    estimated: bool = False


class WasteBreakdown(FrozenModel):
    """Tons collected today per waste stream"""
    city: str
    organic: int
    plastic: int
    paper: int
    metal: int
    glass: int
    other: int


# Snapshot
class CitySnapshot(FrozenModel):
    """Complete aggregated state for one city search"""
    city_name: str
    weather: WeatherReading
    air_quality: AirQualityReading
    traffic: TrafficReading
    energy: EnergyReading
    waste: WasteReading
    estimated_sources: Tuple[str, ...] = ()
    generated_at: datetime = Field(default_factory=datetime.utcnow)


# API Schemas
class SearchRequest(BaseModel):
    city: str = Field(min_length=1)


class ForecastResponse(BaseModel):
    city: str
    entries: List[ForecastEntry]
    count: int


class AvailableCitiesResponse(BaseModel):
    traffic: List[str]
    waste: List[str]
