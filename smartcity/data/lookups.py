"""
Static city reference tables

Kept as immutable data injected into the provider clients, so tests can pass
their own CityTables instead of patching module globals.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TrafficPattern:
    avg_speed: float
    free_flow_speed: float
    incidents: int


@dataclass(frozen=True)
class WasteProfile:
    population_millions: float
    waste_per_person_kg: float


def _frozen(data: dict) -> Mapping:
    return MappingProxyType(dict(data))


CITY_COORDINATES = _frozen({
    "Mumbai": (19.0760, 72.8777),
    "Delhi": (28.7041, 77.1025),
    "New Delhi": (28.7041, 77.1025),
    "Bangalore": (12.9716, 77.5946),
    "Bengaluru": (12.9716, 77.5946),
    "Kolkata": (22.5726, 88.3639),
    "Calcutta": (22.5726, 88.3639),
    "London": (51.5074, -0.1278),
    "New York": (40.7128, -74.0060),
    "Tokyo": (35.6762, 139.6503),
    "Paris": (48.8566, 2.3522),
    "Chennai": (13.0827, 80.2707),
    "Hyderabad": (17.3850, 78.4867),
    "Pune": (18.5204, 73.8567),
    "Ahmedabad": (23.0225, 72.5714),
    "Jaipur": (26.9124, 75.7873),
})

# Typical flow when the live traffic API is unavailable
TRAFFIC_PATTERNS = _frozen({
    "Mumbai": TrafficPattern(25, 50, 8),
    "Delhi": TrafficPattern(30, 60, 12),
    "Bangalore": TrafficPattern(28, 55, 6),
    "Bengaluru": TrafficPattern(28, 55, 6),
    "Kolkata": TrafficPattern(22, 45, 5),
    "Chennai": TrafficPattern(32, 60, 4),
    "Hyderabad": TrafficPattern(35, 60, 3),
    "Pune": TrafficPattern(38, 60, 2),
    "London": TrafficPattern(20, 50, 15),
    "New York": TrafficPattern(18, 50, 20),
    "Tokyo": TrafficPattern(15, 40, 10),
    "Paris": TrafficPattern(22, 50, 12),
})

DEFAULT_TRAFFIC_PATTERN = TrafficPattern(30, 55, 5)

CITY_REGIONS = _frozen({
    "Delhi": "Delhi",
    "New Delhi": "Delhi",
    "Mumbai": "Maharashtra",
    "Bombay": "Maharashtra",
    "Bangalore": "Karnataka",
    "Bengaluru": "Karnataka",
    "Hyderabad": "Telangana",
    "Chennai": "Tamil Nadu",
    "Madras": "Tamil Nadu",
    "Kolkata": "West Bengal",
    "Calcutta": "West Bengal",
    "Pune": "Maharashtra",
    "Ahmedabad": "Gujarat",
    "Jaipur": "Rajasthan",
    "Surat": "Gujarat",
    "Lucknow": "Uttar Pradesh",
    "Kanpur": "Uttar Pradesh",
    "Nagpur": "Maharashtra",
    "Indore": "Madhya Pradesh",
    "Thane": "Maharashtra",
    "Bhopal": "Madhya Pradesh",
    "Visakhapatnam": "Andhra Pradesh",
    "Patna": "Bihar",
    "Vadodara": "Gujarat",
    "Ghaziabad": "Uttar Pradesh",
    "Ludhiana": "Punjab",
    "Agra": "Uttar Pradesh",
    "Nashik": "Maharashtra",
    "Faridabad": "Haryana",
    "Meerut": "Uttar Pradesh",
    "Rajkot": "Gujarat",
    "Varanasi": "Uttar Pradesh",
    "Srinagar": "Jammu and Kashmir",
    "Amritsar": "Punjab",
    "Chandigarh": "Chandigarh",
})

# kWh per person per year
REGION_PER_CAPITA_KWH = _frozen({
    "Maharashtra": 1200, "Delhi": 1500, "Karnataka": 1100, "Telangana": 1000,
    "Tamil Nadu": 1300, "West Bengal": 900, "Gujarat": 1400, "Rajasthan": 800,
    "Uttar Pradesh": 700, "Madhya Pradesh": 750, "Andhra Pradesh": 950, "Bihar": 600,
    "Punjab": 1100, "Haryana": 1200, "Jammu and Kashmir": 700, "Chandigarh": 1500,
})

# Thousands of residents
CITY_POPULATION_THOUSANDS = _frozen({
    "Mumbai": 12478, "Delhi": 11034, "Bangalore": 8443, "Hyderabad": 6993,
    "Chennai": 7088, "Kolkata": 4486, "Pune": 3124, "Ahmedabad": 5570,
    "Jaipur": 3071, "Surat": 4467, "Lucknow": 2815, "Kanpur": 2767,
    "Nagpur": 2405, "Indore": 1996, "Thane": 1841, "Bhopal": 1798,
    "Visakhapatnam": 1728, "Patna": 1683, "Vadodara": 1671, "Ghaziabad": 1648,
    "Ludhiana": 1618, "Agra": 1584, "Nashik": 1486, "Faridabad": 1404,
    "Meerut": 1305, "Rajkot": 1286, "Varanasi": 1198, "Srinagar": 1180,
    "Amritsar": 1132, "Chandigarh": 1055,
    # Common variations
    "New Delhi": 11034, "Bombay": 12478, "Bengaluru": 8443, "Madras": 7088,
    "Calcutta": 4486, "Baroda": 1671,
})

WASTE_PROFILES = _frozen({
    "Mumbai": WasteProfile(20.4, 0.5),
    "Delhi": WasteProfile(30.3, 0.6),
    "Bangalore": WasteProfile(12.8, 0.45),
    "Kolkata": WasteProfile(14.9, 0.5),
    "London": WasteProfile(9.0, 1.2),
    "New York": WasteProfile(8.3, 1.8),
    "Tokyo": WasteProfile(14.0, 0.8),
    "Paris": WasteProfile(2.2, 1.1),
})

DEFAULT_WASTE_PROFILE = WasteProfile(10, 0.5)


def lookup_city(table: Mapping[str, T], name: str) -> Optional[T]:
    """Exact match first, then a case-insensitive match on the table keys"""
    if not name:
        return None
    name = name.strip()
    if name in table:
        return table[name]
    lowered = name.lower()
    for key, value in table.items():
        if key.lower() == lowered:
            return value
    return None


@dataclass(frozen=True)
class CityTables:
    """Bundle of every lookup table a provider client may need"""

    coordinates: Mapping[str, Tuple[float, float]] = field(default_factory=lambda: CITY_COORDINATES)
    traffic_patterns: Mapping[str, TrafficPattern] = field(default_factory=lambda: TRAFFIC_PATTERNS)
    default_traffic_pattern: TrafficPattern = DEFAULT_TRAFFIC_PATTERN
    regions: Mapping[str, str] = field(default_factory=lambda: CITY_REGIONS)
    per_capita_kwh: Mapping[str, float] = field(default_factory=lambda: REGION_PER_CAPITA_KWH)
    default_per_capita_kwh: float = 1000
    population_thousands: Mapping[str, float] = field(default_factory=lambda: CITY_POPULATION_THOUSANDS)
    waste_profiles: Mapping[str, WasteProfile] = field(default_factory=lambda: WASTE_PROFILES)
    default_waste_profile: WasteProfile = DEFAULT_WASTE_PROFILE

    def coordinates_for(self, city: str) -> Optional[Tuple[float, float]]:
        return lookup_city(self.coordinates, city)

    def traffic_pattern_for(self, city: str) -> Optional[TrafficPattern]:
        return lookup_city(self.traffic_patterns, city)

    def region_for(self, city: str) -> Optional[str]:
        return lookup_city(self.regions, city)

    def per_capita_for(self, region: str) -> Optional[float]:
        return lookup_city(self.per_capita_kwh, region)

    def population_for(self, city: str) -> Optional[float]:
        return lookup_city(self.population_thousands, city)

    def waste_profile_for(self, city: str) -> Optional[WasteProfile]:
        return lookup_city(self.waste_profiles, city)


DEFAULT_TABLES = CityTables()
