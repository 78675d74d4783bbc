"""
Waste Management Client
Simulated provider: readings are computed from city population, per-person
waste rate and the time of day
"""
import asyncio
import logging
import random
from datetime import datetime
from typing import List, Optional
from smartcity.config import Settings, settings as default_settings
from smartcity.data.lookups import CityTables, DEFAULT_TABLES
from smartcity.models.schemas import WasteBreakdown, WasteReading
from smartcity.services.derivations import (
    collection_curve,
    format_collection_label,
    next_collection,
    round_half_up,
    weekend_multiplier,
)

logger = logging.getLogger(__name__)

# Share of collected tons per waste stream
BREAKDOWN_SHARES = {
    "organic": 0.45,
    "plastic": 0.20,
    "paper": 0.15,
    "metal": 0.10,
    "glass": 0.05,
    "other": 0.05,
}


class WasteClient:
    """Client for waste collection data"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        tables: Optional[CityTables] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or default_settings
        self.tables = tables or DEFAULT_TABLES
        self.rng = rng or random.Random()

    async def fetch(self, city: str, now: Optional[datetime] = None) -> WasteReading:
        """
        Waste collection state for a city at the given (or current) local time
        """
        await self._simulate_latency()
        reading = self.calculate(city, now or datetime.now())
        logger.info(f"Waste data for {city}: {reading.collected_tons} t collected, {reading.collection_status}")
        return reading

    def calculate(self, city: str, now: datetime) -> WasteReading:
        profile = self.tables.waste_profile_for(city)
        estimated = profile is None
        if estimated:
            profile = self.tables.default_waste_profile

        # population (millions) x kg/person/day, expressed in tons
        daily_waste = profile.population_millions * profile.waste_per_person_kg
        progress, fill_level, status = collection_curve(now.hour)
        multiplier = weekend_multiplier(now)

        collected = round_half_up(daily_waste * progress * multiplier)
        # Cities producing more waste per person run larger recycling programmes
        base_recycling = 35 if profile.waste_per_person_kg > 1.0 else 25
        recycling_rate = base_recycling + self.rng.randint(0, 9)

        return WasteReading(
            collected_tons=collected,
            recycled_pct=recycling_rate,
            recycled_tons=round_half_up(collected * recycling_rate / 100),
            next_collection_label=format_collection_label(next_collection(now)),
            bin_fill_level_pct=round_half_up(fill_level),
            daily_target_tons=round_half_up(daily_waste * multiplier),
            collection_progress_pct=round_half_up(progress * 100),
            collection_status=status,
            estimated=estimated,
        )

    async def breakdown(self, city: str, now: Optional[datetime] = None) -> WasteBreakdown:
        """Split of today's collected waste by stream"""
        await self._simulate_latency()
        collected = self.calculate(city, now or datetime.now()).collected_tons
        shares = {name: round_half_up(collected * share) for name, share in BREAKDOWN_SHARES.items()}
        return WasteBreakdown(city=city, **shares)

    def fallback_reading(self) -> WasteReading:
        """Bounded placeholder used when the calculation itself fails"""
        collected = 450 + self.rng.randint(0, 99)
        recycling_rate = 30 + self.rng.randint(0, 14)
        return WasteReading(
            collected_tons=collected,
            recycled_pct=recycling_rate,
            recycled_tons=round_half_up(collected * recycling_rate / 100),
            next_collection_label="Tomorrow, 6:00 AM",
            bin_fill_level_pct=65,
            daily_target_tons=10000,
            collection_progress_pct=75,
            collection_status="Collection in progress",
            estimated=True,
        )

    def available_cities(self) -> List[str]:
        return list(self.tables.waste_profiles.keys())

    async def _simulate_latency(self):
        if self.settings.waste_simulated_latency_ms > 0:
            await asyncio.sleep(self.settings.waste_simulated_latency_ms / 1000.0)
