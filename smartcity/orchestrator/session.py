"""
Search session: last search wins

Each search bumps a generation counter. A result is only committed when its
generation is still the current one; an older in-flight search is cancelled
and reports None.
"""
import asyncio
import logging
from typing import Optional

from smartcity.errors import AggregationFailed
from smartcity.models.schemas import CitySnapshot
from smartcity.orchestrator.aggregator import CityAggregator

logger = logging.getLogger(__name__)


class SearchSession:
    """Holds the latest committed snapshot for one interactive caller"""

    def __init__(self, aggregator: Optional[CityAggregator] = None):
        self.aggregator = aggregator or CityAggregator()
        self.generation = 0
        self.latest: Optional[CitySnapshot] = None
        self.latest_city: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def in_progress(self) -> bool:
        return self._task is not None and not self._task.done()

    async def search(self, city: str) -> Optional[CitySnapshot]:
        """
        Run a search, superseding any search still in flight

        Returns:
            The snapshot, or None if a newer search or clear() superseded this one

        Raises:
            AggregationFailed: if this (still current) search failed
        """
        self.generation += 1
        generation = self.generation
        self._cancel_in_flight()

        task = asyncio.ensure_future(self.aggregator.aggregate(city))
        self._task = task
        try:
            snapshot = await task
        except asyncio.CancelledError:
            if generation != self.generation:
                logger.info(f"Search for {city} superseded")
                return None
            raise
        except AggregationFailed:
            if generation != self.generation:
                logger.info(f"Discarding failed search for {city}, superseded")
                return None
            raise
        finally:
            if self._task is task:
                self._task = None

        if generation != self.generation:
            logger.info(f"Discarding stale result for {city}")
            return None

        self.latest = snapshot
        self.latest_city = city
        return snapshot

    def clear(self):
        """Forget the latest snapshot and invalidate any search in flight"""
        self.generation += 1
        self._cancel_in_flight()
        self.latest = None
        self.latest_city = None

    def _cancel_in_flight(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
