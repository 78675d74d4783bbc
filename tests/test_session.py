from __future__ import annotations

import asyncio
from collections import defaultdict

import pytest

from smartcity.errors import AggregationFailed
from smartcity.orchestrator import SearchSession


class GatedAggregator:
    """Each city's aggregation finishes only once the test releases it"""

    def __init__(self, failing=()):
        self.gates = defaultdict(asyncio.Event)
        self.failing = set(failing)
        self.started: list[str] = []
        self.cancelled: list[str] = []

    def release(self, city: str) -> None:
        self.gates[city].set()

    async def aggregate(self, city: str):
        self.started.append(city)
        try:
            await self.gates[city].wait()
        except asyncio.CancelledError:
            self.cancelled.append(city)
            raise
        if city in self.failing:
            raise AggregationFailed(city)
        return f"snapshot:{city}"


def test_single_search_commits_latest() -> None:
    async def scenario():
        aggregator = GatedAggregator()
        aggregator.release("Delhi")
        session = SearchSession(aggregator)
        result = await session.search("Delhi")
        return session, result

    session, result = asyncio.run(scenario())

    assert result == "snapshot:Delhi"
    assert session.latest == "snapshot:Delhi"
    assert session.latest_city == "Delhi"
    assert not session.in_progress


def test_newer_search_supersedes_older() -> None:
    async def scenario():
        aggregator = GatedAggregator()
        session = SearchSession(aggregator)

        first = asyncio.ensure_future(session.search("Delhi"))
        await asyncio.sleep(0)
        assert session.in_progress

        second = asyncio.ensure_future(session.search("Mumbai"))
        aggregator.release("Mumbai")
        second_result = await second
        return aggregator, session, await first, second_result

    aggregator, session, first_result, second_result = asyncio.run(scenario())

    assert first_result is None
    assert second_result == "snapshot:Mumbai"
    assert session.latest == "snapshot:Mumbai"
    assert session.generation == 2
    assert aggregator.cancelled == ["Delhi"]


def test_failure_of_superseded_search_is_discarded() -> None:
    async def scenario():
        aggregator = GatedAggregator(failing={"Atlantis"})
        session = SearchSession(aggregator)

        first = asyncio.ensure_future(session.search("Atlantis"))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(session.search("London"))
        aggregator.release("Atlantis")
        aggregator.release("London")
        return session, await first, await second

    session, first_result, second_result = asyncio.run(scenario())

    assert first_result is None
    assert second_result == "snapshot:London"
    assert session.latest_city == "London"


def test_failure_of_current_search_propagates() -> None:
    async def scenario():
        aggregator = GatedAggregator(failing={"Atlantis"})
        aggregator.release("Atlantis")
        session = SearchSession(aggregator)
        await session.search("Atlantis")

    with pytest.raises(AggregationFailed):
        asyncio.run(scenario())


def test_failed_search_keeps_previous_snapshot() -> None:
    async def scenario():
        aggregator = GatedAggregator(failing={"Atlantis"})
        aggregator.release("Delhi")
        aggregator.release("Atlantis")
        session = SearchSession(aggregator)
        await session.search("Delhi")
        with pytest.raises(AggregationFailed):
            await session.search("Atlantis")
        return session

    session = asyncio.run(scenario())

    assert session.latest == "snapshot:Delhi"


def test_clear_discards_in_flight_search() -> None:
    async def scenario():
        aggregator = GatedAggregator()
        aggregator.release("Delhi")
        session = SearchSession(aggregator)
        await session.search("Delhi")

        pending = asyncio.ensure_future(session.search("Paris"))
        await asyncio.sleep(0)
        session.clear()
        aggregator.release("Paris")
        return session, await pending

    session, result = asyncio.run(scenario())

    assert result is None
    assert session.latest is None
    assert session.latest_city is None
