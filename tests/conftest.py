from __future__ import annotations

import random
from typing import Any, Callable

import httpx
import pytest

import smartcity.clients.http as http_module
from smartcity.clients.air_quality import AirQualityClient
from smartcity.clients.energy import EnergyClient
from smartcity.clients.http import RetryClient
from smartcity.clients.traffic import TrafficClient
from smartcity.clients.waste import WasteClient
from smartcity.clients.weather import WeatherClient
from smartcity.config import Settings
from smartcity.orchestrator import CityAggregator


def weather_payload(temp: float = 28.0, description: str = "haze") -> dict[str, Any]:
    return {
        "name": "Mumbai",
        "dt": 1704096000,
        "sys": {"country": "IN"},
        "main": {"temp": temp, "feels_like": temp + 3, "humidity": 74, "pressure": 1009},
        "wind": {"speed": 3.6},
        "weather": [{"description": description, "icon": "50d"}],
    }


def geocode_payload(admin1: str = "Maharashtra") -> dict[str, Any]:
    return {
        "results": [
            {"latitude": 19.07283, "longitude": 72.88261, "name": "Mumbai", "country": "India", "admin1": admin1}
        ]
    }


def air_payload(aqi: float = 162, pm25: float = 75.4, pm10: float = 110.2) -> dict[str, Any]:
    return {
        "current": {
            "time": "2024-01-01T09:00",
            "us_aqi": aqi,
            "pm2_5": pm25,
            "pm10": pm10,
            "ozone": 41.0,
            "nitrogen_dioxide": 30.5,
            "sulphur_dioxide": None,
            "carbon_monoxide": 640.0,
            "dust": 12.0,
        }
    }


def flow_payload(current: float = 40, free_flow: float = 50) -> dict[str, Any]:
    return {
        "flowSegmentData": {
            "currentSpeed": current,
            "freeFlowSpeed": free_flow,
            "currentTravelTime": 600,
            "freeFlowTravelTime": 480,
            "confidence": 0.95,
            "roadClosure": False,
        }
    }


def incidents_payload(count: int = 3) -> dict[str, Any]:
    return {"incidents": [{"id": f"inc-{i}"} for i in range(count)]}


def _route(request: httpx.Request) -> str:
    host = request.url.host
    path = request.url.path
    if "openweathermap" in host:
        return "forecast" if path.endswith("/forecast") else "weather"
    if host.startswith("geocoding-api"):
        return "geocode"
    if host.startswith("air-quality-api"):
        return "air"
    if "tomtom" in host:
        return "incidents" if "incidentDetails" in path else "flow"
    if "cea.nic.in" in host:
        return "per_capita" if "per-capita" in path else "sales"
    raise AssertionError(f"unexpected request {request.url}")


class ProviderStub:
    """
    MockTransport handler answering per provider with a payload, a status code,
    an httpx exception class or a callable(request) -> Response
    """

    def __init__(self, **answers: Any) -> None:
        self.answers = answers
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = _route(request)
        if name not in self.answers:
            raise AssertionError(f"no stub answer for {name}: {request.url}")
        answer = self.answers[name]
        if isinstance(answer, type) and issubclass(answer, Exception):
            raise answer(f"{name} failed", request=request)
        if callable(answer):
            return answer(request)
        if isinstance(answer, int):
            return httpx.Response(answer, request=request)
        return httpx.Response(200, json=answer, request=request)

    def calls(self, name: str) -> list[httpx.Request]:
        return [r for r in self.requests if _route(r) == name]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        weather_api_key="weather-key",
        traffic_api_key="traffic-key",
        waste_simulated_latency_ms=0,
        http_backoff_base_seconds=2.0,
        energy_fast_fail=True,
    )


@pytest.fixture
def slept(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff delays instead of sleeping"""
    delays: list[float] = []

    async def _fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(http_module.asyncio, "sleep", _fake_sleep)
    return delays


@pytest.fixture
def make_aggregator(test_settings: Settings, slept: list[float]) -> Callable[..., CityAggregator]:
    def _factory(stub: ProviderStub, **overrides: Any) -> CityAggregator:
        http = RetryClient(transport=stub.transport())
        rng = random.Random(7)
        clients = {
            "weather_client": WeatherClient(http=http, settings=test_settings),
            "air_quality_client": AirQualityClient(http=http, settings=test_settings),
            "traffic_client": TrafficClient(http=http, settings=test_settings),
            "energy_client": EnergyClient(http=http, settings=test_settings, rng=rng),
            "waste_client": WasteClient(settings=test_settings, rng=rng),
        }
        clients.update(overrides)
        return CityAggregator(settings=test_settings, http=http, **clients)

    return _factory
