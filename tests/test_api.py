from __future__ import annotations

import random

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import (
    ProviderStub,
    air_payload,
    flow_payload,
    geocode_payload,
    incidents_payload,
    weather_payload,
)
from smartcity.api.routes.city import get_aggregator, get_session
from smartcity.clients.energy import EnergyClient
from smartcity.clients.http import RetryClient
from smartcity.clients.waste import WasteClient
from smartcity.config import Settings
from smartcity.main import app
from smartcity.orchestrator import CityAggregator, SearchSession


@pytest.fixture
def stub() -> ProviderStub:
    forecast = {
        "list": [
            {"dt": 1704096000, "main": {"temp": 21.5, "humidity": 55}, "weather": [{"description": "light rain"}]}
        ]
    }
    return ProviderStub(
        weather=lambda request: (
            httpx.Response(404, request=request)
            if request.url.params["q"] == "Atlantis"
            else httpx.Response(200, json=weather_payload(), request=request)
        ),
        forecast=forecast,
        geocode=geocode_payload(),
        air=air_payload(aqi=88),
        flow=flow_payload(),
        incidents=incidents_payload(2),
    )


@pytest.fixture
def client(stub: ProviderStub, test_settings: Settings):
    http = RetryClient(transport=stub.transport())
    rng = random.Random(11)
    aggregator = CityAggregator(
        settings=test_settings,
        http=http,
        energy_client=EnergyClient(http=http, settings=test_settings, rng=rng),
        waste_client=WasteClient(settings=test_settings, rng=rng),
    )
    session = SearchSession(aggregator)
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    app.dependency_overrides[get_session] = lambda: session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_root_lists_endpoints(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["snapshot"] == "/api/city/{city_name}"


def test_health(client: TestClient) -> None:
    response = client.get("/api/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "smartcity_dashboard"}


def test_city_snapshot(client: TestClient) -> None:
    response = client.get("/api/city/Mumbai")

    assert response.status_code == 200
    body = response.json()
    assert body["city_name"] == "Mumbai"
    assert body["air_quality"]["aqi"] == 88
    assert body["air_quality"]["status"] == "Moderate"
    assert body["traffic"]["incidents_count"] == 2
    assert body["energy"]["usage_mw"] == 1709
    assert body["estimated_sources"] == ["energy"]


def test_city_snapshot_weather_failure_is_bad_gateway(client: TestClient) -> None:
    response = client.get("/api/city/Atlantis")

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to fetch data for Atlantis"


def test_forecast(client: TestClient) -> None:
    response = client.get("/api/city/London/forecast")

    assert response.status_code == 200
    body = response.json()
    assert body["city"] == "London"
    assert body["count"] == 1
    assert body["entries"][0]["condition"] == "light rain"


def test_waste_breakdown(client: TestClient) -> None:
    response = client.get("/api/city/Delhi/waste/breakdown")

    assert response.status_code == 200
    body = response.json()
    assert body["city"] == "Delhi"
    assert set(body) >= {"organic", "plastic", "paper", "metal", "glass", "other"}


def test_available_cities(client: TestClient) -> None:
    response = client.get("/api/cities")

    assert response.status_code == 200
    body = response.json()
    assert "Mumbai" in body["traffic"]
    assert "London" in body["waste"]


def test_search_flow(client: TestClient) -> None:
    assert client.get("/api/search/latest").status_code == 404

    response = client.post("/api/search", json={"city": "Mumbai"})
    assert response.status_code == 200
    assert response.json()["city_name"] == "Mumbai"

    latest = client.get("/api/search/latest")
    assert latest.status_code == 200
    assert latest.json()["city_name"] == "Mumbai"

    sources = client.get("/api/health/sources").json()
    assert sources["search"]["latest_city"] == "Mumbai"
    assert sources["search"]["generation"] == 1
    assert sources["last_aggregation"] is not None

    assert client.delete("/api/search").status_code == 204
    assert client.get("/api/search/latest").status_code == 404


def test_search_failure_is_bad_gateway(client: TestClient) -> None:
    response = client.post("/api/search", json={"city": "Atlantis"})

    assert response.status_code == 502


def test_search_rejects_empty_city(client: TestClient) -> None:
    response = client.post("/api/search", json={"city": ""})

    assert response.status_code == 422


def test_forecast_malformed_payload_is_bad_gateway(stub: ProviderStub, client: TestClient) -> None:
    stub.answers["forecast"] = lambda request: httpx.Response(200, json=["unexpected"], request=request)

    response = client.get("/api/city/London/forecast")

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to fetch forecast for London"
