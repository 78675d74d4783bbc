"""
API routes for city snapshots
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response
from smartcity.errors import AggregationFailed, SourceError
from smartcity.models.schemas import (
    AvailableCitiesResponse,
    CitySnapshot,
    ForecastResponse,
    SearchRequest,
    WasteBreakdown,
)
from smartcity.orchestrator import CityAggregator, SearchSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["city"])

# Shared instances, created on first use (replaced in tests via dependency_overrides)
_aggregator: Optional[CityAggregator] = None
_session: Optional[SearchSession] = None


def get_aggregator() -> CityAggregator:
    global _aggregator
    if _aggregator is None:
        _aggregator = CityAggregator()
    return _aggregator


def get_session(aggregator: CityAggregator = Depends(get_aggregator)) -> SearchSession:
    global _session
    if _session is None:
        _session = SearchSession(aggregator)
    return _session


@router.get("/city/{city_name}", response_model=CitySnapshot)
async def get_city_snapshot(city_name: str, aggregator: CityAggregator = Depends(get_aggregator)):
    """
    Aggregate weather, air quality, traffic, energy and waste for a city

    Returns:
        City snapshot; 502 if the weather provider failed
    """
    try:
        return await aggregator.aggregate(city_name)
    except AggregationFailed as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/city/{city_name}/forecast", response_model=ForecastResponse)
async def get_city_forecast(city_name: str, aggregator: CityAggregator = Depends(get_aggregator)):
    """5-day weather forecast for a city"""
    try:
        entries = await aggregator.weather_client.fetch_forecast(city_name)
    except SourceError as e:
        logger.error(f"Forecast unavailable for {city_name}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to fetch forecast for {city_name}")
    return ForecastResponse(city=city_name, entries=entries, count=len(entries))


@router.get("/city/{city_name}/waste/breakdown", response_model=WasteBreakdown)
async def get_waste_breakdown(city_name: str, aggregator: CityAggregator = Depends(get_aggregator)):
    """Today's collected waste split by stream"""
    return await aggregator.waste_client.breakdown(city_name)


@router.get("/cities", response_model=AvailableCitiesResponse)
async def get_available_cities(aggregator: CityAggregator = Depends(get_aggregator)):
    """Cities with live traffic coordinates and waste profiles"""
    return AvailableCitiesResponse(
        traffic=aggregator.traffic_client.available_cities(),
        waste=aggregator.waste_client.available_cities(),
    )


@router.post("/search", response_model=Optional[CitySnapshot])
async def search_city(request: SearchRequest, session: SearchSession = Depends(get_session)):
    """
    Search through the shared session; a newer search supersedes this one

    Returns:
        Snapshot, or 204 if the search was superseded
    """
    try:
        snapshot = await session.search(request.city)
    except AggregationFailed as e:
        raise HTTPException(status_code=502, detail=str(e))
    if snapshot is None:
        return Response(status_code=204)
    return snapshot


@router.get("/search/latest", response_model=CitySnapshot)
async def get_latest_search(session: SearchSession = Depends(get_session)):
    if session.latest is None:
        raise HTTPException(status_code=404, detail="No search results yet")
    return session.latest


@router.delete("/search", status_code=204)
async def clear_search(session: SearchSession = Depends(get_session)):
    session.clear()
    return Response(status_code=204)
