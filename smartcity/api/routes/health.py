"""
Health check endpoints
"""
from fastapi import APIRouter, Depends
from smartcity.api.routes.city import get_session
from smartcity.config import settings
from smartcity.orchestrator import SearchSession

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "smartcity_dashboard"
    }


@router.get("/sources")
async def sources_status(session: SearchSession = Depends(get_session)):
    """Provider configuration and the state of the shared search session"""
    aggregator = session.aggregator
    return {
        "weather_configured": bool(settings.weather_api_key),
        "traffic_configured": bool(settings.traffic_api_key),
        "energy_fast_fail": settings.energy_fast_fail,
        "search": {
            "generation": session.generation,
            "in_progress": session.in_progress,
            "latest_city": session.latest_city,
        },
        "last_aggregation": (
            aggregator.last_aggregation_time.isoformat() if aggregator.last_aggregation_time else None
        ),
    }
