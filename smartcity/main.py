"""
Smart City Dashboard API entry point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from smartcity import __version__
from smartcity.config import settings
from smartcity.api.routes import city, health

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report provider configuration on startup; nothing to release on shutdown"""
    logger.info(f"Smart City Dashboard {__version__} starting ({settings.environment})")
    if not settings.weather_api_key:
        logger.warning("WEATHER_API_KEY not set - every city search will fail")
    if not settings.traffic_api_key:
        logger.warning("TRAFFIC_API_KEY not set - traffic will use fallback patterns")
    if settings.energy_fast_fail:
        logger.info("Energy fast-fail enabled - energy readings are estimated locally")

    yield

    logger.info("Smart City Dashboard stopped")


app = FastAPI(
    title="Smart City Dashboard API",
    description="City snapshot aggregation - Weather, Air Quality, Traffic, Energy and Waste",
    version=__version__,
    lifespan=lifespan
)

# Registered before the routers; allowed origins come from CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

for module in (city, health):
    app.include_router(module.router)


@app.get("/")
async def root():
    """Service descriptor with the available endpoints"""
    return {
        "service": "Smart City Dashboard",
        "version": __version__,
        "environment": settings.environment,
        "endpoints": {
            "snapshot": "/api/city/{city_name}",
            "forecast": "/api/city/{city_name}/forecast",
            "waste_breakdown": "/api/city/{city_name}/waste/breakdown",
            "cities": "/api/cities",
            "search": "/api/search",
            "latest": "/api/search/latest",
            "health": "/api/health",
            "sources": "/api/health/sources"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "smartcity.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
