"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Core
    environment: str = "development"  # development | production

    # CORS Configuration
    cors_origins: str = "http://localhost:8080,http://localhost:3000,http://localhost:5173,http://127.0.0.1:8080,http://127.0.0.1:3000"  # Comma-separated list, override via CORS_ORIGINS env var

    # HTTP retry defaults (used when a provider has no override)
    http_timeout_ms: int = 10000
    http_retry_attempts: int = 3
    http_backoff_base_seconds: float = 2.0  # delay before retry n is base ** n seconds

    # Weather - OpenWeatherMap (mandatory source)
    weather_api_key: Optional[str] = None
    weather_base_url: str = "https://api.openweathermap.org/data/2.5"

    # Air Quality - Open-Meteo (No API key needed)
    air_quality_url: str = "https://air-quality-api.open-meteo.com/v1/air-quality"
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    geocoding_country: str = "India"
    air_quality_timeout_ms: int = 10000
    air_quality_retry_attempts: int = 3

    # Traffic - TomTom
    traffic_api_key: Optional[str] = None
    traffic_base_url: str = "https://api.tomtom.com/traffic/services/4"
    traffic_incidents_url: str = "https://api.tomtom.com/traffic/services/5/incidentDetails"
    traffic_zoom: int = 10
    traffic_bbox_delta: float = 0.1  # degrees around the city centre
    traffic_timeout_ms: int = 10000
    traffic_retry_attempts: int = 1

    # Energy - CEA (Central Electricity Authority)
    # CEA rejects browser-origin requests, so the default is to skip the network entirely
    energy_base_url: str = "https://cea.nic.in/api"
    energy_sales_path: str = "/electrical-energy-sales"
    energy_per_capita_path: str = "/per-capita-consumption"
    energy_timeout_ms: int = 3000
    energy_retry_attempts: int = 1
    energy_fast_fail: bool = True
    energy_fallback_enabled: bool = True

    # Waste - simulated provider
    waste_simulated_latency_ms: int = 300

    # Application
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
