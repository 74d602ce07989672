# donation_finder/core/config.py
# Environment-driven settings for the discovery service.

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    PROJECT_NAME: str = "Donation Finder"
    VERSION: str = "0.2.0"
    BRIEF_DESCRIPTION: str = "Find nearby food banks, shelters, recycling and compost sites, and local volunteering opportunities."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")

    # --- Server (`donation-finder` console script) ---
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # --- Place search provider (Mapbox Geocoding v5) ---
    MAPBOX_TOKEN: Optional[str] = Field(None, description="Mapbox access token used for place search")
    MAPBOX_TIMEOUT: int = 8 # seconds
    MAPBOX_MAX_RETRIES: int = 2
    MAPBOX_INITIAL_BACKOFF: float = 1.0 # seconds
    MAPBOX_RESULT_LIMIT: int = Field(10, description="Max features per query (Mapbox caps this at 10)")

    # --- Discovery ---
    # Pause between category batches so the provider does not throttle us.
    SEARCH_PACING_SECONDS: float = 0.3
    DEFAULT_RADIUS_MILES: float = 25.0

    # Radius at or above which the list views skip the radius re-filter.
    FACILITY_SHOW_ALL_RADIUS_MILES: float = 25.0
    OPPORTUNITY_SHOW_ALL_RADIUS_MILES: float = 100.0

    # --- Local key-value storage (favorites, profile) ---
    ENABLE_REDIS: bool = Field(False, description="Store favorites and profile in Redis instead of memory")
    REDIS_URL: Optional[str] = Field(None, description="Redis URL for local key-value storage")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
