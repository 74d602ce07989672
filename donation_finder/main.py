from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import asyncio
import logging
import uuid

import uvicorn

# Local imports
from donation_finder.core.config import settings
from donation_finder.logging import configure_logging
from donation_finder.api.routes import router as api_router
from donation_finder.middleware.logging import RequestLoggingMiddleware
from donation_finder.services.discovery import DiscoveryService
from donation_finder.services.facility_catalog import SampleFacilityCatalog
from donation_finder.services.favorites import FavoritesService
from donation_finder.services.geo_search import AddressLookupProvider, MapboxPlaceSearch, PlaceSearchProvider
from donation_finder.services.kv_store import KeyValueStore, RedisKeyValueStore, build_store
from donation_finder.services.location import DiscoveryTrigger, LocationProvider
from donation_finder.services.opportunity_service import OpportunityService
from donation_finder.services.profile import ProfileService

configure_logging()
logger = logging.getLogger(__name__)

def create_app(
    provider: Optional[PlaceSearchProvider] = None,
    store: Optional[KeyValueStore] = None,
    address_lookup: Optional[AddressLookupProvider] = None,
) -> FastAPI:
    """Build the application. `provider`, `store` and `address_lookup` replace Mapbox and the configured storage."""

    # --- Application Lifecycle Management ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Application startup: v{settings.VERSION}")

        kv = store or build_store()
        app.state.catalog = SampleFacilityCatalog()
        app.state.opportunities = OpportunityService()
        app.state.favorites = FavoritesService(kv)
        app.state.profile = ProfileService(kv)
        place_search = provider or MapboxPlaceSearch()
        app.state.addresses = address_lookup or (
            place_search if isinstance(place_search, MapboxPlaceSearch) else MapboxPlaceSearch()
        )
        app.state.discovery = DiscoveryService(place_search)
        app.state.locations = LocationProvider()
        app.state.trigger = DiscoveryTrigger(app.state.locations, app.state.discovery)
        trigger_task = asyncio.create_task(app.state.trigger.run())

        yield

        logger.info("Application shutdown: Cleaning up resources.")
        app.state.locations.close()
        trigger_task.cancel()
        await asyncio.gather(trigger_task, return_exceptions=True)
        if isinstance(kv, RedisKeyValueStore):
            await kv.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.BRIEF_DESCRIPTION,
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", status_code=status.HTTP_200_OK)
    async def health_check(request: Request):
        discovery: DiscoveryService = request.app.state.discovery
        return {
            "status": "ok",
            "place_search_configured": bool(settings.MAPBOX_TOKEN) or provider is not None,
            "discovery_generation": discovery.generation,
        }

    # --- Global Exception Handler (for unhandled errors) ---
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = str(uuid.uuid4())
        logger.error(f"Unhandled exception (ID: {error_id}): {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "error": "INTERNAL_SERVER_ERROR",
                    "detail": "An unexpected error occurred. Please report this error ID.",
                    "error_id": error_id
                }
            }
        )

    return app

app = create_app()

def run():
    """Serve the app with uvicorn using HOST and PORT from settings."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
