# donation_finder/services/geo_search.py
# Place search adapter: one text query inside a region -> raw places or a typed failure.
# Retry logic applies to timeouts only; every other problem is reported, never raised.

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    Coordinate,
    PlaceSearchFailure,
    PlaceSearchResult,
    PlaceSearchSuccess,
    RawPlace,
)
from donation_finder.utils.haversine import bounding_box

logger = logging.getLogger(__name__)

MAPBOX_API_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"
ADDRESS_SUGGESTION_LIMIT = 5

class PlaceSearchProvider(Protocol):
    """Anything that can search places by free text around a point."""
    async def search(self, query: str, center: Coordinate, radius_meters: float) -> PlaceSearchResult: ...

class AddressLookupProvider(Protocol):
    async def search_addresses(self, query: str, near: Optional[Coordinate] = None) -> PlaceSearchResult: ...

class MapboxPlaceSearch:
    """
    Place search backed by the Mapbox Geocoding API: POIs (`types=poi`) for
    discovery and street addresses (`types=address`) for submissions.

    The region is sent both as `proximity` (ranking bias) and as a `bbox`
    reaching `radius_meters` from the center (hard limit).
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        initial_backoff: Optional[float] = None,
        limit: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.access_token = access_token if access_token is not None else settings.MAPBOX_TOKEN
        self.timeout = timeout if timeout is not None else settings.MAPBOX_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.MAPBOX_MAX_RETRIES
        self.initial_backoff = initial_backoff if initial_backoff is not None else settings.MAPBOX_INITIAL_BACKOFF
        self.limit = limit if limit is not None else settings.MAPBOX_RESULT_LIMIT
        self._transport = transport
        self._sleep = sleep

    def _build_params(self, center: Coordinate, radius_meters: float) -> Dict[str, Any]:
        min_lon, min_lat, max_lon, max_lat = bounding_box(center.lat, center.lon, radius_meters)
        return {
            "access_token": self.access_token,
            "types": "poi",
            "proximity": f"{center.lon},{center.lat}",
            "bbox": f"{min_lon},{min_lat},{max_lon},{max_lat}",
            "limit": self.limit,
        }

    async def search(self, query: str, center: Coordinate, radius_meters: float) -> PlaceSearchResult:
        return await self._lookup(query, self._build_params(center, radius_meters))

    async def search_addresses(self, query: str, near: Optional[Coordinate] = None) -> PlaceSearchResult:
        """
        Street-address suggestions for free text (`types=address`), ranked
        toward `near` when given. Each place carries the full address and
        the coordinate an opportunity submission needs.
        """
        params: Dict[str, Any] = {
            "access_token": self.access_token,
            "types": "address",
            "autocomplete": "true",
            "limit": ADDRESS_SUGGESTION_LIMIT,
        }
        if near is not None:
            params["proximity"] = f"{near.lon},{near.lat}"
        return await self._lookup(query, params)

    async def _lookup(self, query: str, params: Dict[str, Any]) -> PlaceSearchResult:
        query = query.strip()
        if not query:
            return PlaceSearchFailure(error="EMPTY_QUERY", detail="Search query must not be blank.", transport=False)

        if not self.access_token:
            logger.warning("Place search skipped: MAPBOX_TOKEN is not configured.")
            return PlaceSearchFailure(
                error="PROVIDER_NOT_CONFIGURED",
                detail="Place search is not configured.",
            )

        url = MAPBOX_API_URL.format(query=quote(query))

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    places = parse_features(response.json())
            except httpx.TimeoutException:
                logger.warning(f"Place search '{query}' attempt {attempt + 1} timed out.")
                if attempt < self.max_retries:
                    # Exponential backoff with jitter, never negative
                    wait_time = max(0.0, self.initial_backoff * (2 ** attempt) + random.uniform(-0.2, 0.2))
                    logger.info(f"Retrying in {wait_time:.2f}s...")
                    await self._sleep(wait_time)
                    continue
                return PlaceSearchFailure(
                    error="PROVIDER_TIMEOUT",
                    detail="Place search timed out.",
                )
            except httpx.HTTPStatusError as e:
                logger.error(f"Place search '{query}' returned status error: {e.response.status_code}")
                return PlaceSearchFailure(
                    error="PROVIDER_HTTP_ERROR",
                    detail=f"Place search failed with status {e.response.status_code}.",
                )
            except httpx.HTTPError as e:
                logger.error(f"Place search '{query}' could not reach the provider: {e}")
                return PlaceSearchFailure(
                    error="PROVIDER_UNAVAILABLE",
                    detail="Place search provider is unreachable.",
                )
            except ValueError as e:
                logger.error(f"Place search '{query}' returned an unreadable payload: {e}")
                return PlaceSearchFailure(
                    error="PROVIDER_BAD_RESPONSE",
                    detail="Place search provider returned an unreadable response.",
                    transport=False,
                )

            return PlaceSearchSuccess(places=places)

        # Unreachable: every loop iteration returns or continues to a later attempt.
        return PlaceSearchFailure(error="PROVIDER_TIMEOUT", detail="Place search timed out.")

def parse_features(data: Any) -> List[RawPlace]:
    """Translate a Mapbox FeatureCollection into RawPlace items, skipping features without a point."""
    if not isinstance(data, dict):
        return []

    features = data.get("features")
    if not isinstance(features, list):
        return []

    places: List[RawPlace] = []
    for feature in features:
        if not isinstance(feature, dict):
            continue
        center = feature.get("center")
        if not isinstance(center, list) or len(center) != 2:
            continue
        lon, lat = center
        properties = feature.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        places.append(
            RawPlace(
                name=feature.get("text") or None,
                formatted_address=feature.get("place_name") or properties.get("address") or None,
                lat=lat,
                lon=lon,
                phone=properties.get("tel") or None,
                url=properties.get("website") or properties.get("url") or None,
            )
        )
    return places
