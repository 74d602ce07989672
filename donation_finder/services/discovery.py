# donation_finder/services/discovery.py
# Donation-center discovery: category x synonym searches -> dedupe -> distance sort -> publish.

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, List, Optional, Set, Tuple

import structlog

from donation_finder.core.config import settings
from donation_finder.models.dto import (
    Coordinate,
    DiscoveryState,
    Facility,
    FacilityCategory,
    PlaceSearchFailure,
    PlaceSearchResult,
    RawPlace,
)
from donation_finder.services import categories
from donation_finder.services.geo_search import PlaceSearchProvider
from donation_finder.utils.haversine import miles_to_meters

logger = structlog.get_logger(__name__)

# Oldest snapshots are dropped once a subscriber falls this far behind.
SUBSCRIBER_BACKLOG = 8

TOTAL_FAILURE_MESSAGE = "Unable to reach the place search service. Please check your connection and try again."

def to_facility(place: RawPlace, category: FacilityCategory) -> Optional[Facility]:
    """Build a Facility from a provider result, or None when name or address is missing."""
    name = (place.name or "").strip()
    address = (place.formatted_address or "").strip()
    if not name or not address:
        return None

    return Facility(
        name=name,
        address=address,
        category=category,
        lat=place.lat,
        lon=place.lon,
        phone=place.phone,
        website=place.url,
        hours=place.hours or categories.default_hours(category),
        accepted_items=categories.default_accepted_items(category),
        description=categories.default_description(category, name),
    )

def dedupe_by_coordinate(facilities: Iterable[Facility]) -> List[Facility]:
    """Keep the first facility seen at each exact (lat, lon)."""
    seen: Set[Tuple[float, float]] = set()
    unique: List[Facility] = []
    for facility in facilities:
        key = (facility.lat, facility.lon)
        if key in seen:
            continue
        seen.add(key)
        unique.append(facility)
    return unique

def sort_by_distance(facilities: Iterable[Facility], origin: Coordinate) -> List[Facility]:
    """Nearest first; ties keep their incoming order."""
    return sorted(facilities, key=lambda f: f.distance_miles(origin))

class DiscoveryService:
    """
    Owns the published discovery state for one consumer.

    Each `find_facilities` call starts a new generation. Only the newest
    generation may publish its final result, so a slow earlier run can
    never overwrite a fresher one. The state is an immutable snapshot
    replaced in a single assignment.
    """

    def __init__(
        self,
        provider: PlaceSearchProvider,
        *,
        pacing_seconds: Optional[float] = None,
        default_radius_miles: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.provider = provider
        self.pacing_seconds = settings.SEARCH_PACING_SECONDS if pacing_seconds is None else pacing_seconds
        self.default_radius_miles = settings.DEFAULT_RADIUS_MILES if default_radius_miles is None else default_radius_miles
        self._sleep = sleep
        self._generation = 0
        self._state = DiscoveryState()
        self._subscribers: List[asyncio.Queue] = []

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def _publish(self, state: DiscoveryState) -> None:
        self._state = state
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(state)

    async def subscribe(self) -> AsyncIterator[DiscoveryState]:
        """Yield the current snapshot, then every snapshot published afterwards."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_BACKLOG)
        queue.put_nowait(self._state)
        self._subscribers.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    async def find_facilities(self, location: Coordinate, radius_miles: Optional[float] = None) -> List[Facility]:
        """
        Search every category around `location` and publish the merged list.

        Returns the list this run produced, even when a newer run has
        already superseded it and the result was not published.
        """
        if radius_miles is None:
            radius_miles = self.default_radius_miles
        self._generation += 1
        generation = self._generation
        log = logger.bind(generation=generation, lat=location.lat, lon=location.lon, radius_miles=radius_miles)

        self._publish(
            DiscoveryState(
                is_loading=True,
                generation=generation,
                location=location,
                radius_miles=radius_miles,
            )
        )
        log.info("discovery_started")

        try:
            collected, transport_failures = await self._search_all(location, radius_miles)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._publish(DiscoveryState(generation=generation, location=location, radius_miles=radius_miles))
            log.info("discovery_cancelled")
            raise

        facilities = sort_by_distance(dedupe_by_coordinate(collected), location)

        error_message = None
        if not facilities and transport_failures:
            error_message = TOTAL_FAILURE_MESSAGE

        if generation != self._generation:
            log.info("discovery_result_stale", newest_generation=self._generation, count=len(facilities))
            return facilities

        self._publish(
            DiscoveryState(
                facilities=facilities,
                is_loading=False,
                error_message=error_message,
                generation=generation,
                location=location,
                radius_miles=radius_miles,
            )
        )
        log.info(
            "discovery_finished",
            raw_count=len(collected),
            count=len(facilities),
            transport_failures=transport_failures,
        )
        return facilities

    async def _search_all(self, location: Coordinate, radius_miles: float) -> Tuple[List[Facility], int]:
        radius_meters = miles_to_meters(radius_miles)
        collected: List[Facility] = []
        transport_failures = 0

        for index, category in enumerate(FacilityCategory):
            if index and self.pacing_seconds > 0:
                await self._sleep(self.pacing_seconds)

            for term in categories.search_terms(category):
                result = await self._search_term(term, location, radius_meters)
                if isinstance(result, PlaceSearchFailure):
                    if result.transport:
                        transport_failures += 1
                    logger.warning("discovery_query_failed", category=category.value, term=term, error=result.error)
                    continue

                for place in result.places:
                    facility = to_facility(place, category)
                    if facility is None:
                        logger.debug("discovery_result_dropped", category=category.value, term=term)
                        continue
                    collected.append(facility)

        return collected, transport_failures

    async def _search_term(self, term: str, location: Coordinate, radius_meters: float) -> PlaceSearchResult:
        try:
            return await self.provider.search(term, location, radius_meters)
        except Exception as e:
            # Providers report failures as values; anything raised still only costs this term.
            logger.error("discovery_provider_raised", term=term, error=str(e))
            return PlaceSearchFailure(error="PROVIDER_EXCEPTION", detail=str(e))
