# donation_finder/services/location.py
# Device location as an explicit stream, plus the rule that turns it into discovery runs.

import asyncio
import logging
from typing import AsyncIterator, List, Optional

from donation_finder.models.dto import (
    Coordinate,
    Facility,
    LocationPermission,
    LocationUpdate,
)
from donation_finder.services.discovery import DiscoveryService

logger = logging.getLogger(__name__)

_REVOKED = (LocationPermission.DENIED, LocationPermission.RESTRICTED)

class LocationProvider:
    """Holds the latest LocationUpdate and fans it out to subscribers."""

    def __init__(self, initial: Optional[LocationUpdate] = None):
        self._current = initial or LocationUpdate()
        self._subscribers: List[asyncio.Queue] = []
        self._closed = False

    @property
    def current(self) -> LocationUpdate:
        return self._current

    @property
    def coordinate(self) -> Optional[Coordinate]:
        return self._current.coordinate

    def publish(self, update: LocationUpdate) -> None:
        if update.permission in _REVOKED and update.coordinate is not None:
            # A revoked permission never carries a position.
            update = LocationUpdate(permission=update.permission)
        self._current = update
        for queue in self._subscribers:
            queue.put_nowait(update)

    def update_coordinate(self, coordinate: Coordinate) -> None:
        self.publish(LocationUpdate(coordinate=coordinate, permission=LocationPermission.AUTHORIZED))

    def update_permission(self, permission: LocationPermission) -> None:
        coordinate = None if permission in _REVOKED else self._current.coordinate
        self.publish(LocationUpdate(coordinate=coordinate, permission=permission))

    def is_within_radius(self, point: Coordinate, radius_miles: float) -> bool:
        """False when no position is known yet."""
        if self.coordinate is None:
            return False
        return self.coordinate.distance_miles(point) <= radius_miles

    def close(self) -> None:
        """End every open subscription."""
        self._closed = True
        for queue in self._subscribers:
            queue.put_nowait(None)

    async def subscribe(self) -> AsyncIterator[LocationUpdate]:
        """Yield the current update, then each later one until `close()`."""
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._current)
        if self._closed:
            queue.put_nowait(None)
        self._subscribers.append(queue)
        try:
            while True:
                update = await queue.get()
                if update is None:
                    return
                yield update
        finally:
            self._subscribers.remove(queue)

class DiscoveryTrigger:
    """
    Starts discovery the first time a coordinate becomes available and
    again whenever the user explicitly asks for a refresh.
    """

    def __init__(
        self,
        locations: LocationProvider,
        discovery: DiscoveryService,
        radius_miles: Optional[float] = None,
    ):
        self.locations = locations
        self.discovery = discovery
        self.radius_miles = radius_miles
        self.has_run = False

    async def run(self) -> None:
        async for update in self.locations.subscribe():
            if self.has_run or update.coordinate is None:
                continue
            self.has_run = True
            logger.info(f"First location fix at {update.coordinate.lat}, {update.coordinate.lon}; starting discovery.")
            await self.discovery.find_facilities(update.coordinate, self.radius_miles)

    async def refresh(self, radius_miles: Optional[float] = None) -> Optional[List[Facility]]:
        """Re-run discovery at the latest coordinate; None when there is no fix yet."""
        if radius_miles is not None:
            self.radius_miles = radius_miles
        coordinate = self.locations.coordinate
        if coordinate is None:
            logger.warning("Refresh requested without a location fix; nothing to search around.")
            return None
        self.has_run = True
        return await self.discovery.find_facilities(coordinate, self.radius_miles)
