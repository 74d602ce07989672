# donation_finder/services/favorites.py
# Favorited facility ids kept in local key-value storage.

import asyncio
import json
import logging
from typing import Iterable, List, Set
from uuid import UUID

from donation_finder.models.dto import Facility
from donation_finder.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favorites"

class FavoritesService:
    """
    Favorited ids stored as one JSON list. Every change is a read-modify-write
    of that list, so changes run one at a time under `_lock`.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def ids(self) -> Set[UUID]:
        raw = await self.store.get(FAVORITES_KEY)
        if not raw:
            return set()
        try:
            return {UUID(value) for value in json.loads(raw)}
        except (ValueError, TypeError) as e:
            logger.error(f"Discarding unreadable favorites value: {e}")
            return set()

    async def _save(self, ids: Set[UUID]) -> None:
        await self.store.set(FAVORITES_KEY, json.dumps(sorted(str(i) for i in ids)))

    async def contains(self, facility_id: UUID) -> bool:
        return facility_id in await self.ids()

    async def add(self, facility_id: UUID) -> Set[UUID]:
        async with self._lock:
            ids = await self.ids()
            ids.add(facility_id)
            await self._save(ids)
            return ids

    async def remove(self, facility_id: UUID) -> Set[UUID]:
        async with self._lock:
            ids = await self.ids()
            ids.discard(facility_id)
            await self._save(ids)
            return ids

    async def toggle(self, facility_id: UUID) -> bool:
        """Flip membership; returns True when the id is now a favorite."""
        async with self._lock:
            ids = await self.ids()
            if facility_id in ids:
                ids.remove(facility_id)
                now_favorite = False
            else:
                ids.add(facility_id)
                now_favorite = True
            await self._save(ids)
            return now_favorite

    async def resolve(self, known: Iterable[Facility]) -> List[Facility]:
        """
        Favorited facilities found in `known`, in `known` order.

        Discovery ids are minted per search, so a favorite from an older
        search only resolves while that result list is still current.
        """
        ids = await self.ids()
        resolved: List[Facility] = []
        seen: Set[UUID] = set()
        for facility in known:
            if facility.id in ids and facility.id not in seen:
                seen.add(facility.id)
                resolved.append(facility)
        return resolved
