# donation_finder/services/kv_store.py
"""Small async key-value storage used for favorites and the user profile.

`RedisKeyValueStore` wraps redis.asyncio; `InMemoryKeyValueStore` keeps the
same interface in a dict for development and tests.
"""
import logging
from typing import Dict, Optional, Protocol

from redis.asyncio import Redis
from donation_finder.core.config import settings

logger = logging.getLogger(__name__)

class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...

class InMemoryKeyValueStore:
    def __init__(self):
        self.store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str) -> None:
        self.store[key] = value

    async def delete(self, key: str) -> None:
        self.store.pop(key, None)

class RedisKeyValueStore:
    def __init__(self, redis_client: Redis, namespace: str = "donation_finder"):
        self._redis = redis_client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "RedisKeyValueStore":
        url = url or settings.REDIS_URL
        if not url:
            raise ValueError("REDIS_URL is not set in the environment")
        return cls(Redis.from_url(url, decode_responses=True))

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(self._key(key))
        except Exception as e:
            logger.error(f"Redis GET error for {key}: {e}")
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(self._key(key), value)
        except Exception as e:
            logger.error(f"Redis SET error for {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except Exception as e:
            logger.error(f"Redis DEL error for {key}: {e}")

    async def close(self) -> None:
        await self._redis.aclose()

def build_store() -> KeyValueStore:
    """Redis when enabled and configured, memory otherwise."""
    if settings.ENABLE_REDIS and settings.REDIS_URL:
        logger.info("Using Redis key-value storage.")
        return RedisKeyValueStore.from_url(settings.REDIS_URL)
    logger.info("Using in-memory key-value storage.")
    return InMemoryKeyValueStore()
