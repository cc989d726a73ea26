"""Redis client wrapper used for cross-process locks."""

import logging

import redis.asyncio as aioredis

from inbox.settings import settings

logger = logging.getLogger(__name__)

# Deletes the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisClient:
    """Redis client wrapper for async operations."""

    def __init__(self) -> None:
        """Initialize Redis client."""
        self._client: aioredis.Redis | None = None
        self._enabled: bool = settings.redis_enabled

    @property
    def enabled(self) -> bool:
        return self._enabled and self._client is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self._enabled:
            logger.info("Redis disabled - skipping connection")
            return
        if self._client is None:
            try:
                self._client = aioredis.from_url(
                    settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._client.ping()
                logger.info("Redis connected successfully")
            except Exception as e:
                logger.warning(f"Redis connection failed: {e}. Continuing without Redis.")
                self._client = None
                self._enabled = False

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Set a key only if it does not exist yet (SET NX EX).

        Returns:
            True if the key was set
        """
        if not self.enabled:
            return False
        return bool(await self._client.set(key, value, nx=True, ex=ttl_seconds))

    async def delete_if_equals(self, key: str, value: str) -> bool:
        """Delete a key only if it still holds the given value.

        Returns:
            True if the key was deleted
        """
        if not self.enabled:
            return False
        return bool(await self._client.eval(_RELEASE_SCRIPT, 1, key, value))


# Global Redis client instance
redis_client = RedisClient()
