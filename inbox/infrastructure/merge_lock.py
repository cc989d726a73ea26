"""Per-contact advisory lock serializing merges that touch the same contacts."""

import asyncio
import logging
import uuid
from collections import defaultdict

from inbox.core.errors import ConflictError
from inbox.infrastructure.redis import RedisClient, redis_client
from inbox.settings import settings

logger = logging.getLogger(__name__)

# Used when Redis is disabled; only serializes within this process
_local_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


class MergeLock:
    """Async context manager holding locks on every contact of a merge.

    Keys are acquired in sorted order so two merges over overlapping
    contacts cannot deadlock. A lock already held raises ConflictError.

    Usage:
        async with MergeLock(tenant_id, [from_id, to_id]):
            await merge_service.merge(...)
    """

    def __init__(
        self,
        tenant_id: str,
        contact_ids: list[int],
        client: RedisClient | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        self.keys = [f"merge-lock:{tenant_id}:{cid}" for cid in sorted(set(contact_ids))]
        self.client = client or redis_client
        self.ttl_seconds = ttl_seconds or settings.merge_lock_ttl_seconds
        self.token = uuid.uuid4().hex
        self._held: list[str] = []

    async def __aenter__(self) -> "MergeLock":
        try:
            for key in self.keys:
                await self._acquire(key)
                self._held.append(key)
        except BaseException:
            await self._release_all()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._release_all()

    async def _acquire(self, key: str) -> None:
        if self.client.enabled:
            if not await self.client.set_if_absent(key, self.token, self.ttl_seconds):
                raise ConflictError(f"A merge involving {key.rsplit(':', 1)[-1]} is already running")
            return
        lock = _local_locks[key]
        if lock.locked():
            raise ConflictError(f"A merge involving {key.rsplit(':', 1)[-1]} is already running")
        await lock.acquire()

    async def _release_all(self) -> None:
        while self._held:
            key = self._held.pop()
            if self.client.enabled:
                await self.client.delete_if_equals(key, self.token)
            else:
                lock = _local_locks[key]
                lock.release()
                if not lock.locked():
                    _local_locks.pop(key, None)
