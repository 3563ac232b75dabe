"""
Distributed Lock using Kvrocks (Redis)

SET NX EX lease with an ownership-checked release, used to elect one
process instance per tick for periodic jobs such as the reservation sweep.
"""

from typing import Optional
from uuid import uuid4

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.platform.logging.loguru_io import Logger


_RELEASE_IF_OWNER = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class DistributedLock:
    def __init__(self, *, client: Redis, key: str, ttl: int = 10) -> None:
        self._client = client
        self.key = key
        self.ttl = ttl
        self.lock_value: Optional[str] = None

    async def acquire_lock(self) -> bool:
        """
        Try to take the lease once (no waiting).

        Returns:
            True if this instance now owns the lease. Store errors count as
            "not acquired" so a flaky store skips a tick instead of crashing the job.
        """
        value = str(uuid4())
        try:
            acquired = await self._client.set(self.key, value, nx=True, ex=self.ttl)
        except RedisError as e:
            Logger.base.error(f'❌ [LOCK] Error acquiring lock {self.key}: {e}')
            return False

        if not acquired:
            Logger.base.debug(f'⏳ [LOCK] {self.key} held by another instance')
            return False

        self.lock_value = value
        Logger.base.debug(f'🔒 [LOCK] Acquired lock: {self.key} (ttl={self.ttl}s)')
        return True

    async def release_lock(self) -> bool:
        """Release only if we still own the lease (it may have expired and been retaken)"""
        if not self.lock_value:
            return False

        try:
            released = await self._client.eval(_RELEASE_IF_OWNER, 1, self.key, self.lock_value)  # type: ignore
        except RedisError as e:
            Logger.base.error(f'❌ [LOCK] Error releasing lock {self.key}: {e}')
            return False
        finally:
            self.lock_value = None

        if not released:
            Logger.base.warning(f'⚠️ [LOCK] Lease on {self.key} expired before release')
            return False

        Logger.base.debug(f'🔓 [LOCK] Released lock: {self.key}')
        return True
