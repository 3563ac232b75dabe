import asyncio

import asyncpg
import orjson
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# Global connection pools per event loop
asyncpg_pools: dict[int, asyncpg.Pool] = {}


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Per-connection codecs: uuid_utils UUIDs for ids, orjson for JSONB columns"""

    def _uuid_decoder(value: bytes) -> UUID:
        return UUID(bytes=value)

    def _uuid_encoder(value: UUID) -> bytes:
        return value.bytes

    await conn.set_type_codec(
        'uuid',
        encoder=_uuid_encoder,
        decoder=_uuid_decoder,
        schema='pg_catalog',
        format='binary',
    )
    await conn.set_type_codec(
        'jsonb',
        encoder=lambda value: orjson.dumps(value).decode(),
        decoder=orjson.loads,
        schema='pg_catalog',
        format='text',
    )


async def get_asyncpg_pool() -> asyncpg.Pool:
    current_loop = asyncio.get_running_loop()
    loop_id = id(current_loop)

    # Fast path: pool already exists for this loop
    if loop_id in asyncpg_pools:
        return asyncpg_pools[loop_id]

    # Slow path: create new pool (startup, or first use on a new loop)
    dsn = settings.DATABASE_URL_ASYNC.replace('postgresql+asyncpg://', 'postgresql://')
    pool = await asyncpg.create_pool(
        dsn,
        min_size=settings.ASYNCPG_POOL_MIN_SIZE,
        max_size=settings.ASYNCPG_POOL_MAX_SIZE,
        command_timeout=settings.ASYNCPG_POOL_COMMAND_TIMEOUT,
        max_inactive_connection_lifetime=settings.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
        timeout=settings.ASYNCPG_POOL_TIMEOUT,
        max_queries=settings.ASYNCPG_POOL_MAX_QUERIES,
        init=_init_connection,
    )
    asyncpg_pools[loop_id] = pool
    Logger.base.info(
        f'🗄️ [asyncpg] Pool created (min={pool.get_min_size()}, max={pool.get_max_size()})'
    )
    return pool


async def warmup_asyncpg_pool() -> int:
    """Open MIN_SIZE connections up front so the first checkouts don't pay the handshake"""
    pool = await get_asyncpg_pool()
    connections: list[asyncpg.Connection] = []
    try:
        for i in range(settings.ASYNCPG_POOL_MIN_SIZE):
            try:
                connections.append(await pool.acquire(timeout=5.0))
            except asyncio.TimeoutError:
                Logger.base.warning(f'⚠️ [asyncpg] Warmup timeout at {i + 1} connections')
                break
    finally:
        for conn in connections:
            await pool.release(conn)

    Logger.base.info(f'🔥 [asyncpg] Warmup done: {len(connections)} connections ready')
    return len(connections)


async def close_asyncpg_pool() -> None:
    """Close the pool bound to the current event loop"""
    pool = asyncpg_pools.pop(id(asyncio.get_running_loop()), None)
    if pool is not None:
        await pool.close()
