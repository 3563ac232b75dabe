"""
Production FastAPI Application

HTTP API plus the background reservation sweeper.
Run with: granian src.main:app --interface asgi --host 0.0.0.0 --port 8100
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.asyncpg_setting import (
    close_asyncpg_pool,
    get_asyncpg_pool,
    warmup_asyncpg_pool,
)
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.reservation.driving_adapter.reservation_sweeper import ReservationSweeper


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Fulfillment] Starting up...')

    tracing = TracingConfig(service_name='fulfillment-service')
    tracing.setup()
    Logger.base.info('📊 [Fulfillment] OpenTelemetry tracing configured')

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Fulfillment] Dependency injection wired')

    tracing.instrument_redis()
    tracing.instrument_asyncpg()
    Logger.base.info('📊 [Fulfillment] Redis + asyncpg instrumentation configured')

    # Initialize Kvrocks connection pool (fail-fast)
    await kvrocks_client.initialize()
    Logger.base.info('📡 [Fulfillment] Kvrocks initialized')

    # Initialize asyncpg connection pool (eager initialization)
    await get_asyncpg_pool()
    await warmup_asyncpg_pool()
    Logger.base.info('🏊 [Fulfillment] Asyncpg pool initialized and warmed up')

    async with anyio.create_task_group() as tg:
        if settings.ENABLE_RESERVATION_SWEEPER:
            sweeper = ReservationSweeper(
                sweep_use_case=container.sweep_expired_reservations_use_case()
            )
            tg.start_soon(sweeper.run)
        else:
            Logger.base.info('⏭️  [Fulfillment] Reservation sweeper disabled')

        Logger.base.info('✅ [Fulfillment] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Fulfillment] Shutting down...')
        tg.cancel_scope.cancel()

    await close_asyncpg_pool()
    Logger.base.info('🏊 [Fulfillment] Asyncpg pool closed')

    await kvrocks_client.disconnect()
    Logger.base.info('📡 [Fulfillment] Kvrocks disconnected')

    # Shutdown tracing (flush remaining spans)
    tracing.shutdown()

    container.unwire()
    Logger.base.info('👋 [Fulfillment] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
