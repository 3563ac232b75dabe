"""
Reservation Sweeper

Background loop started by the app lifespan. Each tick one process instance
(elected with a Kvrocks lease) expires overdue reservations.
"""

from typing import Optional

import anyio

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.distributed_lock import DistributedLock
from src.platform.state.key_str_generator import make_sweep_lock_key
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.reservation.app.command.sweep_expired_reservations_use_case import (
    SweepExpiredReservationsUseCase,
)


class ReservationSweeper:
    def __init__(
        self,
        *,
        sweep_use_case: SweepExpiredReservationsUseCase,
        interval_seconds: Optional[float] = None,
    ) -> None:
        self.sweep_use_case = sweep_use_case
        self.interval_seconds = interval_seconds or settings.RESERVATION_SWEEP_INTERVAL_SECONDS

    async def tick(self) -> int:
        """Run one sweep if this instance wins the lease. Returns reservations expired."""
        lock = DistributedLock(
            client=kvrocks_client.get_client(),
            key=make_sweep_lock_key(),
            ttl=settings.RESERVATION_SWEEP_LOCK_TTL_SECONDS,
        )
        if not await lock.acquire_lock():
            return 0
        try:
            return await self.sweep_use_case.sweep()
        finally:
            await lock.release_lock()

    async def run(self) -> None:
        Logger.base.info(f'🧹 [SWEEPER] Started (every {self.interval_seconds}s)')
        while True:
            try:
                await self.tick()
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] Tick failed: {e}')
            await anyio.sleep(self.interval_seconds)
