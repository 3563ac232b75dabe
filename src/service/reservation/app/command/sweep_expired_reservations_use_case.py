from datetime import datetime, timezone
import time
from typing import Optional

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.reservation.app.interface.i_reservation_state_handler import (
    IReservationStateHandler,
)
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo


RESERVATION_EXPIRED_REASON = 'reservation_expired'


class SweepExpiredReservationsUseCase:
    """
    Release reservations past their deadline and fail their orders.

    Only the caller that wins the close-once transition touches the ledger, so two
    sweeps (or a sweep racing a settlement) never release the same stock twice.
    """

    def __init__(
        self,
        *,
        reservation_state_handler: IReservationStateHandler,
        inventory_ledger: IInventoryLedger,
        order_command_repo: IOrderCommandRepo,
    ) -> None:
        self.reservation_state_handler = reservation_state_handler
        self.inventory_ledger = inventory_ledger
        self.order_command_repo = order_command_repo
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def expire(self, *, order_id: str, now: Optional[datetime] = None) -> bool:
        """
        Expire one reservation.

        Returns:
            True if this call closed it; False if it was not yet due or already closed
        """
        result = await self.reservation_state_handler.close(
            order_id=order_id,
            outcome=ReservationStatus.EXPIRED,
            now=now or datetime.now(timezone.utc),
        )
        if not result.applied:
            return False

        released = await self.inventory_ledger.release_owner(owner_id=order_id)
        order = await self.order_command_repo.mark_failed(
            order_id=UUID(order_id), reason=RESERVATION_EXPIRED_REASON
        )
        Logger.base.info(
            f'⌛ [SWEEP] Order {order_id} expired: {released} tokens released, '
            f'order {"failed" if order else "not pending"}'
        )
        return True

    @Logger.io
    async def sweep(self, *, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        started = time.perf_counter()

        with self.tracer.start_as_current_span('use_case.sweep_expired_reservations'):
            order_ids = await self.reservation_state_handler.list_expired(
                now=now, limit=settings.RESERVATION_SWEEP_BATCH_SIZE
            )

            expired = 0
            for order_id in order_ids:
                try:
                    if await self.expire(order_id=order_id, now=now):
                        expired += 1
                except Exception as e:
                    # Logged and skipped
                    Logger.base.error(f'❌ [SWEEP] Failed to expire order {order_id}: {e}')

        metrics.record_sweep(expired=expired, duration=time.perf_counter() - started)
        if expired:
            Logger.base.info(f'🧹 [SWEEP] Expired {expired}/{len(order_ids)} reservations')
        return expired
