from datetime import datetime, timezone
import time
from typing import List, Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError, CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.reservation.app.interface.i_reservation_state_handler import (
    IReservationStateHandler,
)
from src.service.reservation.domain.entity.reservation_entity import (
    CloseResult,
    Reservation,
    ReservationStatus,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem


class HoldInventoryUseCase:
    """
    Hold every cart item in the ledger under one reservation, all or nothing.

    Flow:
    1. Open the reservation record (active, expires_at = now + ttl)
    2. try_reserve per item quantity, try_reserve_units per seated item
    3. On the first failure: release what this call obtained, close the record
       as released and re-raise that failure
    """

    def __init__(
        self,
        *,
        reservation_state_handler: IReservationStateHandler,
        inventory_ledger: IInventoryLedger,
    ) -> None:
        self.reservation_state_handler = reservation_state_handler
        self.inventory_ledger = inventory_ledger
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def hold(
        self,
        *,
        order_id: str,
        items: List[CartItem],
        ttl_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Reservation:
        reservation = Reservation.open(
            order_id=order_id,
            items=items,
            ttl_seconds=ttl_seconds or settings.RESERVATION_TTL_SECONDS,
            now=now,
        )

        with self.tracer.start_as_current_span(
            'use_case.hold_inventory',
            attributes={'order.id': order_id, 'reservation.items': len(items)},
        ):
            if not await self.reservation_state_handler.open(reservation=reservation):
                raise ConflictError(f'Reservation for order {order_id} already exists')

            started = time.perf_counter()
            token_ids: List[str] = []
            try:
                for item in items:
                    token = await self.inventory_ledger.try_reserve(
                        owner_id=order_id,
                        ticket_type_id=item.ticket_type_id,
                        quantity=item.quantity,
                    )
                    token_ids.append(token.id)
                    if item.is_seated:
                        token = await self.inventory_ledger.try_reserve_units(
                            owner_id=order_id, unit_ids=list(item.unit_ids)
                        )
                        token_ids.append(token.id)
            except CustomBaseError:
                await self.release(order_id=order_id)
                raise
            finally:
                metrics.hold_duration.observe(time.perf_counter() - started)

            await self.reservation_state_handler.attach_tokens(
                order_id=order_id, token_ids=token_ids
            )
            reservation.token_ids = token_ids
            Logger.base.info(
                f'🎫 [HOLD] Order {order_id} holds {len(token_ids)} tokens '
                f'until {reservation.expires_at.isoformat()}'
            )
            return reservation

    @Logger.io
    async def release(self, *, order_id: str, now: Optional[datetime] = None) -> CloseResult:
        """
        Close an active reservation as released and give its stock back.

        Nothing is returned to the ledger unless this call won the close.
        """
        result = await self.reservation_state_handler.close(
            order_id=order_id,
            outcome=ReservationStatus.RELEASED,
            now=now or datetime.now(timezone.utc),
        )
        if result.applied:
            released = await self.inventory_ledger.release_owner(owner_id=order_id)
            Logger.base.info(f'🔓 [HOLD] Order {order_id} released {released} tokens')
        return result
