from datetime import datetime, timezone
from typing import List, Optional

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.reservation.app.command.sweep_expired_reservations_use_case import (
    RESERVATION_EXPIRED_REASON,
    SweepExpiredReservationsUseCase,
)
from src.service.reservation.app.interface.i_reservation_state_handler import (
    IReservationStateHandler,
)
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    InvalidOrderStatus,
    OrderNotFound,
    OrderStatusConflict,
    ReservationExpired,
)
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class SettleOrderUseCase:
    """
    Convert a held order into a paid order with issued tickets.

    Flow:
    1. Order must be pending_payment
    2. Close the reservation as committed (loses to an expiry or a cancel that got there first;
       a reservation already committed by an attempt that failed later is resumed)
    3. Commit the order's ledger tokens
    4. One transaction: pending_payment -> paid + insert tickets
    5. Order-confirmed notification (fire-and-forget)
    """

    def __init__(
        self,
        *,
        order_command_repo: IOrderCommandRepo,
        reservation_state_handler: IReservationStateHandler,
        inventory_ledger: IInventoryLedger,
        sweep_expired_reservations_use_case: SweepExpiredReservationsUseCase,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.order_command_repo = order_command_repo
        self.reservation_state_handler = reservation_state_handler
        self.inventory_ledger = inventory_ledger
        self.sweep_expired_reservations_use_case = sweep_expired_reservations_use_case
        self.notification_publisher = notification_publisher
        self.tracer = trace.get_tracer(__name__)

    @staticmethod
    def _build_tickets(*, order: Order) -> List[Ticket]:
        tickets: List[Ticket] = []
        for item in order.items:
            unit_ids: List[Optional[str]] = (
                list(item.unit_ids) if item.is_seated else [None] * item.quantity
            )
            for unit_id in unit_ids:
                tickets.append(
                    Ticket.issue(
                        order_id=order.id,
                        event_id=order.event_id,
                        ticket_type_id=item.ticket_type_id,
                        unit_id=unit_id,
                    )
                )
        return tickets

    @staticmethod
    def _validate_settleable(*, order: Order) -> None:
        order_id = str(order.id)
        if order.status == OrderStatus.PAID:
            raise AlreadyCommitted(order_id=order_id)
        if (
            order.status == OrderStatus.FAILED
            and order.failure_reason == RESERVATION_EXPIRED_REASON
        ):
            raise ReservationExpired(order_id=order_id)
        if order.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidOrderStatus(order_id=order_id, status=order.status.value, action='settle')

    async def _commit_reservation(self, *, order_id: str, now: datetime) -> None:
        result = await self.reservation_state_handler.close(
            order_id=order_id, outcome=ReservationStatus.COMMITTED, now=now
        )
        # Already committed while the order is still pending_payment: an earlier
        # attempt failed after the close, so finish it
        if result.applied or result.status == ReservationStatus.COMMITTED:
            return

        if result.status == ReservationStatus.EXPIRED:
            # Past the deadline but not swept yet: expire it here
            await self.sweep_expired_reservations_use_case.expire(order_id=order_id, now=now)
            raise ReservationExpired(order_id=order_id)
        if result.status == ReservationStatus.RELEASED:
            raise OrderStatusConflict(order_id=order_id, expected=OrderStatus.PENDING_PAYMENT.value)
        raise ReservationExpired(order_id=order_id)

    @Logger.io
    async def settle(
        self, *, order_id: UUID, payment_ref: str, settled_by: Optional[str] = None
    ) -> Order:
        order_id_str = str(order_id)
        with self.tracer.start_as_current_span(
            'use_case.settle_order',
            attributes={'order.id': order_id_str, 'payment.cash': settled_by is not None},
        ):
            try:
                order = await self.order_command_repo.get_by_id(order_id=order_id)
                if order is None:
                    raise OrderNotFound(order_id=order_id_str)
                self._validate_settleable(order=order)

                await self._commit_reservation(
                    order_id=order_id_str, now=datetime.now(timezone.utc)
                )
                committed = await self.inventory_ledger.commit_owner(owner_id=order_id_str)

                tickets = self._build_tickets(order=order)
                try:
                    paid = await self.order_command_repo.settle(
                        order=order.mark_paid(payment_ref=payment_ref, settled_by=settled_by),
                        tickets=tickets,
                    )
                except OrderStatusConflict:
                    # A concurrent settle of the same order wrote first
                    current = await self.order_command_repo.get_by_id(order_id=order_id)
                    if current is not None and current.status == OrderStatus.PAID:
                        raise AlreadyCommitted(order_id=order_id_str) from None
                    raise
            except CustomBaseError as e:
                metrics.record_settlement(result=e.code)
                raise

            metrics.record_settlement(result=paid.status.value)
            Logger.base.info(
                f'✅ [SETTLE] {paid.order_number} paid via {payment_ref}: '
                f'{len(tickets)} tickets issued, {committed} tokens committed'
            )

            self.notification_publisher.schedule(
                kind='order_confirmed',
                payload={
                    'order_id': order_id_str,
                    'order_number': paid.order_number,
                    'user_id': paid.user_id,
                    'event_id': paid.event_id,
                    'ticket_codes': [ticket.ticket_code for ticket in tickets],
                },
            )
            return paid
