from typing import Optional, Sequence

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InvalidTicketStatus,
    OrderNotFound,
    PaymentProviderRejected,
    PaymentProviderTimeout,
    RefundNotFound,
    RefundStatusConflict,
    TicketNotFound,
)
from src.service.ticketing.app.command.cancel_ticket_use_case import (
    CANCELLABLE_STATUSES,
    CancelTicketUseCase,
)
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_payment_provider import IPaymentProvider
from src.service.ticketing.app.interface.i_refund_command_repo import IRefundCommandRepo
from src.service.ticketing.app.interface.i_ticket_command_repo import ITicketCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund


class ProcessRefundUseCase:
    """
    Pay a refund out and settle the order's counters.

    Flow:
    1. requested|approved -> processing (conditional)
    2. Provider refund, outside any transaction (cash orders skip the provider)
    3. Success: one transaction completes the refund, moves the amount from pending to
       refunded and cancels the named tickets; their stock is returned afterwards
    4. Rejection: refund failed, pending amount released
    5. Timeout: refund stays processing for manual reconciliation
    """

    def __init__(
        self,
        *,
        refund_command_repo: IRefundCommandRepo,
        order_command_repo: IOrderCommandRepo,
        ticket_command_repo: ITicketCommandRepo,
        payment_provider: IPaymentProvider,
        cancel_ticket_use_case: CancelTicketUseCase,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.refund_command_repo = refund_command_repo
        self.order_command_repo = order_command_repo
        self.ticket_command_repo = ticket_command_repo
        self.payment_provider = payment_provider
        self.cancel_ticket_use_case = cancel_ticket_use_case
        self.notification_publisher = notification_publisher
        self.tracer = trace.get_tracer(__name__)

    async def _validate_tickets(self, *, order: Order, ticket_ids: Sequence[UUID]) -> None:
        for ticket_id in ticket_ids:
            ticket = await self.ticket_command_repo.get_by_id(ticket_id=ticket_id)
            if ticket is None:
                raise TicketNotFound(ticket_ref=str(ticket_id))
            if ticket.order_id != order.id:
                raise DomainError(f'Ticket {ticket_id} does not belong to order {order.id}')
            if ticket.status not in CANCELLABLE_STATUSES:
                raise InvalidTicketStatus(
                    ticket_id=str(ticket_id), status=ticket.status.value, action='cancel'
                )

    async def _pay_out(self, *, refund: Refund, order: Order) -> Optional[str]:
        if order.payment_method == PaymentMethod.CASH:
            return None
        return await self.payment_provider.refund(
            payment_ref=order.idempotency_key or '',
            amount_minor=refund.amount_minor,
            currency=order.currency,
            refund_id=str(refund.id),
        )

    @Logger.io
    async def process(
        self,
        *,
        refund_id: UUID,
        cancel_ticket_ids: Sequence[UUID] = (),
        approved_by: Optional[int] = None,
    ) -> Refund:
        refund_id_str = str(refund_id)
        with self.tracer.start_as_current_span(
            'use_case.process_refund', attributes={'refund.id': refund_id_str}
        ):
            refund = await self.refund_command_repo.get_by_id(refund_id=refund_id)
            if refund is None:
                raise RefundNotFound(refund_id=refund_id_str)
            refund.start_processing()  # status check only

            order = await self.order_command_repo.get_by_id(order_id=refund.order_id)
            if order is None:
                raise OrderNotFound(order_id=str(refund.order_id))
            await self._validate_tickets(order=order, ticket_ids=cancel_ticket_ids)

            processing = await self.refund_command_repo.transition(
                refund_id=refund_id,
                from_statuses=[RefundStatus.REQUESTED, RefundStatus.APPROVED],
                to_status=RefundStatus.PROCESSING,
                approved_by=approved_by,
            )
            if processing is None:
                raise RefundStatusConflict(
                    refund_id=refund_id_str, expected=RefundStatus.APPROVED.value
                )

            try:
                provider_refund_id = await self._pay_out(refund=processing, order=order)
            except PaymentProviderTimeout:
                Logger.base.warning(
                    f'⏱️ [REFUND] {refund_id_str} left processing: provider timed out'
                )
                metrics.record_refund(status='timeout')
                raise
            except PaymentProviderRejected as e:
                failed, _ = await self.refund_command_repo.fail(
                    refund_id=refund_id, reason=e.message
                )
                metrics.record_refund(status=failed.status.value)
                raise

            completed, updated_order, cancelled = await self.refund_command_repo.complete(
                refund_id=refund_id,
                provider_refund_id=provider_refund_id,
                cancel_ticket_ids=list(cancel_ticket_ids),
            )
            metrics.record_refund(
                status=completed.status.value,
                amount_minor=completed.amount_minor,
                currency=updated_order.currency,
            )

            try:
                await self.cancel_ticket_use_case.restock(cancelled=cancelled)
            except Exception as e:
                # The refund is final; stock can be reconciled from cancelled tickets
                Logger.base.error(f'❌ [REFUND] Restock after {refund_id_str} failed: {e}')

            Logger.base.info(
                f'💸 [REFUND] {refund_id_str} completed: order {updated_order.order_number} '
                f'{updated_order.status.value}, {len(cancelled)} tickets cancelled'
            )
            self.notification_publisher.schedule(
                kind='refund_completed',
                payload={
                    'refund_id': refund_id_str,
                    'order_id': str(updated_order.id),
                    'user_id': updated_order.user_id,
                    'amount_minor': completed.amount_minor,
                    'currency': updated_order.currency,
                },
            )
            return completed
