from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.shared_kernel.domain.error.fulfillment_error import OrderNotFound
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_refund_command_repo import IRefundCommandRepo
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.user_entity import UserEntity


class RequestRefundUseCase:
    """
    Open a refund against a paid order.

    The amount is booked as pending on the order row in the same transaction that
    inserts the refund, so concurrent requests can never promise more than was paid.
    """

    def __init__(
        self, *, refund_command_repo: IRefundCommandRepo, order_command_repo: IOrderCommandRepo
    ) -> None:
        self.refund_command_repo = refund_command_repo
        self.order_command_repo = order_command_repo
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def request_refund(
        self, *, order_id: UUID, amount_minor: int, reason: str, requested_by: UserEntity
    ) -> Refund:
        with self.tracer.start_as_current_span(
            'use_case.request_refund',
            attributes={'order.id': str(order_id), 'refund.amount_minor': amount_minor},
        ):
            refund = Refund.request(
                order_id=order_id,
                amount_minor=amount_minor,
                reason=reason,
                requested_by=requested_by.id,
            )

            order = await self.order_command_repo.get_by_id(order_id=order_id)
            if order is None:
                raise OrderNotFound(order_id=str(order_id))
            requested_by.validate_order_access(owner_id=order.user_id)
            # Fail fast on a stale read; the repo re-checks atomically
            order.reserve_refund(amount_minor=amount_minor)

            created = await self.refund_command_repo.create_request(refund=refund)
            metrics.record_refund(status=created.status.value)
            Logger.base.info(
                f'💸 [REFUND] {created.id} requested for order {order_id}: {amount_minor}'
            )
            return created
