from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.hold_inventory_use_case import HoldInventoryUseCase
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    OrderNotFound,
    OrderStatusConflict,
    ReservationExpired,
)
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.user_entity import UserEntity


class CancelOrderUseCase:
    def __init__(
        self,
        *,
        order_command_repo: IOrderCommandRepo,
        hold_inventory_use_case: HoldInventoryUseCase,
    ) -> None:
        self.order_command_repo = order_command_repo
        self.hold_inventory_use_case = hold_inventory_use_case
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        order_command_repo: IOrderCommandRepo = Depends(Provide[Container.order_command_repo]),
        hold_inventory_use_case: HoldInventoryUseCase = Depends(
            Provide[Container.hold_inventory_use_case]
        ),
    ) -> Self:
        return cls(
            order_command_repo=order_command_repo,
            hold_inventory_use_case=hold_inventory_use_case,
        )

    @Logger.io
    async def cancel(self, *, order_id: UUID, reason: str, actor: UserEntity) -> Order:
        """
        Abandon a pending_payment order: release its hold and mark it failed.

        Raises:
            OrderNotFound / ForbiddenError: unknown order or someone else's order
            InvalidOrderStatus: the order is not pending_payment
            AlreadyCommitted / ReservationExpired: settlement or expiry closed the hold first
        """
        order_id_str = str(order_id)
        with self.tracer.start_as_current_span(
            'use_case.cancel_order', attributes={'order.id': order_id_str}
        ):
            order = await self.order_command_repo.get_by_id(order_id=order_id)
            if order is None:
                raise OrderNotFound(order_id=order_id_str)
            actor.validate_order_access(owner_id=order.user_id)
            order.mark_failed(reason=reason)  # status check only

            result = await self.hold_inventory_use_case.release(order_id=order_id_str)
            if not result.applied:
                if result.status == ReservationStatus.COMMITTED:
                    raise AlreadyCommitted(order_id=order_id_str)
                if result.status == ReservationStatus.EXPIRED:
                    raise ReservationExpired(order_id=order_id_str)

            failed = await self.order_command_repo.mark_failed(order_id=order_id, reason=reason)
            if failed is None:
                raise OrderStatusConflict(
                    order_id=order_id_str, expected=OrderStatus.PENDING_PAYMENT.value
                )

            Logger.base.info(f'🚫 [ORDER] {failed.order_number} cancelled by {actor.id}: {reason}')
            return failed
