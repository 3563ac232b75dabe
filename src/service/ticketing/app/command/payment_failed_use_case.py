from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.hold_inventory_use_case import HoldInventoryUseCase
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    InvalidOrderStatus,
    OrderNotFound,
    OrderStatusConflict,
    SignatureInvalid,
)
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_payment_provider import IPaymentProvider
from src.service.ticketing.domain.entity.order_entity import Order


PAYMENT_FAILED_REASON = 'payment_failed'


class PaymentFailedUseCase:
    """Provider payment.failed webhook: give the hold back and fail the order (idempotent)."""

    def __init__(
        self,
        *,
        order_command_repo: IOrderCommandRepo,
        payment_provider: IPaymentProvider,
        hold_inventory_use_case: HoldInventoryUseCase,
    ) -> None:
        self.order_command_repo = order_command_repo
        self.payment_provider = payment_provider
        self.hold_inventory_use_case = hold_inventory_use_case

    @classmethod
    @inject
    def depends(
        cls,
        order_command_repo: IOrderCommandRepo = Depends(Provide[Container.order_command_repo]),
        payment_provider: IPaymentProvider = Depends(Provide[Container.payment_provider]),
        hold_inventory_use_case: HoldInventoryUseCase = Depends(
            Provide[Container.hold_inventory_use_case]
        ),
    ) -> Self:
        return cls(
            order_command_repo=order_command_repo,
            payment_provider=payment_provider,
            hold_inventory_use_case=hold_inventory_use_case,
        )

    @Logger.io
    async def mark_failed(self, *, order_id: UUID, external_ref: str, signature: str) -> Order:
        order_id_str = str(order_id)
        if not self.payment_provider.verify_signature(
            order_id=order_id_str, external_ref=external_ref, signature=signature
        ):
            raise SignatureInvalid()

        order = await self.order_command_repo.get_by_id(order_id=order_id)
        if order is None:
            raise OrderNotFound(order_id=order_id_str)
        if order.status == OrderStatus.FAILED:
            return order
        if order.status == OrderStatus.PAID:
            raise AlreadyCommitted(order_id=order_id_str)
        if order.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidOrderStatus(
                order_id=order_id_str, status=order.status.value, action='fail'
            )

        result = await self.hold_inventory_use_case.release(order_id=order_id_str)
        if not result.applied and result.status == ReservationStatus.COMMITTED:
            raise AlreadyCommitted(order_id=order_id_str)

        failed = await self.order_command_repo.mark_failed(
            order_id=order_id, reason=PAYMENT_FAILED_REASON
        )
        if failed is not None:
            Logger.base.info(f'💳 [PAYMENT] {failed.order_number} failed ({external_ref})')
            return failed

        current = await self.order_command_repo.get_by_id(order_id=order_id)
        if current is not None and current.status == OrderStatus.FAILED:
            return current
        raise OrderStatusConflict(order_id=order_id_str, expected=OrderStatus.PENDING_PAYMENT.value)
