from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.error.fulfillment_error import OrderNotFound
from src.service.ticketing.app.command.settle_order_use_case import SettleOrderUseCase
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order


class ConfirmCashOrderUseCase:
    """Box-office confirmation: an operator takes the cash and settles the order."""

    def __init__(
        self, *, order_command_repo: IOrderCommandRepo, settle_order_use_case: SettleOrderUseCase
    ) -> None:
        self.order_command_repo = order_command_repo
        self.settle_order_use_case = settle_order_use_case

    @classmethod
    @inject
    def depends(
        cls,
        order_command_repo: IOrderCommandRepo = Depends(Provide[Container.order_command_repo]),
        settle_order_use_case: SettleOrderUseCase = Depends(
            Provide[Container.settle_order_use_case]
        ),
    ) -> Self:
        return cls(
            order_command_repo=order_command_repo, settle_order_use_case=settle_order_use_case
        )

    @Logger.io
    async def confirm_cash(self, *, order_id: UUID, operator_id: int) -> Order:
        order = await self.order_command_repo.get_by_id(order_id=order_id)
        if order is None:
            raise OrderNotFound(order_id=str(order_id))
        if order.payment_method != PaymentMethod.CASH:
            raise DomainError(f'Order {order_id} is not a cash order')

        return await self.settle_order_use_case.settle(
            order_id=order_id,
            payment_ref=f'cash:{operator_id}',
            settled_by=str(operator_id),
        )
