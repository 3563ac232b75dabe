from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.error.fulfillment_error import OrderNotFound
from src.service.ticketing.app.dto.order_details import OrderDetails
from src.service.ticketing.app.interface.i_order_query_repo import IOrderQueryRepo
from src.service.ticketing.domain.entity.user_entity import UserEntity


class GetOrderUseCase:
    def __init__(self, *, order_query_repo: IOrderQueryRepo) -> None:
        self.order_query_repo = order_query_repo

    @classmethod
    @inject
    def depends(
        cls, order_query_repo: IOrderQueryRepo = Depends(Provide[Container.order_query_repo])
    ) -> Self:
        return cls(order_query_repo=order_query_repo)

    @Logger.io
    async def get_order(self, *, order_id: UUID, viewer: UserEntity) -> OrderDetails:
        order = await self.order_query_repo.get_by_id(order_id=order_id)
        if order is None:
            raise OrderNotFound(order_id=str(order_id))
        viewer.validate_order_access(owner_id=order.user_id)

        return OrderDetails(
            order=order,
            tickets=await self.order_query_repo.list_tickets(order_id=order_id),
            refunds=await self.order_query_repo.list_refunds(order_id=order_id),
        )
