from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.inventory.domain.entity.reservation_token import StockLevel
from src.service.shared_kernel.domain.error.fulfillment_error import TicketTypeNotFound


class GetInventoryUseCase:
    def __init__(self, *, inventory_ledger: IInventoryLedger) -> None:
        self.inventory_ledger = inventory_ledger

    @classmethod
    @inject
    def depends(
        cls, inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger])
    ) -> Self:
        return cls(inventory_ledger=inventory_ledger)

    @Logger.io
    async def get_stock(self, *, ticket_type_id: int) -> StockLevel:
        stock = await self.inventory_ledger.get_stock(ticket_type_id=ticket_type_id)
        if stock is None:
            raise TicketTypeNotFound(ticket_type_id=ticket_type_id)
        return stock
