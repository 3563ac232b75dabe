from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from uuid_utils import UUID

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class IOrderQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_tickets(self, *, order_id: UUID) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_refunds(self, *, order_id: UUID) -> List[Refund]:
        pass

    @abstractmethod
    async def count_committed_tickets(
        self, *, user_id: int, ticket_type_ids: List[int]
    ) -> Dict[int, int]:
        """Issued + checked-in tickets the user holds, per ticket type"""
