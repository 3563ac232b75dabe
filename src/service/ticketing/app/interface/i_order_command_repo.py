"""
Order Command Repository Interface

Every status change is a single conditional statement on the previous status;
None (or OrderStatusConflict) means someone else moved the order first.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from uuid_utils import UUID

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class IOrderCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, order: Order) -> Order:
        pass

    @abstractmethod
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def settle(self, *, order: Order, tickets: List[Ticket]) -> Order:
        """
        In one transaction: pending_payment -> paid (with payment ref and operator)
        and insert the issued tickets.

        Raises:
            OrderStatusConflict: the order was no longer pending_payment
        """

    @abstractmethod
    async def mark_failed(self, *, order_id: UUID, reason: str) -> Optional[Order]:
        """pending_payment -> failed. Returns None when the order was not pending_payment."""
