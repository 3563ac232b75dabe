from abc import ABC, abstractmethod
from typing import List, Optional

from uuid_utils import UUID

from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class ITicketCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, ticket_id: UUID) -> Optional[Ticket]:
        pass

    @abstractmethod
    async def get_by_code(self, *, ticket_code: str) -> Optional[Ticket]:
        pass

    @abstractmethod
    async def check_in(self, *, ticket_id: UUID, operator_id: int) -> Optional[Ticket]:
        """issued -> checked_in. Returns None when the ticket was not issued."""

    @abstractmethod
    async def cancel(
        self, *, ticket_id: UUID, reason: str, from_statuses: List[TicketStatus]
    ) -> Optional[CancelledTicket]:
        """from_statuses -> cancelled. Returns None when the ticket was in another status."""

    @abstractmethod
    async def get_checkin_stats(self, *, event_id: int) -> dict:
        """{'total': issued + checked_in, 'checked_in': n, 'remaining': total - checked_in}"""
