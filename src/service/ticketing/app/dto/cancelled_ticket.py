import attrs

from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.entity.ticket_entity import Ticket


@attrs.define(frozen=True)
class CancelledTicket:
    """A ticket after cancellation plus the status it was cancelled from"""

    ticket: Ticket
    previous_status: TicketStatus

    @property
    def returns_inventory(self) -> bool:
        return self.previous_status.holds_inventory
