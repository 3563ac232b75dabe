from collections import defaultdict
from typing import Dict, List

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InvalidTicketStatus,
    TicketNotFound,
)
from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket
from src.service.ticketing.app.interface.i_ticket_command_repo import ITicketCommandRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket


CANCELLABLE_STATUSES = [TicketStatus.PENDING, TicketStatus.ISSUED]


class CancelTicketUseCase:
    """
    Void a pending or issued ticket. An issued ticket's stock goes back to the
    ledger (counter +1, its unit sold -> free) so it can be sold again.
    """

    def __init__(
        self, *, ticket_command_repo: ITicketCommandRepo, inventory_ledger: IInventoryLedger
    ) -> None:
        self.ticket_command_repo = ticket_command_repo
        self.inventory_ledger = inventory_ledger
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def cancel(self, *, ticket_id: UUID, reason: str) -> Ticket:
        with self.tracer.start_as_current_span(
            'use_case.cancel_ticket', attributes={'ticket.id': str(ticket_id)}
        ):
            ticket = await self.ticket_command_repo.get_by_id(ticket_id=ticket_id)
            if ticket is None:
                raise TicketNotFound(ticket_ref=str(ticket_id))
            ticket.cancel(reason=reason)  # status check only

            cancelled = await self.ticket_command_repo.cancel(
                ticket_id=ticket_id, reason=reason, from_statuses=CANCELLABLE_STATUSES
            )
            if cancelled is None:
                current = await self.ticket_command_repo.get_by_id(ticket_id=ticket_id)
                raise InvalidTicketStatus(
                    ticket_id=str(ticket_id),
                    status=current.status.value if current else 'unknown',
                    action='cancel',
                )

            await self.restock(cancelled=[cancelled])
            return cancelled.ticket

    @Logger.io
    async def restock(self, *, cancelled: List[CancelledTicket]) -> int:
        """Return the stock of cancelled tickets that were sold. Returns tickets restocked."""
        quantities: Dict[int, int] = defaultdict(int)
        units: Dict[int, List[str]] = defaultdict(list)
        for entry in cancelled:
            if not entry.returns_inventory:
                continue
            quantities[entry.ticket.ticket_type_id] += 1
            if entry.ticket.unit_id:
                units[entry.ticket.ticket_type_id].append(entry.ticket.unit_id)

        for ticket_type_id, quantity in quantities.items():
            await self.inventory_ledger.restock(
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                unit_ids=units.get(ticket_type_id),
            )
        return sum(quantities.values())
