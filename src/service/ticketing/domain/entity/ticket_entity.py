from datetime import datetime, timezone
from typing import Optional

import attrs
import uuid_utils
from uuid_utils import UUID

from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCheckedIn,
    InvalidTicketStatus,
)
from src.service.ticketing.domain.value_object.reference_code import generate_ticket_code


@attrs.define
class Ticket:
    id: UUID
    ticket_code: str
    order_id: UUID
    event_id: int
    ticket_type_id: int
    status: TicketStatus = TicketStatus.ISSUED
    unit_id: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def issue(
        cls,
        *,
        order_id: UUID,
        event_id: int,
        ticket_type_id: int,
        unit_id: Optional[str] = None,
    ) -> 'Ticket':
        now = datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            ticket_code=generate_ticket_code(now=now),
            order_id=order_id,
            event_id=event_id,
            ticket_type_id=ticket_type_id,
            status=TicketStatus.ISSUED,
            unit_id=unit_id,
            created_at=now,
        )

    def check_in(self, *, operator_id: int) -> 'Ticket':
        if self.status == TicketStatus.CHECKED_IN:
            raise AlreadyCheckedIn(ticket_id=str(self.id))
        if self.status != TicketStatus.ISSUED:
            raise InvalidTicketStatus(
                ticket_id=str(self.id), status=self.status.value, action='check in'
            )
        return attrs.evolve(
            self,
            status=TicketStatus.CHECKED_IN,
            checked_in_at=datetime.now(timezone.utc),
            checked_in_by=operator_id,
        )

    def cancel(self, *, reason: str) -> 'Ticket':
        if self.status not in (TicketStatus.PENDING, TicketStatus.ISSUED):
            raise InvalidTicketStatus(
                ticket_id=str(self.id), status=self.status.value, action='cancel'
            )
        return attrs.evolve(
            self,
            status=TicketStatus.CANCELLED,
            cancelled_at=datetime.now(timezone.utc),
            cancel_reason=reason,
        )
