from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCheckedIn,
    InvalidTicketStatus,
    TicketNotFound,
)
from src.service.ticketing.app.interface.i_ticket_command_repo import ITicketCommandRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.value_object.reference_code import is_valid_ticket_code


class CheckInTicketUseCase:
    def __init__(self, *, ticket_command_repo: ITicketCommandRepo) -> None:
        self.ticket_command_repo = ticket_command_repo
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        ticket_command_repo: ITicketCommandRepo = Depends(Provide[Container.ticket_command_repo]),
    ) -> Self:
        return cls(ticket_command_repo=ticket_command_repo)

    async def _find(
        self,
        *,
        ticket_id: Optional[UUID],
        ticket_code: Optional[str],
        event_id: Optional[int],
    ) -> Ticket:
        if ticket_code is not None:
            if not is_valid_ticket_code(ticket_code):
                raise DomainError(f'Invalid ticket code: {ticket_code}')
            ticket = await self.ticket_command_repo.get_by_code(ticket_code=ticket_code)
            # A code scanned at the wrong event is treated as unknown
            if ticket is None or (event_id is not None and ticket.event_id != event_id):
                raise TicketNotFound(ticket_ref=ticket_code)
            return ticket

        if ticket_id is None:
            raise DomainError('ticket_id or ticket_code is required')
        ticket = await self.ticket_command_repo.get_by_id(ticket_id=ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_ref=str(ticket_id))
        return ticket

    @Logger.io
    async def check_in(
        self,
        *,
        operator_id: int,
        ticket_id: Optional[UUID] = None,
        ticket_code: Optional[str] = None,
        event_id: Optional[int] = None,
    ) -> Ticket:
        with self.tracer.start_as_current_span(
            'use_case.check_in_ticket', attributes={'operator.id': operator_id}
        ):
            ticket = await self._find(ticket_id=ticket_id, ticket_code=ticket_code, event_id=event_id)
            ticket.check_in(operator_id=operator_id)  # status check only

            checked_in = await self.ticket_command_repo.check_in(
                ticket_id=ticket.id, operator_id=operator_id
            )
            if checked_in is not None:
                return checked_in

            # Lost a race with another scanner
            current = await self.ticket_command_repo.get_by_id(ticket_id=ticket.id)
            if current is not None and current.status == TicketStatus.CHECKED_IN:
                raise AlreadyCheckedIn(ticket_id=str(ticket.id))
            raise InvalidTicketStatus(
                ticket_id=str(ticket.id),
                status=current.status.value if current else 'unknown',
                action='check in',
            )
