from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.cancel_ticket_use_case import CancelTicketUseCase
from src.service.ticketing.app.command.check_in_ticket_use_case import CheckInTicketUseCase
from src.service.ticketing.app.query.get_checkin_stats_use_case import GetCheckInStatsUseCase
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    require_admin,
    require_staff,
)
from src.service.ticketing.driving_adapter.http_controller.schema.order_schema import (
    TicketResponse,
)
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    CheckInStatsResponse,
    TicketCancelRequest,
    TicketScanRequest,
)


router = APIRouter()


# Static paths first so 'checkin' is never parsed as a ticket id
@router.post('/checkin/scan')
@Logger.io
async def check_in_by_code(
    request: TicketScanRequest,
    current_user: UserEntity = Depends(require_staff),
    use_case: CheckInTicketUseCase = Depends(CheckInTicketUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.check_in(
        operator_id=current_user.id, ticket_code=request.ticket_code, event_id=request.event_id
    )
    return TicketResponse.from_entity(ticket)


@router.get('/checkin/stats/{event_id}')
@Logger.io
async def get_checkin_stats(
    event_id: int,
    current_user: UserEntity = Depends(require_staff),
    use_case: GetCheckInStatsUseCase = Depends(GetCheckInStatsUseCase.depends),
) -> CheckInStatsResponse:
    stats = await use_case.stats(event_id=event_id)
    return CheckInStatsResponse(event_id=event_id, **stats)


@router.post('/{ticket_id}/checkin')
@Logger.io
async def check_in_ticket(
    ticket_id: UtilsUUID7,
    current_user: UserEntity = Depends(require_staff),
    use_case: CheckInTicketUseCase = Depends(CheckInTicketUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.check_in(operator_id=current_user.id, ticket_id=ticket_id)
    return TicketResponse.from_entity(ticket)


@router.post('/{ticket_id}/cancel')
@Logger.io
@inject
async def cancel_ticket(
    ticket_id: UtilsUUID7,
    request: TicketCancelRequest,
    current_user: UserEntity = Depends(require_admin),
    use_case: CancelTicketUseCase = Depends(Provide[Container.cancel_ticket_use_case]),
) -> TicketResponse:
    ticket = await use_case.cancel(ticket_id=ticket_id, reason=request.reason)
    return TicketResponse.from_entity(ticket)
