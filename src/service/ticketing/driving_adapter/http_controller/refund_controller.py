from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.approve_refund_use_case import ApproveRefundUseCase
from src.service.ticketing.app.command.force_refund_use_case import ForceRefundUseCase
from src.service.ticketing.app.command.process_refund_use_case import ProcessRefundUseCase
from src.service.ticketing.app.command.request_refund_use_case import RequestRefundUseCase
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_staff,
    require_super_admin,
)
from src.service.ticketing.driving_adapter.http_controller.schema.order_schema import (
    RefundResponse,
)
from src.service.ticketing.driving_adapter.http_controller.schema.refund_schema import (
    ForceRefundRequest,
    RefundCreateRequest,
    RefundProcessRequest,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def request_refund(
    request: RefundCreateRequest,
    current_user: UserEntity = Depends(get_current_user),
    use_case: RequestRefundUseCase = Depends(Provide[Container.request_refund_use_case]),
) -> RefundResponse:
    refund = await use_case.request_refund(
        order_id=request.order_id,
        amount_minor=request.amount_minor,
        reason=request.reason,
        requested_by=current_user,
    )
    return RefundResponse.from_entity(refund)


@router.post('/force', status_code=status.HTTP_201_CREATED)
@Logger.io
async def force_refund(
    request: ForceRefundRequest,
    current_user: UserEntity = Depends(require_super_admin),
    use_case: ForceRefundUseCase = Depends(ForceRefundUseCase.depends),
) -> RefundResponse:
    refund = await use_case.force_refund(
        order_id=request.order_id,
        amount_minor=request.amount_minor,
        reason=request.reason,
        admin=current_user,
        cancel_ticket_ids=request.cancel_ticket_ids,
    )
    return RefundResponse.from_entity(refund)


@router.post('/{refund_id}/approve')
@Logger.io
async def approve_refund(
    refund_id: UtilsUUID7,
    current_user: UserEntity = Depends(require_staff),
    use_case: ApproveRefundUseCase = Depends(ApproveRefundUseCase.depends),
) -> RefundResponse:
    refund = await use_case.approve(refund_id=refund_id, approved_by=current_user.id)
    return RefundResponse.from_entity(refund)


@router.post('/{refund_id}/process')
@Logger.io
@inject
async def process_refund(
    refund_id: UtilsUUID7,
    request: RefundProcessRequest = RefundProcessRequest(),
    current_user: UserEntity = Depends(require_staff),
    use_case: ProcessRefundUseCase = Depends(Provide[Container.process_refund_use_case]),
) -> RefundResponse:
    refund = await use_case.process(
        refund_id=refund_id,
        cancel_ticket_ids=request.cancel_ticket_ids,
        approved_by=current_user.id,
    )
    return RefundResponse.from_entity(refund)
