from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.confirm_cash_order_use_case import (
    ConfirmCashOrderUseCase,
)
from src.service.ticketing.app.command.confirm_payment_use_case import ConfirmPaymentUseCase
from src.service.ticketing.app.command.payment_failed_use_case import PaymentFailedUseCase
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import require_admin
from src.service.ticketing.driving_adapter.http_controller.schema.order_schema import (
    OrderResponse,
)
from src.service.ticketing.driving_adapter.http_controller.schema.payment_schema import (
    PaymentConfirmationResponse,
    PaymentFailedResponse,
    PaymentWebhookRequest,
)


router = APIRouter()


@router.post('/confirm')
@Logger.io
async def confirm_payment(
    request: PaymentWebhookRequest,
    use_case: ConfirmPaymentUseCase = Depends(ConfirmPaymentUseCase.depends),
) -> PaymentConfirmationResponse:
    """Provider webhook: authenticated by the payload signature, not by a session"""
    result = await use_case.confirm(
        order_id=request.order_id,
        external_ref=request.external_ref,
        signature=request.signature,
    )
    return PaymentConfirmationResponse(
        order_id=result.order_id,
        external_ref=result.external_ref,
        status=result.status,
        already_confirmed=result.already_confirmed,
    )


@router.post('/failed')
@Logger.io
async def payment_failed(
    request: PaymentWebhookRequest,
    use_case: PaymentFailedUseCase = Depends(PaymentFailedUseCase.depends),
) -> PaymentFailedResponse:
    order = await use_case.mark_failed(
        order_id=request.order_id,
        external_ref=request.external_ref,
        signature=request.signature,
    )
    return PaymentFailedResponse(
        order_id=order.id, status=order.status.value, failure_reason=order.failure_reason
    )


@router.post('/cash/{order_id}/confirm')
@Logger.io
async def confirm_cash_order(
    order_id: UtilsUUID7,
    current_user: UserEntity = Depends(require_admin),
    use_case: ConfirmCashOrderUseCase = Depends(ConfirmCashOrderUseCase.depends),
) -> OrderResponse:
    order = await use_case.confirm_cash(order_id=order_id, operator_id=current_user.id)
    return OrderResponse.from_entity(order)
