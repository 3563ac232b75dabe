from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.app.command.cancel_order_use_case import CancelOrderUseCase
from src.service.ticketing.app.command.create_order_use_case import CreateOrderUseCase
from src.service.ticketing.app.query.get_order_use_case import GetOrderUseCase
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.ticketing.driving_adapter.http_controller.schema.order_schema import (
    OrderCancelRequest,
    OrderCreateRequest,
    OrderDetailResponse,
    OrderResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_order(
    request: OrderCreateRequest,
    current_user: UserEntity = Depends(get_current_user),
    use_case: CreateOrderUseCase = Depends(CreateOrderUseCase.depends),
) -> OrderResponse:
    with tracer.start_as_current_span('controller.create_order') as span:
        span.set_attribute('event_id', request.event_id)
        span.set_attribute('user_id', current_user.id)

        order, reservation = await use_case.create_order(
            user_id=current_user.id,
            event_id=request.event_id,
            items=[
                CartItem(
                    ticket_type_id=item.ticket_type_id,
                    quantity=item.quantity,
                    unit_ids=item.unit_ids,
                )
                for item in request.items
            ],
            payment_method=request.payment_method,
        )
        span.set_attribute('order.id', str(order.id))
        return OrderResponse.from_entity(order, expires_at=reservation.expires_at)


@router.get('/{order_id}')
@Logger.io
async def get_order(
    order_id: UtilsUUID7,
    current_user: UserEntity = Depends(get_current_user),
    use_case: GetOrderUseCase = Depends(GetOrderUseCase.depends),
) -> OrderDetailResponse:
    details = await use_case.get_order(order_id=order_id, viewer=current_user)
    return OrderDetailResponse.from_details(details)


@router.post('/{order_id}/cancel')
@Logger.io
async def cancel_order(
    order_id: UtilsUUID7,
    request: OrderCancelRequest = OrderCancelRequest(),
    current_user: UserEntity = Depends(get_current_user),
    use_case: CancelOrderUseCase = Depends(CancelOrderUseCase.depends),
) -> OrderResponse:
    order = await use_case.cancel(order_id=order_id, reason=request.reason, actor=current_user)
    return OrderResponse.from_entity(order)
