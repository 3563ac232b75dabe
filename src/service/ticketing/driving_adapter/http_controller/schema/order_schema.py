from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.platform.types import UtilsUUID7
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.ticketing.app.dto.order_details import OrderDetails
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class CartItemRequest(BaseModel):
    ticket_type_id: int
    quantity: int = Field(ge=1)
    unit_ids: List[str] = []  # Seats/tables for seated inventory, empty for general admission


class OrderCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'examples': [
                {
                    'event_id': 1,
                    'items': [{'ticket_type_id': 3, 'quantity': 2}],
                    'payment_method': 'online',
                },
                {
                    'event_id': 1,
                    'items': [{'ticket_type_id': 4, 'quantity': 2, 'unit_ids': ['A-1', 'A-2']}],
                    'payment_method': 'cash',
                },
            ]
        },
    }

    event_id: int
    items: List[CartItemRequest] = Field(min_length=1)
    payment_method: PaymentMethod = PaymentMethod.ONLINE


class OrderCancelRequest(BaseModel):
    reason: str = 'cancelled_by_user'


class CartItemResponse(BaseModel):
    ticket_type_id: int
    quantity: int
    unit_ids: List[str] = []


class OrderResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'order_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'order_number': 'ORD-M5X2K9A1-7QZ3',
                'user_id': 2,
                'event_id': 1,
                'status': 'pending_payment',
                'items': [{'ticket_type_id': 3, 'quantity': 2, 'unit_ids': []}],
                'total_amount_minor': 5000,
                'refunded_amount_minor': 0,
                'refund_pending_minor': 0,
                'currency': 'INR',
                'payment_method': 'online',
                'created_at': '2025-01-10T10:30:00Z',
                'paid_at': None,
                'expires_at': '2025-01-10T10:40:00Z',
            }
        },
    }

    order_id: UtilsUUID7
    order_number: str
    user_id: int
    event_id: int
    status: str
    items: List[CartItemResponse]
    total_amount_minor: int
    refunded_amount_minor: int
    refund_pending_minor: int
    currency: str
    payment_method: str
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None  # Reservation deadline, set on creation only

    @classmethod
    def from_entity(cls, order: Order, *, expires_at: Optional[datetime] = None) -> 'OrderResponse':
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            event_id=order.event_id,
            status=order.status.value,
            items=[CartItemResponse(**item.to_dict()) for item in order.items],
            total_amount_minor=order.total_amount_minor,
            refunded_amount_minor=order.refunded_amount_minor,
            refund_pending_minor=order.refund_pending_minor,
            currency=order.currency,
            payment_method=order.payment_method.value,
            failure_reason=order.failure_reason,
            created_at=order.created_at,
            paid_at=order.paid_at,
            expires_at=expires_at,
        )


class TicketResponse(BaseModel):
    ticket_id: UtilsUUID7
    ticket_code: str
    order_id: UtilsUUID7
    event_id: int
    ticket_type_id: int
    unit_id: Optional[str] = None
    status: str
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        return cls(
            ticket_id=ticket.id,
            ticket_code=ticket.ticket_code,
            order_id=ticket.order_id,
            event_id=ticket.event_id,
            ticket_type_id=ticket.ticket_type_id,
            unit_id=ticket.unit_id,
            status=ticket.status.value,
            checked_in_at=ticket.checked_in_at,
            checked_in_by=ticket.checked_in_by,
            cancelled_at=ticket.cancelled_at,
            cancel_reason=ticket.cancel_reason,
        )


class RefundResponse(BaseModel):
    refund_id: UtilsUUID7
    order_id: UtilsUUID7
    amount_minor: int
    status: str
    reason: str
    requested_by: int
    approved_by: Optional[int] = None
    provider_refund_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, refund: Refund) -> 'RefundResponse':
        return cls(
            refund_id=refund.id,
            order_id=refund.order_id,
            amount_minor=refund.amount_minor,
            status=refund.status.value,
            reason=refund.reason,
            requested_by=refund.requested_by,
            approved_by=refund.approved_by,
            provider_refund_id=refund.provider_refund_id,
            failure_reason=refund.failure_reason,
            created_at=refund.created_at,
            completed_at=refund.completed_at,
        )


class OrderDetailResponse(OrderResponse):
    tickets: List[TicketResponse] = []
    refunds: List[RefundResponse] = []

    @classmethod
    def from_details(cls, details: OrderDetails) -> 'OrderDetailResponse':
        base = OrderResponse.from_entity(details.order)
        return cls(
            **base.model_dump(),
            tickets=[TicketResponse.from_entity(ticket) for ticket in details.tickets],
            refunds=[RefundResponse.from_entity(refund) for refund in details.refunds],
        )
