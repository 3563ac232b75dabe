"""asyncpg Record -> entity conversion shared by the ticketing repositories"""

import asyncpg

from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.payment_confirmation_entity import (
    PaymentConfirmation,
)
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.ticket_entity import Ticket


ORDER_COLUMNS = """
    id, order_number, user_id, event_id, status, items, total_amount_minor,
    refunded_amount_minor, refund_pending_minor, currency, payment_method,
    idempotency_key, settled_by, failure_reason, created_at, updated_at, paid_at
"""

TICKET_COLUMN_NAMES = (
    'id',
    'ticket_code',
    'order_id',
    'event_id',
    'ticket_type_id',
    'unit_id',
    'status',
    'checked_in_at',
    'checked_in_by',
    'cancelled_at',
    'cancel_reason',
    'created_at',
)
TICKET_COLUMNS = ', '.join(TICKET_COLUMN_NAMES)

REFUND_COLUMNS = """
    id, order_id, amount_minor, status, reason, requested_by, approved_by,
    provider_refund_id, failure_reason, created_at, updated_at, completed_at
"""

PAYMENT_CONFIRMATION_COLUMNS = """
    external_ref, order_id, result_status, error_code, created_at, completed_at
"""


def row_to_order(row: asyncpg.Record) -> Order:
    return Order(
        id=row['id'],
        order_number=row['order_number'],
        user_id=row['user_id'],
        event_id=row['event_id'],
        items=[CartItem.from_dict(item) for item in row['items'] or []],
        total_amount_minor=row['total_amount_minor'],
        currency=row['currency'],
        payment_method=PaymentMethod(row['payment_method']),
        status=OrderStatus(row['status']),
        refunded_amount_minor=row['refunded_amount_minor'],
        refund_pending_minor=row['refund_pending_minor'],
        idempotency_key=row['idempotency_key'],
        settled_by=row['settled_by'],
        failure_reason=row['failure_reason'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        paid_at=row['paid_at'],
    )


def row_to_ticket(row: asyncpg.Record) -> Ticket:
    return Ticket(
        id=row['id'],
        ticket_code=row['ticket_code'],
        order_id=row['order_id'],
        event_id=row['event_id'],
        ticket_type_id=row['ticket_type_id'],
        status=TicketStatus(row['status']),
        unit_id=row['unit_id'],
        checked_in_at=row['checked_in_at'],
        checked_in_by=row['checked_in_by'],
        cancelled_at=row['cancelled_at'],
        cancel_reason=row['cancel_reason'],
        created_at=row['created_at'],
    )


def row_to_refund(row: asyncpg.Record) -> Refund:
    return Refund(
        id=row['id'],
        order_id=row['order_id'],
        amount_minor=row['amount_minor'],
        status=RefundStatus(row['status']),
        reason=row['reason'],
        requested_by=row['requested_by'],
        approved_by=row['approved_by'],
        provider_refund_id=row['provider_refund_id'],
        failure_reason=row['failure_reason'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
        completed_at=row['completed_at'],
    )


def row_to_payment_confirmation(row: asyncpg.Record) -> PaymentConfirmation:
    return PaymentConfirmation(
        external_ref=row['external_ref'],
        order_id=row['order_id'],
        result_status=row['result_status'],
        error_code=row['error_code'],
        created_at=row['created_at'],
        completed_at=row['completed_at'],
    )
