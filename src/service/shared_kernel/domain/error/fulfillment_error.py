"""
Fulfillment error kinds.

Every rejected engine operation raises one of these, never a generic error, so callers
can tell "pick other seats" (capacity) from "someone else finished this order"
(concurrency) from "this request can never succeed" (integrity) from "provider trouble"
(external). Each kind carries a stable `code` rendered by the HTTP error handler.
"""

from enum import StrEnum

from src.platform.exception.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    ExternalServiceError,
    NotFoundError,
)


class ErrorCategory(StrEnum):
    CAPACITY = 'capacity'
    CONCURRENCY = 'concurrency'
    INTEGRITY = 'integrity'
    EXTERNAL = 'external'


# ========== Capacity ==========


class InsufficientStock(ConflictError):
    code = 'INSUFFICIENT_STOCK'
    category = ErrorCategory.CAPACITY

    def __init__(self, *, ticket_type_id: int, requested: int, remaining: int) -> None:
        self.ticket_type_id = ticket_type_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f'Ticket type {ticket_type_id}: requested {requested}, {remaining} remaining'
        )


class UnitUnavailable(ConflictError):
    code = 'UNIT_UNAVAILABLE'
    category = ErrorCategory.CAPACITY

    def __init__(self, *, unit_id: str) -> None:
        self.unit_id = unit_id
        super().__init__(f'Unit {unit_id} is not available')


class LimitExceeded(DomainError):
    code = 'LIMIT_EXCEEDED'
    category = ErrorCategory.CAPACITY

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class SalesWindowClosed(DomainError):
    code = 'SALES_WINDOW_CLOSED'
    category = ErrorCategory.CAPACITY

    def __init__(self, *, ticket_type_id: int) -> None:
        super().__init__(f'Ticket type {ticket_type_id} is not on sale', 400)


# ========== Concurrency ==========


class ReservationExpired(ConflictError):
    code = 'RESERVATION_EXPIRED'
    category = ErrorCategory.CONCURRENCY

    def __init__(self, *, order_id: str) -> None:
        super().__init__(f'Reservation for order {order_id} has expired')


class AlreadyCommitted(ConflictError):
    code = 'ALREADY_COMMITTED'
    category = ErrorCategory.CONCURRENCY

    def __init__(self, *, order_id: str) -> None:
        super().__init__(f'Order {order_id} has already been settled')


class OrderStatusConflict(ConflictError):
    code = 'ORDER_STATUS_CONFLICT'
    category = ErrorCategory.CONCURRENCY

    def __init__(self, *, order_id: str, expected: str) -> None:
        super().__init__(f'Order {order_id} is no longer {expected}')


class RefundStatusConflict(ConflictError):
    code = 'REFUND_STATUS_CONFLICT'
    category = ErrorCategory.CONCURRENCY

    def __init__(self, *, refund_id: str, expected: str) -> None:
        super().__init__(f'Refund {refund_id} is no longer {expected}')


# ========== Integrity ==========


class AlreadyConfirmed(ConflictError):
    code = 'ALREADY_CONFIRMED'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, order_id: str) -> None:
        super().__init__(f'Payment for order {order_id} was already confirmed')


class SignatureInvalid(AuthenticationError):
    code = 'SIGNATURE_INVALID'
    category = ErrorCategory.INTEGRITY

    def __init__(self) -> None:
        super().__init__('Payment signature verification failed')


class RefundExceedsBalance(ConflictError):
    code = 'REFUND_EXCEEDS_BALANCE'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, order_id: str, requested: int, refundable: int) -> None:
        self.requested = requested
        self.refundable = refundable
        super().__init__(
            f'Refund of {requested} exceeds refundable balance {refundable} for order {order_id}'
        )


class InvalidTicketStatus(ConflictError):
    code = 'INVALID_TICKET_STATUS'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, ticket_id: str, status: str, action: str) -> None:
        super().__init__(f'Cannot {action} ticket {ticket_id} in status {status}')


class AlreadyCheckedIn(ConflictError):
    code = 'ALREADY_CHECKED_IN'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, ticket_id: str) -> None:
        super().__init__(f'Ticket {ticket_id} is already checked in')


class InvalidOrderStatus(ConflictError):
    code = 'INVALID_ORDER_STATUS'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, order_id: str, status: str, action: str) -> None:
        super().__init__(f'Cannot {action} order {order_id} in status {status}')


class InvalidRefundStatus(ConflictError):
    code = 'INVALID_REFUND_STATUS'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, refund_id: str, status: str, action: str) -> None:
        super().__init__(f'Cannot {action} refund {refund_id} in status {status}')


class OrderNotFound(NotFoundError):
    code = 'ORDER_NOT_FOUND'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, order_id: str) -> None:
        super().__init__(f'Order {order_id} not found')


class TicketNotFound(NotFoundError):
    code = 'TICKET_NOT_FOUND'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, ticket_ref: str) -> None:
        super().__init__(f'Ticket {ticket_ref} not found')


class RefundNotFound(NotFoundError):
    code = 'REFUND_NOT_FOUND'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, refund_id: str) -> None:
        super().__init__(f'Refund {refund_id} not found')


class TicketTypeNotFound(NotFoundError):
    code = 'TICKET_TYPE_NOT_FOUND'
    category = ErrorCategory.INTEGRITY

    def __init__(self, *, ticket_type_id: int, event_id: int | None = None) -> None:
        scope = f' for event {event_id}' if event_id is not None else ''
        super().__init__(f'Ticket type {ticket_type_id} not found{scope}')


# ========== External ==========


class PaymentProviderTimeout(ExternalServiceError):
    code = 'PAYMENT_PROVIDER_TIMEOUT'
    category = ErrorCategory.EXTERNAL

    def __init__(self, message: str = 'Payment provider did not answer in time') -> None:
        super().__init__(message, 504)


class PaymentProviderRejected(ExternalServiceError):
    code = 'PAYMENT_PROVIDER_REJECTED'
    category = ErrorCategory.EXTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)

