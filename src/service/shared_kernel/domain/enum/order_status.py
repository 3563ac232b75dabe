"""Order Status Enum"""

from enum import StrEnum


class OrderStatus(StrEnum):
    DRAFT = 'draft'
    PENDING_PAYMENT = 'pending_payment'
    PAID = 'paid'
    FAILED = 'failed'
    CANCELLED = 'cancelled'  # Event force-cancel, set outside the engine
    REFUNDED = 'refunded'
    PARTIALLY_REFUNDED = 'partially_refunded'

    @property
    def is_refundable(self) -> bool:
        return self in (OrderStatus.PAID, OrderStatus.PARTIALLY_REFUNDED)
