from datetime import datetime, timezone
from typing import List, Optional

import attrs
import uuid_utils
from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InvalidOrderStatus,
    RefundExceedsBalance,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.domain.value_object.reference_code import generate_order_number


@attrs.define
class Order:
    """
    Order aggregate.

    Status transitions:
        draft -> pending_payment -> paid
        pending_payment -> failed (cancel, expiry, payment failure)
        paid | partially_refunded -> refunded | partially_refunded (refund completion)

    Every transition returns a new Order; repositories persist it with a conditional
    update on the previous status.
    """

    id: UUID
    order_number: str
    user_id: int
    event_id: int
    items: List[CartItem]
    total_amount_minor: int
    currency: str
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.DRAFT
    refunded_amount_minor: int = 0
    refund_pending_minor: int = 0
    idempotency_key: Optional[str] = None
    settled_by: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: int,
        event_id: int,
        items: List[CartItem],
        total_amount_minor: int,
        currency: str,
        payment_method: PaymentMethod,
    ) -> 'Order':
        if not items:
            raise DomainError('Order must contain at least one item')
        if total_amount_minor < 0:
            raise DomainError('Order total cannot be negative')

        now = datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            order_number=generate_order_number(now=now),
            user_id=user_id,
            event_id=event_id,
            items=list(items),
            total_amount_minor=total_amount_minor,
            currency=currency,
            payment_method=payment_method,
            status=OrderStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )

    @property
    def ticket_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def refundable_minor(self) -> int:
        return self.total_amount_minor - self.refunded_amount_minor - self.refund_pending_minor

    def _require(self, *, allowed: tuple[OrderStatus, ...], action: str) -> None:
        if self.status not in allowed:
            raise InvalidOrderStatus(order_id=str(self.id), status=self.status.value, action=action)

    def mark_pending_payment(self) -> 'Order':
        self._require(allowed=(OrderStatus.DRAFT,), action='hold')
        return attrs.evolve(
            self, status=OrderStatus.PENDING_PAYMENT, updated_at=datetime.now(timezone.utc)
        )

    def mark_paid(self, *, payment_ref: str, settled_by: Optional[str] = None) -> 'Order':
        self._require(allowed=(OrderStatus.PENDING_PAYMENT,), action='settle')
        now = datetime.now(timezone.utc)
        return attrs.evolve(
            self,
            status=OrderStatus.PAID,
            idempotency_key=payment_ref,
            settled_by=settled_by,
            paid_at=now,
            updated_at=now,
        )

    def mark_failed(self, *, reason: str) -> 'Order':
        self._require(allowed=(OrderStatus.PENDING_PAYMENT,), action='fail')
        return attrs.evolve(
            self,
            status=OrderStatus.FAILED,
            failure_reason=reason,
            updated_at=datetime.now(timezone.utc),
        )

    def reserve_refund(self, *, amount_minor: int) -> 'Order':
        """Book an in-flight refund against the refundable balance (never clamped)"""
        if amount_minor <= 0:
            raise DomainError('Refund amount must be positive')
        self._require(
            allowed=(OrderStatus.PAID, OrderStatus.PARTIALLY_REFUNDED), action='refund'
        )
        if amount_minor > self.refundable_minor:
            raise RefundExceedsBalance(
                order_id=str(self.id), requested=amount_minor, refundable=self.refundable_minor
            )
        return attrs.evolve(self, refund_pending_minor=self.refund_pending_minor + amount_minor)

    def complete_refund(self, *, amount_minor: int) -> 'Order':
        self._require(
            allowed=(OrderStatus.PAID, OrderStatus.PARTIALLY_REFUNDED), action='refund'
        )
        refunded = self.refunded_amount_minor + amount_minor
        status = (
            OrderStatus.REFUNDED
            if refunded == self.total_amount_minor
            else OrderStatus.PARTIALLY_REFUNDED
        )
        return attrs.evolve(
            self,
            status=status,
            refunded_amount_minor=refunded,
            refund_pending_minor=self.refund_pending_minor - amount_minor,
            updated_at=datetime.now(timezone.utc),
        )

    def fail_refund(self, *, amount_minor: int) -> 'Order':
        return attrs.evolve(
            self,
            refund_pending_minor=self.refund_pending_minor - amount_minor,
            updated_at=datetime.now(timezone.utc),
        )
