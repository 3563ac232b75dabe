from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import List, Optional

import attrs

from src.service.shared_kernel.domain.value_object.cart_item import CartItem


class ReservationStatus(StrEnum):
    ACTIVE = 'active'
    COMMITTED = 'committed'
    RELEASED = 'released'
    EXPIRED = 'expired'


@attrs.define
class Reservation:
    """
    Time-boxed hold on inventory for one order (keyed by the order id).

    Closed exactly once: committed, released or expired. The TTL is fixed at
    creation and never extended.
    """

    order_id: str
    items: List[CartItem]
    created_at: datetime
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.ACTIVE
    token_ids: List[str] = attrs.field(factory=list)
    closed_at: Optional[datetime] = None

    @classmethod
    def open(
        cls, *, order_id: str, items: List[CartItem], ttl_seconds: int, now: Optional[datetime] = None
    ) -> 'Reservation':
        created_at = now or datetime.now(timezone.utc)
        return cls(
            order_id=order_id,
            items=list(items),
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, *, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


@attrs.define(frozen=True)
class CloseResult:
    """
    Outcome of one close attempt.

    `status` is the outcome applied when `applied` is True, otherwise the status that
    prevented it (EXPIRED for a commit past the deadline). None means no such reservation.
    """

    applied: bool
    status: Optional[ReservationStatus]
