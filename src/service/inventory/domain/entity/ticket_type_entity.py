from datetime import datetime, timezone
from typing import Optional

import attrs

from src.service.shared_kernel.domain.error.fulfillment_error import (
    LimitExceeded,
    SalesWindowClosed,
)


@attrs.define
class TicketType:
    """
    Catalog entry for a purchasable ticket type.

    The live remaining counter is owned by the inventory ledger; `initial_quantity`
    here is what the ledger is initialized from and never changes.
    """

    id: int
    event_id: int
    name: str
    price_minor: int
    currency: str
    initial_quantity: int
    max_per_order: int
    sales_start: Optional[datetime] = None
    sales_end: Optional[datetime] = None
    max_per_user_per_event: Optional[int] = None

    def is_on_sale(self, *, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if self.sales_start is not None and now < self.sales_start:
            return False
        if self.sales_end is not None and now >= self.sales_end:
            return False
        return True

    def validate_purchase(self, *, quantity: int, now: Optional[datetime] = None) -> None:
        if not self.is_on_sale(now=now):
            raise SalesWindowClosed(ticket_type_id=self.id)
        if quantity < 1:
            raise LimitExceeded('Quantity must be at least 1')
        if quantity > self.max_per_order:
            raise LimitExceeded(
                f'Ticket type {self.id}: at most {self.max_per_order} per order, got {quantity}'
            )

    def validate_user_cap(self, *, already_bought: int, quantity: int) -> None:
        if self.max_per_user_per_event is None:
            return
        if already_bought + quantity > self.max_per_user_per_event:
            raise LimitExceeded(
                f'Ticket type {self.id}: at most {self.max_per_user_per_event} per user, '
                f'{already_bought} already purchased'
            )

    def subtotal_minor(self, *, quantity: int) -> int:
        return self.price_minor * quantity
