"""
Refund Command Repository Interface

The order row carries the refund counters, so every method that moves money
updates the refund and the order in the same transaction.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from uuid_utils import UUID

from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket


class IRefundCommandRepo(ABC):
    @abstractmethod
    async def create_request(self, *, refund: Refund) -> Refund:
        """
        Reserve the amount on the order (refund_pending_minor) and insert the refund.

        Raises:
            OrderNotFound: unknown order
            InvalidOrderStatus: order is not paid or partially_refunded
            RefundExceedsBalance: refunded + pending + amount would exceed the total
        """

    @abstractmethod
    async def get_by_id(self, *, refund_id: UUID) -> Optional[Refund]:
        pass

    @abstractmethod
    async def transition(
        self,
        *,
        refund_id: UUID,
        from_statuses: List[RefundStatus],
        to_status: RefundStatus,
        approved_by: Optional[int] = None,
    ) -> Optional[Refund]:
        """Conditional status move. Returns None when the refund was not in from_statuses."""

    @abstractmethod
    async def complete(
        self,
        *,
        refund_id: UUID,
        provider_refund_id: Optional[str],
        cancel_ticket_ids: List[UUID],
    ) -> Tuple[Refund, Order, List[CancelledTicket]]:
        """
        processing -> completed, move the amount from pending to refunded on the order
        (status refunded or partially_refunded), and cancel the named tickets that are
        still pending or issued. Returns the tickets actually cancelled.

        Raises:
            RefundStatusConflict: the refund was no longer processing
        """

    @abstractmethod
    async def fail(self, *, refund_id: UUID, reason: str) -> Tuple[Refund, Order]:
        """
        processing -> failed and give the pending amount back to the refundable balance.

        Raises:
            RefundStatusConflict: the refund was no longer processing
        """
