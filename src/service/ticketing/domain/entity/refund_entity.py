from datetime import datetime, timezone
from typing import Optional

import attrs
import uuid_utils
from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.error.fulfillment_error import InvalidRefundStatus


@attrs.define
class Refund:
    """
    requested -> approved -> processing -> completed | failed

    `processing` may also be entered straight from `requested` (force refund).
    A completed refund is immutable.
    """

    id: UUID
    order_id: UUID
    amount_minor: int
    reason: str
    requested_by: int
    status: RefundStatus = RefundStatus.REQUESTED
    approved_by: Optional[int] = None
    provider_refund_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def request(
        cls, *, order_id: UUID, amount_minor: int, reason: str, requested_by: int
    ) -> 'Refund':
        if amount_minor <= 0:
            raise DomainError('Refund amount must be positive')
        now = datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            order_id=order_id,
            amount_minor=amount_minor,
            reason=reason,
            requested_by=requested_by,
            created_at=now,
            updated_at=now,
        )

    def _require(self, *, allowed: tuple[RefundStatus, ...], action: str) -> None:
        if self.status not in allowed:
            raise InvalidRefundStatus(
                refund_id=str(self.id), status=self.status.value, action=action
            )

    def approve(self, *, approved_by: int) -> 'Refund':
        self._require(allowed=(RefundStatus.REQUESTED,), action='approve')
        return attrs.evolve(
            self,
            status=RefundStatus.APPROVED,
            approved_by=approved_by,
            updated_at=datetime.now(timezone.utc),
        )

    def start_processing(self) -> 'Refund':
        self._require(allowed=(RefundStatus.REQUESTED, RefundStatus.APPROVED), action='process')
        return attrs.evolve(
            self, status=RefundStatus.PROCESSING, updated_at=datetime.now(timezone.utc)
        )
