from abc import ABC, abstractmethod
from typing import Optional

from uuid_utils import UUID

from src.service.ticketing.domain.entity.payment_confirmation_entity import (
    PaymentConfirmation,
)


class IPaymentConfirmationRepo(ABC):
    @abstractmethod
    async def get(self, *, external_ref: str) -> Optional[PaymentConfirmation]:
        pass

    @abstractmethod
    async def claim(self, *, external_ref: str, order_id: UUID) -> bool:
        """
        Insert the reference if unseen.

        Returns:
            True if this call claimed it, False if it was already claimed
        """

    @abstractmethod
    async def record_result(
        self,
        *,
        external_ref: str,
        result_status: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    async def release_claim(self, *, external_ref: str) -> None:
        """Forget an unfinished claim so a redelivery can retry after an infrastructure error"""
