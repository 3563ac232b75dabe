"""Payment provider port (signature checks and refunds; charges happen on the provider side)"""

from abc import ABC, abstractmethod


class IPaymentProvider(ABC):
    @abstractmethod
    def verify_signature(self, *, order_id: str, external_ref: str, signature: str) -> bool:
        """HMAC-SHA256 over '<order_id>|<external_ref>', compared in constant time"""

    @abstractmethod
    async def refund(
        self, *, payment_ref: str, amount_minor: int, currency: str, refund_id: str
    ) -> str:
        """
        Refund part or all of a captured payment.

        Returns:
            Provider refund id

        Raises:
            PaymentProviderTimeout: no answer within the configured timeout (outcome unknown)
            PaymentProviderRejected: the provider declined the refund
        """
