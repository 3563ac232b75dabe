"""
Payment Provider Adapter

Signatures: hex HMAC-SHA256 of '<order_id>|<external_ref>' keyed with the provider secret.
Refunds: POST {base_url}/payments/{payment_ref}/refund with basic auth (key id / secret).
"""

import hashlib
import hmac
from typing import Optional

import httpx

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.error.fulfillment_error import (
    PaymentProviderRejected,
    PaymentProviderTimeout,
)
from src.service.ticketing.app.interface.i_payment_provider import IPaymentProvider


def sign_payment(*, order_id: str, external_ref: str, secret: str) -> str:
    return hmac.new(
        secret.encode(), f'{order_id}|{external_ref}'.encode(), hashlib.sha256
    ).hexdigest()


class PaymentProviderImpl(IPaymentProvider):
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.PAYMENT_PROVIDER_BASE_URL).rstrip('/')
        self.key_id = key_id or settings.PAYMENT_PROVIDER_KEY_ID
        self.key_secret = key_secret or settings.PAYMENT_PROVIDER_KEY_SECRET.get_secret_value()
        self.timeout_seconds = timeout_seconds or settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS
        self.transport = transport

    def verify_signature(self, *, order_id: str, external_ref: str, signature: str) -> bool:
        expected = sign_payment(
            order_id=order_id, external_ref=external_ref, secret=self.key_secret
        )
        return hmac.compare_digest(expected, signature or '')

    @Logger.io
    async def refund(
        self, *, payment_ref: str, amount_minor: int, currency: str, refund_id: str
    ) -> str:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout_seconds,
            transport=self.transport,
        ) as client:
            try:
                response = await client.post(
                    f'/payments/{payment_ref}/refund',
                    json={
                        'amount': amount_minor,
                        'currency': currency,
                        'receipt': refund_id,
                    },
                    headers={'Idempotency-Key': refund_id},
                )
            except httpx.ConnectError as e:
                # Never reached the provider
                raise PaymentProviderRejected(f'Payment provider unreachable: {e}') from e
            except httpx.TimeoutException as e:
                Logger.base.warning(f'⏱️ [PAYMENT] Refund {refund_id} timed out: {e}')
                raise PaymentProviderTimeout() from e
            except httpx.TransportError as e:
                # The request may have been delivered; outcome unknown
                Logger.base.warning(f'⚠️ [PAYMENT] Refund {refund_id} transport error: {e}')
                raise PaymentProviderTimeout(f'Payment provider connection lost: {e}') from e

        if response.status_code >= 500:
            # Outcome unknown on provider errors; treat like a timeout
            Logger.base.warning(
                f'⚠️ [PAYMENT] Refund {refund_id} got {response.status_code} from provider'
            )
            raise PaymentProviderTimeout(
                f'Payment provider failed with status {response.status_code}'
            )
        if response.status_code >= 400:
            raise PaymentProviderRejected(
                f'Payment provider rejected refund: {response.status_code} {response.text}'
            )

        provider_refund_id = response.json().get('id', '')
        Logger.base.info(
            f'💳 [PAYMENT] Refund {refund_id} accepted by provider as {provider_refund_id}'
        )
        return provider_refund_id
