from pydantic import BaseModel, Field

from src.platform.types import UtilsUUID7


class PaymentWebhookRequest(BaseModel):
    """Body of the provider's payment.captured / payment.failed webhooks"""

    model_config = {
        'json_schema_extra': {
            'example': {
                'order_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'external_ref': 'pay_NhT0cQ2m9x1',
                'signature': '5f0c...e1',  # hex HMAC-SHA256 of "<order_id>|<external_ref>"
            }
        },
    }

    order_id: UtilsUUID7
    external_ref: str = Field(min_length=1, max_length=128)
    signature: str


class PaymentConfirmationResponse(BaseModel):
    order_id: UtilsUUID7
    external_ref: str
    status: str
    already_confirmed: bool = False


class PaymentFailedResponse(BaseModel):
    order_id: UtilsUUID7
    status: str
    failure_reason: str | None = None
