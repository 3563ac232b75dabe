from typing import List

from pydantic import BaseModel, Field

from src.platform.types import UtilsUUID7


class RefundCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'order_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'amount_minor': 2500,
                'reason': 'Cannot attend',
            }
        },
    }

    order_id: UtilsUUID7
    amount_minor: int
    reason: str = Field(min_length=1, max_length=255)


class RefundProcessRequest(BaseModel):
    cancel_ticket_ids: List[UtilsUUID7] = []  # Tickets to void; never chosen automatically


class ForceRefundRequest(RefundCreateRequest):
    cancel_ticket_ids: List[UtilsUUID7] = []
