from datetime import datetime
from typing import Optional

import attrs
from uuid_utils import UUID


@attrs.define
class PaymentConfirmation:
    """
    One provider payment reference, claimed once.

    `result_status` stays None while the claiming request is still settling; afterwards
    it holds the order status reached, or `error_code` holds why settlement failed.
    """

    external_ref: str
    order_id: UUID
    result_status: Optional[str] = None
    error_code: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_finished(self) -> bool:
        return self.result_status is not None or self.error_code is not None
