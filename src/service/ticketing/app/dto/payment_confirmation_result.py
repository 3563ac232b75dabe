import attrs
from uuid_utils import UUID


@attrs.define(frozen=True)
class PaymentConfirmationResult:
    """
    Outcome of a payment confirmation.

    already_confirmed is True when the result was replayed for a redelivered
    external_ref instead of settling again.
    """

    order_id: UUID
    external_ref: str
    status: str
    already_confirmed: bool = False
