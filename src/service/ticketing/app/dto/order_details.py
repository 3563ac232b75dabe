from typing import List

import attrs

from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.ticket_entity import Ticket


@attrs.define(frozen=True)
class OrderDetails:
    order: Order
    tickets: List[Ticket] = attrs.field(factory=list)
    refunds: List[Refund] = attrs.field(factory=list)
