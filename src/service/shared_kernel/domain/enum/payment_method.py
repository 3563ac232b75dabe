"""Payment Method Enum"""

from enum import StrEnum


class PaymentMethod(StrEnum):
    ONLINE = 'online'  # Provider checkout, confirmed by webhook
    CASH = 'cash'  # Box office, confirmed by an operator
