"""Ledger handles and stock snapshots"""

from enum import StrEnum
from typing import Tuple

import attrs


class TokenKind(StrEnum):
    STOCK = 'stock'
    UNITS = 'units'


class TokenState(StrEnum):
    HELD = 'held'
    COMMITTED = 'committed'
    RELEASED = 'released'


@attrs.define(frozen=True)
class ReservationToken:
    """
    Handle returned by one successful reserve call.

    A stock token carries `ticket_type_id` and `quantity`; a units token carries
    `unit_ids` (quantity is the number of units).
    """

    id: str
    owner_id: str
    kind: TokenKind
    ticket_type_id: int | None = None
    quantity: int = 0
    unit_ids: Tuple[str, ...] = ()
    state: TokenState = TokenState.HELD


@attrs.define(frozen=True)
class StockLevel:
    ticket_type_id: int
    initial: int
    remaining: int

    @property
    def taken(self) -> int:
        """Held plus sold"""
        return self.initial - self.remaining
