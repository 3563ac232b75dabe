from enum import StrEnum
from typing import Optional

import attrs


class UnitKind(StrEnum):
    SEAT = 'seat'
    TABLE = 'table'


@attrs.define(frozen=True)
class InventoryUnit:
    """A seat or table of an event. Its free/held/sold state lives in the ledger."""

    id: str
    event_id: int
    ticket_type_id: int
    kind: UnitKind
    section: str
    label: str
    venue_id: Optional[int] = None
    capacity: int = 1
