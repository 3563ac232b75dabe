"""Ticket Status Enum"""

from enum import StrEnum


class TicketStatus(StrEnum):
    PENDING = 'pending'
    ISSUED = 'issued'
    CHECKED_IN = 'checked_in'
    CANCELLED = 'cancelled'

    @property
    def holds_inventory(self) -> bool:
        """Issued and checked-in tickets count as sold stock"""
        return self in (TicketStatus.ISSUED, TicketStatus.CHECKED_IN)
