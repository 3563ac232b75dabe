"""Ticketing Domain Value Objects"""

from src.service.ticketing.domain.value_object.reference_code import (
    TICKET_CODE_PATTERN,
    generate_order_number,
    generate_ticket_code,
    is_valid_ticket_code,
)

__all__ = [
    'TICKET_CODE_PATTERN',
    'generate_order_number',
    'generate_ticket_code',
    'is_valid_ticket_code',
]
