"""
Human-facing reference codes.

ORD-<base36 epoch ms>-<4 random>   order numbers
TKT-<base36 epoch ms>-<8 random>   ticket codes printed on QR tickets
"""

from datetime import datetime, timezone
import re
import secrets
import string
from typing import Optional


_ALPHABET = string.digits + string.ascii_uppercase
TICKET_CODE_PATTERN = re.compile(r'^TKT-[A-Z0-9]+-[A-Z0-9]+$')


def _base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ALPHABET[remainder])
    return ''.join(reversed(digits))


def _random_suffix(length: int) -> str:
    return ''.join(secrets.choice(_ALPHABET) for _ in range(length))


def _timestamp_part(now: Optional[datetime]) -> str:
    now = now or datetime.now(timezone.utc)
    return _base36(int(now.timestamp() * 1000))


def generate_order_number(*, now: Optional[datetime] = None) -> str:
    return f'ORD-{_timestamp_part(now)}-{_random_suffix(4)}'


def generate_ticket_code(*, now: Optional[datetime] = None) -> str:
    return f'TKT-{_timestamp_part(now)}-{_random_suffix(8)}'


def is_valid_ticket_code(code: str) -> bool:
    return bool(TICKET_CODE_PATTERN.match(code))
