"""Inventory Unit State Enum"""

from enum import StrEnum


class UnitState(StrEnum):
    FREE = 'free'
    HELD = 'held'
    SOLD = 'sold'
