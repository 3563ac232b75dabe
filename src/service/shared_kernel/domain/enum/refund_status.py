"""Refund Status Enum"""

from enum import StrEnum


class RefundStatus(StrEnum):
    REQUESTED = 'requested'
    APPROVED = 'approved'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
