"""Ticketing Domain Enums"""

from src.service.ticketing.domain.enum.user_role import UserRole

__all__ = ['UserRole']
