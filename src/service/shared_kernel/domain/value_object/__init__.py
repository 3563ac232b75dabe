"""Shared Kernel Value Objects"""

from src.service.shared_kernel.domain.value_object.cart_item import CartItem

__all__ = ['CartItem']
