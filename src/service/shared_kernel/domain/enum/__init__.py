"""Shared Kernel Enums"""

from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.enum.unit_state import UnitState

__all__ = ['OrderStatus', 'PaymentMethod', 'RefundStatus', 'TicketStatus', 'UnitState']
