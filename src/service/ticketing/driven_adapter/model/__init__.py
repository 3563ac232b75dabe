"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.ticketing.driven_adapter.model.order_model import OrderModel
from src.service.ticketing.driven_adapter.model.payment_confirmation_model import (
    PaymentConfirmationModel,
)
from src.service.ticketing.driven_adapter.model.refund_model import RefundModel
from src.service.ticketing.driven_adapter.model.ticket_model import TicketModel

__all__ = [
    'OrderModel',
    'PaymentConfirmationModel',
    'RefundModel',
    'TicketModel',
]
