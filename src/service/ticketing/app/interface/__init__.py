"""Application layer interfaces (Ports)"""

from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_order_query_repo import IOrderQueryRepo
from src.service.ticketing.app.interface.i_payment_confirmation_repo import (
    IPaymentConfirmationRepo,
)
from src.service.ticketing.app.interface.i_payment_provider import IPaymentProvider
from src.service.ticketing.app.interface.i_refund_command_repo import IRefundCommandRepo
from src.service.ticketing.app.interface.i_ticket_command_repo import ITicketCommandRepo

__all__ = [
    'INotificationPublisher',
    'IOrderCommandRepo',
    'IOrderQueryRepo',
    'IPaymentConfirmationRepo',
    'IPaymentProvider',
    'IRefundCommandRepo',
    'ITicketCommandRepo',
]
