"""Application layer DTOs"""

from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket
from src.service.ticketing.app.dto.order_details import OrderDetails
from src.service.ticketing.app.dto.payment_confirmation_result import PaymentConfirmationResult

__all__ = ['CancelledTicket', 'OrderDetails', 'PaymentConfirmationResult']
