"""Application layer interfaces (Ports)"""

from src.service.reservation.app.interface.i_reservation_state_handler import (
    IReservationStateHandler,
)

__all__ = ['IReservationStateHandler']
