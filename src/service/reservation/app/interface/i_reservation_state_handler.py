"""
Reservation State Handler Interface

Stores reservation records and their expiry index. `close` is the only way a
reservation leaves `active`, and it succeeds at most once per reservation.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.reservation.domain.entity.reservation_entity import (
    CloseResult,
    Reservation,
    ReservationStatus,
)


class IReservationStateHandler(ABC):
    @abstractmethod
    async def open(self, *, reservation: Reservation) -> bool:
        """
        Persist an active reservation and index it by expiry.

        Returns:
            False if a reservation already exists for the order (left untouched)
        """

    @abstractmethod
    async def attach_tokens(self, *, order_id: str, token_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def close(
        self, *, order_id: str, outcome: ReservationStatus, now: datetime
    ) -> CloseResult:
        """
        Atomically move an active reservation to `outcome`.

        - COMMITTED needs `now < expires_at`, otherwise reports EXPIRED without writing
        - RELEASED needs only an active reservation
        - EXPIRED needs `now >= expires_at`, otherwise reports ACTIVE without writing
        """

    @abstractmethod
    async def get(self, *, order_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def list_expired(self, *, now: datetime, limit: int) -> List[str]:
        """Order ids of active reservations whose deadline has passed, oldest first"""
