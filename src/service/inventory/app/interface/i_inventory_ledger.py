"""
Inventory Ledger Interface

Authoritative counters for ticket-type stock and seat/table unit states.
Every mutation is atomic on the store; callers never read-then-write.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from src.service.inventory.domain.entity.reservation_token import ReservationToken, StockLevel
from src.service.shared_kernel.domain.enum.unit_state import UnitState


class IInventoryLedger(ABC):
    @abstractmethod
    async def initialize_stock(self, *, ticket_type_id: int, initial_quantity: int) -> bool:
        """
        Create the counter for a ticket type if it does not exist yet.

        Returns:
            True if created, False if a counter already existed (never reset)
        """

    @abstractmethod
    async def register_units(self, *, unit_ids: List[str]) -> int:
        """Create `free` state for units not yet known. Returns number created."""

    @abstractmethod
    async def try_reserve(
        self, *, owner_id: str, ticket_type_id: int, quantity: int
    ) -> ReservationToken:
        """
        Hold `quantity` of a ticket type for `owner_id`.

        Raises:
            InsufficientStock: remaining < quantity, or the owner was already closed
        """

    @abstractmethod
    async def try_reserve_units(self, *, owner_id: str, unit_ids: List[str]) -> ReservationToken:
        """
        Hold every unit or none of them.

        Raises:
            UnitUnavailable: first unit that is not free
        """

    @abstractmethod
    async def commit(self, *, token_id: str) -> bool:
        """held -> committed. Returns False (no-op) when the token is not held."""

    @abstractmethod
    async def release(self, *, token_id: str) -> bool:
        """held -> released, giving the stock back. Returns False (no-op) when not held."""

    @abstractmethod
    async def commit_owner(self, *, owner_id: str) -> int:
        """Commit every held token of the owner and close it. Returns tokens committed."""

    @abstractmethod
    async def release_owner(self, *, owner_id: str) -> int:
        """Release every held token of the owner and close it. Returns tokens released."""

    @abstractmethod
    async def restock(
        self, *, ticket_type_id: int, quantity: int, unit_ids: Optional[List[str]] = None
    ) -> StockLevel:
        """
        Return sold inventory after a ticket is voided.

        Raises:
            DomainError: the counter would exceed its initial quantity, or a unit is not sold
        """

    @abstractmethod
    async def get_stock(self, *, ticket_type_id: int) -> Optional[StockLevel]:
        pass

    @abstractmethod
    async def get_unit_states(self, *, unit_ids: List[str]) -> Dict[str, Optional[UnitState]]:
        pass
