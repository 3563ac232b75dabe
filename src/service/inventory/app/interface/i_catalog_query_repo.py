from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from src.service.inventory.domain.entity.inventory_unit_entity import InventoryUnit
from src.service.inventory.domain.entity.ticket_type_entity import TicketType


class ICatalogQueryRepo(ABC):
    """Read-only access to the ticket-type and unit catalog (PostgreSQL)"""

    @abstractmethod
    async def get_ticket_type(self, *, ticket_type_id: int) -> Optional[TicketType]:
        pass

    @abstractmethod
    async def get_ticket_types(self, *, ticket_type_ids: List[int]) -> Dict[int, TicketType]:
        pass

    @abstractmethod
    async def list_ticket_types_by_event(self, *, event_id: int) -> List[TicketType]:
        pass

    @abstractmethod
    async def list_units_by_event(self, *, event_id: int) -> List[InventoryUnit]:
        pass
