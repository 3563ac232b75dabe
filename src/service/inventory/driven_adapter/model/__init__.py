from src.service.inventory.driven_adapter.model.inventory_unit_model import InventoryUnitModel
from src.service.inventory.driven_adapter.model.ticket_type_model import TicketTypeModel

__all__ = ['InventoryUnitModel', 'TicketTypeModel']
