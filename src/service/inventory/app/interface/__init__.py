"""Application layer interfaces (Ports)"""

from src.service.inventory.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger

__all__ = ['ICatalogQueryRepo', 'IInventoryLedger']
