from typing import Dict, List, Optional

import asyncpg

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.inventory.domain.entity.inventory_unit_entity import InventoryUnit, UnitKind
from src.service.inventory.domain.entity.ticket_type_entity import TicketType


_TICKET_TYPE_COLUMNS = """
    id, event_id, name, price_minor, currency, initial_quantity, max_per_order,
    sales_start, sales_end, max_per_user_per_event
"""


class CatalogQueryRepoImpl(ICatalogQueryRepo):
    @staticmethod
    def _row_to_ticket_type(row: asyncpg.Record) -> TicketType:
        return TicketType(
            id=row['id'],
            event_id=row['event_id'],
            name=row['name'],
            price_minor=row['price_minor'],
            currency=row['currency'],
            initial_quantity=row['initial_quantity'],
            max_per_order=row['max_per_order'],
            sales_start=row['sales_start'],
            sales_end=row['sales_end'],
            max_per_user_per_event=row['max_per_user_per_event'],
        )

    @staticmethod
    def _row_to_unit(row: asyncpg.Record) -> InventoryUnit:
        return InventoryUnit(
            id=row['id'],
            event_id=row['event_id'],
            ticket_type_id=row['ticket_type_id'],
            kind=UnitKind(row['kind']),
            section=row['section'],
            label=row['label'],
            venue_id=row['venue_id'],
            capacity=row['capacity'],
        )

    @Logger.io
    async def get_ticket_type(self, *, ticket_type_id: int) -> Optional[TicketType]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {_TICKET_TYPE_COLUMNS} FROM ticket_type WHERE id = $1',
                ticket_type_id,
            )
            return self._row_to_ticket_type(row) if row else None

    @Logger.io
    async def get_ticket_types(self, *, ticket_type_ids: List[int]) -> Dict[int, TicketType]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {_TICKET_TYPE_COLUMNS} FROM ticket_type WHERE id = ANY($1::int[])',
                ticket_type_ids,
            )
            return {row['id']: self._row_to_ticket_type(row) for row in rows}

    @Logger.io
    async def list_ticket_types_by_event(self, *, event_id: int) -> List[TicketType]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {_TICKET_TYPE_COLUMNS} FROM ticket_type WHERE event_id = $1 ORDER BY id',
                event_id,
            )
            return [self._row_to_ticket_type(row) for row in rows]

    @Logger.io
    async def list_units_by_event(self, *, event_id: int) -> List[InventoryUnit]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, event_id, ticket_type_id, kind, section, label, venue_id, capacity
                FROM inventory_unit
                WHERE event_id = $1
                ORDER BY id
                """,
                event_id,
            )
            return [self._row_to_unit(row) for row in rows]
