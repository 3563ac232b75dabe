from typing import Dict, List, Optional

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.app.interface.i_order_query_repo import IOrderQueryRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    ORDER_COLUMNS,
    REFUND_COLUMNS,
    TICKET_COLUMNS,
    row_to_order,
    row_to_refund,
    row_to_ticket,
)


class OrderQueryRepoImpl(IOrderQueryRepo):
    @Logger.io
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {ORDER_COLUMNS} FROM "order" WHERE id = $1', order_id)
            return row_to_order(row) if row else None

    @Logger.io
    async def list_tickets(self, *, order_id: UUID) -> List[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {TICKET_COLUMNS} FROM ticket WHERE order_id = $1 ORDER BY id', order_id
            )
            return [row_to_ticket(row) for row in rows]

    @Logger.io
    async def list_refunds(self, *, order_id: UUID) -> List[Refund]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f'SELECT {REFUND_COLUMNS} FROM refund WHERE order_id = $1 ORDER BY id', order_id
            )
            return [row_to_refund(row) for row in rows]

    @Logger.io
    async def count_committed_tickets(
        self, *, user_id: int, ticket_type_ids: List[int]
    ) -> Dict[int, int]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT t.ticket_type_id, COUNT(*) AS committed
                FROM ticket t
                JOIN "order" o ON o.id = t.order_id
                WHERE o.user_id = $1
                  AND t.ticket_type_id = ANY($2::int[])
                  AND t.status = ANY($3::text[])
                GROUP BY t.ticket_type_id
                """,
                user_id,
                ticket_type_ids,
                [TicketStatus.ISSUED.value, TicketStatus.CHECKED_IN.value],
            )
            return {row['ticket_type_id']: row['committed'] for row in rows}
