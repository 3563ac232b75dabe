from typing import List, Optional

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket
from src.service.ticketing.app.interface.i_ticket_command_repo import ITicketCommandRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    TICKET_COLUMN_NAMES,
    TICKET_COLUMNS,
    row_to_ticket,
)


_RETURNING_TICKET = ', '.join(f't.{name}' for name in TICKET_COLUMN_NAMES)


async def cancel_tickets(
    conn: asyncpg.Connection,
    *,
    ticket_ids: List[UUID],
    reason: str,
    from_statuses: List[TicketStatus],
    order_id: Optional[UUID] = None,
) -> List[CancelledTicket]:
    """
    Conditionally cancel tickets on an open connection (joins the caller's transaction).
    Tickets not in from_statuses are left alone and not returned.
    """
    if not ticket_ids:
        return []

    rows = await conn.fetch(
        f"""
        WITH prior AS (
            SELECT id, status
            FROM ticket
            WHERE id = ANY($1::uuid[])
              AND status = ANY($3::text[])
              AND ($4::uuid IS NULL OR order_id = $4)
            FOR UPDATE
        )
        UPDATE ticket t
        SET status = $5, cancelled_at = NOW(), cancel_reason = $2
        FROM prior
        WHERE t.id = prior.id
        RETURNING {_RETURNING_TICKET}, prior.status AS previous_status
        """,
        ticket_ids,
        reason,
        [status.value for status in from_statuses],
        order_id,
        TicketStatus.CANCELLED.value,
    )
    return [
        CancelledTicket(
            ticket=row_to_ticket(row), previous_status=TicketStatus(row['previous_status'])
        )
        for row in rows
    ]


class TicketCommandRepoImpl(ITicketCommandRepo):
    @Logger.io
    async def get_by_id(self, *, ticket_id: UUID) -> Optional[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {TICKET_COLUMNS} FROM ticket WHERE id = $1', ticket_id)
            return row_to_ticket(row) if row else None

    @Logger.io
    async def get_by_code(self, *, ticket_code: str) -> Optional[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {TICKET_COLUMNS} FROM ticket WHERE ticket_code = $1', ticket_code
            )
            return row_to_ticket(row) if row else None

    @Logger.io
    async def check_in(self, *, ticket_id: UUID, operator_id: int) -> Optional[Ticket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE ticket
                SET status = $2, checked_in_at = NOW(), checked_in_by = $3
                WHERE id = $1 AND status = $4
                RETURNING {TICKET_COLUMNS}
                """,
                ticket_id,
                TicketStatus.CHECKED_IN.value,
                operator_id,
                TicketStatus.ISSUED.value,
            )
            return row_to_ticket(row) if row else None

    @Logger.io
    async def cancel(
        self, *, ticket_id: UUID, reason: str, from_statuses: List[TicketStatus]
    ) -> Optional[CancelledTicket]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            cancelled = await cancel_tickets(
                conn, ticket_ids=[ticket_id], reason=reason, from_statuses=from_statuses
            )
            return cancelled[0] if cancelled else None

    @Logger.io
    async def get_checkin_stats(self, *, event_id: int) -> dict:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT
                    COUNT(*) FILTER (WHERE status = ANY($2::text[])) AS total,
                    COUNT(*) FILTER (WHERE status = $3) AS checked_in
                FROM ticket
                WHERE event_id = $1
                """,
                event_id,
                [TicketStatus.ISSUED.value, TicketStatus.CHECKED_IN.value],
                TicketStatus.CHECKED_IN.value,
            )
            total = row['total'] if row else 0
            checked_in = row['checked_in'] if row else 0
            return {'total': total, 'checked_in': checked_in, 'remaining': total - checked_in}
