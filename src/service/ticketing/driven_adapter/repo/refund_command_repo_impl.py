from typing import List, Optional, Tuple

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InvalidOrderStatus,
    OrderNotFound,
    RefundExceedsBalance,
    RefundStatusConflict,
)
from src.service.ticketing.app.dto.cancelled_ticket import CancelledTicket
from src.service.ticketing.app.interface.i_refund_command_repo import IRefundCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    ORDER_COLUMNS,
    REFUND_COLUMNS,
    row_to_order,
    row_to_refund,
)
from src.service.ticketing.driven_adapter.repo.ticket_command_repo_impl import cancel_tickets


_REFUNDABLE = [OrderStatus.PAID.value, OrderStatus.PARTIALLY_REFUNDED.value]


class RefundCommandRepoImpl(IRefundCommandRepo):
    """
    Refund Command Repository

    The refund cap is the conditional UPDATE on the order row:
        refunded_amount_minor + refund_pending_minor + amount <= total_amount_minor
    Concurrent requests serialize on that row lock; the loser sees no row.
    """

    @staticmethod
    async def _explain_rejected_request(conn: asyncpg.Connection, *, refund: Refund) -> None:
        row = await conn.fetchrow(
            """
            SELECT status, total_amount_minor, refunded_amount_minor, refund_pending_minor
            FROM "order"
            WHERE id = $1
            """,
            refund.order_id,
        )
        order_id = str(refund.order_id)
        if row is None:
            raise OrderNotFound(order_id=order_id)
        if row['status'] not in _REFUNDABLE:
            raise InvalidOrderStatus(order_id=order_id, status=row['status'], action='refund')
        raise RefundExceedsBalance(
            order_id=order_id,
            requested=refund.amount_minor,
            refundable=row['total_amount_minor']
            - row['refunded_amount_minor']
            - row['refund_pending_minor'],
        )

    @Logger.io
    async def create_request(self, *, refund: Refund) -> Refund:
        async with (await get_asyncpg_pool()).acquire() as conn:
            async with conn.transaction():
                reserved = await conn.fetchval(
                    """
                    UPDATE "order"
                    SET refund_pending_minor = refund_pending_minor + $2, updated_at = NOW()
                    WHERE id = $1
                      AND status = ANY($3::text[])
                      AND refunded_amount_minor + refund_pending_minor + $2 <= total_amount_minor
                    RETURNING id
                    """,
                    refund.order_id,
                    refund.amount_minor,
                    _REFUNDABLE,
                )
                if reserved is None:
                    await self._explain_rejected_request(conn, refund=refund)

                row = await conn.fetchrow(
                    f"""
                    INSERT INTO refund (
                        id, order_id, amount_minor, status, reason, requested_by,
                        created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $7)
                    RETURNING {REFUND_COLUMNS}
                    """,
                    refund.id,
                    refund.order_id,
                    refund.amount_minor,
                    refund.status.value,
                    refund.reason,
                    refund.requested_by,
                    refund.created_at,
                )
                return row_to_refund(row)

    @Logger.io
    async def get_by_id(self, *, refund_id: UUID) -> Optional[Refund]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {REFUND_COLUMNS} FROM refund WHERE id = $1', refund_id)
            return row_to_refund(row) if row else None

    @Logger.io
    async def transition(
        self,
        *,
        refund_id: UUID,
        from_statuses: List[RefundStatus],
        to_status: RefundStatus,
        approved_by: Optional[int] = None,
    ) -> Optional[Refund]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE refund
                SET status = $3, approved_by = COALESCE($4, approved_by), updated_at = NOW()
                WHERE id = $1 AND status = ANY($2::text[])
                RETURNING {REFUND_COLUMNS}
                """,
                refund_id,
                [status.value for status in from_statuses],
                to_status.value,
                approved_by,
            )
            return row_to_refund(row) if row else None

    @staticmethod
    async def _finish(
        conn: asyncpg.Connection,
        *,
        refund_id: UUID,
        status: RefundStatus,
        provider_refund_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> Refund:
        row = await conn.fetchrow(
            f"""
            UPDATE refund
            SET status = $2,
                provider_refund_id = $3,
                failure_reason = $4,
                completed_at = CASE WHEN $2 = 'completed' THEN NOW() ELSE completed_at END,
                updated_at = NOW()
            WHERE id = $1 AND status = $5
            RETURNING {REFUND_COLUMNS}
            """,
            refund_id,
            status.value,
            provider_refund_id,
            failure_reason,
            RefundStatus.PROCESSING.value,
        )
        if not row:
            raise RefundStatusConflict(
                refund_id=str(refund_id), expected=RefundStatus.PROCESSING.value
            )
        return row_to_refund(row)

    @staticmethod
    async def _settle_order_counters(
        conn: asyncpg.Connection, *, refund: Refund, completed: bool
    ) -> Order:
        # Row lock; the counter and status rules live on the Order entity
        locked = await conn.fetchrow(
            f'SELECT {ORDER_COLUMNS} FROM "order" WHERE id = $1 FOR UPDATE',
            refund.order_id,
        )
        if locked is None:
            raise OrderNotFound(order_id=str(refund.order_id))
        current = row_to_order(locked)
        order = (
            current.complete_refund(amount_minor=refund.amount_minor)
            if completed
            else current.fail_refund(amount_minor=refund.amount_minor)
        )
        row = await conn.fetchrow(
            f"""
            UPDATE "order"
            SET status = $2,
                refunded_amount_minor = $3,
                refund_pending_minor = $4,
                updated_at = $5
            WHERE id = $1
            RETURNING {ORDER_COLUMNS}
            """,
            order.id,
            order.status.value,
            order.refunded_amount_minor,
            order.refund_pending_minor,
            order.updated_at,
        )
        return row_to_order(row)

    @Logger.io
    async def complete(
        self,
        *,
        refund_id: UUID,
        provider_refund_id: Optional[str],
        cancel_ticket_ids: List[UUID],
    ) -> Tuple[Refund, Order, List[CancelledTicket]]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            async with conn.transaction():
                refund = await self._finish(
                    conn,
                    refund_id=refund_id,
                    status=RefundStatus.COMPLETED,
                    provider_refund_id=provider_refund_id,
                )
                order = await self._settle_order_counters(conn, refund=refund, completed=True)
                cancelled = await cancel_tickets(
                    conn,
                    ticket_ids=cancel_ticket_ids,
                    reason=f'refund:{refund_id}',
                    from_statuses=[TicketStatus.PENDING, TicketStatus.ISSUED],
                    order_id=refund.order_id,
                )
                return refund, order, cancelled

    @Logger.io
    async def fail(self, *, refund_id: UUID, reason: str) -> Tuple[Refund, Order]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            async with conn.transaction():
                refund = await self._finish(
                    conn, refund_id=refund_id, status=RefundStatus.FAILED, failure_reason=reason
                )
                order = await self._settle_order_counters(conn, refund=refund, completed=False)
                return refund, order
