from typing import List, Optional

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.error.fulfillment_error import OrderStatusConflict
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.driven_adapter.repo.row_mapper import ORDER_COLUMNS, row_to_order


class OrderCommandRepoImpl(IOrderCommandRepo):
    @Logger.io
    async def create(self, *, order: Order) -> Order:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO "order" (
                    id, order_number, user_id, event_id, status, items, total_amount_minor,
                    refunded_amount_minor, refund_pending_minor, currency, payment_method,
                    created_at, updated_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, 0, 0, $8, $9, $10, $10)
                RETURNING {ORDER_COLUMNS}
                """,
                order.id,
                order.order_number,
                order.user_id,
                order.event_id,
                order.status.value,
                [item.to_dict() for item in order.items],
                order.total_amount_minor,
                order.currency,
                order.payment_method.value,
                order.created_at,
            )
            return row_to_order(row)

    @Logger.io
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {ORDER_COLUMNS} FROM "order" WHERE id = $1',
                order_id,
            )
            return row_to_order(row) if row else None

    @Logger.io
    async def settle(self, *, order: Order, tickets: List[Ticket]) -> Order:
        async with (await get_asyncpg_pool()).acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    f"""
                    UPDATE "order"
                    SET status = $2,
                        idempotency_key = $3,
                        settled_by = $4,
                        paid_at = $5,
                        updated_at = $5
                    WHERE id = $1 AND status = $6
                    RETURNING {ORDER_COLUMNS}
                    """,
                    order.id,
                    OrderStatus.PAID.value,
                    order.idempotency_key,
                    order.settled_by,
                    order.paid_at,
                    OrderStatus.PENDING_PAYMENT.value,
                )
                if not row:
                    raise OrderStatusConflict(
                        order_id=str(order.id), expected=OrderStatus.PENDING_PAYMENT.value
                    )

                await conn.executemany(
                    """
                    INSERT INTO ticket (
                        id, ticket_code, order_id, event_id, ticket_type_id, unit_id,
                        status, created_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    """,
                    [
                        (
                            ticket.id,
                            ticket.ticket_code,
                            ticket.order_id,
                            ticket.event_id,
                            ticket.ticket_type_id,
                            ticket.unit_id,
                            ticket.status.value,
                            ticket.created_at,
                        )
                        for ticket in tickets
                    ],
                )
                return row_to_order(row)

    @Logger.io
    async def mark_failed(self, *, order_id: UUID, reason: str) -> Optional[Order]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE "order"
                SET status = $2, failure_reason = $3, updated_at = NOW()
                WHERE id = $1 AND status = $4
                RETURNING {ORDER_COLUMNS}
                """,
                order_id,
                OrderStatus.FAILED.value,
                reason,
                OrderStatus.PENDING_PAYMENT.value,
            )
            return row_to_order(row) if row else None
