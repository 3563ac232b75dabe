from typing import Optional

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_payment_confirmation_repo import (
    IPaymentConfirmationRepo,
)
from src.service.ticketing.domain.entity.payment_confirmation_entity import (
    PaymentConfirmation,
)
from src.service.ticketing.driven_adapter.repo.row_mapper import (
    PAYMENT_CONFIRMATION_COLUMNS,
    row_to_payment_confirmation,
)


class PaymentConfirmationRepoImpl(IPaymentConfirmationRepo):
    @Logger.io
    async def get(self, *, external_ref: str) -> Optional[PaymentConfirmation]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {PAYMENT_CONFIRMATION_COLUMNS}
                FROM payment_confirmation
                WHERE external_ref = $1
                """,
                external_ref,
            )
            return row_to_payment_confirmation(row) if row else None

    @Logger.io
    async def claim(self, *, external_ref: str, order_id: UUID) -> bool:
        async with (await get_asyncpg_pool()).acquire() as conn:
            claimed = await conn.fetchval(
                """
                INSERT INTO payment_confirmation (external_ref, order_id, created_at)
                VALUES ($1, $2, NOW())
                ON CONFLICT (external_ref) DO NOTHING
                RETURNING external_ref
                """,
                external_ref,
                order_id,
            )
            return claimed is not None

    @Logger.io
    async def record_result(
        self,
        *,
        external_ref: str,
        result_status: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            await conn.execute(
                """
                UPDATE payment_confirmation
                SET result_status = $2, error_code = $3, completed_at = NOW()
                WHERE external_ref = $1
                """,
                external_ref,
                result_status,
                error_code,
            )

    @Logger.io
    async def release_claim(self, *, external_ref: str) -> None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            await conn.execute(
                """
                DELETE FROM payment_confirmation
                WHERE external_ref = $1 AND result_status IS NULL AND error_code IS NULL
                """,
                external_ref,
            )
