from typing import Sequence, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.process_refund_use_case import ProcessRefundUseCase
from src.service.ticketing.app.command.request_refund_use_case import RequestRefundUseCase
from src.service.ticketing.domain.entity.refund_entity import Refund
from src.service.ticketing.domain.entity.user_entity import UserEntity


class ForceRefundUseCase:
    """Super-admin refund: request and process in one call, skipping approval."""

    def __init__(
        self,
        *,
        request_refund_use_case: RequestRefundUseCase,
        process_refund_use_case: ProcessRefundUseCase,
    ) -> None:
        self.request_refund_use_case = request_refund_use_case
        self.process_refund_use_case = process_refund_use_case

    @classmethod
    @inject
    def depends(
        cls,
        request_refund_use_case: RequestRefundUseCase = Depends(
            Provide[Container.request_refund_use_case]
        ),
        process_refund_use_case: ProcessRefundUseCase = Depends(
            Provide[Container.process_refund_use_case]
        ),
    ) -> Self:
        return cls(
            request_refund_use_case=request_refund_use_case,
            process_refund_use_case=process_refund_use_case,
        )

    @Logger.io
    async def force_refund(
        self,
        *,
        order_id: UUID,
        amount_minor: int,
        reason: str,
        admin: UserEntity,
        cancel_ticket_ids: Sequence[UUID] = (),
    ) -> Refund:
        refund = await self.request_refund_use_case.request_refund(
            order_id=order_id, amount_minor=amount_minor, reason=reason, requested_by=admin
        )
        return await self.process_refund_use_case.process(
            refund_id=refund.id, cancel_ticket_ids=cancel_ticket_ids, approved_by=admin.id
        )
