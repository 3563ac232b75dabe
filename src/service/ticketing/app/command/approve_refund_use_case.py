from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.shared_kernel.domain.enum.refund_status import RefundStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    RefundNotFound,
    RefundStatusConflict,
)
from src.service.ticketing.app.interface.i_refund_command_repo import IRefundCommandRepo
from src.service.ticketing.domain.entity.refund_entity import Refund


class ApproveRefundUseCase:
    def __init__(self, *, refund_command_repo: IRefundCommandRepo) -> None:
        self.refund_command_repo = refund_command_repo

    @classmethod
    @inject
    def depends(
        cls,
        refund_command_repo: IRefundCommandRepo = Depends(Provide[Container.refund_command_repo]),
    ) -> Self:
        return cls(refund_command_repo=refund_command_repo)

    @Logger.io
    async def approve(self, *, refund_id: UUID, approved_by: int) -> Refund:
        refund = await self.refund_command_repo.get_by_id(refund_id=refund_id)
        if refund is None:
            raise RefundNotFound(refund_id=str(refund_id))
        refund.approve(approved_by=approved_by)  # status check only

        approved = await self.refund_command_repo.transition(
            refund_id=refund_id,
            from_statuses=[RefundStatus.REQUESTED],
            to_status=RefundStatus.APPROVED,
            approved_by=approved_by,
        )
        if approved is None:
            raise RefundStatusConflict(
                refund_id=str(refund_id), expected=RefundStatus.REQUESTED.value
            )

        metrics.record_refund(status=approved.status.value)
        return approved
