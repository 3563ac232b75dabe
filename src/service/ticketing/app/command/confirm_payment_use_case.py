from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError, CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    AlreadyConfirmed,
    OrderNotFound,
    ReservationExpired,
    SignatureInvalid,
)
from src.service.ticketing.app.command.settle_order_use_case import SettleOrderUseCase
from src.service.ticketing.app.dto.payment_confirmation_result import PaymentConfirmationResult
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_payment_confirmation_repo import (
    IPaymentConfirmationRepo,
)
from src.service.ticketing.app.interface.i_payment_provider import IPaymentProvider


# Recorded error codes that replay as their own error kind
_ORDER_SCOPED_ERRORS = {
    error.code: error
    for error in (ReservationExpired, AlreadyCommitted, AlreadyConfirmed, OrderNotFound)
}


def _replay_error(*, code: str, order_id: str, external_ref: str) -> CustomBaseError:
    error = _ORDER_SCOPED_ERRORS.get(code)
    if error is not None:
        return error(order_id=order_id)
    return ConflictError(f'Payment {external_ref} was already rejected ({code})', code=code)


class ConfirmPaymentUseCase:
    """
    Provider payment webhook, idempotent on external_ref.

    Flow:
    1. Known external_ref: replay the recorded result (or error) without settling again
    2. Verify the provider signature
    3. Claim external_ref; a concurrent claimer gets AlreadyConfirmed
    4. Order already paid under another ref: AlreadyConfirmed
    5. Settle, then record the outcome against external_ref
    """

    def __init__(
        self,
        *,
        payment_confirmation_repo: IPaymentConfirmationRepo,
        order_command_repo: IOrderCommandRepo,
        payment_provider: IPaymentProvider,
        settle_order_use_case: SettleOrderUseCase,
    ) -> None:
        self.payment_confirmation_repo = payment_confirmation_repo
        self.order_command_repo = order_command_repo
        self.payment_provider = payment_provider
        self.settle_order_use_case = settle_order_use_case
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        payment_confirmation_repo: IPaymentConfirmationRepo = Depends(
            Provide[Container.payment_confirmation_repo]
        ),
        order_command_repo: IOrderCommandRepo = Depends(Provide[Container.order_command_repo]),
        payment_provider: IPaymentProvider = Depends(Provide[Container.payment_provider]),
        settle_order_use_case: SettleOrderUseCase = Depends(
            Provide[Container.settle_order_use_case]
        ),
    ) -> Self:
        return cls(
            payment_confirmation_repo=payment_confirmation_repo,
            order_command_repo=order_command_repo,
            payment_provider=payment_provider,
            settle_order_use_case=settle_order_use_case,
        )

    async def _replay(self, *, order_id: UUID, external_ref: str) -> PaymentConfirmationResult | None:
        previous = await self.payment_confirmation_repo.get(external_ref=external_ref)
        if previous is None:
            return None

        order_id_str = str(order_id)
        if previous.order_id != order_id or not previous.is_finished:
            metrics.record_payment_confirmation(outcome='rejected')
            raise AlreadyConfirmed(order_id=order_id_str)

        metrics.record_payment_confirmation(outcome='replayed')
        if previous.error_code:
            raise _replay_error(
                code=previous.error_code, order_id=order_id_str, external_ref=external_ref
            )
        return PaymentConfirmationResult(
            order_id=order_id,
            external_ref=external_ref,
            status=previous.result_status or OrderStatus.PAID.value,
            already_confirmed=True,
        )

    @Logger.io
    async def confirm(
        self, *, order_id: UUID, external_ref: str, signature: str
    ) -> PaymentConfirmationResult:
        order_id_str = str(order_id)
        with self.tracer.start_as_current_span(
            'use_case.confirm_payment',
            attributes={'order.id': order_id_str, 'payment.external_ref': external_ref},
        ):
            replayed = await self._replay(order_id=order_id, external_ref=external_ref)
            if replayed is not None:
                Logger.base.info(f'🔁 [PAYMENT] Replayed result for {external_ref}')
                return replayed

            if not self.payment_provider.verify_signature(
                order_id=order_id_str, external_ref=external_ref, signature=signature
            ):
                metrics.record_payment_confirmation(outcome='rejected')
                raise SignatureInvalid()

            if not await self.payment_confirmation_repo.claim(
                external_ref=external_ref, order_id=order_id
            ):
                metrics.record_payment_confirmation(outcome='rejected')
                raise AlreadyConfirmed(order_id=order_id_str)

            try:
                order = await self.order_command_repo.get_by_id(order_id=order_id)
                if order is None:
                    raise OrderNotFound(order_id=order_id_str)
                if order.status == OrderStatus.PAID and order.idempotency_key != external_ref:
                    raise AlreadyConfirmed(order_id=order_id_str)

                paid = await self.settle_order_use_case.settle(
                    order_id=order_id, payment_ref=external_ref
                )
            except CustomBaseError as e:
                await self.payment_confirmation_repo.record_result(
                    external_ref=external_ref, error_code=e.code
                )
                metrics.record_payment_confirmation(outcome='rejected')
                raise
            except Exception:
                await self.payment_confirmation_repo.release_claim(external_ref=external_ref)
                raise

            await self.payment_confirmation_repo.record_result(
                external_ref=external_ref, result_status=paid.status.value
            )
            metrics.record_payment_confirmation(outcome='applied')
            return PaymentConfirmationResult(
                order_id=order_id, external_ref=external_ref, status=paid.status.value
            )
