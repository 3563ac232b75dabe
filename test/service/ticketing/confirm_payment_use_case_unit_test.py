"""
Unit tests for payment confirmation (webhook and cash) and the payment-failed webhook

Covers:
1. Redelivered webhooks replay the first result, success or error
2. Concurrent deliveries settle once
3. Signature checks
4. Infrastructure failures free the external_ref for a retry
"""

import asyncio

import pytest

from src.platform.exception.exceptions import DomainError
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    AlreadyConfirmed,
    ReservationExpired,
    SignatureInvalid,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.app.command.payment_failed_use_case import PAYMENT_FAILED_REASON
from src.service.ticketing.app.dto.payment_confirmation_result import PaymentConfirmationResult
from src.service.ticketing.domain.entity.order_entity import Order
from test.fakes import Engine
from test.shared_helpers import place_order, seed_ticket_type, tickets_of
from test.util_constant import ADMIN_ID, CUSTOMER_ID, GA_TICKET_TYPE_ID


async def _pending(
    engine: Engine, payment_method: PaymentMethod = PaymentMethod.ONLINE
) -> Order:
    await seed_ticket_type(engine, initial_quantity=10)
    return await place_order(
        engine,
        user_id=CUSTOMER_ID,
        items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=2)],
        payment_method=payment_method,
    )


async def _confirm(engine: Engine, order: Order, external_ref: str) -> PaymentConfirmationResult:
    return await engine.confirm_payment.confirm(
        order_id=order.id,
        external_ref=external_ref,
        signature=engine.payment_provider.sign(order_id=order.id, external_ref=external_ref),
    )


class TestConfirmPayment:
    @pytest.mark.asyncio
    async def test_confirms_and_records_result(self, engine: Engine) -> None:
        order = await _pending(engine)

        result = await _confirm(engine, order, 'pay_001')

        assert result.status == OrderStatus.PAID.value
        assert result.already_confirmed is False
        assert len(tickets_of(engine, order)) == 2
        confirmation = await engine.payment_confirmation_repo.get(external_ref='pay_001')
        assert confirmation is not None
        assert confirmation.result_status == OrderStatus.PAID.value
        assert confirmation.is_finished

    @pytest.mark.asyncio
    async def test_redelivery_replays_without_new_tickets(self, engine: Engine) -> None:
        order = await _pending(engine)
        await _confirm(engine, order, 'pay_001')

        replayed = await _confirm(engine, order, 'pay_001')

        assert replayed.already_confirmed is True
        assert replayed.status == OrderStatus.PAID.value
        assert len(tickets_of(engine, order)) == 2

    @pytest.mark.asyncio
    async def test_concurrent_deliveries_settle_once(self, engine: Engine) -> None:
        order = await _pending(engine)

        results = await asyncio.gather(
            _confirm(engine, order, 'pay_001'),
            _confirm(engine, order, 'pay_001'),
            return_exceptions=True,
        )

        applied = [
            r for r in results
            if isinstance(r, PaymentConfirmationResult) and not r.already_confirmed
        ]
        assert len(applied) == 1
        assert all(
            isinstance(r, (PaymentConfirmationResult, AlreadyConfirmed)) for r in results
        )
        assert len(tickets_of(engine, order)) == 2

    @pytest.mark.asyncio
    async def test_bad_signature_claims_nothing(self, engine: Engine) -> None:
        order = await _pending(engine)

        with pytest.raises(SignatureInvalid):
            await engine.confirm_payment.confirm(
                order_id=order.id, external_ref='pay_001', signature='forged'
            )

        assert await engine.payment_confirmation_repo.get(external_ref='pay_001') is None
        # A correctly signed retry still works
        assert (await _confirm(engine, order, 'pay_001')).status == OrderStatus.PAID.value

    @pytest.mark.asyncio
    async def test_expired_reservation_is_replayed_as_error(self, engine: Engine) -> None:
        order = await _pending(engine)
        engine.reservations.force_deadline_passed(str(order.id))

        with pytest.raises(ReservationExpired):
            await _confirm(engine, order, 'pay_late')
        with pytest.raises(ReservationExpired):
            await _confirm(engine, order, 'pay_late')

        confirmation = await engine.payment_confirmation_repo.get(external_ref='pay_late')
        assert confirmation is not None
        assert confirmation.error_code == ReservationExpired.code
        assert tickets_of(engine, order) == []

    @pytest.mark.asyncio
    async def test_second_payment_for_paid_order(self, engine: Engine) -> None:
        order = await _pending(engine)
        await _confirm(engine, order, 'pay_001')

        with pytest.raises(AlreadyConfirmed):
            await _confirm(engine, order, 'pay_002')

        assert len(tickets_of(engine, order)) == 2

    @pytest.mark.asyncio
    async def test_ref_reused_for_another_order(self, engine: Engine) -> None:
        first = await _pending(engine)
        second = await place_order(
            engine,
            user_id=CUSTOMER_ID,
            items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=1)],
        )
        await _confirm(engine, first, 'pay_001')

        with pytest.raises(AlreadyConfirmed):
            await _confirm(engine, second, 'pay_001')

        stored = await engine.order_command_repo.get_by_id(order_id=second.id)
        assert stored is not None and stored.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_infrastructure_error_frees_the_ref(
        self, engine: Engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        order = await _pending(engine)
        real_settle = engine.settle.settle
        calls = []

        async def flaky_settle(**kwargs):  # type: ignore[no-untyped-def]
            calls.append(kwargs)
            if len(calls) == 1:
                raise ConnectionError('database restarted')
            return await real_settle(**kwargs)

        monkeypatch.setattr(engine.settle, 'settle', flaky_settle)

        with pytest.raises(ConnectionError):
            await _confirm(engine, order, 'pay_001')
        assert await engine.payment_confirmation_repo.get(external_ref='pay_001') is None

        result = await _confirm(engine, order, 'pay_001')
        assert result.status == OrderStatus.PAID.value
        assert result.already_confirmed is False

    @pytest.mark.asyncio
    async def test_redelivery_finishes_settle_that_failed_after_commit(
        self, engine: Engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        order = await _pending(engine)
        real_write = engine.order_command_repo.settle
        calls = []

        async def flaky_write(**kwargs):  # type: ignore[no-untyped-def]
            calls.append(kwargs)
            if len(calls) == 1:
                raise ConnectionError('database restarted')
            return await real_write(**kwargs)

        monkeypatch.setattr(engine.order_command_repo, 'settle', flaky_write)

        with pytest.raises(ConnectionError):
            await _confirm(engine, order, 'pay_001')
        # The reservation is already committed at this point
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

        result = await _confirm(engine, order, 'pay_001')

        assert result.status == OrderStatus.PAID.value
        stored = await engine.order_command_repo.get_by_id(order_id=order.id)
        assert stored is not None and stored.status == OrderStatus.PAID
        assert len(tickets_of(engine, order)) == 2
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8
        assert await engine.sweep.sweep() == 0

    @pytest.mark.asyncio
    async def test_concurrent_settles_of_one_order_issue_one_set(self, engine: Engine) -> None:
        order = await _pending(engine)

        results = await asyncio.gather(
            engine.settle.settle(order_id=order.id, payment_ref='pay_001'),
            engine.settle.settle(order_id=order.id, payment_ref='pay_001'),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Order) for r in results) == 1
        assert sum(isinstance(r, AlreadyCommitted) for r in results) == 1
        assert len(tickets_of(engine, order)) == 2


class TestConfirmCash:
    @pytest.mark.asyncio
    async def test_operator_settles_cash_order(self, engine: Engine) -> None:
        order = await _pending(engine, payment_method=PaymentMethod.CASH)

        paid = await engine.confirm_cash.confirm_cash(order_id=order.id, operator_id=ADMIN_ID)

        assert paid.status == OrderStatus.PAID
        assert paid.settled_by == str(ADMIN_ID)
        assert paid.idempotency_key == f'cash:{ADMIN_ID}'
        assert len(tickets_of(engine, order)) == 2

    @pytest.mark.asyncio
    async def test_online_order_is_not_cash(self, engine: Engine) -> None:
        order = await _pending(engine)

        with pytest.raises(DomainError):
            await engine.confirm_cash.confirm_cash(order_id=order.id, operator_id=ADMIN_ID)

    @pytest.mark.asyncio
    async def test_cash_confirmed_twice(self, engine: Engine) -> None:
        order = await _pending(engine, payment_method=PaymentMethod.CASH)
        await engine.confirm_cash.confirm_cash(order_id=order.id, operator_id=ADMIN_ID)

        with pytest.raises(AlreadyCommitted):
            await engine.confirm_cash.confirm_cash(order_id=order.id, operator_id=ADMIN_ID)


class TestPaymentFailed:
    async def _mark_failed(self, engine: Engine, order: Order) -> Order:
        return await engine.payment_failed.mark_failed(
            order_id=order.id,
            external_ref='pay_001',
            signature=engine.payment_provider.sign(order_id=order.id, external_ref='pay_001'),
        )

    @pytest.mark.asyncio
    async def test_fails_order_and_returns_stock(self, engine: Engine) -> None:
        order = await _pending(engine)

        failed = await self._mark_failed(engine, order)

        assert failed.status == OrderStatus.FAILED
        assert failed.failure_reason == PAYMENT_FAILED_REASON
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_is_idempotent(self, engine: Engine) -> None:
        order = await _pending(engine)
        await self._mark_failed(engine, order)

        again = await self._mark_failed(engine, order)

        assert again.status == OrderStatus.FAILED
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_paid_order_stays_paid(self, engine: Engine) -> None:
        order = await _pending(engine)
        await _confirm(engine, order, 'pay_001')

        with pytest.raises(AlreadyCommitted):
            await self._mark_failed(engine, order)

    @pytest.mark.asyncio
    async def test_bad_signature(self, engine: Engine) -> None:
        order = await _pending(engine)

        with pytest.raises(SignatureInvalid):
            await engine.payment_failed.mark_failed(
                order_id=order.id, external_ref='pay_001', signature='forged'
            )
