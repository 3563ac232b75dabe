"""
Unit tests for SettleOrderUseCase and CancelOrderUseCase

Settlement, cancellation and expiry all race to close the same reservation;
exactly one of them wins and the others report who did.
"""

import asyncio

import pytest

from src.platform.exception.exceptions import ForbiddenError
from src.service.reservation.app.command.sweep_expired_reservations_use_case import (
    RESERVATION_EXPIRED_REASON,
)
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.enum.ticket_status import TicketStatus
from src.service.shared_kernel.domain.enum.unit_state import UnitState
from src.service.shared_kernel.domain.error.fulfillment_error import (
    AlreadyCommitted,
    InvalidOrderStatus,
    OrderNotFound,
    ReservationExpired,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.entity.user_entity import UserEntity
from test.fakes import Engine
from test.shared_helpers import place_order, seed_seated_ticket_type, seed_ticket_type, tickets_of
from test.util_constant import CUSTOMER_ID, GA_TICKET_TYPE_ID, SEATED_TICKET_TYPE_ID


async def _pending(engine: Engine, quantity: int = 2) -> Order:
    await seed_ticket_type(engine, initial_quantity=10)
    return await place_order(
        engine,
        user_id=CUSTOMER_ID,
        items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=quantity)],
    )


class TestSettle:
    @pytest.mark.asyncio
    async def test_issues_one_ticket_per_unit_of_quantity(self, engine: Engine) -> None:
        await seed_seated_ticket_type(engine, unit_ids=['A-1', 'A-2'])
        order = await _pending(engine, quantity=2)
        seated = await place_order(
            engine,
            user_id=CUSTOMER_ID,
            items=[
                CartItem(
                    ticket_type_id=SEATED_TICKET_TYPE_ID, quantity=2, unit_ids=['A-1', 'A-2']
                )
            ],
        )

        paid = await engine.settle.settle(order_id=order.id, payment_ref='pay_1')
        await engine.settle.settle(order_id=seated.id, payment_ref='pay_2')

        assert paid.status == OrderStatus.PAID
        assert paid.idempotency_key == 'pay_1'
        tickets = tickets_of(engine, paid)
        assert len(tickets) == 2
        assert all(t.status == TicketStatus.ISSUED for t in tickets)
        assert len({t.ticket_code for t in tickets}) == 2

        seated_tickets = tickets_of(engine, seated)
        assert sorted(t.unit_id for t in seated_tickets) == ['A-1', 'A-2']
        assert engine.ledger.units['A-1'] == UnitState.SOLD
        assert 'order_confirmed' in engine.notifications.kinds()

        stored = await engine.reservations.get(order_id=str(order.id))
        assert stored is not None and stored.status == ReservationStatus.COMMITTED
        # Committed stock stays taken
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

    @pytest.mark.asyncio
    async def test_settle_after_deadline_fails_order_and_returns_stock(
        self, engine: Engine
    ) -> None:
        order = await _pending(engine, quantity=3)
        engine.reservations.force_deadline_passed(str(order.id))

        with pytest.raises(ReservationExpired):
            await engine.settle.settle(order_id=order.id, payment_ref='pay_late')

        failed = await engine.order_command_repo.get_by_id(order_id=order.id)
        assert failed is not None
        assert failed.status == OrderStatus.FAILED
        assert failed.failure_reason == RESERVATION_EXPIRED_REASON
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10
        assert tickets_of(engine, order) == []

    @pytest.mark.asyncio
    async def test_settle_after_sweep_reports_expiry(self, engine: Engine) -> None:
        order = await _pending(engine)
        engine.reservations.force_deadline_passed(str(order.id))
        await engine.sweep.sweep()

        with pytest.raises(ReservationExpired):
            await engine.settle.settle(order_id=order.id, payment_ref='pay_late')

    @pytest.mark.asyncio
    async def test_settle_twice(self, engine: Engine) -> None:
        order = await _pending(engine)
        await engine.settle.settle(order_id=order.id, payment_ref='pay_1')

        with pytest.raises(AlreadyCommitted):
            await engine.settle.settle(order_id=order.id, payment_ref='pay_1')

        assert len(tickets_of(engine, order)) == 2

    @pytest.mark.asyncio
    async def test_concurrent_settle_and_expiry_have_one_winner(self, engine: Engine) -> None:
        order = await _pending(engine)

        results = await asyncio.gather(
            engine.settle.settle(order_id=order.id, payment_ref='pay_1'),
            engine.hold.release(order_id=str(order.id)),
            return_exceptions=True,
        )

        stored = await engine.order_command_repo.get_by_id(order_id=order.id)
        assert stored is not None
        if stored.status == OrderStatus.PAID:
            assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8
            assert not results[1].applied
        else:
            assert isinstance(results[0], Exception)
            assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10
            assert tickets_of(engine, order) == []

    @pytest.mark.asyncio
    async def test_unknown_order(self, engine: Engine) -> None:
        order = await _pending(engine)
        engine.store.orders.clear()

        with pytest.raises(OrderNotFound):
            await engine.settle.settle(order_id=order.id, payment_ref='pay_1')


class TestCancelOrder:
    @pytest.mark.asyncio
    async def test_cancel_releases_hold(self, engine: Engine, customer: UserEntity) -> None:
        order = await _pending(engine, quantity=4)

        cancelled = await engine.cancel_order.cancel(
            order_id=order.id, reason='changed my mind', actor=customer
        )

        assert cancelled.status == OrderStatus.FAILED
        assert cancelled.failure_reason == 'changed my mind'
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_cannot_cancel_someone_elses_order(
        self, engine: Engine, another_customer: UserEntity
    ) -> None:
        order = await _pending(engine)

        with pytest.raises(ForbiddenError):
            await engine.cancel_order.cancel(order_id=order.id, reason='x', actor=another_customer)

        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

    @pytest.mark.asyncio
    async def test_staff_can_cancel_for_customer(self, engine: Engine, staff: UserEntity) -> None:
        order = await _pending(engine)

        cancelled = await engine.cancel_order.cancel(order_id=order.id, reason='x', actor=staff)

        assert cancelled.status == OrderStatus.FAILED

    @pytest.mark.asyncio
    async def test_paid_order_cannot_be_cancelled(
        self, engine: Engine, customer: UserEntity
    ) -> None:
        order = await _pending(engine)
        await engine.settle.settle(order_id=order.id, payment_ref='pay_1')

        with pytest.raises(InvalidOrderStatus):
            await engine.cancel_order.cancel(order_id=order.id, reason='x', actor=customer)

        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

    @pytest.mark.asyncio
    async def test_cancel_then_settle(self, engine: Engine, customer: UserEntity) -> None:
        order = await _pending(engine)
        await engine.cancel_order.cancel(order_id=order.id, reason='x', actor=customer)

        with pytest.raises(InvalidOrderStatus):
            await engine.settle.settle(order_id=order.id, payment_ref='pay_1')

    @pytest.mark.asyncio
    async def test_cancel_past_deadline_reports_expiry(
        self, engine: Engine, customer: UserEntity
    ) -> None:
        order = await _pending(engine)
        engine.reservations.force_deadline_passed(str(order.id))
        await engine.sweep.sweep()

        # The sweep already failed the order
        with pytest.raises(InvalidOrderStatus):
            await engine.cancel_order.cancel(order_id=order.id, reason='x', actor=customer)
