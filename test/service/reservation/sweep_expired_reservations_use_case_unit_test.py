"""
Unit tests for SweepExpiredReservationsUseCase and ReservationSweeper

Covers:
1. Only overdue reservations are expired; their orders fail with reservation_expired
2. Repeated or concurrent sweeps release stock exactly once
3. One broken record does not stop the batch
4. The sweeper only runs under the lease
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.platform.state.kvrocks_client import kvrocks_client
from src.service.reservation.app.command.sweep_expired_reservations_use_case import (
    RESERVATION_EXPIRED_REASON,
)
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.reservation.driving_adapter import reservation_sweeper
from src.service.reservation.driving_adapter.reservation_sweeper import ReservationSweeper
from src.service.shared_kernel.domain.enum.order_status import OrderStatus
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.domain.entity.order_entity import Order
from test.fakes import Engine
from test.shared_helpers import place_order, seed_ticket_type
from test.util_constant import CUSTOMER_ID, GA_TICKET_TYPE_ID


async def _pending_orders(engine: Engine, count: int, quantity: int = 2) -> List[Order]:
    await seed_ticket_type(engine, initial_quantity=10)
    return [
        await place_order(
            engine,
            user_id=CUSTOMER_ID,
            items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=quantity)],
        )
        for _ in range(count)
    ]


class TestSweep:
    @pytest.mark.asyncio
    async def test_expires_only_overdue_reservations(self, engine: Engine) -> None:
        overdue, fresh = await _pending_orders(engine, 2)
        engine.reservations.force_deadline_passed(str(overdue.id))

        expired = await engine.sweep.sweep()

        assert expired == 1
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

        failed = await engine.order_command_repo.get_by_id(order_id=overdue.id)
        assert failed is not None
        assert failed.status == OrderStatus.FAILED
        assert failed.failure_reason == RESERVATION_EXPIRED_REASON

        untouched = await engine.order_command_repo.get_by_id(order_id=fresh.id)
        assert untouched is not None and untouched.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_second_sweep_is_a_noop(self, engine: Engine) -> None:
        (order,) = await _pending_orders(engine, 1, quantity=3)
        engine.reservations.force_deadline_passed(str(order.id))

        assert await engine.sweep.sweep() == 1
        assert await engine.sweep.sweep() == 0
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_concurrent_sweeps_release_once(self, engine: Engine) -> None:
        orders = await _pending_orders(engine, 3, quantity=2)
        for order in orders:
            engine.reservations.force_deadline_passed(str(order.id))

        results = await asyncio.gather(engine.sweep.sweep(), engine.sweep.sweep())

        assert sum(results) == 3
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_expire_before_deadline_is_refused(self, engine: Engine) -> None:
        (order,) = await _pending_orders(engine, 1)

        assert await engine.sweep.expire(order_id=str(order.id)) is False

        stored = await engine.reservations.get(order_id=str(order.id))
        assert stored is not None and stored.status == ReservationStatus.ACTIVE
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8

    @pytest.mark.asyncio
    async def test_expire_with_explicit_clock(self, engine: Engine) -> None:
        (order,) = await _pending_orders(engine, 1)

        later = datetime.now(timezone.utc) + timedelta(days=1)
        assert await engine.sweep.expire(order_id=str(order.id), now=later) is True
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_one_failure_does_not_block_the_batch(
        self, engine: Engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        broken, healthy = await _pending_orders(engine, 2)
        for order in (broken, healthy):
            engine.reservations.force_deadline_passed(str(order.id))

        real_release_owner = engine.ledger.release_owner

        async def release_owner(*, owner_id: str) -> int:
            if owner_id == str(broken.id):
                raise RuntimeError('kvrocks went away')
            return await real_release_owner(owner_id=owner_id)

        monkeypatch.setattr(engine.ledger, 'release_owner', release_owner)

        assert await engine.sweep.sweep() == 1
        recovered = await engine.order_command_repo.get_by_id(order_id=healthy.id)
        assert recovered is not None and recovered.status == OrderStatus.FAILED


class _FakeLock:
    acquired = True
    instances: List['_FakeLock'] = []

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.released = False
        _FakeLock.instances.append(self)

    async def acquire_lock(self) -> bool:
        return _FakeLock.acquired

    async def release_lock(self) -> bool:
        self.released = True
        return True


class TestReservationSweeper:
    @pytest.fixture(autouse=True)
    def fake_lock(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _FakeLock.acquired = True
        _FakeLock.instances = []
        monkeypatch.setattr(reservation_sweeper, 'DistributedLock', _FakeLock)
        monkeypatch.setattr(kvrocks_client, 'get_client', MagicMock(return_value=MagicMock()))

    @pytest.mark.asyncio
    async def test_tick_sweeps_under_lease(self) -> None:
        use_case = AsyncMock()
        use_case.sweep = AsyncMock(return_value=4)

        expired = await ReservationSweeper(sweep_use_case=use_case, interval_seconds=1).tick()

        assert expired == 4
        assert _FakeLock.instances[0].released

    @pytest.mark.asyncio
    async def test_tick_skips_without_lease(self) -> None:
        _FakeLock.acquired = False
        use_case = AsyncMock()

        expired = await ReservationSweeper(sweep_use_case=use_case, interval_seconds=1).tick()

        assert expired == 0
        use_case.sweep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tick_releases_lease_on_error(self) -> None:
        use_case = AsyncMock()
        use_case.sweep = AsyncMock(side_effect=RuntimeError('boom'))

        with pytest.raises(RuntimeError):
            await ReservationSweeper(sweep_use_case=use_case, interval_seconds=1).tick()

        assert _FakeLock.instances[0].released
