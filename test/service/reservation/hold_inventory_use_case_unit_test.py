"""
Unit tests for HoldInventoryUseCase

Covers:
1. All-or-nothing holds across general admission and seated items
2. Rollback of partial holds on the first failure
3. Release closes once; stock goes back exactly once
"""

import asyncio
from datetime import datetime, timezone

import pytest

from src.platform.exception.exceptions import ConflictError
from src.service.reservation.domain.entity.reservation_entity import ReservationStatus
from src.service.shared_kernel.domain.enum.unit_state import UnitState
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InsufficientStock,
    UnitUnavailable,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from test.fakes import Engine
from test.shared_helpers import seed_seated_ticket_type, seed_ticket_type
from test.util_constant import GA_TICKET_TYPE_ID, SEATED_TICKET_TYPE_ID


class TestHold:
    @pytest.mark.asyncio
    async def test_holds_every_item_under_one_reservation(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=10)
        await seed_seated_ticket_type(engine, unit_ids=['A-1', 'A-2', 'A-3'])

        reservation = await engine.hold.hold(
            order_id='order-1',
            items=[
                CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=2),
                CartItem(ticket_type_id=SEATED_TICKET_TYPE_ID, quantity=2, unit_ids=['A-1', 'A-2']),
            ],
            ttl_seconds=600,
        )

        # One stock token per item plus one units token for the seated item
        assert len(reservation.token_ids) == 3
        assert (reservation.expires_at - reservation.created_at).total_seconds() == 600
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 8
        assert engine.ledger.remaining(SEATED_TICKET_TYPE_ID) == 1
        assert engine.ledger.units['A-1'] == UnitState.HELD
        assert engine.ledger.units['A-3'] == UnitState.FREE

        stored = await engine.reservations.get(order_id='order-1')
        assert stored is not None
        assert stored.status == ReservationStatus.ACTIVE
        assert stored.token_ids == reservation.token_ids

    @pytest.mark.asyncio
    async def test_unit_failure_rolls_back_earlier_items(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=10)
        await seed_seated_ticket_type(engine, unit_ids=['A-1', 'A-2'])
        engine.ledger.units['A-2'] = UnitState.SOLD

        with pytest.raises(UnitUnavailable) as exc_info:
            await engine.hold.hold(
                order_id='order-1',
                items=[
                    CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=3),
                    CartItem(
                        ticket_type_id=SEATED_TICKET_TYPE_ID, quantity=2, unit_ids=['A-1', 'A-2']
                    ),
                ],
            )

        assert exc_info.value.unit_id == 'A-2'
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10
        assert engine.ledger.remaining(SEATED_TICKET_TYPE_ID) == 2
        assert engine.ledger.units['A-1'] == UnitState.FREE
        stored = await engine.reservations.get(order_id='order-1')
        assert stored is not None and stored.status == ReservationStatus.RELEASED

    @pytest.mark.asyncio
    async def test_insufficient_stock_holds_nothing(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=1)

        with pytest.raises(InsufficientStock) as exc_info:
            await engine.hold.hold(
                order_id='order-1',
                items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=2)],
            )

        assert exc_info.value.remaining == 1
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 1

    @pytest.mark.asyncio
    async def test_uninitialized_ticket_type_fails_closed(self, engine: Engine) -> None:
        with pytest.raises(InsufficientStock):
            await engine.hold.hold(
                order_id='order-1',
                items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=1)],
            )

    @pytest.mark.asyncio
    async def test_second_hold_for_same_order_rejected(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=10)
        items = [CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=1)]
        await engine.hold.hold(order_id='order-1', items=items)

        with pytest.raises(ConflictError):
            await engine.hold.hold(order_id='order-1', items=items)

        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 9

    @pytest.mark.asyncio
    async def test_concurrent_holds_never_oversell(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=5)

        results = await asyncio.gather(
            *(
                engine.hold.hold(
                    order_id=f'order-{i}',
                    items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=2)],
                )
                for i in range(5)
            ),
            return_exceptions=True,
        )

        held = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, InsufficientStock)]
        assert len(held) == 2
        assert len(refused) == 3
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 1


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_returns_stock_once(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=10)
        await engine.hold.hold(
            order_id='order-1', items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=4)]
        )

        first = await engine.hold.release(order_id='order-1')
        second = await engine.hold.release(order_id='order-1')

        assert first.applied and first.status == ReservationStatus.RELEASED
        assert not second.applied and second.status == ReservationStatus.RELEASED
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 10

    @pytest.mark.asyncio
    async def test_release_after_commit_is_refused(self, engine: Engine) -> None:
        await seed_ticket_type(engine, initial_quantity=10)
        await engine.hold.hold(
            order_id='order-1', items=[CartItem(ticket_type_id=GA_TICKET_TYPE_ID, quantity=4)]
        )
        await engine.reservations.close(
            order_id='order-1',
            outcome=ReservationStatus.COMMITTED,
            now=datetime.now(timezone.utc),
        )
        await engine.ledger.commit_owner(owner_id='order-1')

        result = await engine.hold.release(order_id='order-1')

        assert not result.applied
        assert result.status == ReservationStatus.COMMITTED
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 6

    @pytest.mark.asyncio
    async def test_release_unknown_order(self, engine: Engine) -> None:
        result = await engine.hold.release(order_id='missing')

        assert not result.applied
        assert result.status is None
