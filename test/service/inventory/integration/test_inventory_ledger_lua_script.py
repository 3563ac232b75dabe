"""
Integration test for the inventory ledger Lua scripts

Runs InventoryLedgerImpl against Kvrocks: reserve checks and writes happen in one
script call, owner settlement closes the owner, restock never overflows.
"""

import asyncio

import pytest
from redis.asyncio import Redis

from src.platform.exception.exceptions import DomainError
from src.platform.state.key_str_generator import make_owner_tokens_key, make_stock_key
from src.service.inventory.driven_adapter.state.inventory_ledger_impl import InventoryLedgerImpl
from src.service.shared_kernel.domain.enum.unit_state import UnitState
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InsufficientStock,
    UnitUnavailable,
)


TICKET_TYPE_ID = 7001


@pytest.fixture
def ledger() -> InventoryLedgerImpl:
    return InventoryLedgerImpl()


async def _remaining(ledger: InventoryLedgerImpl) -> int:
    stock = await ledger.get_stock(ticket_type_id=TICKET_TYPE_ID)
    assert stock is not None
    return stock.remaining


class TestReserveStockLuaScript:
    @pytest.mark.asyncio
    async def test_unknown_ticket_type_fails_closed(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        with pytest.raises(InsufficientStock) as exc_info:
            await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=1)

        assert exc_info.value.remaining == 0
        assert await kvrocks.exists(make_stock_key(ticket_type_id=TICKET_TYPE_ID)) == 0
        assert await kvrocks.exists(make_owner_tokens_key(owner_id='order-1')) == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock_leaves_counter_untouched(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=3)

        with pytest.raises(InsufficientStock) as exc_info:
            await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=4)
        assert exc_info.value.remaining == 3
        assert await _remaining(ledger) == 3

        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=3)
        assert await _remaining(ledger) == 0

        with pytest.raises(InsufficientStock):
            await ledger.try_reserve(owner_id='order-2', ticket_type_id=TICKET_TYPE_ID, quantity=1)
        assert await _remaining(ledger) == 0

    @pytest.mark.asyncio
    async def test_last_unit_goes_to_one_caller(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=1)

        results = await asyncio.gather(
            *(
                ledger.try_reserve(
                    owner_id=f'order-{i}', ticket_type_id=TICKET_TYPE_ID, quantity=1
                )
                for i in range(8)
            ),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert sum(isinstance(r, InsufficientStock) for r in results) == 7
        assert await _remaining(ledger) == 0

    @pytest.mark.asyncio
    async def test_initialize_never_resets_counter(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        assert await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=5)
        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=2)

        assert not await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=9)

        stock = await ledger.get_stock(ticket_type_id=TICKET_TYPE_ID)
        assert stock is not None
        assert (stock.initial, stock.remaining) == (5, 3)


class TestReserveUnitsLuaScript:
    @pytest.mark.asyncio
    async def test_all_or_nothing(self, kvrocks: Redis, ledger: InventoryLedgerImpl) -> None:
        assert await ledger.register_units(unit_ids=['A-1', 'A-2', 'A-3']) == 3
        await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-2'])

        with pytest.raises(UnitUnavailable) as exc_info:
            await ledger.try_reserve_units(owner_id='order-2', unit_ids=['A-1', 'A-2', 'A-3'])

        assert exc_info.value.unit_id == 'A-2'
        states = await ledger.get_unit_states(unit_ids=['A-1', 'A-2', 'A-3'])
        assert states == {'A-1': UnitState.FREE, 'A-2': UnitState.HELD, 'A-3': UnitState.FREE}

    @pytest.mark.asyncio
    async def test_unregistered_unit_is_unavailable(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.register_units(unit_ids=['A-1'])

        with pytest.raises(UnitUnavailable) as exc_info:
            await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-1', 'Z-9'])

        assert exc_info.value.unit_id == 'Z-9'
        assert (await ledger.get_unit_states(unit_ids=['A-1']))['A-1'] == UnitState.FREE

    @pytest.mark.asyncio
    async def test_register_keeps_existing_state(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.register_units(unit_ids=['A-1'])
        await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-1'])

        assert await ledger.register_units(unit_ids=['A-1', 'A-2']) == 1
        assert (await ledger.get_unit_states(unit_ids=['A-1']))['A-1'] == UnitState.HELD


class TestSettleLuaScript:
    @pytest.mark.asyncio
    async def test_release_returns_stock_once(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=5)
        token = await ledger.try_reserve(
            owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=2
        )

        assert await ledger.release(token_id=token.id)
        assert not await ledger.release(token_id=token.id)
        assert not await ledger.commit(token_id=token.id)
        assert await _remaining(ledger) == 5

    @pytest.mark.asyncio
    async def test_commit_keeps_stock_taken(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=5)
        token = await ledger.try_reserve(
            owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=2
        )

        assert await ledger.commit(token_id=token.id)
        assert not await ledger.commit(token_id=token.id)
        assert not await ledger.release(token_id=token.id)
        assert await _remaining(ledger) == 3

    @pytest.mark.asyncio
    async def test_unknown_token_is_a_no_op(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        assert not await ledger.release(token_id='no-such-token')
        assert not await ledger.commit(token_id='no-such-token')

    @pytest.mark.asyncio
    async def test_commit_owner_sells_units(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=5)
        await ledger.register_units(unit_ids=['A-1', 'A-2'])
        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=1)
        await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-1', 'A-2'])

        assert await ledger.commit_owner(owner_id='order-1') == 2
        assert await ledger.commit_owner(owner_id='order-1') == 0
        # Committed tokens are not released by a late release
        assert await ledger.release_owner(owner_id='order-1') == 0

        states = await ledger.get_unit_states(unit_ids=['A-1', 'A-2'])
        assert set(states.values()) == {UnitState.SOLD}
        assert await _remaining(ledger) == 4

    @pytest.mark.asyncio
    async def test_closed_owner_cannot_reserve_again(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=5)
        await ledger.register_units(unit_ids=['A-1'])
        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=2)

        assert await ledger.release_owner(owner_id='order-1') == 1
        assert await _remaining(ledger) == 5

        with pytest.raises(InsufficientStock):
            await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=1)
        with pytest.raises(UnitUnavailable):
            await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-1'])

        assert await ledger.release_owner(owner_id='order-1') == 0
        assert await _remaining(ledger) == 5
        assert (await ledger.get_unit_states(unit_ids=['A-1']))['A-1'] == UnitState.FREE


class TestRestockLuaScript:
    @pytest.mark.asyncio
    async def test_restock_cannot_exceed_initial(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=2)
        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=1)
        await ledger.commit_owner(owner_id='order-1')

        with pytest.raises(DomainError, match='exceed'):
            await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=2)
        assert await _remaining(ledger) == 1

        stock = await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=1)
        assert stock.remaining == 2

        with pytest.raises(DomainError, match='exceed'):
            await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=1)

    @pytest.mark.asyncio
    async def test_restock_frees_only_sold_units(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        await ledger.initialize_stock(ticket_type_id=TICKET_TYPE_ID, initial_quantity=2)
        await ledger.register_units(unit_ids=['A-1', 'A-2'])
        await ledger.try_reserve(owner_id='order-1', ticket_type_id=TICKET_TYPE_ID, quantity=2)
        await ledger.try_reserve_units(owner_id='order-1', unit_ids=['A-1', 'A-2'])
        await ledger.commit_owner(owner_id='order-1')

        stock = await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=1, unit_ids=['A-1'])

        assert stock.remaining == 1
        states = await ledger.get_unit_states(unit_ids=['A-1', 'A-2'])
        assert states == {'A-1': UnitState.FREE, 'A-2': UnitState.SOLD}

        # A-1 is free again, not sold
        with pytest.raises(DomainError, match='not sold'):
            await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=1, unit_ids=['A-1'])
        assert await _remaining(ledger) == 1

    @pytest.mark.asyncio
    async def test_restock_unknown_ticket_type(
        self, kvrocks: Redis, ledger: InventoryLedgerImpl
    ) -> None:
        with pytest.raises(DomainError, match='no inventory counter'):
            await ledger.restock(ticket_type_id=TICKET_TYPE_ID, quantity=1)
