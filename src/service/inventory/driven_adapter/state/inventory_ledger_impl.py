"""
Inventory Ledger Implementation

Kvrocks-based ledger. Every mutation is exactly one Lua script call, so a check and
its write can never interleave with another request.

Storage Format:
    inventory:stock:{ticket_type_id}   Hash {initial, remaining}
    inventory:unit:{unit_id}           Hash {state: free|held|sold, token}
    inventory:token:{token_id}         Hash {owner, kind, ticket_type_id, quantity, unit_ids, state}
    inventory:owner:{owner_id}         Hash {closed}
    inventory:owner:{owner_id}:tokens  Set of token ids
"""

from typing import Any, Dict, List, Optional

from opentelemetry import trace
import uuid_utils as uuid

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.state.key_str_generator import (
    get_key_prefix,
    make_owner_key,
    make_owner_tokens_key,
    make_stock_key,
    make_token_key,
    make_unit_key,
)
from src.platform.state.kvrocks_client import kvrocks_client
from src.platform.state.lua_script_executor import lua_script_executor
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.inventory.domain.entity.reservation_token import (
    ReservationToken,
    StockLevel,
    TokenKind,
)
from src.service.inventory.driven_adapter.state.lua_script import LEDGER_SCRIPTS
from src.service.shared_kernel.domain.enum.unit_state import UnitState
from src.service.shared_kernel.domain.error.fulfillment_error import (
    InsufficientStock,
    UnitUnavailable,
)


for _name, _source in LEDGER_SCRIPTS.items():
    lua_script_executor.register(script_name=_name, source=_source)


def _decode(value: Any) -> Any:
    return value.decode() if isinstance(value, bytes) else value


class InventoryLedgerImpl(IInventoryLedger):
    def __init__(self) -> None:
        self.tracer = trace.get_tracer(__name__)

    async def _run(self, *, script_name: str, keys: List[str], args: List[Any]) -> Any:
        return await lua_script_executor.run(
            script_name=script_name,
            client=kvrocks_client.get_client(),
            keys=keys,
            args=args,
        )

    @Logger.io
    async def initialize_stock(self, *, ticket_type_id: int, initial_quantity: int) -> bool:
        if initial_quantity < 0:
            raise DomainError('Initial quantity cannot be negative')
        created = await self._run(
            script_name='initialize_stock',
            keys=[make_stock_key(ticket_type_id=ticket_type_id)],
            args=[initial_quantity],
        )
        if int(created) == 1:
            Logger.base.info(
                f'📦 [LEDGER] Initialized ticket type {ticket_type_id} with {initial_quantity}'
            )
            return True
        return False

    @Logger.io
    async def register_units(self, *, unit_ids: List[str]) -> int:
        if not unit_ids:
            return 0
        created = await self._run(
            script_name='register_units',
            keys=[make_unit_key(unit_id=unit_id) for unit_id in unit_ids],
            args=[],
        )
        return int(created)

    @Logger.io
    async def try_reserve(
        self, *, owner_id: str, ticket_type_id: int, quantity: int
    ) -> ReservationToken:
        if quantity < 1:
            raise DomainError('Quantity must be at least 1')

        token_id = str(uuid.uuid7())
        with self.tracer.start_as_current_span(
            'ledger.try_reserve',
            attributes={
                'cache.system': 'kvrocks',
                'ticket_type.id': ticket_type_id,
                'reserve.quantity': quantity,
            },
        ):
            status, remaining = await self._run(
                script_name='reserve_stock',
                keys=[
                    make_stock_key(ticket_type_id=ticket_type_id),
                    make_token_key(token_id=token_id),
                    make_owner_key(owner_id=owner_id),
                    make_owner_tokens_key(owner_id=owner_id),
                ],
                args=[token_id, owner_id, ticket_type_id, quantity],
            )

        status = _decode(status)
        if status != 'ok':
            if status == 'missing':
                Logger.base.warning(f'⚠️ [LEDGER] Ticket type {ticket_type_id} not initialized')
            elif status == 'closed':
                Logger.base.warning(f'⚠️ [LEDGER] Owner {owner_id} already closed')
            raise InsufficientStock(
                ticket_type_id=ticket_type_id, requested=quantity, remaining=int(remaining)
            )

        return ReservationToken(
            id=token_id,
            owner_id=owner_id,
            kind=TokenKind.STOCK,
            ticket_type_id=ticket_type_id,
            quantity=quantity,
        )

    @Logger.io
    async def try_reserve_units(self, *, owner_id: str, unit_ids: List[str]) -> ReservationToken:
        if not unit_ids:
            raise DomainError('At least one unit is required')
        if len(set(unit_ids)) != len(unit_ids):
            raise DomainError('Duplicate unit ids in one reservation')

        token_id = str(uuid.uuid7())
        with self.tracer.start_as_current_span(
            'ledger.try_reserve_units',
            attributes={'cache.system': 'kvrocks', 'reserve.units': len(unit_ids)},
        ):
            status, unit_id = await self._run(
                script_name='reserve_units',
                keys=[
                    make_token_key(token_id=token_id),
                    make_owner_key(owner_id=owner_id),
                    make_owner_tokens_key(owner_id=owner_id),
                    *(make_unit_key(unit_id=u) for u in unit_ids),
                ],
                args=[token_id, owner_id, ','.join(unit_ids), *unit_ids],
            )

        status = _decode(status)
        if status != 'ok':
            if status == 'closed':
                Logger.base.warning(f'⚠️ [LEDGER] Owner {owner_id} already closed')
            raise UnitUnavailable(unit_id=_decode(unit_id) or unit_ids[0])

        return ReservationToken(
            id=token_id,
            owner_id=owner_id,
            kind=TokenKind.UNITS,
            quantity=len(unit_ids),
            unit_ids=tuple(unit_ids),
        )

    async def _settle_token(self, *, token_id: str, action: str) -> bool:
        result = _decode(
            await self._run(
                script_name='settle_token',
                keys=[make_token_key(token_id=token_id)],
                args=[get_key_prefix(), token_id, action],
            )
        )
        if result != 'ok':
            Logger.base.info(f'[LEDGER] {action} skipped for token {token_id}: {result}')
            return False
        return True

    @Logger.io
    async def commit(self, *, token_id: str) -> bool:
        return await self._settle_token(token_id=token_id, action='commit')

    @Logger.io
    async def release(self, *, token_id: str) -> bool:
        return await self._settle_token(token_id=token_id, action='release')

    async def _settle_owner(self, *, owner_id: str, action: str) -> int:
        with self.tracer.start_as_current_span(
            f'ledger.{action}_owner',
            attributes={'cache.system': 'kvrocks', 'owner.id': owner_id},
        ):
            settled = await self._run(
                script_name='settle_owner',
                keys=[make_owner_key(owner_id=owner_id), make_owner_tokens_key(owner_id=owner_id)],
                args=[get_key_prefix(), action],
            )
        return int(settled)

    @Logger.io
    async def commit_owner(self, *, owner_id: str) -> int:
        return await self._settle_owner(owner_id=owner_id, action='commit')

    @Logger.io
    async def release_owner(self, *, owner_id: str) -> int:
        return await self._settle_owner(owner_id=owner_id, action='release')

    @Logger.io
    async def restock(
        self, *, ticket_type_id: int, quantity: int, unit_ids: Optional[List[str]] = None
    ) -> StockLevel:
        unit_ids = list(unit_ids or [])
        status, value = await self._run(
            script_name='restock',
            keys=[
                make_stock_key(ticket_type_id=ticket_type_id),
                *(make_unit_key(unit_id=u) for u in unit_ids),
            ],
            args=[quantity, *unit_ids],
        )

        status = _decode(status)
        if status == 'missing':
            raise DomainError(f'Ticket type {ticket_type_id} has no inventory counter')
        if status == 'overflow':
            raise DomainError(
                f'Restocking {quantity} would exceed the initial quantity of ticket type {ticket_type_id}'
            )
        if status == 'not_sold':
            raise DomainError(f'Unit {_decode(value)} is not sold')

        stock = await self.get_stock(ticket_type_id=ticket_type_id)
        if stock is None:
            raise DomainError(f'Ticket type {ticket_type_id} has no inventory counter')
        Logger.base.info(
            f'♻️ [LEDGER] Restocked {quantity} of ticket type {ticket_type_id} -> {stock.remaining}'
        )
        return stock

    @Logger.io
    async def get_stock(self, *, ticket_type_id: int) -> Optional[StockLevel]:
        client = kvrocks_client.get_client()
        initial, remaining = await client.hmget(  # type: ignore[misc]
            make_stock_key(ticket_type_id=ticket_type_id), ['initial', 'remaining']
        )
        if initial is None:
            return None
        return StockLevel(
            ticket_type_id=ticket_type_id, initial=int(initial), remaining=int(remaining)
        )

    @Logger.io
    async def get_unit_states(self, *, unit_ids: List[str]) -> Dict[str, Optional[UnitState]]:
        client = kvrocks_client.get_client()
        async with client.pipeline(transaction=False) as pipe:
            for unit_id in unit_ids:
                pipe.hget(make_unit_key(unit_id=unit_id), 'state')
            states = await pipe.execute()
        return {
            unit_id: UnitState(_decode(state)) if state else None
            for unit_id, state in zip(unit_ids, states)
        }
