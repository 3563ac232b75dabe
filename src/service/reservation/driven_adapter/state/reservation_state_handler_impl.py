"""
Reservation State Handler Implementation

Storage Format:
    Key: reservation:{order_id}
    Type: Hash
    Fields:
        - order_id: UUID7 string
        - items: JSON array of cart items
        - token_ids: comma-joined ledger token ids
        - status: active | committed | released | expired
        - created_at / expires_at / closed_at: epoch ms

    Key: reservation:expiry
    Type: Sorted Set (member order_id, score expires_at ms), active reservations only

Closed records are kept for CLOSED_RETENTION_SECONDS so late callers still see
how the reservation ended.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from opentelemetry import trace
import orjson

from src.platform.logging.loguru_io import Logger
from src.platform.state.key_str_generator import (
    make_reservation_expiry_key,
    make_reservation_key,
)
from src.platform.state.kvrocks_client import kvrocks_client
from src.platform.state.lua_script_executor import lua_script_executor
from src.service.reservation.app.interface.i_reservation_state_handler import (
    IReservationStateHandler,
)
from src.service.reservation.domain.entity.reservation_entity import (
    CloseResult,
    Reservation,
    ReservationStatus,
)
from src.service.reservation.driven_adapter.state.lua_script import (
    CLOSE_RESERVATION_SCRIPT,
    OPEN_RESERVATION_SCRIPT,
)
from src.service.shared_kernel.domain.value_object.cart_item import CartItem


lua_script_executor.register(script_name='open_reservation', source=OPEN_RESERVATION_SCRIPT)
lua_script_executor.register(script_name='close_reservation', source=CLOSE_RESERVATION_SCRIPT)


def _to_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _from_ms(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _decode(value: Any) -> Any:
    return value.decode() if isinstance(value, bytes) else value


class ReservationStateHandlerImpl(IReservationStateHandler):
    CLOSED_RETENTION_SECONDS = 86400  # 1 day

    def __init__(self) -> None:
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def open(self, *, reservation: Reservation) -> bool:
        created = await lua_script_executor.run(
            script_name='open_reservation',
            client=kvrocks_client.get_client(),
            keys=[
                make_reservation_key(order_id=reservation.order_id),
                make_reservation_expiry_key(),
            ],
            args=[
                reservation.order_id,
                orjson.dumps([item.to_dict() for item in reservation.items]).decode(),
                _to_ms(reservation.created_at),
                _to_ms(reservation.expires_at),
            ],
        )
        if int(created) != 1:
            Logger.base.warning(
                f'⚠️ [RESERVATION] Reservation {reservation.order_id} already exists'
            )
            return False
        return True

    @Logger.io
    async def attach_tokens(self, *, order_id: str, token_ids: List[str]) -> None:
        client = kvrocks_client.get_client()
        await client.hset(  # type: ignore[misc]
            make_reservation_key(order_id=order_id), 'token_ids', ','.join(token_ids)
        )

    @Logger.io
    async def close(
        self, *, order_id: str, outcome: ReservationStatus, now: datetime
    ) -> CloseResult:
        with self.tracer.start_as_current_span(
            'reservation.close',
            attributes={
                'cache.system': 'kvrocks',
                'order.id': order_id,
                'reservation.outcome': outcome.value,
            },
        ):
            result, status = await lua_script_executor.run(
                script_name='close_reservation',
                client=kvrocks_client.get_client(),
                keys=[make_reservation_key(order_id=order_id), make_reservation_expiry_key()],
                args=[outcome.value, _to_ms(now), order_id, self.CLOSED_RETENTION_SECONDS],
            )

        result = _decode(result)
        if result == 'missing':
            return CloseResult(applied=False, status=None)
        return CloseResult(applied=result == 'ok', status=ReservationStatus(_decode(status)))

    @Logger.io
    async def get(self, *, order_id: str) -> Optional[Reservation]:
        client = kvrocks_client.get_client()
        raw = await client.hgetall(make_reservation_key(order_id=order_id))  # type: ignore[misc]
        if not raw:
            return None

        data = {_decode(k): _decode(v) for k, v in raw.items()}
        return Reservation(
            order_id=data['order_id'],
            items=[CartItem.from_dict(item) for item in orjson.loads(data['items'])],
            created_at=_from_ms(data['created_at']),
            expires_at=_from_ms(data['expires_at']),
            status=ReservationStatus(data['status']),
            token_ids=[t for t in data.get('token_ids', '').split(',') if t],
            closed_at=_from_ms(data['closed_at']) if data.get('closed_at') else None,
        )

    @Logger.io
    async def list_expired(self, *, now: datetime, limit: int) -> List[str]:
        client = kvrocks_client.get_client()
        order_ids = await client.zrangebyscore(
            make_reservation_expiry_key(), '-inf', _to_ms(now), start=0, num=limit
        )
        return [_decode(order_id) for order_id in order_ids]
