"""
Key String Generator

Kvrocks key layout shared by the inventory ledger, the reservation store and
background jobs. Lua scripts rebuild some of these keys from the prefix, so the
formats below are mirrored in the *.lua files.
"""

from src.platform.config.core_setting import settings


def get_key_prefix() -> str:
    return settings.KVROCKS_KEY_PREFIX


def _make_key(key: str) -> str:
    """Add prefix to key for test isolation in parallel testing"""
    return f'{get_key_prefix()}{key}'


def make_stock_key(*, ticket_type_id: int) -> str:
    """Hash {initial, remaining} for a ticket type"""
    return _make_key(f'inventory:stock:{ticket_type_id}')


def make_unit_key(*, unit_id: str) -> str:
    """Hash {state, token} for a seat or table"""
    return _make_key(f'inventory:unit:{unit_id}')


def make_token_key(*, token_id: str) -> str:
    return _make_key(f'inventory:token:{token_id}')


def make_owner_key(*, owner_id: str) -> str:
    """Hash {closed} marking an owner whose holds were settled or released"""
    return _make_key(f'inventory:owner:{owner_id}')


def make_owner_tokens_key(*, owner_id: str) -> str:
    return _make_key(f'inventory:owner:{owner_id}:tokens')


def make_reservation_key(*, order_id: str) -> str:
    return _make_key(f'reservation:{order_id}')


def make_reservation_expiry_key() -> str:
    """Sorted set of active order ids scored by expires_at (epoch ms)"""
    return _make_key('reservation:expiry')


def make_sweep_lock_key() -> str:
    return _make_key('lock:reservation_sweep')


def make_notification_channel(*, kind: str) -> str:
    return _make_key(f'notification:{kind}')
