"""
Test Configuration and Fixtures

This module provides:
- Environment setup before any application module reads settings
- In-memory engine fixture (every use case wired to fakes, see test/fakes.py)
- Caller identities for each role

Architecture:
- Use-case tests (test/service/**): drive the engine directly, no Kvrocks or PostgreSQL
- API tests (test/api/**): FastAPI TestClient with container providers overridden by fakes
- Integration tests (test/service/*/integration/**): Lua scripts against a real Kvrocks,
  skipped when none is reachable
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings and key_str_generator read these at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['KVROCKS_KEY_PREFIX'] = 'test_'
    else:
        os.environ['KVROCKS_KEY_PREFIX'] = f'test_{worker_id}_'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ['ENABLE_RESERVATION_SWEEPER'] = 'false'
    os.environ.setdefault('SECRET_KEY', 'test_secret_key')


_early_setup_test_environment()

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from redis.asyncio import Redis as AsyncRedis  # noqa: E402
from redis.exceptions import (  # noqa: E402
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)

from src.service.ticketing.domain.entity.user_entity import UserEntity  # noqa: E402
from src.service.ticketing.domain.enum.user_role import UserRole  # noqa: E402
from test.fakes import Engine, build_engine  # noqa: E402
from test.util_constant import (  # noqa: E402
    ADMIN_ID,
    ANOTHER_CUSTOMER_ID,
    CUSTOMER_ID,
    STAFF_ID,
    SUPER_ADMIN_ID,
)


# =============================================================================
# Pytest Hooks
# =============================================================================
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        path = str(item.fspath)
        if f'{os.sep}api{os.sep}' in path:
            item.add_marker(pytest.mark.api)
        elif f'{os.sep}integration{os.sep}' in path:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Engine
# =============================================================================
@pytest.fixture
def engine() -> Engine:
    return build_engine()


# =============================================================================
# Callers
# =============================================================================
@pytest.fixture
def customer() -> UserEntity:
    return UserEntity(id=CUSTOMER_ID, role=UserRole.CUSTOMER, email='buyer@test.com')


@pytest.fixture
def another_customer() -> UserEntity:
    return UserEntity(
        id=ANOTHER_CUSTOMER_ID, role=UserRole.CUSTOMER, email='another_buyer@test.com'
    )


@pytest.fixture
def staff() -> UserEntity:
    return UserEntity(id=STAFF_ID, role=UserRole.ORGANIZER_STAFF, email='staff@test.com')


@pytest.fixture
def admin() -> UserEntity:
    return UserEntity(id=ADMIN_ID, role=UserRole.ADMIN, email='admin@test.com')


@pytest.fixture
def super_admin() -> UserEntity:
    return UserEntity(id=SUPER_ADMIN_ID, role=UserRole.SUPER_ADMIN, email='root@test.com')


# =============================================================================
# Integration Fixtures (real Kvrocks, keys under KVROCKS_KEY_PREFIX)
# =============================================================================
async def _delete_test_keys(client: AsyncRedis) -> None:
    keys: list[str] = await client.keys(f'{os.environ["KVROCKS_KEY_PREFIX"]}*')  # type: ignore[misc]
    if keys:
        await client.delete(*keys)


@pytest_asyncio.fixture
async def kvrocks() -> AsyncGenerator[AsyncRedis, None]:
    from src.platform.state.kvrocks_client import kvrocks_client

    try:
        await kvrocks_client.initialize()
    except (RedisConnectionError, RedisTimeoutError) as e:
        pytest.skip(f'Kvrocks not reachable: {e}')

    client = kvrocks_client.get_client()
    await _delete_test_keys(client)
    try:
        yield client
    finally:
        await _delete_test_keys(client)
        # Each test gets its own event loop, so the pool cannot be reused
        await kvrocks_client.disconnect()
