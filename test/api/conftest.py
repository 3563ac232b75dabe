"""
API test fixtures

The DI container's adapters are overridden with the fakes of a fresh Engine, so
requests run the real controllers and use cases against in-memory state.
"""

from typing import Generator

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from src.platform.config.di import container
from test.fakes import Engine


@pytest.fixture
def client(engine: Engine) -> Generator[TestClient, None, None]:
    from test.test_main import app

    container.reset_singletons()
    container.inventory_ledger.override(providers.Object(engine.ledger))
    container.catalog_query_repo.override(providers.Object(engine.catalog))
    container.reservation_state_handler.override(providers.Object(engine.reservations))
    container.order_command_repo.override(providers.Object(engine.order_command_repo))
    container.order_query_repo.override(providers.Object(engine.order_query_repo))
    container.ticket_command_repo.override(providers.Object(engine.ticket_command_repo))
    container.refund_command_repo.override(providers.Object(engine.refund_command_repo))
    container.payment_confirmation_repo.override(
        providers.Object(engine.payment_confirmation_repo)
    )
    container.payment_provider.override(providers.Object(engine.payment_provider))
    container.notification_publisher.override(providers.Object(engine.notifications))

    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        container.reset_override()
        container.reset_singletons()
