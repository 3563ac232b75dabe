from fastapi.testclient import TestClient

from src.service.inventory.domain.entity.inventory_unit_entity import InventoryUnit, UnitKind
from src.service.ticketing.domain.entity.user_entity import UserEntity
from test.api.api_helpers import create_order, initialize_event, login, stock_ticket_type
from test.fakes import Engine
from test.shared_helpers import make_ticket_type
from test.util_constant import (
    EVENT_ID,
    GA_TICKET_TYPE_ID,
    OTHER_EVENT_ID,
    SEATED_PRICE_MINOR,
    SEATED_TICKET_TYPE_ID,
)


def _seed_catalog(engine: Engine) -> None:
    engine.catalog.add_ticket_type(make_ticket_type(initial_quantity=50))
    engine.catalog.add_ticket_type(
        make_ticket_type(
            ticket_type_id=SEATED_TICKET_TYPE_ID, price_minor=SEATED_PRICE_MINOR, initial_quantity=2
        )
    )
    for unit_id in ('A-1', 'A-2'):
        engine.catalog.units.append(
            InventoryUnit(
                id=unit_id,
                event_id=EVENT_ID,
                ticket_type_id=SEATED_TICKET_TYPE_ID,
                kind=UnitKind.SEAT,
                section='A',
                label=unit_id,
            )
        )


class TestInitializeInventory:
    def test_admin_initializes_counters_and_units(
        self, client: TestClient, engine: Engine, admin: UserEntity
    ) -> None:
        _seed_catalog(engine)
        login(client, admin)

        body = initialize_event(client)

        assert body == {
            'event_id': EVENT_ID,
            'ticket_types': 2,
            'counters_created': 2,
            'units_registered': 2,
        }
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 50

    def test_second_initialization_keeps_live_counters(
        self, client: TestClient, engine: Engine, admin: UserEntity
    ) -> None:
        _seed_catalog(engine)
        login(client, admin)
        initialize_event(client)
        create_order(client, quantity=5)

        body = initialize_event(client)

        assert body['counters_created'] == 0
        assert body['units_registered'] == 0
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 45

    def test_customer_cannot_initialize(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        _seed_catalog(engine)
        login(client, customer)

        response = client.post(f'/api/inventory/event/{EVENT_ID}/initialize')

        assert response.status_code == 403
        assert response.json()['code'] == 'FORBIDDEN'

    def test_event_without_ticket_types(
        self, client: TestClient, admin: UserEntity
    ) -> None:
        login(client, admin)

        response = client.post(f'/api/inventory/event/{OTHER_EVENT_ID}/initialize')

        assert response.status_code == 404

    def test_requires_login(self, client: TestClient) -> None:
        response = client.post(f'/api/inventory/event/{EVENT_ID}/initialize')

        assert response.status_code == 401
        assert response.json()['detail'] == 'Not authenticated'


class TestGetStock:
    def test_reports_taken_stock(
        self, client: TestClient, engine: Engine, admin: UserEntity
    ) -> None:
        _seed_catalog(engine)
        login(client, admin)
        initialize_event(client)
        create_order(client, quantity=3)

        response = client.get(f'/api/inventory/ticket_type/{GA_TICKET_TYPE_ID}')

        assert response.status_code == 200
        assert response.json() == {
            'ticket_type_id': GA_TICKET_TYPE_ID,
            'initial': 50,
            'remaining': 47,
            'taken': 3,
        }

    def test_unknown_ticket_type(self, client: TestClient, customer: UserEntity) -> None:
        login(client, customer)

        response = client.get('/api/inventory/ticket_type/999')

        assert response.status_code == 404
        assert response.json()['code'] == 'TICKET_TYPE_NOT_FOUND'


class TestCommonEndpoints:
    def test_health_is_public(self, client: TestClient) -> None:
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    def test_metrics_exposes_order_counters(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        create_order(client, quantity=1)

        response = client.get('/metrics')

        assert response.status_code == 200
        assert 'fulfillment_orders_created_total' in response.text
