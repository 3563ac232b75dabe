from fastapi.testclient import TestClient

from src.service.ticketing.domain.entity.user_entity import UserEntity
from test.api.api_helpers import (
    confirm_payment,
    create_order,
    login,
    logout,
    stock_ticket_type,
    webhook_body,
)
from test.fakes import Engine
from test.util_constant import ADMIN_ID, GA_TICKET_TYPE_ID


class TestConfirmWebhook:
    def test_confirm_and_replay(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client, quantity=2)
        # Webhooks carry no session
        logout(client)

        first = confirm_payment(client, order_id=order['order_id'])
        second = confirm_payment(client, order_id=order['order_id'])

        assert first == {
            'order_id': order['order_id'],
            'external_ref': 'pay_001',
            'status': 'paid',
            'already_confirmed': False,
        }
        assert second['already_confirmed'] is True
        assert len(engine.store.tickets_of(order['order_id'])) == 2

    def test_bad_signature(self, client: TestClient, engine: Engine, customer: UserEntity) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client)

        body = webhook_body(order_id=order['order_id'])
        body['signature'] = 'forged'
        response = client.post('/api/payment/confirm', json=body)

        assert response.status_code == 401
        assert response.json()['code'] == 'SIGNATURE_INVALID'

    def test_expired_reservation(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client, quantity=2)
        engine.reservations.force_deadline_passed(order['order_id'])

        response = client.post(
            '/api/payment/confirm', json=webhook_body(order_id=order['order_id'])
        )

        assert response.status_code == 409
        assert response.json()['code'] == 'RESERVATION_EXPIRED'
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 5


class TestPaymentFailedWebhook:
    def test_failed_payment_returns_stock(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client, quantity=3)

        response = client.post(
            '/api/payment/failed', json=webhook_body(order_id=order['order_id'])
        )

        assert response.status_code == 200
        assert response.json()['status'] == 'failed'
        assert response.json()['failure_reason'] == 'payment_failed'
        assert engine.ledger.remaining(GA_TICKET_TYPE_ID) == 5


class TestCashConfirmation:
    def test_admin_confirms_cash_order(
        self, client: TestClient, engine: Engine, customer: UserEntity, admin: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client, quantity=1, payment_method='cash')

        login(client, admin)
        response = client.post(f'/api/payment/cash/{order["order_id"]}/confirm')

        assert response.status_code == 200
        assert response.json()['status'] == 'paid'
        stored = engine.store.orders[order['order_id']]
        assert stored.settled_by == str(ADMIN_ID)

    def test_customer_cannot_confirm_cash(
        self, client: TestClient, engine: Engine, customer: UserEntity
    ) -> None:
        stock_ticket_type(engine)
        login(client, customer)
        order = create_order(client, quantity=1, payment_method='cash')

        response = client.post(f'/api/payment/cash/{order["order_id"]}/confirm')

        assert response.status_code == 403
