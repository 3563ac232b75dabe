"""HTTP helpers for API tests"""

from typing import Any, Dict, List, Optional

from fastapi.testclient import TestClient

from src.platform.config.core_setting import settings
from src.service.inventory.domain.entity.ticket_type_entity import TicketType
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import JwtAuth
from test.fakes import Engine, FakePaymentProvider
from test.shared_helpers import make_ticket_type
from test.util_constant import EVENT_ID, GA_TICKET_TYPE_ID


def login(client: TestClient, user: UserEntity) -> None:
    client.cookies.set(settings.AUTH_COOKIE_NAME, JwtAuth().create_jwt_token(user))


def logout(client: TestClient) -> None:
    client.cookies.clear()


def create_order(
    client: TestClient,
    *,
    quantity: int = 2,
    ticket_type_id: int = GA_TICKET_TYPE_ID,
    unit_ids: Optional[List[str]] = None,
    payment_method: str = 'online',
) -> Dict[str, Any]:
    response = client.post(
        '/api/order',
        json={
            'event_id': EVENT_ID,
            'items': [
                {
                    'ticket_type_id': ticket_type_id,
                    'quantity': quantity,
                    'unit_ids': unit_ids or [],
                }
            ],
            'payment_method': payment_method,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def webhook_body(*, order_id: str, external_ref: str = 'pay_001') -> Dict[str, str]:
    return {
        'order_id': order_id,
        'external_ref': external_ref,
        'signature': FakePaymentProvider.sign(order_id=order_id, external_ref=external_ref),
    }


def confirm_payment(
    client: TestClient, *, order_id: str, external_ref: str = 'pay_001'
) -> Dict[str, Any]:
    response = client.post(
        '/api/payment/confirm', json=webhook_body(order_id=order_id, external_ref=external_ref)
    )
    assert response.status_code == 200, response.text
    return response.json()


def initialize_event(client: TestClient, *, event_id: int = EVENT_ID) -> Dict[str, Any]:
    response = client.post(f'/api/inventory/event/{event_id}/initialize')
    assert response.status_code == 200, response.text
    return response.json()


def stock_ticket_type(
    engine: Engine, *, initial_quantity: int = 5, remaining: Optional[int] = None, **kwargs: Any
) -> TicketType:
    """Catalog entry plus a ledger counter, written straight into the fakes"""
    ticket_type = engine.catalog.add_ticket_type(
        make_ticket_type(initial_quantity=initial_quantity, **kwargs)
    )
    engine.ledger.stock[ticket_type.id] = [
        initial_quantity,
        initial_quantity if remaining is None else remaining,
    ]
    return ticket_type
