"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.inventory.app.command import initialize_inventory_use_case
from src.service.inventory.app.query import get_inventory_use_case
from src.service.inventory.driving_adapter.http_controller import inventory_controller
from src.service.ticketing.app.command import (
    approve_refund_use_case,
    cancel_order_use_case,
    check_in_ticket_use_case,
    confirm_cash_order_use_case,
    confirm_payment_use_case,
    create_order_use_case,
    force_refund_use_case,
    payment_failed_use_case,
)
from src.service.ticketing.app.query import get_checkin_stats_use_case, get_order_use_case
from src.service.ticketing.driving_adapter.http_controller import (
    refund_controller,
    ticket_controller,
)
from src.service.ticketing.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    initialize_inventory_use_case,
    get_inventory_use_case,
    inventory_controller,
    create_order_use_case,
    cancel_order_use_case,
    get_order_use_case,
    confirm_payment_use_case,
    confirm_cash_order_use_case,
    payment_failed_use_case,
    approve_refund_use_case,
    force_refund_use_case,
    check_in_ticket_use_case,
    get_checkin_stats_use_case,
    refund_controller,
    ticket_controller,
    role_auth,
]
