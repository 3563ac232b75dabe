"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.service.inventory.driven_adapter.repo.catalog_query_repo_impl import (
    CatalogQueryRepoImpl,
)
from src.service.inventory.driven_adapter.state.inventory_ledger_impl import InventoryLedgerImpl
from src.service.reservation.app.command.hold_inventory_use_case import HoldInventoryUseCase
from src.service.reservation.app.command.sweep_expired_reservations_use_case import (
    SweepExpiredReservationsUseCase,
)
from src.service.reservation.driven_adapter.state.reservation_state_handler_impl import (
    ReservationStateHandlerImpl,
)
from src.service.ticketing.app.command.cancel_ticket_use_case import CancelTicketUseCase
from src.service.ticketing.app.command.process_refund_use_case import ProcessRefundUseCase
from src.service.ticketing.app.command.request_refund_use_case import RequestRefundUseCase
from src.service.ticketing.app.command.settle_order_use_case import SettleOrderUseCase
from src.service.ticketing.driven_adapter.notification.notification_publisher_impl import (
    NotificationPublisherImpl,
)
from src.service.ticketing.driven_adapter.payment.payment_provider_impl import (
    PaymentProviderImpl,
)
from src.service.ticketing.driven_adapter.repo.order_command_repo_impl import (
    OrderCommandRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.order_query_repo_impl import OrderQueryRepoImpl
from src.service.ticketing.driven_adapter.repo.payment_confirmation_repo_impl import (
    PaymentConfirmationRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.refund_command_repo_impl import (
    RefundCommandRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.ticket_command_repo_impl import (
    TicketCommandRepoImpl,
)
from src.service.ticketing.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Inventory Ledger + catalog (Kvrocks / PostgreSQL)
    inventory_ledger = providers.Singleton(InventoryLedgerImpl)
    catalog_query_repo = providers.Singleton(CatalogQueryRepoImpl)

    # Reservation store (Kvrocks)
    reservation_state_handler = providers.Singleton(ReservationStateHandlerImpl)

    # Repositories (stateless - acquire a pooled asyncpg connection per call)
    order_command_repo = providers.Singleton(OrderCommandRepoImpl)
    order_query_repo = providers.Singleton(OrderQueryRepoImpl)
    ticket_command_repo = providers.Singleton(TicketCommandRepoImpl)
    refund_command_repo = providers.Singleton(RefundCommandRepoImpl)
    payment_confirmation_repo = providers.Singleton(PaymentConfirmationRepoImpl)

    # Outbound
    payment_provider = providers.Singleton(PaymentProviderImpl)
    notification_publisher = providers.Singleton(NotificationPublisherImpl)

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)

    # Use cases shared by other use cases and by the sweeper (stateless, can be Singleton)
    hold_inventory_use_case = providers.Singleton(
        HoldInventoryUseCase,
        reservation_state_handler=reservation_state_handler,
        inventory_ledger=inventory_ledger,
    )
    sweep_expired_reservations_use_case = providers.Singleton(
        SweepExpiredReservationsUseCase,
        reservation_state_handler=reservation_state_handler,
        inventory_ledger=inventory_ledger,
        order_command_repo=order_command_repo,
    )
    settle_order_use_case = providers.Singleton(
        SettleOrderUseCase,
        order_command_repo=order_command_repo,
        reservation_state_handler=reservation_state_handler,
        inventory_ledger=inventory_ledger,
        sweep_expired_reservations_use_case=sweep_expired_reservations_use_case,
        notification_publisher=notification_publisher,
    )
    cancel_ticket_use_case = providers.Singleton(
        CancelTicketUseCase,
        ticket_command_repo=ticket_command_repo,
        inventory_ledger=inventory_ledger,
    )
    request_refund_use_case = providers.Singleton(
        RequestRefundUseCase,
        refund_command_repo=refund_command_repo,
        order_command_repo=order_command_repo,
    )
    process_refund_use_case = providers.Singleton(
        ProcessRefundUseCase,
        refund_command_repo=refund_command_repo,
        order_command_repo=order_command_repo,
        ticket_command_repo=ticket_command_repo,
        payment_provider=payment_provider,
        cancel_ticket_use_case=cancel_ticket_use_case,
        notification_publisher=notification_publisher,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
