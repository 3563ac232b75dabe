from collections import defaultdict
from typing import Dict, List, Self, Tuple

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import CustomBaseError, DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.fulfillment_metrics import metrics
from src.service.inventory.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.inventory.domain.entity.ticket_type_entity import TicketType
from src.service.reservation.app.command.hold_inventory_use_case import HoldInventoryUseCase
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.error.fulfillment_error import TicketTypeNotFound
from src.service.shared_kernel.domain.value_object.cart_item import CartItem
from src.service.ticketing.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.ticketing.app.interface.i_order_query_repo import IOrderQueryRepo
from src.service.ticketing.domain.entity.order_entity import Order


class CreateOrderUseCase:
    """
    Turn a cart into a pending_payment order backed by an inventory hold.

    Flow:
    1. Validate every item against the catalog (event, sales window, per-order and
       per-user limits, unit count)
    2. Build a draft order
    3. Hold inventory under the order id (all or nothing)
    4. Move to pending_payment and insert; a failed insert releases the hold

    The per-user limit counts committed tickets only, so two concurrent orders of the
    same user can both pass it. Stock and unit exclusivity are unaffected.
    """

    def __init__(
        self,
        *,
        catalog_query_repo: ICatalogQueryRepo,
        order_query_repo: IOrderQueryRepo,
        order_command_repo: IOrderCommandRepo,
        hold_inventory_use_case: HoldInventoryUseCase,
    ) -> None:
        self.catalog_query_repo = catalog_query_repo
        self.order_query_repo = order_query_repo
        self.order_command_repo = order_command_repo
        self.hold_inventory_use_case = hold_inventory_use_case
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        catalog_query_repo: ICatalogQueryRepo = Depends(Provide[Container.catalog_query_repo]),
        order_query_repo: IOrderQueryRepo = Depends(Provide[Container.order_query_repo]),
        order_command_repo: IOrderCommandRepo = Depends(Provide[Container.order_command_repo]),
        hold_inventory_use_case: HoldInventoryUseCase = Depends(
            Provide[Container.hold_inventory_use_case]
        ),
    ) -> Self:
        return cls(
            catalog_query_repo=catalog_query_repo,
            order_query_repo=order_query_repo,
            order_command_repo=order_command_repo,
            hold_inventory_use_case=hold_inventory_use_case,
        )

    async def _validate(
        self, *, user_id: int, event_id: int, items: List[CartItem]
    ) -> Dict[int, TicketType]:
        if not items:
            raise DomainError('Order must contain at least one item')

        ticket_type_ids = sorted({item.ticket_type_id for item in items})
        ticket_types = await self.catalog_query_repo.get_ticket_types(
            ticket_type_ids=ticket_type_ids
        )

        totals: Dict[int, int] = defaultdict(int)
        for item in items:
            ticket_type = ticket_types.get(item.ticket_type_id)
            if ticket_type is None or ticket_type.event_id != event_id:
                raise TicketTypeNotFound(ticket_type_id=item.ticket_type_id, event_id=event_id)
            ticket_type.validate_purchase(quantity=item.quantity)
            if item.is_seated and len(item.unit_ids) != item.quantity:
                raise DomainError(
                    f'Ticket type {item.ticket_type_id}: {len(item.unit_ids)} units selected '
                    f'for quantity {item.quantity}'
                )
            totals[item.ticket_type_id] += item.quantity

        for ticket_type_id, quantity in totals.items():
            ticket_types[ticket_type_id].validate_purchase(quantity=quantity)

        if len({ticket_types[tid].currency for tid in totals}) > 1:
            raise DomainError('All items of an order must share one currency')

        already_bought = await self.order_query_repo.count_committed_tickets(
            user_id=user_id, ticket_type_ids=ticket_type_ids
        )
        for ticket_type_id, quantity in totals.items():
            ticket_types[ticket_type_id].validate_user_cap(
                already_bought=already_bought.get(ticket_type_id, 0), quantity=quantity
            )

        return ticket_types

    @Logger.io
    async def create_order(
        self,
        *,
        user_id: int,
        event_id: int,
        items: List[CartItem],
        payment_method: PaymentMethod,
    ) -> Tuple[Order, Reservation]:
        with self.tracer.start_as_current_span(
            'use_case.create_order',
            attributes={'user.id': user_id, 'event.id': event_id, 'order.items': len(items)},
        ):
            try:
                ticket_types = await self._validate(
                    user_id=user_id, event_id=event_id, items=items
                )
                order = Order.create(
                    user_id=user_id,
                    event_id=event_id,
                    items=items,
                    total_amount_minor=sum(
                        ticket_types[item.ticket_type_id].subtotal_minor(quantity=item.quantity)
                        for item in items
                    ),
                    currency=ticket_types[items[0].ticket_type_id].currency,
                    payment_method=payment_method,
                )
                order_id = str(order.id)
                trace.get_current_span().set_attribute('order.id', order_id)

                reservation = await self.hold_inventory_use_case.hold(
                    order_id=order_id, items=items
                )
            except CustomBaseError as e:
                metrics.record_order_rejected(code=e.code)
                raise

            try:
                order = await self.order_command_repo.create(order=order.mark_pending_payment())
            except Exception:
                await self.hold_inventory_use_case.release(order_id=order_id)
                raise

            metrics.record_order_created(payment_method=payment_method.value)
            Logger.base.info(
                f'🛒 [ORDER] {order.order_number} ({order_id}) pending payment: '
                f'{order.total_amount_minor} {order.currency}'
            )
            return order, reservation
