from typing import Self

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.inventory.app.interface.i_inventory_ledger import IInventoryLedger


@attrs.define(frozen=True)
class InventoryInitResult:
    event_id: int
    ticket_types: int
    counters_created: int
    units_registered: int


class InitializeInventoryUseCase:
    """
    Push an event's catalog into the ledger.

    Idempotent: existing counters are never reset and known units keep their state,
    so running it again after sales have started is harmless.
    """

    def __init__(
        self, *, catalog_query_repo: ICatalogQueryRepo, inventory_ledger: IInventoryLedger
    ) -> None:
        self.catalog_query_repo = catalog_query_repo
        self.inventory_ledger = inventory_ledger
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        catalog_query_repo: ICatalogQueryRepo = Depends(Provide[Container.catalog_query_repo]),
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
    ) -> Self:
        return cls(catalog_query_repo=catalog_query_repo, inventory_ledger=inventory_ledger)

    @Logger.io
    async def initialize(self, *, event_id: int) -> InventoryInitResult:
        with self.tracer.start_as_current_span(
            'use_case.initialize_inventory', attributes={'event.id': event_id}
        ):
            ticket_types = await self.catalog_query_repo.list_ticket_types_by_event(
                event_id=event_id
            )
            if not ticket_types:
                raise NotFoundError(f'Event {event_id} has no ticket types')

            created = 0
            for ticket_type in ticket_types:
                if await self.inventory_ledger.initialize_stock(
                    ticket_type_id=ticket_type.id,
                    initial_quantity=ticket_type.initial_quantity,
                ):
                    created += 1

            units = await self.catalog_query_repo.list_units_by_event(event_id=event_id)
            registered = await self.inventory_ledger.register_units(
                unit_ids=[unit.id for unit in units]
            )

            Logger.base.info(
                f'📦 [INVENTORY] Event {event_id}: {created}/{len(ticket_types)} counters created, '
                f'{registered} units registered'
            )
            return InventoryInitResult(
                event_id=event_id,
                ticket_types=len(ticket_types),
                counters_created=created,
                units_registered=registered,
            )
