from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.command.initialize_inventory_use_case import (
    InitializeInventoryUseCase,
)
from src.service.inventory.app.query.get_inventory_use_case import GetInventoryUseCase
from src.service.inventory.driving_adapter.http_controller.schema.inventory_schema import (
    InventoryInitResponse,
    StockLevelResponse,
)
from src.service.ticketing.domain.entity.user_entity import UserEntity
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_admin,
)


router = APIRouter()


@router.post('/event/{event_id}/initialize')
@Logger.io
async def initialize_inventory(
    event_id: int,
    current_user: UserEntity = Depends(require_admin),
    use_case: InitializeInventoryUseCase = Depends(InitializeInventoryUseCase.depends),
) -> InventoryInitResponse:
    result = await use_case.initialize(event_id=event_id)
    return InventoryInitResponse(
        event_id=result.event_id,
        ticket_types=result.ticket_types,
        counters_created=result.counters_created,
        units_registered=result.units_registered,
    )


@router.get('/ticket_type/{ticket_type_id}')
@Logger.io
async def get_stock(
    ticket_type_id: int,
    current_user: UserEntity = Depends(get_current_user),
    use_case: GetInventoryUseCase = Depends(GetInventoryUseCase.depends),
) -> StockLevelResponse:
    stock = await use_case.get_stock(ticket_type_id=ticket_type_id)
    return StockLevelResponse(
        ticket_type_id=stock.ticket_type_id,
        initial=stock.initial,
        remaining=stock.remaining,
        taken=stock.taken,
    )
