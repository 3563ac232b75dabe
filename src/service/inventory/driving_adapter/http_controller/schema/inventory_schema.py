from pydantic import BaseModel


class InventoryInitResponse(BaseModel):
    event_id: int
    ticket_types: int
    counters_created: int
    units_registered: int


class StockLevelResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {'ticket_type_id': 3, 'initial': 500, 'remaining': 412, 'taken': 88}
        },
    }

    ticket_type_id: int
    initial: int
    remaining: int
    taken: int
