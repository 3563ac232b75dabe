from pydantic import BaseModel, Field


class TicketScanRequest(BaseModel):
    model_config = {
        'json_schema_extra': {'example': {'ticket_code': 'TKT-M5X2K9A1-7QZ3B8WD', 'event_id': 1}},
    }

    ticket_code: str
    event_id: int


class TicketCancelRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255)


class CheckInStatsResponse(BaseModel):
    event_id: int
    total: int
    checked_in: int
    remaining: int
