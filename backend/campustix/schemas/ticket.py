"""
Pydantic schemas for ticket purchase and listing.
"""

from datetime import date as date_type, datetime, time
from typing import Optional
from pydantic import BaseModel, Field

from campustix.core.config import get_settings

settings = get_settings()


class TicketPurchase(BaseModel):
    event_id: int
    quantity: int = Field(default=1, gt=0, le=settings.MAX_TICKETS_PER_PURCHASE)


class TicketEventSummary(BaseModel):
    id: int
    title: str
    date: date_type
    time_start: time
    time_end: time
    location: str
    image_url: Optional[str]

    model_config = {"from_attributes": True}


class TicketResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    ticket_code: str
    quantity: int
    status: str
    purchase_date: datetime
    event: Optional[TicketEventSummary] = None

    model_config = {"from_attributes": True}
