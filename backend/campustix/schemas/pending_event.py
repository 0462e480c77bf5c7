"""
Pydantic schemas for the moderation queue.
"""

from datetime import date as date_type, datetime, time
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field


class PendingEventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    image_url: Optional[str]
    date: date_type
    time_start: time
    time_end: time
    location: str
    category: Optional[str]
    price: Decimal
    total_tickets: int
    requester_id: int
    status: str
    admin_notes: Optional[str]
    decided_by: Optional[int]
    decided_at: Optional[datetime]
    event_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class DecisionRequest(BaseModel):
    status: Literal["approved", "rejected"]
    admin_notes: Optional[str] = Field(None, max_length=1000)


class DecisionResponse(BaseModel):
    request_id: int
    status: str
    event_id: Optional[int] = None
    message: str
