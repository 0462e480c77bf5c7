"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date as date_type, datetime, time
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field

from campustix.schemas.pending_event import PendingEventResponse


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    date: date_type
    time_start: time
    time_end: time
    location: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    total_tickets: int = Field(..., gt=0, le=100000)


class EventUpdate(BaseModel):
    """Descriptive fields only. Capacity is fixed once an event exists."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = Field(None, max_length=500)
    date: Optional[date_type] = None
    time_start: Optional[time] = None
    time_end: Optional[time] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

    model_config = {"extra": "forbid"}


class EventResponse(BaseModel):
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
    available_tickets: int
    created_by: int
    organizer_name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class SubmissionResponse(BaseModel):
    """Outcome of an event submission: published right away or queued for moderation."""

    status: Literal["published", "pending"]
    message: str
    event: Optional[EventResponse] = None
    request: Optional[PendingEventResponse] = None
