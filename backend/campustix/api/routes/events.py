"""
Event catalog endpoints. Listings are cached in Redis; single events are not.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.db.session import get_db
from campustix.models.event import Event
from campustix.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventListResponse, SubmissionResponse,
)
from campustix.schemas.pending_event import PendingEventResponse
from campustix.services.approval_service import submit_event
from campustix.services.event_service import get_event, list_events, update_event, delete_event
from campustix.services.cache_service import (
    get_cached_catalog, set_cached_catalog, invalidate_catalog_cache,
)
from campustix.core.security import CurrentUser, get_current_user, require_admin
from campustix.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_event_endpoint(
    event_data: EventCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit an event.

    Admins publish immediately. Everyone else creates a request that stays
    out of the catalog until an admin approves it.
    """
    record = await submit_event(db, event_data, user)

    if isinstance(record, Event):
        await invalidate_catalog_cache()
        return SubmissionResponse(
            status="published",
            message="Event created successfully",
            event=EventResponse.model_validate(record),
        )
    return SubmissionResponse(
        status="pending",
        message="Event request submitted successfully and is pending approval",
        request=PendingEventResponse.model_validate(record),
    )


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None, max_length=100),
    upcoming_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    List published events with pagination.
    Cached in Redis; invalidated on publish, edit, delete and purchase.
    """
    cached = await get_cached_catalog(page, page_size, category, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, category, upcoming_only)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_catalog(page, page_size, category, upcoming_only, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (needs live ticket counts)."""
    return await get_event(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    changes: EventUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Edit an event's descriptive fields (admin only)."""
    event = await update_event(db, event_id, changes)
    await invalidate_catalog_cache()
    return event


@router.delete("/{event_id}")
async def delete_event_endpoint(
    event_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event and its tickets (admin only)."""
    await delete_event(db, event_id)
    await invalidate_catalog_cache()
    return {"message": "Event deleted successfully", "event_id": event_id}
