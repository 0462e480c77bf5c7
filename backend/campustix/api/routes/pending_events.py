"""
Moderation endpoints for event requests. Admin only.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.db.session import get_db
from campustix.schemas.pending_event import PendingEventResponse, DecisionRequest, DecisionResponse
from campustix.services.approval_service import (
    decide_pending_event, list_pending_events, get_pending_event,
)
from campustix.services.cache_service import invalidate_catalog_cache
from campustix.core.security import CurrentUser, require_admin

router = APIRouter(prefix="/pending-events", tags=["Moderation"])


@router.get("/", response_model=list[PendingEventResponse])
async def list_pending_endpoint(
    status: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_pending_events(db, status)


@router.get("/{request_id}", response_model=PendingEventResponse)
async def get_pending_endpoint(
    request_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await get_pending_event(db, request_id)


@router.put("/{request_id}", response_model=DecisionResponse)
async def decide_pending_endpoint(
    request_id: int,
    decision: DecisionRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Approve or reject a request. Approval publishes a new event with the
    requested capacity. A request can be decided only once; repeats get 409.
    """
    pending, event = await decide_pending_event(
        db, request_id, decision.status, decision.admin_notes, admin,
    )
    if event is not None:
        await invalidate_catalog_cache()

    return DecisionResponse(
        request_id=pending.id,
        status=pending.status,
        event_id=event.id if event else None,
        message=f"Event request {pending.status}",
    )
