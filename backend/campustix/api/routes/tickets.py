"""
Ticket endpoints backed by the inventory ledger.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.db.session import get_db
from campustix.schemas.ticket import TicketPurchase, TicketResponse
from campustix.services.ticket_service import purchase_tickets, get_user_tickets, get_event_tickets
from campustix.services.cache_service import invalidate_catalog_cache
from campustix.core.security import CurrentUser, get_current_user_id, require_admin

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("/", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def purchase_ticket_endpoint(
    purchase: TicketPurchase,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Buy tickets for an event.

    The availability check and the decrement happen in a single conditional
    UPDATE, so concurrent buyers can never oversell. Not enough tickets left
    returns 409 with code "sold_out".
    """
    ticket = await purchase_tickets(db, user_id, purchase.event_id, purchase.quantity)
    # available_tickets changed, listings are stale
    await invalidate_catalog_cache()
    return ticket


@router.get("/my", response_model=list[TicketResponse])
async def list_my_tickets(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Tickets of the authenticated user, most recent first."""
    return await get_user_tickets(db, user_id)


@router.get("/event/{event_id}", response_model=list[TicketResponse])
async def list_event_tickets(
    event_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every ticket sold for an event (admin only)."""
    return await get_event_tickets(db, event_id)
