"""
Event catalog: reads plus the admin-only edit and removal paths.
Publishing goes through approval_service; capacity only moves through
ticket_service.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.models.event import Event
from campustix.models.pending_event import PendingEvent
from campustix.models.ticket import Ticket
from campustix.schemas.event import EventUpdate
from campustix.core.exceptions import NotFoundError, ValidationError
from campustix.core.logging import get_logger
from campustix.db.session import run_bounded

logger = get_logger(__name__)


async def _fetch_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError("Event", event_id)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    return await run_bounded("get_event", _fetch_event(db, event_id), db)


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    category: Optional[str] = None,
    upcoming_only: bool = False,
) -> tuple[list[Event], int]:
    """
    List events with pagination, soonest first.
    Uses ix_events_date for ordering and ix_events_category_date when filtering.
    """
    query = select(Event)

    if category:
        query = query.where(Event.category == category)
    if upcoming_only:
        query = query.where(Event.date >= date.today())

    async def _page() -> tuple[list[Event], int]:
        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar()

        events_query = (
            query
            .order_by(Event.date.asc(), Event.time_start.asc(), Event.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(events_query)
        return list(result.scalars().all()), total

    return await run_bounded("list_events", _page(), db)


async def update_event(db: AsyncSession, event_id: int, changes: EventUpdate) -> Event:
    """Update descriptive fields. total/available tickets are not editable here."""
    values = changes.model_dump(exclude_unset=True)
    for field in ("title", "location"):
        if field in values and (values[field] is None or not values[field].strip()):
            raise ValidationError(field, f"{field} cannot be empty")
    for field in ("date", "time_start", "time_end", "price"):
        if field in values and values[field] is None:
            raise ValidationError(field, f"{field} cannot be null")

    async def _update() -> Event:
        try:
            if values:
                result = await db.execute(
                    update(Event)
                    .where(Event.id == event_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise NotFoundError("Event", event_id)
            event = await _fetch_event(db, event_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return event

    event = await run_bounded("update_event", _update(), db)
    logger.info("event_updated", event_id=event_id, fields=sorted(values))
    return event


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """Remove an event together with its tickets. Admin action only."""

    async def _delete() -> int:
        try:
            tickets = await db.execute(delete(Ticket).where(Ticket.event_id == event_id))
            await db.execute(
                update(PendingEvent)
                .where(PendingEvent.event_id == event_id)
                .values(event_id=None)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(delete(Event).where(Event.id == event_id))
            if result.rowcount == 0:
                raise NotFoundError("Event", event_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return tickets.rowcount

    tickets_deleted = await run_bounded("delete_event", _delete(), db)
    logger.info("event_deleted", event_id=event_id, tickets_deleted=tickets_deleted)
