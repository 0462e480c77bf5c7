"""
Event approval workflow: admins publish directly, everyone else goes through
the moderation queue.

Decisions are a conditional UPDATE on `status = 'pending'`. Exactly one
caller can move a request out of pending; every later (or concurrent) caller
sees zero affected rows and gets a ConflictError. On approval the status
change and the new event are committed in one transaction, so a request is
never approved without its event, and never produces two.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.models.event import Event
from campustix.models.pending_event import (
    PendingEvent, STATUS_PENDING, STATUS_APPROVED, DECISIONS,
)
from campustix.schemas.event import EventCreate
from campustix.core.exceptions import ConflictError, NotFoundError, ValidationError
from campustix.core.logging import get_logger
from campustix.core.metrics import record_decision, record_submission
from campustix.core.security import CurrentUser
from campustix.db.session import run_bounded

logger = get_logger(__name__)

# Fields copied verbatim from a submission / approved request onto an Event
DESCRIPTIVE_FIELDS = (
    "title", "description", "image_url", "date", "time_start", "time_end",
    "location", "category", "price",
)


def validate_submission(data: EventCreate) -> None:
    """Re-check the fields the workflow relies on, whatever built `data`."""
    for field in ("title", "location"):
        value = getattr(data, field, None)
        if value is None or not str(value).strip():
            raise ValidationError(field, f"{field} is required")

    for field in ("date", "time_start", "time_end"):
        if getattr(data, field, None) is None:
            raise ValidationError(field, f"{field} is required")

    total = getattr(data, "total_tickets", None)
    if isinstance(total, bool) or not isinstance(total, int) or total < 1:
        raise ValidationError("total_tickets", "total_tickets must be a positive integer")

    price = getattr(data, "price", 0)
    if price is not None and price < 0:
        raise ValidationError("price", "price cannot be negative")


def _descriptive_values(source) -> dict:
    values = {field: getattr(source, field) for field in DESCRIPTIVE_FIELDS}
    values["title"] = values["title"].strip()
    values["location"] = values["location"].strip()
    if values["price"] is None:
        values["price"] = 0
    return values


async def submit_event(
    db: AsyncSession,
    data: EventCreate,
    requester: CurrentUser,
) -> Union[Event, PendingEvent]:
    """
    Publish an event (admin) or queue it for moderation (anyone else).

    Returns the created Event or PendingEvent. Exactly one row is written.
    """
    validate_submission(data)
    return await run_bounded("submit_event", _submit(db, data, requester), db)


async def _submit(
    db: AsyncSession,
    data: EventCreate,
    requester: CurrentUser,
) -> Union[Event, PendingEvent]:
    values = _descriptive_values(data)

    if requester.is_admin:
        record = Event(
            **values,
            total_tickets=data.total_tickets,
            available_tickets=data.total_tickets,  # All tickets available initially
            created_by=requester.id,
        )
    else:
        record = PendingEvent(
            **values,
            total_tickets=data.total_tickets,
            requester_id=requester.id,
            status=STATUS_PENDING,
        )

    try:
        db.add(record)
        await db.flush()
        await db.refresh(record)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if isinstance(record, Event):
        record_submission("published")
        logger.info(
            "event_published",
            event_id=record.id,
            title=record.title,
            tickets=record.total_tickets,
            created_by=requester.id,
        )
    else:
        record_submission("pending")
        logger.info(
            "event_request_submitted",
            request_id=record.id,
            title=record.title,
            requester_id=requester.id,
        )
    return record


async def decide_pending_event(
    db: AsyncSession,
    request_id: int,
    decision: str,
    notes: Optional[str],
    moderator: CurrentUser,
) -> tuple[PendingEvent, Optional[Event]]:
    """
    Approve or reject a pending request.

    Returns the updated request and, when approved, the event created from it.
    Raises NotFoundError for an unknown request and ConflictError when the
    request has already been decided.
    """
    if decision not in DECISIONS:
        raise ValidationError("status", "status must be 'approved' or 'rejected'")

    return await run_bounded(
        "decide_pending_event",
        _decide(db, request_id, decision, notes, moderator),
        db,
    )


async def _decide(
    db: AsyncSession,
    request_id: int,
    decision: str,
    notes: Optional[str],
    moderator: CurrentUser,
) -> tuple[PendingEvent, Optional[Event]]:
    try:
        transition = await db.execute(
            update(PendingEvent)
            .where(
                PendingEvent.id == request_id,
                PendingEvent.status == STATUS_PENDING,
            )
            .values(
                status=decision,
                admin_notes=notes,
                decided_by=moderator.id,
                decided_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

        if transition.rowcount != 1:
            current = await db.scalar(
                select(PendingEvent.status).where(PendingEvent.id == request_id)
            )
            if current is None:
                raise NotFoundError("Event request", request_id)
            record_decision("conflict")
            logger.warning(
                "event_request_already_decided",
                request_id=request_id,
                status=current,
                attempted=decision,
            )
            raise ConflictError(f"Event request {request_id} has already been {current}")

        result = await db.execute(
            select(PendingEvent)
            .where(PendingEvent.id == request_id)
            .execution_options(populate_existing=True)
        )
        pending = result.scalar_one()

        event = None
        if decision == STATUS_APPROVED:
            event = Event(
                **_descriptive_values(pending),
                total_tickets=pending.total_tickets,
                available_tickets=pending.total_tickets,
                created_by=pending.requester_id,
            )
            db.add(event)
            await db.flush()
            pending.event_id = event.id
            await db.flush()
            await db.refresh(event)
            await db.refresh(pending)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    record_decision(decision)
    logger.info(
        "event_request_decided",
        request_id=request_id,
        decision=decision,
        moderator_id=moderator.id,
        event_id=event.id if event else None,
    )
    return pending, event


async def list_pending_events(
    db: AsyncSession,
    status: Optional[str] = None,
) -> list[PendingEvent]:
    """Moderation queue, newest first, optionally filtered by status."""
    query = select(PendingEvent)
    if status is not None:
        query = query.where(PendingEvent.status == status)
    query = query.order_by(PendingEvent.created_at.desc(), PendingEvent.id.desc())

    async def _list() -> list[PendingEvent]:
        result = await db.execute(query)
        return list(result.scalars().all())

    return await run_bounded("list_pending_events", _list(), db)


async def get_pending_event(db: AsyncSession, request_id: int) -> PendingEvent:
    async def _get() -> PendingEvent:
        pending = await db.scalar(select(PendingEvent).where(PendingEvent.id == request_id))
        if pending is None:
            raise NotFoundError("Event request", request_id)
        return pending

    return await run_bounded("get_pending_event", _get(), db)
