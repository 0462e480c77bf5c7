"""
Ticket inventory ledger: the only code allowed to change an event's
remaining capacity.

CONCURRENCY STRATEGY: Conditional Update
========================================

Problem:
  Two students try to buy the last ticket simultaneously.
  Both read available_tickets=1, both decrement to 0, both succeed.
  Result: Oversell.

Solution:
  The availability check and the decrement are one statement:

  1. UPDATE events SET available_tickets = available_tickets - :q
     WHERE id = :event_id AND available_tickets >= :q
  2. If rows_affected == 0 the event is missing or has fewer than :q left;
     roll back and report NotFound / SoldOut
  3. Otherwise INSERT the ticket in the same transaction and COMMIT

  The UPDATE takes the row lock, so a concurrent purchase for the same event
  waits, then re-evaluates `available_tickets >= :q` against the committed
  value. No read-modify-write window exists, and no version retry loop is
  needed. The CHECK constraint (available_tickets >= 0) remains the last
  line of defence.

  The decrement and the ticket insert commit together or not at all. A
  ticket-code collision (unique constraint) rolls back the whole unit,
  decrement included, and the purchase is retried with a fresh code.
"""

import time
import uuid
from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from campustix.models.event import Event
from campustix.models.ticket import Ticket, TICKET_CONFIRMED
from campustix.core.config import get_settings
from campustix.core.exceptions import NotFoundError, SoldOutError, ValidationError
from campustix.core.logging import get_logger
from campustix.core.metrics import record_purchase, ticket_code_retries, ticket_purchase_latency
from campustix.db.session import run_bounded

logger = get_logger(__name__)
settings = get_settings()


def generate_ticket_code() -> str:
    """Prefix plus the 122 random bits of a uuid4."""
    return f"{settings.TICKET_CODE_PREFIX}-{uuid.uuid4().hex.upper()}"


def _is_code_collision(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return "uq_tickets_ticket_code" in message or "tickets.ticket_code" in message


async def purchase_tickets(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    quantity: int = 1,
    code_factory: Callable[[], str] = generate_ticket_code,
) -> Ticket:
    """
    Buy `quantity` tickets for an event as one atomic unit.

    Raises ValidationError for a non-positive quantity, NotFoundError for an
    unknown event and SoldOutError when fewer than `quantity` tickets remain.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("quantity", "Quantity must be a positive integer")

    start = time.perf_counter()
    try:
        ticket = await run_bounded(
            "purchase_tickets",
            _purchase(db, user_id, event_id, quantity, code_factory),
            db,
        )
    except SoldOutError:
        record_purchase("sold_out")
        raise
    except Exception:
        record_purchase("error")
        raise
    finally:
        ticket_purchase_latency.observe(time.perf_counter() - start)

    record_purchase("success")
    return ticket


async def _purchase(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    quantity: int,
    code_factory: Callable[[], str],
) -> Ticket:
    max_attempts = settings.MAX_TICKET_CODE_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        try:
            ticket = await _reserve(db, user_id, event_id, quantity, code_factory())
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if _is_code_collision(exc) and attempt < max_attempts:
                ticket_code_retries.inc()
                logger.info("ticket_code_retry", event_id=event_id, attempt=attempt)
                continue
            raise
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "ticket_purchased",
            ticket_id=ticket.id,
            ticket_code=ticket.ticket_code,
            user_id=user_id,
            event_id=event_id,
            quantity=quantity,
            attempt=attempt,
        )
        return await _load_ticket(db, ticket.id)

    # Loop always returns or raises
    raise RuntimeError("ticket purchase exhausted attempts")


async def _reserve(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    quantity: int,
    ticket_code: str,
) -> Ticket:
    """Decrement capacity and stage the ticket. Caller commits or rolls back."""
    update_result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.available_tickets >= quantity,
        )
        .values(available_tickets=Event.available_tickets - quantity)
        .execution_options(synchronize_session=False)
    )

    if update_result.rowcount != 1:
        available = await db.scalar(
            select(Event.available_tickets).where(Event.id == event_id)
        )
        if available is None:
            raise NotFoundError("Event", event_id)
        logger.warning(
            "ticket_purchase_sold_out",
            event_id=event_id,
            requested=quantity,
            available=available,
        )
        raise SoldOutError(event_id, quantity, available)

    ticket = Ticket(
        event_id=event_id,
        user_id=user_id,
        ticket_code=ticket_code,
        quantity=quantity,
        status=TICKET_CONFIRMED,
    )
    db.add(ticket)
    await db.flush()
    return ticket


async def _load_ticket(db: AsyncSession, ticket_id: int) -> Ticket:
    result = await db.execute(
        select(Ticket)
        .where(Ticket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_user_tickets(db: AsyncSession, user_id: int) -> list[Ticket]:
    """All tickets bought by a user, most recent first, with event details."""
    return await run_bounded(
        "get_user_tickets", _list_tickets(db, Ticket.user_id == user_id), db,
    )


async def get_event_tickets(db: AsyncSession, event_id: int) -> list[Ticket]:
    """All tickets sold for an event, most recent first."""

    async def _list() -> list[Ticket]:
        exists = await db.scalar(select(Event.id).where(Event.id == event_id))
        if exists is None:
            raise NotFoundError("Event", event_id)
        return await _list_tickets(db, Ticket.event_id == event_id)

    return await run_bounded("get_event_tickets", _list(), db)


async def _list_tickets(db: AsyncSession, criterion) -> list[Ticket]:
    result = await db.execute(
        select(Ticket)
        .where(criterion)
        .order_by(Ticket.purchase_date.desc(), Ticket.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
