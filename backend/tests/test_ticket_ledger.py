"""
Service-level tests for the ticket inventory ledger: capacity invariants,
concurrent purchases and ticket-code handling.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from campustix.core.exceptions import NotFoundError, SoldOutError, ValidationError
from campustix.models.ticket import Ticket
from campustix.schemas.event import EventCreate
from campustix.services.approval_service import submit_event
from campustix.services import ticket_service
from campustix.services.ticket_service import (
    generate_ticket_code, get_event_tickets, get_user_tickets, purchase_tickets,
)

from conftest import as_current_user, create_event, fetch_event


async def _sold_quantity(session_factory, event_id: int) -> int:
    async with session_factory() as session:
        total = await session.scalar(
            select(func.coalesce(func.sum(Ticket.quantity), 0)).where(Ticket.event_id == event_id)
        )
        return int(total)


@pytest.mark.asyncio
async def test_admin_event_then_ten_purchases(session_factory, admin, student):
    """100 published, 10 sold one by one: 90 left and 10 tickets."""
    async with session_factory() as session:
        event = await submit_event(
            session,
            EventCreate(
                title="Career Fair", date="2026-11-20", time_start="10:00",
                time_end="16:00", location="Atrium", total_tickets=100,
            ),
            as_current_user(admin),
        )
    assert event.available_tickets == 100

    for _ in range(10):
        async with session_factory() as session:
            await purchase_tickets(session, student.id, event.id)

    assert (await fetch_event(session_factory, event.id)).available_tickets == 90
    async with session_factory() as session:
        tickets = await get_event_tickets(session, event.id)
    assert len(tickets) == 10
    assert {t.event_id for t in tickets} == {event.id}


@pytest.mark.asyncio
async def test_insufficient_capacity_leaves_state_untouched(session_factory, admin, student):
    event = await create_event(session_factory, admin, total_tickets=10, available_tickets=3)

    async with session_factory() as session:
        with pytest.raises(SoldOutError) as exc_info:
            await purchase_tickets(session, student.id, event.id, quantity=5)

    assert exc_info.value.available == 3
    assert exc_info.value.requested == 5
    assert (await fetch_event(session_factory, event.id)).available_tickets == 3
    assert await _sold_quantity(session_factory, event.id) == 0


@pytest.mark.asyncio
async def test_purchase_exact_remaining(session_factory, admin, student):
    event = await create_event(session_factory, admin, total_tickets=10, available_tickets=4)

    async with session_factory() as session:
        ticket = await purchase_tickets(session, student.id, event.id, quantity=4)

    assert ticket.quantity == 4
    assert (await fetch_event(session_factory, event.id)).available_tickets == 0


@pytest.mark.asyncio
async def test_unknown_event(db_session, student):
    with pytest.raises(NotFoundError):
        await purchase_tickets(db_session, student.id, 4242)


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
async def test_invalid_quantity(db_session, student, test_event, quantity):
    with pytest.raises(ValidationError) as exc_info:
        await purchase_tickets(db_session, student.id, test_event.id, quantity=quantity)
    assert exc_info.value.field == "quantity"


@pytest.mark.asyncio
async def test_concurrent_purchases_sell_exactly_capacity(session_factory, admin, student):
    """N tickets, N + K simultaneous buyers: N successes and K sold-out errors."""
    capacity, extra = 5, 4
    event = await create_event(session_factory, admin, total_tickets=capacity)

    async def attempt():
        async with session_factory() as session:
            return await purchase_tickets(session, student.id, event.id)

    results = await asyncio.gather(*[attempt() for _ in range(capacity + extra)], return_exceptions=True)

    successes = [r for r in results if isinstance(r, Ticket)]
    sold_out = [r for r in results if isinstance(r, SoldOutError)]
    assert len(successes) == capacity
    assert len(sold_out) == extra
    assert len({t.ticket_code for t in successes}) == capacity

    stored = await fetch_event(session_factory, event.id)
    assert stored.available_tickets == 0
    assert await _sold_quantity(session_factory, event.id) == capacity


@pytest.mark.asyncio
async def test_last_ticket_goes_to_exactly_one_buyer(session_factory, admin, student, other_student):
    event = await create_event(session_factory, admin, total_tickets=10, available_tickets=1)

    async def attempt(user):
        async with session_factory() as session:
            return await purchase_tickets(session, user.id, event.id)

    results = await asyncio.gather(
        attempt(student), attempt(other_student), return_exceptions=True,
    )
    assert sum(isinstance(r, Ticket) for r in results) == 1
    assert sum(isinstance(r, SoldOutError) for r in results) == 1


@pytest.mark.asyncio
async def test_sold_plus_remaining_equals_total(session_factory, admin, student):
    event = await create_event(session_factory, admin, total_tickets=20)

    for quantity in (3, 5, 1, 9):
        async with session_factory() as session:
            await purchase_tickets(session, student.id, event.id, quantity=quantity)

    async with session_factory() as session:
        with pytest.raises(SoldOutError):
            await purchase_tickets(session, student.id, event.id, quantity=3)

    stored = await fetch_event(session_factory, event.id)
    sold = await _sold_quantity(session_factory, event.id)
    assert 0 <= stored.available_tickets <= stored.total_tickets
    assert sold == stored.total_tickets - stored.available_tickets == 18


@pytest.mark.asyncio
async def test_code_collision_is_retried(session_factory, admin, student, other_student):
    """A duplicate code rolls the attempt back and retries with a fresh one."""
    event = await create_event(session_factory, admin, total_tickets=10)

    async with session_factory() as session:
        taken = await purchase_tickets(
            session, student.id, event.id, code_factory=lambda: "TCK-DUPLICATE",
        )

    codes = iter(["TCK-DUPLICATE", "TCK-FRESH"])
    async with session_factory() as session:
        ticket = await purchase_tickets(
            session, other_student.id, event.id, code_factory=lambda: next(codes),
        )

    assert taken.ticket_code == "TCK-DUPLICATE"
    assert ticket.ticket_code == "TCK-FRESH"
    # One decrement per confirmed ticket, none for the rolled-back attempt
    assert (await fetch_event(session_factory, event.id)).available_tickets == 8


@pytest.mark.asyncio
async def test_code_collision_gives_up_after_max_attempts(
    session_factory, admin, student, monkeypatch,
):
    from sqlalchemy.exc import IntegrityError

    monkeypatch.setattr(ticket_service.settings, "MAX_TICKET_CODE_ATTEMPTS", 2)
    event = await create_event(session_factory, admin, total_tickets=10)

    async with session_factory() as session:
        await purchase_tickets(session, student.id, event.id, code_factory=lambda: "TCK-SAME")

    async with session_factory() as session:
        with pytest.raises(IntegrityError):
            await purchase_tickets(session, student.id, event.id, code_factory=lambda: "TCK-SAME")

    assert (await fetch_event(session_factory, event.id)).available_tickets == 9


def test_generated_codes_are_prefixed_and_unique():
    codes = {generate_ticket_code() for _ in range(1000)}
    assert len(codes) == 1000
    for code in codes:
        prefix, token = code.split("-", 1)
        assert prefix == "TCK"
        assert len(token) == 32
        assert token == token.upper()


@pytest.mark.asyncio
async def test_user_tickets_newest_first(session_factory, admin, student, other_student):
    event = await create_event(session_factory, admin, total_tickets=10)

    purchased = []
    for quantity in (1, 2, 3):
        async with session_factory() as session:
            purchased.append(await purchase_tickets(session, student.id, event.id, quantity=quantity))
    async with session_factory() as session:
        await purchase_tickets(session, other_student.id, event.id)

    async with session_factory() as session:
        tickets = await get_user_tickets(session, student.id)

    assert [t.id for t in tickets] == [t.id for t in reversed(purchased)]
    assert all(t.event.title == "Spring Concert" for t in tickets)


@pytest.mark.asyncio
async def test_event_tickets_unknown_event(db_session):
    with pytest.raises(NotFoundError):
        await get_event_tickets(db_session, 4242)
