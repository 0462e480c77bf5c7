"""
Tests for event submission and the catalog endpoints.
"""

import pytest
from httpx import AsyncClient

from conftest import create_event, event_payload, fetch_event


@pytest.mark.asyncio
async def test_admin_submission_publishes_event(client: AsyncClient, admin, admin_headers):
    """Admins publish directly with every ticket available."""
    response = await client.post(
        "/api/v1/events/", json=event_payload(total_tickets=500), headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "published"
    assert data["request"] is None
    assert data["event"]["title"] == "Hack Night"
    assert data["event"]["total_tickets"] == 500
    assert data["event"]["available_tickets"] == 500
    assert data["event"]["created_by"] == admin.id
    assert data["event"]["organizer_name"] == "Ada Admin"


@pytest.mark.asyncio
async def test_student_submission_is_queued(client: AsyncClient, student, student_headers):
    """Non-admin submissions wait for moderation and stay out of the catalog."""
    response = await client.post("/api/v1/events/", json=event_payload(), headers=student_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["event"] is None
    assert data["request"]["status"] == "pending"
    assert data["request"]["requester_id"] == student.id

    catalog = await client.get("/api/v1/events/")
    assert catalog.json()["total"] == 0


@pytest.mark.asyncio
async def test_submit_event_unauthenticated(client: AsyncClient):
    """Unauthenticated request returns 401."""
    response = await client.post("/api/v1/events/", json=event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_submit_event_invalid_tickets(client: AsyncClient, admin_headers):
    """Zero or negative capacity returns 422."""
    response = await client.post(
        "/api/v1/events/", json=event_payload(total_tickets=0), headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_event_missing_location(client: AsyncClient, admin_headers):
    payload = event_payload()
    del payload["location"]
    response = await client.post("/api/v1/events/", json=payload, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_event_blank_title(client: AsyncClient, admin_headers):
    """Whitespace-only title is rejected by the workflow with the field name."""
    response = await client.post(
        "/api/v1/events/", json=event_payload(title="   "), headers=admin_headers,
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["field"] == "title"


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, test_event):
    """List events returns paginated results."""
    response = await client.get("/api/v1/events/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["events"][0]["id"] == test_event.id
    assert data["events"][0]["organizer_name"] == "Ada Admin"
    assert data["page"] == 1
    assert data["cached"] is False


@pytest.mark.asyncio
async def test_list_events_pagination(client: AsyncClient, session_factory, admin):
    """Pagination parameters work correctly, soonest event first."""
    for days in (30, 10, 20):
        await create_event(session_factory, admin, title=f"In {days} days", days_ahead=days)

    response = await client.get("/api/v1/events/?page=1&page_size=2")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["page_size"] == 2
    assert [e["title"] for e in data["events"]] == ["In 10 days", "In 20 days"]

    response = await client.get("/api/v1/events/?page=2&page_size=2")
    assert [e["title"] for e in response.json()["events"]] == ["In 30 days"]


@pytest.mark.asyncio
async def test_list_events_by_category(client: AsyncClient, session_factory, admin):
    await create_event(session_factory, admin, title="Jazz", category="music")
    await create_event(session_factory, admin, title="Robotics", category="tech")

    response = await client.get("/api/v1/events/?category=tech")
    data = response.json()
    assert data["total"] == 1
    assert data["events"][0]["title"] == "Robotics"


@pytest.mark.asyncio
async def test_list_upcoming_only(client: AsyncClient, session_factory, admin):
    await create_event(session_factory, admin, title="Last week", days_ahead=-7)
    await create_event(session_factory, admin, title="Next week", days_ahead=7)

    everything = await client.get("/api/v1/events/")
    assert everything.json()["total"] == 2

    upcoming = await client.get("/api/v1/events/?upcoming_only=true")
    assert [e["title"] for e in upcoming.json()["events"]] == ["Next week"]


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    """Get single event by ID."""
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["title"] == "Spring Concert"
    assert data["available_tickets"] == 100
    assert data["organizer_name"] == "Ada Admin"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    """Non-existent event returns 404."""
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_admin_updates_descriptive_fields(client: AsyncClient, admin_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Spring Concert (moved)", "location": "Gym"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Spring Concert (moved)"
    assert data["location"] == "Gym"
    assert data["total_tickets"] == 100


@pytest.mark.asyncio
async def test_update_cannot_change_capacity(client: AsyncClient, admin_headers, test_event):
    """Capacity is immutable after creation."""
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"total_tickets": 1000},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_student_cannot_update_event(client: AsyncClient, student_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Mine now"},
        headers=student_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_missing_event(client: AsyncClient, admin_headers):
    response = await client.put(
        "/api/v1/events/99999", json={"title": "Ghost"}, headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_deletes_event_with_tickets(
    client: AsyncClient, session_factory, admin_headers, student_headers, test_event,
):
    purchase = await client.post(
        "/api/v1/tickets/", json={"event_id": test_event.id}, headers=student_headers,
    )
    assert purchase.status_code == 201

    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 200
    assert await fetch_event(session_factory, test_event.id) is None

    tickets = await client.get("/api/v1/tickets/my", headers=student_headers)
    assert tickets.json() == []


@pytest.mark.asyncio
async def test_student_cannot_delete_event(client: AsyncClient, student_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=student_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_missing_event(client: AsyncClient, admin_headers):
    response = await client.delete("/api/v1/events/99999", headers=admin_headers)
    assert response.status_code == 404
