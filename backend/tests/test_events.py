"""
Tests for event endpoints: public browsing and admin management.
"""

from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient

from app.models.booking import Booking, BookingStatus


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, admin_headers, event_payload, notifier):
    """Admin creates an event with every seat available."""
    response = await client.post("/api/v1/events/", json=event_payload, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Python Conference 2027"
    assert data["total_seats"] == 500
    assert data["available_seats"] == 500
    assert data["status"] == "active"
    assert data["is_sold_out"] is False
    assert data["primary_image"]["public_id"] == "events/pycon"

    assert notifier.of_type("catalog-changed") == [{"type": "catalog-changed"}]


@pytest.mark.asyncio
async def test_create_event_survives_broadcast_failure(failing_notifier: AsyncClient, admin_headers, event_payload):
    """The event is saved and returned even when the realtime layer is down."""
    client = failing_notifier
    response = await client.post("/api/v1/events/", json=event_payload, headers=admin_headers)
    assert response.status_code == 201

    listing = await client.get("/api/v1/events/")
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_create_event_requires_admin(client: AsyncClient, auth_headers, event_payload):
    response = await client.post("/api/v1/events/", json=event_payload, headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient, event_payload):
    response = await client.post("/api/v1/events/", json=event_payload)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_in_past(client: AsyncClient, admin_headers, event_payload):
    """A past date is a domain validation error."""
    event_payload["date"] = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.post("/api/v1/events/", json=event_payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
@pytest.mark.parametrize("seats", [0, -5, 10001])
async def test_create_event_invalid_seats(client: AsyncClient, admin_headers, event_payload, seats):
    event_payload["total_seats"] = seats
    response = await client.post("/api/v1/events/", json=event_payload, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_event_too_many_images(client: AsyncClient, admin_headers, event_payload):
    event_payload["secondary_images"] = [
        {"public_id": f"events/extra{i}", "url": f"https://img.test/{i}.jpg"} for i in range(11)
    ]
    response = await client.post("/api/v1/events/", json=event_payload, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, test_event):
    """Public listing returns active events with pagination metadata."""
    response = await client.get("/api/v1/events/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["total_pages"] == 1
    assert data["page"] == 1
    assert data["cached"] is False
    assert data["events"][0]["id"] == test_event.id


@pytest.mark.asyncio
async def test_list_events_pagination(client: AsyncClient, make_event):
    """Events are ordered by date, soonest first."""
    now = datetime.now(timezone.utc)
    for i in range(3):
        await make_event(title=f"Show {i}", date=now + timedelta(days=10 - i))

    response = await client.get("/api/v1/events/?page=1&page_size=2")
    data = response.json()
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert [e["title"] for e in data["events"]] == ["Show 2", "Show 1"]

    response = await client.get("/api/v1/events/?page=2&page_size=2")
    assert [e["title"] for e in response.json()["events"]] == ["Show 0"]


@pytest.mark.asyncio
async def test_list_events_hides_inactive_by_default(client: AsyncClient, make_event):
    await make_event(title="Live")
    await make_event(title="Called Off", status="cancelled")

    response = await client.get("/api/v1/events/")
    assert [e["title"] for e in response.json()["events"]] == ["Live"]

    response = await client.get("/api/v1/events/?status=all")
    assert response.json()["total"] == 2

    response = await client.get("/api/v1/events/?status=cancelled")
    assert [e["title"] for e in response.json()["events"]] == ["Called Off"]


@pytest.mark.asyncio
async def test_list_events_rejects_unknown_status(client: AsyncClient):
    response = await client.get("/api/v1/events/?status=bogus")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["available_seats"] == 100


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


@pytest.mark.asyncio
async def test_update_total_seats_resets_availability(
    client: AsyncClient, admin_headers, make_event, notifier
):
    """Writing total_seats resets available_seats, discarding sales so far."""
    event = await make_event(total_seats=100, available_seats=50)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"total_seats": 80},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_seats"] == 80
    assert data["available_seats"] == 80
    assert notifier.of_type("catalog-changed")


@pytest.mark.asyncio
async def test_update_same_total_seats_still_resets(client: AsyncClient, admin_headers, make_event):
    event = await make_event(total_seats=100, available_seats=10)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"total_seats": 100},
        headers=admin_headers,
    )
    assert response.json()["available_seats"] == 100


@pytest.mark.asyncio
async def test_update_other_fields_keeps_availability(client: AsyncClient, admin_headers, make_event):
    event = await make_event(total_seats=100, available_seats=50)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"title": "Renamed", "ticket_price": 30.0},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert data["ticket_price"] == 30.0
    assert data["available_seats"] == 50


@pytest.mark.asyncio
async def test_update_rejects_null_field(client: AsyncClient, admin_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": None},
        headers=admin_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_event_not_found(client: AsyncClient, admin_headers):
    response = await client.put("/api/v1/events/99999", json={"title": "x"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_event_requires_admin(client: AsyncClient, auth_headers, test_event):
    response = await client.put(
        f"/api/v1/events/{test_event.id}",
        json={"title": "Hijacked"},
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_event_status(client: AsyncClient, admin_headers, test_event):
    response = await client.patch(
        f"/api/v1/events/{test_event.id}/status",
        json={"status": "cancelled"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    listing = await client.get("/api/v1/events/")
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_update_event_status_rejects_unknown(client: AsyncClient, admin_headers, test_event):
    response = await client.patch(
        f"/api/v1/events/{test_event.id}/status",
        json={"status": "postponed"},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_event(client: AsyncClient, admin_headers, test_event, notifier):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["event_id"] == test_event.id

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 404
    assert notifier.of_type("catalog-changed")


@pytest.mark.asyncio
async def test_delete_event_with_bookings(
    client: AsyncClient, admin_headers, test_event, test_user, db_session
):
    """Booked events must be cancelled, not deleted."""
    db_session.add(Booking(
        user_id=test_user.id,
        event_id=test_event.id,
        amount=25.0,
        currency="usd",
        status=BookingStatus.PAID.value,
        session_id="cs_existing",
    ))
    await db_session.commit()

    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 400

    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_events_lists_every_status(client: AsyncClient, admin_headers, make_event):
    await make_event(title="Live")
    await make_event(title="Done", status="completed")

    response = await client.get("/api/v1/admin/events", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    # Newest first
    assert [e["title"] for e in data["events"]] == ["Done", "Live"]


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/admin/events", headers=auth_headers)
    assert response.status_code == 403
    response = await client.get("/api/v1/admin/stats", headers=auth_headers)
    assert response.status_code == 403
