"""API tests for locations, calendars, and appointments."""
import uuid

import pytest
from httpx import AsyncClient

from helpers import MONDAY, TUESDAY, at


async def _setup_calendar(client: AsyncClient) -> tuple[str, str]:
    resp = await client.post("/locations", json={"name": "Downtown"})
    assert resp.status_code == 201, resp.text
    location_id = resp.json()["id"]

    resp = await client.post("/calendars", json={"name": "Chair 1", "location_id": location_id})
    assert resp.status_code == 201, resp.text
    calendar_id = resp.json()["id"]

    resp = await client.post(
        f"/calendars/{calendar_id}/timeperiods",
        json={
            "type": "working_hour",
            "start_at": at(9).isoformat(),
            "end_at": at(17).isoformat(),
        },
    )
    assert resp.status_code == 201, resp.text
    return location_id, calendar_id


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_calendar_defaults(client: AsyncClient):
    _, calendar_id = await _setup_calendar(client)

    resp = await client.get(f"/calendars/{calendar_id}")
    assert resp.status_code == 200
    assert resp.json()["color"] == "#D3D3D3"


@pytest.mark.asyncio
async def test_unaligned_period_is_bad_request(client: AsyncClient):
    _, calendar_id = await _setup_calendar(client)

    resp = await client.post(
        f"/calendars/{calendar_id}/timeperiods",
        json={"type": "blocked", "start_at": at(9, 7).isoformat(), "end_at": at(10).isoformat()},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_availability_listing(client: AsyncClient):
    _, calendar_id = await _setup_calendar(client)
    resp = await client.post(
        f"/calendars/{calendar_id}/timeperiods",
        json={"type": "breaktime", "start_at": at(12).isoformat(), "end_at": at(13).isoformat()},
    )
    assert resp.status_code == 201, resp.text

    resp = await client.get(
        f"/calendars/{calendar_id}/availability",
        params={"date_start": MONDAY.isoformat(), "date_end": TUESDAY.isoformat()},
    )
    assert resp.status_code == 200, resp.text
    days = resp.json()
    assert [d["date"] for d in days] == [MONDAY.isoformat()]
    assert len(days[0]["slot_times"]) == 28


@pytest.mark.asyncio
async def test_availability_unknown_calendar(client: AsyncClient):
    resp = await client.get(f"/calendars/{uuid.uuid4()}/availability")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_location_availability(client: AsyncClient):
    location_id, calendar_id = await _setup_calendar(client)

    resp = await client.get(
        f"/locations/{location_id}/availability",
        params={"date_start": MONDAY.isoformat(), "date_end": MONDAY.isoformat()},
    )
    assert resp.status_code == 200, resp.text
    (entry,) = resp.json()
    assert entry["calendar_id"] == calendar_id
    assert len(entry["days"][0]["slot_times"]) == 32


@pytest.mark.asyncio
async def test_book_and_manage(client: AsyncClient, db, make_order):
    location_id, calendar_id = await _setup_calendar(client)
    order = make_order((30, None))

    payload = {
        "order_id": str(order.id),
        "calendar_id": calendar_id,
        "location_id": location_id,
        "slot_time": at(10).isoformat(),
    }
    resp = await client.post("/appointments/book", json=payload)
    assert resp.status_code == 201, resp.text
    appointment = resp.json()
    assert appointment["status"] == "scheduled"
    assert appointment["metadata"]["calendar_id"] == calendar_id

    # Same order again
    resp = await client.post("/appointments/book", json={**payload, "slot_time": at(14).isoformat()})
    assert resp.status_code == 409

    resp = await client.get("/appointments", params={"order_id": str(order.id)})
    assert resp.status_code == 200
    assert resp.json()["total"] == 1

    resp = await client.get("/appointments/current", params={"at": at(10, 15).isoformat()})
    assert resp.status_code == 200
    assert resp.json()["appointment"]["id"] == appointment["id"]

    resp = await client.post(
        f"/appointments/{appointment['id']}/reschedule", json={"slot_time": at(15).isoformat()}
    )
    assert resp.status_code == 200, resp.text

    resp = await client.patch(
        f"/appointments/{appointment['id']}/status", json={"status": "finished"}
    )
    assert resp.status_code == 409

    resp = await client.post(f"/appointments/{appointment['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["status"] == "canceled"

    resp = await client.delete(f"/appointments/{appointment['id']}")
    assert resp.status_code == 204
    resp = await client.get(f"/appointments/{appointment['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_book_taken_slot(client: AsyncClient, make_order):
    _, calendar_id = await _setup_calendar(client)
    first = make_order((30, None))
    second = make_order((30, None))

    resp = await client.post(
        "/appointments/book",
        json={"order_id": str(first.id), "calendar_id": calendar_id, "slot_time": at(10).isoformat()},
    )
    assert resp.status_code == 201, resp.text

    resp = await client.post(
        "/appointments/book",
        json={"order_id": str(second.id), "calendar_id": calendar_id, "slot_time": at(10, 15).isoformat()},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_book_unknown_order(client: AsyncClient):
    _, calendar_id = await _setup_calendar(client)
    resp = await client.post(
        "/appointments/book",
        json={"order_id": str(uuid.uuid4()), "calendar_id": calendar_id, "slot_time": at(10).isoformat()},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_draft_cannot_be_scheduled_through_status(client: AsyncClient, make_order):
    await _setup_calendar(client)
    order = make_order((30, None))

    resp = await client.post("/appointments", json={"order_id": str(order.id)})
    assert resp.status_code == 201, resp.text
    draft_id = resp.json()["id"]

    resp = await client.patch(f"/appointments/{draft_id}/status", json={"status": "scheduled"})
    assert resp.status_code == 409

    resp = await client.get(f"/appointments/{draft_id}")
    assert resp.json()["status"] == "draft"
    assert resp.json()["scheduled_start"] is None
