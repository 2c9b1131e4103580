"""Tests for the availability, booking and schedule endpoints."""

import uuid
from decimal import Decimal
import pytest

from app.models.service import GlobalService

from conftest import MONDAY, utc

CLIENT_ID = "9f3c2a1e-5b7d-4c8e-a1f2-3d4e5f6a7b8c"


def booking_payload(provider_id, local_start="10:00", staff_member_id=None, **fields):
    payload = {
        "client_id": CLIENT_ID,
        "provider_id": str(provider_id),
        "appointment_date": f"{MONDAY.isoformat()}T{local_start}:00+05:30",
        "service_duration": 30,
        "total_price": "500.00",
    }
    if staff_member_id:
        payload["staff_member_id"] = str(staff_member_id)
    payload.update(fields)
    return payload


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ============================================================================
# AVAILABILITY
# ============================================================================

@pytest.mark.asyncio
async def test_slots_endpoint(client, make_provider):
    seeded = await make_provider()

    resp = await client.get(
        f"/api/v1/availability/providers/{seeded['provider_id']}/slots",
        params={"date": MONDAY.isoformat(), "duration": 30},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["date"] == MONDAY.isoformat()
    assert data["slots"][0]["start_time"] == "09:00"
    assert data["slots"][0]["staff_member_name"] == "Asha"
    assert len(data["slots"]) == 12


@pytest.mark.asyncio
async def test_slots_unknown_provider_is_404(client):
    resp = await client.get(
        f"/api/v1/availability/providers/{uuid.uuid4()}/slots",
        params={"date": MONDAY.isoformat()},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_windows_endpoint(client, make_provider):
    seeded = await make_provider()

    resp = await client.get(
        f"/api/v1/availability/providers/{seeded['provider_id']}/windows",
        params={"date": MONDAY.isoformat(), "duration": 30},
    )
    assert resp.status_code == 200
    staff = resp.json()["staff"]
    assert len(staff) == 1
    windows = [(w["start_time"], w["end_time"]) for w in staff[0]["available_windows"]]
    assert windows == [("09:00", "12:55"), ("14:05", "18:00")]


@pytest.mark.asyncio
async def test_range_endpoint_rejects_large_span(client, make_provider):
    seeded = await make_provider()

    resp = await client.get(
        f"/api/v1/availability/providers/{seeded['provider_id']}/range",
        params={"start_date": "2030-01-01", "end_date": "2030-06-01", "duration": 30},
    )
    assert resp.status_code == 400
    assert "Maximum 90 days" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_check_endpoint(client, make_provider):
    seeded = await make_provider()
    url = f"/api/v1/availability/providers/{seeded['provider_id']}/check"

    resp = await client.get(url, params={"date": MONDAY.isoformat(), "start_time": "13:25", "duration": 30})
    assert resp.status_code == 200
    assert resp.json()["available"] is False

    resp = await client.get(url, params={"date": MONDAY.isoformat(), "start_time": "14:10", "duration": 30})
    assert resp.json() == {"available": True, "conflict_reason": None}


# ============================================================================
# BOOKINGS
# ============================================================================

@pytest.mark.asyncio
async def test_create_booking_and_list(client, make_provider):
    seeded = await make_provider()
    staff_id = seeded["staff_ids"][0]

    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"], "14:10", staff_id))
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["attempts"] == 1
    booking = data["booking"]
    assert booking["status"] == "pending"
    assert booking["token_number"].startswith("BML-")

    resp = await client.get(
        "/api/v1/bookings/", params={"provider_id": str(seeded["provider_id"]), "date": MONDAY.isoformat()}
    )
    assert resp.status_code == 200
    listed = resp.json()
    assert len(listed) == 1
    assert listed[0]["id"] == booking["id"]
    assert listed[0]["client_id"] == CLIENT_ID


@pytest.mark.asyncio
async def test_create_booking_failure_statuses(client, make_provider):
    seeded = await make_provider()
    staff_id = seeded["staff_ids"][0]

    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"], "13:25", staff_id))
    assert resp.status_code == 422
    assert "break" in resp.json()["detail"]

    first = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"], "10:00", staff_id))
    token = first.json()["booking"]["token_number"]
    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"], "10:15", staff_id))
    assert resp.status_code == 409
    assert token in resp.json()["detail"]

    resp = await client.post("/api/v1/bookings/", json=booking_payload(uuid.uuid4()))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_booking_requires_duration_source(client, make_provider):
    seeded = await make_provider()
    payload = booking_payload(seeded["provider_id"])
    del payload["service_duration"]

    resp = await client.post("/api/v1/bookings/", json=payload)
    assert resp.status_code == 422  # request validation


@pytest.mark.asyncio
async def test_create_booking_resolves_global_service(client, db, make_provider):
    seeded = await make_provider()
    service = GlobalService(name="Facial", base_price=Decimal("900.00"), base_duration=60)
    db.add(service)
    await db.commit()

    payload = booking_payload(seeded["provider_id"], "10:00", global_service_id=str(service.id), platform_fee="50.00")
    del payload["service_duration"]
    del payload["total_price"]

    resp = await client.post("/api/v1/bookings/", json=payload)
    assert resp.status_code == 201
    booking = resp.json()["booking"]
    assert booking["global_service_id"] == str(service.id)
    assert Decimal(booking["total_price"]) == Decimal("950.00")
    assert booking["appointment_end_time"] == utc(MONDAY, "11:00").isoformat()


@pytest.mark.asyncio
async def test_unknown_service_is_404(client, make_provider):
    seeded = await make_provider()
    payload = booking_payload(seeded["provider_id"], service_id=str(uuid.uuid4()))
    del payload["service_duration"]

    resp = await client.post("/api/v1/bookings/", json=payload)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_replayed_token_returns_200(client, make_provider):
    seeded = await make_provider()
    payload = booking_payload(seeded["provider_id"], token_number="BML-APP-00042")

    first = await client.post("/api/v1/bookings/", json=payload)
    again = await client.post("/api/v1/bookings/", json=payload)
    assert first.status_code == 201
    assert again.status_code == 200
    assert again.json()["replayed"] is True
    assert again.json()["booking"]["id"] == first.json()["booking"]["id"]


@pytest.mark.asyncio
async def test_status_transitions(client, make_provider):
    seeded = await make_provider()
    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"]))
    booking_id = resp.json()["booking"]["id"]

    resp = await client.put(f"/api/v1/bookings/{booking_id}/confirm")
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"

    resp = await client.put(f"/api/v1/bookings/{booking_id}/confirm")
    assert resp.status_code == 400

    resp = await client.put(f"/api/v1/bookings/{booking_id}/cancel")
    assert resp.json()["status"] == "cancelled"

    resp = await client.put(f"/api/v1/bookings/{booking_id}/complete")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cancelled bookings cannot be completed"

    resp = await client.put(f"/api/v1/bookings/{uuid.uuid4()}/cancel")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cancelled_slot_can_be_rebooked(client, make_provider):
    seeded = await make_provider()
    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"]))
    await client.put(f"/api/v1/bookings/{resp.json()['booking']['id']}/cancel")

    resp = await client.post("/api/v1/bookings/", json=booking_payload(seeded["provider_id"]))
    assert resp.status_code == 201

    resp = await client.get("/api/v1/bookings/", params={"provider_id": str(seeded["provider_id"])})
    assert len(resp.json()) == 1


# ============================================================================
# SCHEDULES AND STAFF
# ============================================================================

@pytest.mark.asyncio
async def test_schedule_edit_invalidates_cached_availability(client, make_provider):
    seeded = await make_provider()
    provider_id = seeded["provider_id"]
    slots_url = f"/api/v1/availability/providers/{provider_id}/slots"
    params = {"date": MONDAY.isoformat(), "duration": 30}

    resp = await client.get(slots_url, params=params)
    assert resp.json()["slots"][0]["start_time"] == "09:00"

    resp = await client.put(f"/api/v1/providers/{provider_id}/schedules/1", json={
        "start_time": "10:00",
        "end_time": "16:00",
    })
    assert resp.status_code == 200
    assert resp.json()["timezone"] == "Asia/Kolkata"
    assert resp.json()["break_start_time"] is None

    resp = await client.get(slots_url, params=params)
    slots = resp.json()["slots"]
    assert slots[0]["start_time"] == "10:00"
    assert slots[-1]["end_time"] <= "16:00"


@pytest.mark.asyncio
async def test_schedule_validation(client, make_provider):
    seeded = await make_provider()
    url = f"/api/v1/providers/{seeded['provider_id']}/schedules/2"

    resp = await client.put(url, json={"start_time": "18:00", "end_time": "09:00"})
    assert resp.status_code == 422

    resp = await client.put(url, json={
        "start_time": "09:00", "end_time": "18:00", "break_start_time": "08:00", "break_end_time": "09:30",
    })
    assert resp.status_code == 422

    resp = await client.put(url, json={"start_time": "09:00", "end_time": "18:00", "timezone": "Mars/Olympus"})
    assert resp.status_code == 422

    resp = await client.put(f"/api/v1/providers/{seeded['provider_id']}/schedules/7", json={
        "start_time": "09:00", "end_time": "18:00",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_timezone_change_applies_to_all_days(client, make_provider):
    seeded = await make_provider()
    provider_id = seeded["provider_id"]

    resp = await client.put(f"/api/v1/providers/{provider_id}/schedules/2", json={
        "start_time": "09:00", "end_time": "17:00", "timezone": "Europe/London",
    })
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/providers/{provider_id}/schedules")
    assert [s["timezone"] for s in resp.json()] == ["Europe/London", "Europe/London"]


@pytest.mark.asyncio
async def test_staff_roster_changes_reach_availability(client, make_provider):
    seeded = await make_provider()
    provider_id = seeded["provider_id"]
    windows_url = f"/api/v1/availability/providers/{provider_id}/windows"
    params = {"date": MONDAY.isoformat(), "duration": 30}

    assert len((await client.get(windows_url, params=params)).json()["staff"]) == 1

    resp = await client.post(f"/api/v1/providers/{provider_id}/staff", json={"name": "Bela"})
    assert resp.status_code == 201
    bela_id = resp.json()["id"]
    assert len((await client.get(windows_url, params=params)).json()["staff"]) == 2

    resp = await client.put(f"/api/v1/providers/{provider_id}/staff/{bela_id}/deactivate")
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False
    assert len((await client.get(windows_url, params=params)).json()["staff"]) == 1

    resp = await client.put(f"/api/v1/providers/{provider_id}/staff/{bela_id}/deactivate")
    assert resp.status_code == 400
