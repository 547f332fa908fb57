"""
tests/test_bookings.py
Tests for the booking lifecycle:
create → confirm → complete, or cancel from PENDING / CONFIRMED.
"""

import uuid
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from shared.models.models import (
    Booking,
    BookingAuditLog,
    BookingStatus,
    PanditProfile,
    Service,
    User,
)
from tests.conftest import auth_headers, make_booking


def booking_payload(pandit: PanditProfile, service: Service, **overrides) -> dict:
    payload = {
        "panditId": str(pandit.id),
        "serviceId": str(service.id),
        "bookingDate": "2026-11-20",
        "startTime": "09:30",
        "endTime": "11:30",
        "address": "Flat 4B, Shanti Apartments",
        "city": "Varanasi",
        "pincode": "221010",
        "specialRequests": "Please bring havan samagri",
        "totalAmount": 2100,
    }
    payload.update(overrides)
    return payload


async def audit_trail(db: AsyncSession, booking_id) -> list:
    result = await db.execute(
        select(BookingAuditLog)
        .where(BookingAuditLog.booking_id == booking_id)
        .order_by(BookingAuditLog.created_at)
    )
    return [(log.from_status, log.to_status) for log in result.scalars()]


# ── Booking Creation ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_booking_success(
    client: AsyncClient,
    db: AsyncSession,
    user: User,
    pandit_profile: PanditProfile,
    service: Service,
):
    response = await client.post(
        "/api/bookings", headers=auth_headers(user), json=booking_payload(pandit_profile, service)
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Booking created!"
    booking = data["booking"]
    assert booking["status"] == "PENDING"
    assert booking["bookingDate"] == "2026-11-20"
    assert booking["totalAmount"] == 2100
    assert booking["userId"] == str(user.id)
    assert booking["pandit"]["user"]["name"] == "Pandit Ramesh Shastri"
    assert booking["service"]["name"] == "Griha Pravesh"

    assert await audit_trail(db, uuid.UUID(booking["id"])) == [(None, "PENDING")]


@pytest.mark.asyncio
async def test_create_booking_missing_field_is_400(
    client: AsyncClient, user: User, pandit_profile: PanditProfile, service: Service
):
    payload = booking_payload(pandit_profile, service)
    del payload["address"]
    response = await client.post("/api/bookings", headers=auth_headers(user), json=payload)
    assert response.status_code == 400
    assert response.json()["error"].startswith("address")


@pytest.mark.asyncio
async def test_create_booking_requires_auth(
    client: AsyncClient, pandit_profile: PanditProfile, service: Service
):
    response = await client.post("/api/bookings", json=booking_payload(pandit_profile, service))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_unavailable_pandit(
    client: AsyncClient,
    db: AsyncSession,
    user: User,
    pandit_profile: PanditProfile,
    service: Service,
):
    pandit_profile.is_available = False
    await db.commit()

    response = await client.post(
        "/api/bookings", headers=auth_headers(user), json=booking_payload(pandit_profile, service)
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Pandit not found or not available."}


@pytest.mark.asyncio
async def test_create_booking_unknown_service(
    client: AsyncClient, user: User, pandit_profile: PanditProfile, service: Service
):
    payload = booking_payload(pandit_profile, service, serviceId=str(uuid.uuid4()))
    response = await client.post("/api/bookings", headers=auth_headers(user), json=payload)
    assert response.status_code == 404
    assert response.json() == {"error": "Service not found."}


# ── Listing ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_family_sees_own_bookings_newest_date_first(
    client: AsyncClient,
    db: AsyncSession,
    user: User,
    other_user: User,
    pandit_profile: PanditProfile,
    service: Service,
):
    early = await make_booking(db, user, pandit_profile, service, booking_date=date(2026, 11, 1))
    late = await make_booking(db, user, pandit_profile, service, booking_date=date(2027, 1, 15))
    await make_booking(db, other_user, pandit_profile, service)

    response = await client.get("/api/bookings/my", headers=auth_headers(user))
    assert response.status_code == 200
    bookings = response.json()["bookings"]
    assert [b["id"] for b in bookings] == [str(late.id), str(early.id)]
    assert bookings[0]["pandit"]["city"] == "Varanasi"


@pytest.mark.asyncio
async def test_pandit_sees_bookings_with_family_contact(
    client: AsyncClient,
    pandit_user: User,
    user: User,
    booking: Booking,
):
    response = await client.get("/api/bookings/my", headers=auth_headers(pandit_user))
    assert response.status_code == 200
    bookings = response.json()["bookings"]
    assert len(bookings) == 1
    assert bookings[0]["user"]["email"] == user.email
    assert bookings[0]["user"]["phone"] == "9876543210"


@pytest.mark.asyncio
async def test_pandit_without_profile_gets_404(client: AsyncClient, pandit_user: User):
    response = await client.get("/api/bookings/my", headers=auth_headers(pandit_user))
    assert response.status_code == 404


# ── Status Transitions ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_confirm_then_complete(
    client: AsyncClient, db: AsyncSession, pandit_user: User, booking: Booking
):
    headers = auth_headers(pandit_user)

    response = await client.patch(
        f"/api/bookings/{booking.id}/status", headers=headers, json={"status": "CONFIRMED"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Booking confirmed!"
    assert response.json()["booking"]["status"] == "CONFIRMED"

    response = await client.patch(
        f"/api/bookings/{booking.id}/status", headers=headers, json={"status": "COMPLETED"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Booking completed!"

    assert await audit_trail(db, booking.id) == [
        ("PENDING", "CONFIRMED"),
        ("CONFIRMED", "COMPLETED"),
    ]


@pytest.mark.asyncio
async def test_cancel_records_who_and_why(
    client: AsyncClient, user: User, booking: Booking
):
    response = await client.patch(
        f"/api/bookings/{booking.id}/status",
        headers=auth_headers(user),
        json={"status": "CANCELLED", "cancelReason": "Family emergency"},
    )
    assert response.status_code == 200
    data = response.json()["booking"]
    assert data["status"] == "CANCELLED"
    assert data["cancelledBy"] == str(user.id)
    assert data["cancelReason"] == "Family emergency"


@pytest.mark.asyncio
async def test_invalid_target_status(client: AsyncClient, user: User, booking: Booking):
    for target in ("PENDING", "DONE", ""):
        response = await client.patch(
            f"/api/bookings/{booking.id}/status",
            headers=auth_headers(user),
            json={"status": target},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid status. Use CONFIRMED, COMPLETED, or CANCELLED."}


@pytest.mark.asyncio
async def test_unknown_booking_is_404(client: AsyncClient, user: User):
    response = await client.patch(
        f"/api/bookings/{uuid.uuid4()}/status",
        headers=auth_headers(user),
        json={"status": "CONFIRMED"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_illegal_transition_rejected(
    client: AsyncClient,
    db: AsyncSession,
    user: User,
    pandit_profile: PanditProfile,
    service: Service,
):
    done = await make_booking(db, user, pandit_profile, service, status=BookingStatus.COMPLETED)

    response = await client.patch(
        f"/api/bookings/{done.id}/status", headers=auth_headers(user), json={"status": "CONFIRMED"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot change booking from COMPLETED to CONFIRMED."}

    # PENDING cannot jump straight to COMPLETED
    pending = await make_booking(db, user, pandit_profile, service)
    response = await client.patch(
        f"/api/bookings/{pending.id}/status", headers=auth_headers(user), json={"status": "COMPLETED"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_permissive_mode_allows_any_target(
    client: AsyncClient,
    db: AsyncSession,
    monkeypatch,
    user: User,
    pandit_profile: PanditProfile,
    service: Service,
):
    monkeypatch.setattr(settings, "BOOKING_ENFORCE_TRANSITIONS", False)
    done = await make_booking(db, user, pandit_profile, service, status=BookingStatus.COMPLETED)

    response = await client.patch(
        f"/api/bookings/{done.id}/status", headers=auth_headers(user), json={"status": "CONFIRMED"}
    )
    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "CONFIRMED"


@pytest.mark.asyncio
async def test_reason_recorded_only_on_cancellation(
    client: AsyncClient, db: AsyncSession, pandit_user: User, booking: Booking
):
    headers = auth_headers(pandit_user)
    response = await client.patch(
        f"/api/bookings/{booking.id}/status",
        headers=headers,
        json={"status": "CONFIRMED", "cancelReason": "ignored"},
    )
    assert response.status_code == 200
    assert response.json()["booking"]["cancelReason"] is None

    response = await client.patch(
        f"/api/bookings/{booking.id}/status",
        headers=headers,
        json={"status": "CANCELLED", "cancelReason": "Pandit unwell"},
    )
    assert response.status_code == 200

    result = await db.execute(
        select(BookingAuditLog.to_status, BookingAuditLog.reason)
        .where(BookingAuditLog.booking_id == booking.id)
        .order_by(BookingAuditLog.created_at)
    )
    assert [tuple(row) for row in result] == [("CONFIRMED", None), ("CANCELLED", "Pandit unwell")]
