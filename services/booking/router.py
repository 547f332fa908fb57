"""
services/booking/router.py
Booking lifecycle management.
States: PENDING → CONFIRMED → COMPLETED, CANCELLED from PENDING or CONFIRMED.
Every status change is appended to the booking audit log.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from config.settings import settings
from services.booking.state_machine import InvalidTransition, check_transition, parse_target
from shared.middleware.auth import get_current_user
from shared.models.models import (
    Booking,
    BookingAuditLog,
    BookingStatus,
    PanditProfile,
    Service,
    User,
    UserRole,
)
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingEnvelope,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


# ── Helpers ───────────────────────────────────────────────────

def _booking_options():
    return (
        selectinload(Booking.user),
        selectinload(Booking.pandit).selectinload(PanditProfile.user),
        selectinload(Booking.service),
    )


async def _get_booking_or_404(booking_id: UUID, db: AsyncSession) -> Booking:
    result = await db.execute(
        select(Booking)
        .options(*_booking_options())
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found.")
    return booking


def _log_status_change(
    db: AsyncSession,
    booking: Booking,
    from_status: Optional[BookingStatus],
    to_status: BookingStatus,
    changed_by: User,
    reason: Optional[str] = None,
):
    """Append an audit log entry for a status change."""
    db.add(BookingAuditLog(
        booking_id=booking.id,
        from_status=from_status.value if from_status else None,
        to_status=to_status.value,
        changed_by_id=changed_by.id,
        reason=reason,
    ))


# ── Booking Creation ──────────────────────────────────────────

@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a pandit for a catalog service. The booking starts PENDING and
    waits for the pandit to confirm it.
    """
    pandit = await db.get(PanditProfile, data.pandit_id)
    if not pandit or not pandit.is_available:
        raise HTTPException(status_code=404, detail="Pandit not found or not available.")

    service = await db.get(Service, data.service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found.")

    booking = Booking(
        user_id=current_user.id,
        pandit_id=pandit.id,
        service_id=service.id,
        booking_date=data.booking_date,
        start_time=data.start_time,
        end_time=data.end_time or None,
        address=data.address,
        city=data.city,
        pincode=data.pincode or None,
        special_requests=data.special_requests or None,
        total_amount=data.total_amount,
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    await db.flush()

    _log_status_change(db, booking, None, BookingStatus.PENDING, current_user)
    await db.commit()

    logger.info(f"Booking {booking.id} created by user {current_user.id} for pandit {pandit.id}")
    booking = await _get_booking_or_404(booking.id, db)
    return BookingEnvelope(
        message="Booking created!",
        booking=BookingResponse.model_validate(booking),
    )


# ── Read Endpoints ────────────────────────────────────────────

@router.get("/my", response_model=BookingListResponse)
async def list_my_bookings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Pandits see the bookings made with them, families see the bookings they made.
    Most recent ceremony date first.
    """
    if current_user.role == UserRole.PANDIT:
        pandit_result = await db.execute(
            select(PanditProfile.id).where(PanditProfile.user_id == current_user.id)
        )
        pandit_id = pandit_result.scalar_one_or_none()
        if not pandit_id:
            raise HTTPException(status_code=404, detail="Pandit profile not found.")
        query = select(Booking).where(Booking.pandit_id == pandit_id)
    else:
        query = select(Booking).where(Booking.user_id == current_user.id)

    result = await db.execute(
        query.options(*_booking_options())
        .order_by(Booking.booking_date.desc(), Booking.created_at.desc())
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in result.scalars()]
    )


# ── Status Transitions ────────────────────────────────────────

@router.patch("/{booking_id}/status", response_model=BookingEnvelope)
async def update_booking_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Move a booking to CONFIRMED, COMPLETED or CANCELLED.
    Cancelling records who cancelled and why.
    """
    booking = await _get_booking_or_404(booking_id, db)

    try:
        target = parse_target(data.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    prev_status = booking.status
    try:
        check_transition(prev_status, target, enforce=settings.BOOKING_ENFORCE_TRANSITIONS)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))

    booking.status = target
    reason = None
    if target == BookingStatus.CANCELLED:
        reason = data.cancel_reason or None
        booking.cancelled_by = current_user.id
        booking.cancel_reason = reason

    _log_status_change(db, booking, prev_status, target, current_user, reason)
    await db.commit()

    logger.info(
        f"Booking {booking.id} moved {prev_status.value} -> {target.value} by user {current_user.id}"
    )
    return BookingEnvelope(
        message=f"Booking {target.value.lower()}!",
        booking=BookingResponse.model_validate(booking),
    )
