"""
services/review/router.py
Rating and review management.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from shared.middleware.auth import get_current_user
from shared.models.models import Booking, BookingStatus, PanditProfile, Review, User
from shared.schemas.schemas import (
    ReviewCreateRequest,
    ReviewEnvelope,
    ReviewListResponse,
    ReviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])

ALREADY_REVIEWED = "You have already reviewed this booking."


def mean_rating(total: int, count: int) -> Decimal:
    """Mean of ``count`` ratings summing to ``total``, rounded half-up to one decimal."""
    if not count:
        return Decimal("0.0")
    return (Decimal(total) / Decimal(count)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


async def refresh_pandit_rating(pandit_id: UUID, db: AsyncSession) -> tuple[Decimal, int]:
    """
    Recompute the denormalized rating and review count for a pandit from the
    reviews table. Must run inside the transaction that inserted the review.
    The pandit row is locked first so concurrent reviews apply one at a time.
    """
    await db.execute(
        select(PanditProfile.id).where(PanditProfile.id == pandit_id).with_for_update()
    )

    agg = await db.execute(
        select(func.coalesce(func.sum(Review.rating), 0), func.count(Review.id))
        .where(Review.pandit_id == pandit_id)
    )
    total, count = agg.one()
    rating = mean_rating(int(total), count)

    await db.execute(
        update(PanditProfile)
        .where(PanditProfile.id == pandit_id)
        .values(rating=rating, total_reviews=count)
    )
    return rating, count


@router.post("", response_model=ReviewEnvelope, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a review for a completed booking.
    - Only the user who made the booking can review
    - Booking must be in COMPLETED status
    - One review per booking (enforced by DB unique constraint)
    """
    booking = await db.get(Booking, data.booking_id)

    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found.")
    if booking.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only review your own bookings.")
    if booking.status != BookingStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="You can only review completed bookings.")

    existing = await db.execute(select(Review.id).where(Review.booking_id == booking.id))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=ALREADY_REVIEWED)

    review = Review(
        booking_id=booking.id,
        user_id=current_user.id,
        pandit_id=booking.pandit_id,
        rating=data.rating,
        comment=data.comment or None,
    )
    db.add(review)
    try:
        await db.flush()
        rating, count = await refresh_pandit_rating(booking.pandit_id, db)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail=ALREADY_REVIEWED)

    await db.refresh(review, attribute_names=["user"])

    logger.info(
        f"Review {review.id} for pandit {review.pandit_id}: "
        f"rating now {rating} over {count} reviews"
    )
    return ReviewEnvelope(
        message="Review submitted!",
        review=ReviewResponse.model_validate(review),
    )


@router.get("/pandit/{pandit_id}", response_model=ReviewListResponse)
async def list_pandit_reviews(pandit_id: UUID, db: AsyncSession = Depends(get_db)):
    """Public: all reviews for a pandit, newest first."""
    result = await db.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.pandit_id == pandit_id)
        .order_by(Review.created_at.desc())
    )
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in result.scalars()]
    )
