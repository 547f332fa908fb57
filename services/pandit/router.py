"""
services/pandit/router.py
Pandit profile management: create, partial update, own profile, public profile.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import get_current_user, require_pandit
from shared.models.models import PanditProfile, PanditService, Review, User
from shared.schemas.schemas import (
    PanditAvailabilityResponse,
    PanditDetailEnvelope,
    PanditDetailResponse,
    PanditEnvelope,
    PanditProfileCreate,
    PanditProfileResponse,
    PanditProfileUpdate,
    PanditSearchItem,
    ReviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pandits", tags=["Pandits"])


# ── Helpers ───────────────────────────────────────────────────

def _detail_options():
    return (
        selectinload(PanditProfile.user),
        selectinload(PanditProfile.services).selectinload(PanditService.service),
        selectinload(PanditProfile.availability),
    )


async def _get_profile_for_user(user: User, db: AsyncSession, *options) -> PanditProfile:
    result = await db.execute(
        select(PanditProfile).options(*options).where(PanditProfile.user_id == user.id)
    )
    pandit = result.scalar_one_or_none()
    if not pandit:
        raise HTTPException(status_code=404, detail="Pandit profile not found.")
    return pandit


async def _recent_reviews(pandit_id: UUID, db: AsyncSession) -> list[Review]:
    result = await db.execute(
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.pandit_id == pandit_id)
        .order_by(Review.created_at.desc())
        .limit(settings.PROFILE_RECENT_REVIEWS)
    )
    return list(result.scalars())


async def _build_detail(pandit: PanditProfile, db: AsyncSession) -> PanditDetailResponse:
    """Profile + offerings + availability + the most recent reviews."""
    base = PanditSearchItem.model_validate(pandit)
    reviews = await _recent_reviews(pandit.id, db)
    return PanditDetailResponse(
        **base.model_dump(),
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        availability=[PanditAvailabilityResponse.model_validate(a) for a in pandit.availability],
    )


# ── Pandit's Own Profile Endpoints ────────────────────────────

@router.post("/profile", response_model=PanditEnvelope, status_code=status.HTTP_201_CREATED)
async def create_profile(
    data: PanditProfileCreate,
    current_user: User = Depends(require_pandit),
    db: AsyncSession = Depends(get_db),
):
    """Create the pandit profile for a PANDIT account. Allowed once per user."""
    existing = await db.execute(
        select(PanditProfile.id).where(PanditProfile.user_id == current_user.id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=400, detail="Pandit profile already exists. Use PUT to update."
        )

    if not data.city or not data.state:
        raise HTTPException(status_code=400, detail="City and state are required.")

    pandit = PanditProfile(
        user_id=current_user.id,
        bio=data.bio or None,
        experience_years=data.experience_years,
        languages=data.languages,
        specializations=data.specializations,
        price_min=data.price_min,
        price_max=data.price_max,
        city=data.city,
        state=data.state,
        pincode=data.pincode or None,
        is_available=True,
        rating=0,
        total_reviews=0,
    )
    db.add(pandit)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=400, detail="Pandit profile already exists. Use PUT to update."
        )
    await db.refresh(pandit, attribute_names=["user"])

    logger.info(f"Created pandit profile {pandit.id} for user {current_user.id}")
    return PanditEnvelope(
        message="Pandit profile created!",
        pandit=PanditProfileResponse.model_validate(pandit),
    )


@router.put("/profile", response_model=PanditEnvelope)
async def update_profile(
    data: PanditProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update the caller's profile.
    Fields absent from the body are left unchanged; explicit null clears
    bio / pincode.
    """
    pandit = await _get_profile_for_user(current_user, db, selectinload(PanditProfile.user))

    changes = data.changes()
    price_min = changes.get("price_min", pandit.price_min)
    price_max = changes.get("price_max", pandit.price_max)
    if price_min > price_max:
        raise HTTPException(status_code=400, detail="priceMin cannot be greater than priceMax")

    for field, value in changes.items():
        setattr(pandit, field, value)

    await db.commit()
    return PanditEnvelope(
        message="Profile updated!",
        pandit=PanditProfileResponse.model_validate(pandit),
    )


@router.get("/me", response_model=PanditDetailEnvelope)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated pandit's own profile with offerings and recent reviews."""
    pandit = await _get_profile_for_user(current_user, db, *_detail_options())
    return PanditDetailEnvelope(pandit=await _build_detail(pandit, db))


# ── Public Endpoints ──────────────────────────────────────────

@router.get("/{pandit_id}", response_model=PanditDetailEnvelope)
async def get_pandit(pandit_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a pandit's public profile with offerings, reviews and availability."""
    result = await db.execute(
        select(PanditProfile).options(*_detail_options()).where(PanditProfile.id == pandit_id)
    )
    pandit = result.scalar_one_or_none()
    if not pandit:
        raise HTTPException(status_code=404, detail="Pandit not found.")
    return PanditDetailEnvelope(pandit=await _build_detail(pandit, db))
