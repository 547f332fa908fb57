"""
services/catalog/router.py
Ceremony catalog: list, idempotent seed, and pandit-specific offerings.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import get_current_user
from shared.models.models import PanditProfile, PanditService, Service, User
from shared.schemas.schemas import (
    PanditServiceCreate,
    PanditServiceEnvelope,
    PanditServiceResponse,
    SeedResponse,
    ServiceListResponse,
    ServiceResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["Services"])


CANONICAL_CEREMONIES = [
    {"name": "Griha Pravesh", "name_hindi": "गृह प्रवेश", "category": "Life Events", "description": "Housewarming ceremony for new home"},
    {"name": "Wedding Ceremony", "name_hindi": "विवाह संस्कार", "category": "Life Events", "description": "Complete Hindu wedding rituals"},
    {"name": "Satyanarayan Katha", "name_hindi": "सत्यनारायण कथा", "category": "Festival Pujas", "description": "Devotional worship of Lord Vishnu"},
    {"name": "Mundan Ceremony", "name_hindi": "मुंडन संस्कार", "category": "Life Events", "description": "First head-shaving ceremony for child"},
    {"name": "Namkaran", "name_hindi": "नामकरण", "category": "Life Events", "description": "Baby naming ceremony"},
    {"name": "Engagement Ceremony", "name_hindi": "सगाई", "category": "Life Events", "description": "Ring exchange and engagement rituals"},
    {"name": "Ganesh Puja", "name_hindi": "गणेश पूजा", "category": "Festival Pujas", "description": "Worship of Lord Ganesha"},
    {"name": "Lakshmi Puja", "name_hindi": "लक्ष्मी पूजा", "category": "Festival Pujas", "description": "Worship of Goddess Lakshmi for prosperity"},
    {"name": "Rudrabhishek", "name_hindi": "रुद्राभिषेक", "category": "Daily Rituals", "description": "Sacred bathing ritual for Lord Shiva"},
    {"name": "Navgraha Shanti", "name_hindi": "नवग्रह शांति", "category": "Daily Rituals", "description": "Planetary peace puja for astrological remedies"},
    {"name": "Akhand Ramayan Path", "name_hindi": "अखंड रामायण पाठ", "category": "Daily Rituals", "description": "Continuous recitation of Ramayan"},
    {"name": "Vastu Shanti", "name_hindi": "वास्तु शांति", "category": "Life Events", "description": "Puja to remove vastu dosha from property"},
    {"name": "Last Rites (Antim Sanskar)", "name_hindi": "अंतिम संस्कार", "category": "Life Events", "description": "Hindu funeral and cremation rituals"},
    {"name": "Sunderkand Path", "name_hindi": "सुंदरकांड पाठ", "category": "Daily Rituals", "description": "Recitation of Sunderkand from Ramcharitmanas"},
    {"name": "Diwali Puja", "name_hindi": "दिवाली पूजा", "category": "Festival Pujas", "description": "Special puja for Diwali festival"},
]


async def seed_services(db: AsyncSession) -> tuple[int, int]:
    """
    Insert every canonical ceremony whose name is not in the catalog yet.
    Returns (created, already_present). Safe to run repeatedly.
    """
    result = await db.execute(select(Service.name))
    present = set(result.scalars())

    created = 0
    for ceremony in CANONICAL_CEREMONIES:
        if ceremony["name"] in present:
            continue
        db.add(Service(**ceremony))
        created += 1

    await db.flush()
    return created, len(CANONICAL_CEREMONIES) - created


# ── Endpoints ─────────────────────────────────────────────────

@router.get("", response_model=ServiceListResponse)
async def list_services(
    category: Optional[str] = Query(None, description="e.g. 'Life Events'"),
    db: AsyncSession = Depends(get_db),
):
    """Public: active ceremony types, alphabetical."""
    query = select(Service).where(Service.is_active.is_(True))
    if category:
        query = query.where(func.lower(Service.category) == category.strip().lower())

    result = await db.execute(query.order_by(Service.name))
    return ServiceListResponse(services=[ServiceResponse.model_validate(s) for s in result.scalars()])


@router.post("/seed", response_model=SeedResponse, status_code=status.HTTP_201_CREATED)
async def seed_catalog(db: AsyncSession = Depends(get_db)):
    """Populate the canonical ceremony types. Idempotent."""
    created, existing = await seed_services(db)
    await db.commit()

    logger.info(f"Catalog seed: {created} created, {existing} already present")
    return SeedResponse(
        message=f"Seeded {created} new services. {existing} already existed.",
        created=created,
        existing=existing,
    )


@router.post(
    "/pandit-service",
    response_model=PanditServiceEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def add_pandit_service(
    data: PanditServiceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Attach a catalog service to the caller's profile with their own price/duration."""
    result = await db.execute(
        select(PanditProfile).where(PanditProfile.user_id == current_user.id)
    )
    pandit = result.scalar_one_or_none()
    if not pandit:
        raise HTTPException(status_code=404, detail="Pandit profile not found.")

    service = await db.get(Service, data.service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found.")

    existing = await db.execute(
        select(PanditService.id).where(
            PanditService.pandit_id == pandit.id,
            PanditService.service_id == service.id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="You already offer this service.")

    offering = PanditService(
        pandit_id=pandit.id,
        service_id=service.id,
        price=data.price,
        duration=data.duration or None,
        service=service,
    )
    db.add(offering)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="You already offer this service.")

    logger.info(f"Pandit {pandit.id} now offers service {service.id}")
    return PanditServiceEnvelope(
        message="Service added to your profile!",
        pandit_service=PanditServiceResponse.model_validate(offering),
    )
