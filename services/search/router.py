"""
services/search/router.py
Public pandit search: city, language, price band and service filters,
ordered by rating, paginated with page/limit.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import exists, func, select, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from config.settings import settings
from shared.models.models import PanditProfile, PanditService, Service
from shared.schemas.schemas import Pagination, PanditSearchItem, PanditSearchResponse

router = APIRouter(prefix="/api/pandits", tags=["Search"])


def _speaks(db: AsyncSession, language: str):
    """Membership test on the JSON languages list for the bound dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return type_coerce(PanditProfile.languages, JSONB).contains([language])

    spoken = func.json_each(PanditProfile.languages).table_valued("value")
    return exists(select(1).select_from(spoken).where(spoken.c.value == language))


def build_search_filters(
    db: AsyncSession,
    city: Optional[str] = None,
    language: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    service: Optional[str] = None,
) -> list:
    """Translate the search query into WHERE clauses. Unavailable pandits never match."""
    filters = [PanditProfile.is_available.is_(True)]

    if city:
        filters.append(func.lower(PanditProfile.city) == city.strip().lower())
    if language:
        filters.append(_speaks(db, language.strip()))
    if min_price is not None:
        filters.append(PanditProfile.price_min >= min_price)
    if max_price is not None:
        filters.append(PanditProfile.price_max <= max_price)
    if service:
        filters.append(
            PanditProfile.services.any(
                PanditService.service.has(func.lower(Service.name) == service.strip().lower())
            )
        )
    return filters


@router.get("/search", response_model=PanditSearchResponse)
async def search_pandits(
    city: Optional[str] = Query(None, description="Exact city, case-insensitive"),
    service: Optional[str] = Query(None, description="Catalog service name, e.g. 'Ganesh Puja'"),
    language: Optional[str] = Query(None, description="Spoken language, e.g. 'Sanskrit'"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT, ge=1, le=settings.SEARCH_MAX_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    """Search available pandits. Highest rated first."""
    filters = build_search_filters(db, city, language, min_price, max_price, service)

    total = await db.scalar(select(func.count(PanditProfile.id)).where(*filters)) or 0

    result = await db.execute(
        select(PanditProfile)
        .options(
            selectinload(PanditProfile.user),
            selectinload(PanditProfile.services).selectinload(PanditService.service),
        )
        .where(*filters)
        .order_by(
            PanditProfile.rating.desc(),
            PanditProfile.total_reviews.desc(),
            PanditProfile.created_at.asc(),
        )
        .offset((page - 1) * limit)
        .limit(limit)
    )
    pandits = result.scalars().all()

    return PanditSearchResponse(
        pandits=[PanditSearchItem.model_validate(p) for p in pandits],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )
