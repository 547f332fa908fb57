"""
tests/test_services.py
Tests for the ceremony catalog and pandit service offerings.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog.router import CANONICAL_CEREMONIES
from shared.models.models import PanditProfile, PanditService, Service, User
from tests.conftest import auth_headers


# ── Catalog ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_seed_is_idempotent(client: AsyncClient, db: AsyncSession):
    first = await client.post("/api/services/seed")
    assert first.status_code == 201
    assert first.json()["created"] == len(CANONICAL_CEREMONIES)
    assert first.json()["existing"] == 0

    second = await client.post("/api/services/seed")
    assert second.status_code == 201
    assert second.json()["created"] == 0
    assert second.json()["existing"] == len(CANONICAL_CEREMONIES)

    count = await db.scalar(select(func.count(Service.id)))
    assert count == len(CANONICAL_CEREMONIES)


@pytest.mark.asyncio
async def test_seed_only_adds_missing(client: AsyncClient, service: Service):
    response = await client.post("/api/services/seed")
    assert response.json()["created"] == len(CANONICAL_CEREMONIES) - 1
    assert response.json()["existing"] == 1


@pytest.mark.asyncio
async def test_list_services_sorted_and_filtered(client: AsyncClient, db: AsyncSession):
    await client.post("/api/services/seed")
    db.add(Service(name="Retired Puja", category="Life Events", is_active=False))
    await db.commit()

    response = await client.get("/api/services")
    assert response.status_code == 200
    names = [s["name"] for s in response.json()["services"]]
    assert names == sorted(names)
    assert "Retired Puja" not in names
    assert len(names) == len(CANONICAL_CEREMONIES)

    response = await client.get("/api/services", params={"category": "festival pujas"})
    services = response.json()["services"]
    assert services
    assert {s["category"] for s in services} == {"Festival Pujas"}
    assert all(s["nameHindi"] for s in services)


# ── Pandit Offerings ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_add_pandit_service(
    client: AsyncClient, pandit_user: User, pandit_profile: PanditProfile, service: Service
):
    response = await client.post(
        "/api/services/pandit-service",
        headers=auth_headers(pandit_user),
        json={"serviceId": str(service.id), "price": 2500, "duration": "3 hours"},
    )
    assert response.status_code == 201
    item = response.json()["panditService"]
    assert item["panditId"] == str(pandit_profile.id)
    assert item["price"] == 2500
    assert item["duration"] == "3 hours"
    assert item["service"]["name"] == "Griha Pravesh"


@pytest.mark.asyncio
async def test_add_pandit_service_duplicate_rejected(
    client: AsyncClient,
    db: AsyncSession,
    pandit_user: User,
    offering: PanditService,
    service: Service,
):
    response = await client.post(
        "/api/services/pandit-service",
        headers=auth_headers(pandit_user),
        json={"serviceId": str(service.id), "price": 999},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "You already offer this service."}

    count = await db.scalar(select(func.count(PanditService.id)))
    assert count == 1


@pytest.mark.asyncio
async def test_add_pandit_service_without_profile(client: AsyncClient, user: User, service: Service):
    response = await client.post(
        "/api/services/pandit-service",
        headers=auth_headers(user),
        json={"serviceId": str(service.id), "price": 1000},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_pandit_service_unknown_service(
    client: AsyncClient, pandit_user: User, pandit_profile: PanditProfile
):
    response = await client.post(
        "/api/services/pandit-service",
        headers=auth_headers(pandit_user),
        json={"serviceId": str(uuid.uuid4()), "price": 1000},
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Service not found."}


@pytest.mark.asyncio
async def test_add_pandit_service_missing_price(
    client: AsyncClient, pandit_user: User, pandit_profile: PanditProfile, service: Service
):
    response = await client.post(
        "/api/services/pandit-service",
        headers=auth_headers(pandit_user),
        json={"serviceId": str(service.id)},
    )
    assert response.status_code == 400
