"""
services/auth/router.py
Email + password authentication.
Implements: Register → Login → JWT issue → /me
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import get_current_user
from shared.models.models import User, UserRole
from shared.schemas.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from shared.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password."


def _issue_token(user: User) -> str:
    return create_access_token(user_id=str(user.id), role=user.role.value)


# ── Endpoints ─────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """
    Create a FAMILY account, or a PANDIT account when role == "PANDIT".
    The email must not already be registered.
    """
    existing = await db.execute(select(User).where(User.email == data.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="An account with this email already exists.")

    user = User(
        email=data.email,
        password_hash=hash_password(data.password),
        name=data.name,
        phone=data.phone or None,
        role=UserRole.PANDIT if data.role == UserRole.PANDIT.value else UserRole.FAMILY,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        raise HTTPException(status_code=400, detail="An account with this email already exists.")

    logger.info(f"Registered {user.role.value} account {user.id}")

    return AuthResponse(
        message="Account created successfully!",
        user=UserResponse.model_validate(user),
        token=_issue_token(user),
    )


@router.post("/login", response_model=AuthResponse, summary="Log in with email and password")
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Verify credentials and issue a token.
    Unknown email and wrong password produce the same 401 response.
    """
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(data.password, user.password_hash):
        logger.warning("Rejected login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated.",
        )

    return AuthResponse(
        message="Login successful!",
        user=UserResponse.model_validate(user),
        token=_issue_token(user),
    )


@router.get("/me", response_model=UserEnvelope, summary="Get current user")
async def get_me(current_user: User = Depends(get_current_user)):
    """Returns the authenticated user's account."""
    return UserEnvelope(user=UserResponse.model_validate(current_user))
