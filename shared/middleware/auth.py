"""
shared/middleware/auth.py
FastAPI dependency functions for authentication and authorization.
The bearer JWT is validated here and the caller's identity + role attached.
"""

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.models.models import User, UserRole
from shared.utils.security import InvalidTokenError, TokenIdentity, decode_identity

security = HTTPBearer(auto_error=False)


class TokenData:
    def __init__(self, identity: TokenIdentity):
        self.user_id: str = identity.user_id
        self.role: UserRole = UserRole(identity.role)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenData:
    """Extract and validate JWT from the Authorization header."""
    if not credentials:
        raise _unauthorized("No token provided. Please log in.")

    try:
        return TokenData(decode_identity(credentials.credentials))
    except (InvalidTokenError, ValueError):
        raise _unauthorized("Invalid or expired token. Please log in again.")


async def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load full User object from database using JWT sub claim."""
    try:
        user_id = uuid.UUID(token_data.user_id)
    except ValueError:
        raise _unauthorized("Invalid or expired token. Please log in again.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated.",
        )
    return user


class RoleRequired:
    """Dependency factory for role-based access control."""

    def __init__(self, *roles: UserRole, detail: Optional[str] = None):
        self.roles = roles
        self.detail = detail or "You do not have permission to access this."

    async def __call__(
        self,
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in self.roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=self.detail)
        return current_user


# Convenience role dependencies
require_pandit = RoleRequired(
    UserRole.PANDIT, detail="Only pandit accounts can perform this action."
)