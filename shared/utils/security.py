"""
shared/utils/security.py
JWT creation/verification and password hashing.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from config.settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


class InvalidTokenError(JWTError):
    """Token failed signature, expiry, shape, or type checks."""


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    role: str


# ── JWT ───────────────────────────────────────────────────────

def create_access_token(user_id: str, role: str) -> str:
    """
    Create a signed JWT access token.
    The payload carries only the user id (``sub``) and role; it expires after
    JWT_ACCESS_TOKEN_EXPIRE_DAYS.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.JWT_ACCESS_TOKEN_EXPIRE_DAYS)

    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.
    Raises InvalidTokenError on invalid/expired token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")
    if not payload.get("sub") or not payload.get("role"):
        raise InvalidTokenError("Token is missing identity claims")
    return payload


def decode_identity(token: str) -> TokenIdentity:
    payload = verify_access_token(token)
    return TokenIdentity(user_id=payload["sub"], role=payload["role"])


# ── Password ──────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)
