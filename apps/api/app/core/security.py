"""Security utilities for password hashing and JWT access tokens."""

from datetime import datetime, timedelta, timezone

import jwt
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher

from app.core.config import Settings

JWT_ALGORITHM = "HS256"


# =============================================================================
# Password hashing
# =============================================================================

_hashers: dict[int, PasswordHash] = {}


def get_password_hasher(rounds: int = 12) -> PasswordHash:
    """Return a cached bcrypt hasher for the given cost factor."""
    hasher = _hashers.get(rounds)
    if hasher is None:
        hasher = PasswordHash((BcryptHasher(rounds=rounds),))
        _hashers[rounds] = hasher
    return hasher


def hash_password(password: str, rounds: int = 12) -> str:
    return get_password_hasher(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    if not plain_password or not hashed_password:
        return False
    return get_password_hasher().verify(plain_password, hashed_password)


# =============================================================================
# Access Token (JWT bearer)
# =============================================================================

def create_access_token(
    settings: Settings,
    *,
    user_id: str,
    username: str,
    role: str,
    expires_in: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Token carries user identity and role; lifetime defaults to JWT_EXPIRATION.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(seconds=settings.jwt_expiration_seconds)
    payload = {
        "sub": user_id,
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(settings: Settings, token: str) -> dict:
    """
    Decode and verify an access token.

    Raises:
        jwt.InvalidTokenError: bad signature, malformed or expired token
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
