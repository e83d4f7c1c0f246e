"""
Authentication utilities: Password hashing and JWT token management
"""

import jwt
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from typing import Optional

from config.settings import settings

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_ISSUER = "gym-portal"


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Accounts without a stored hash never match."""
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def _secret() -> str:
    if not settings.jwt_secret_key:
        raise ValueError("JWT_SECRET_KEY is not set. Cannot sign or verify tokens.")
    return settings.jwt_secret_key


def create_jwt(user_id: str, expires_in: Optional[timedelta] = None) -> str:
    """
    Create a session token for a user.

    Args:
        user_id: Id of the authenticated user, stored as the `sub` claim
        expires_in: Token lifetime, JWT_EXPIRE_DAYS when omitted (a negative
            value yields an already expired token)
    """
    issued_at = datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(days=settings.jwt_expire_days)
    payload = {
        "sub": user_id,
        "iss": TOKEN_ISSUER,
        "iat": issued_at,
        "exp": issued_at + expires_in,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def decode_jwt(token: str):
    """Decode a session token. Returns None if it is expired, tampered with or issued elsewhere."""
    try:
        return jwt.decode(token, _secret(), algorithms=[ALGORITHM], issuer=TOKEN_ISSUER)
    except jwt.InvalidTokenError:
        return None


def token_user_id(token: str) -> Optional[str]:
    """User id carried by a valid token, None otherwise."""
    payload = decode_jwt(token)
    if not payload:
        return None
    return payload.get("sub") or None
