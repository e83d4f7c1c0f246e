"""
Authentication routes and dependencies

The authenticated user is resolved from the JWT on every request and handed
to route handlers as an explicit value; nothing about the session is kept in
the entity store.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from auth_utils import create_jwt, token_user_id, verify_password
from backend.utils.errors import AuthenticationError, PermissionDeniedError
from backend.utils.responses import success_response
from config.settings import settings
from crud import get_store
from crud.base import EntityStore
from models.fitness import AccountStatus, DisabledReason, User

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])

AUTH_COOKIE = "auth_token"


# Request models
class LoginRequest(BaseModel):
    username: str
    password: str


def _set_auth_cookie(response: JSONResponse, token: str, max_age: int) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=max_age,
    )


@auth_router.post("/login")
async def login(request: LoginRequest, store: EntityStore = Depends(get_store)):
    """Login with username and password, returns a JWT (also set as httpOnly cookie)"""
    user = await store.get_user_by_username(request.username.strip())
    if not user or not verify_password(request.password, user.password_hash):
        logger.info(f"Failed login attempt for '{request.username}'")
        raise AuthenticationError("Invalid username or password")

    if user.account_status == AccountStatus.CANCELLED:
        raise PermissionDeniedError("This account has been cancelled")

    token = create_jwt(user.id)
    response = success_response({"token": token, "user": user.public_dict()}, message="Logged in")
    _set_auth_cookie(response, token, max_age=settings.jwt_expire_days * 86400)
    return response


@auth_router.post("/logout")
async def logout():
    """Logout and clear auth token cookie"""
    response = success_response(message="Logged out successfully")
    _set_auth_cookie(response, "", max_age=0)
    return response


# Dependency for protected routes
async def get_current_user(
    auth_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None, alias="Authorization"),
    store: EntityStore = Depends(get_store),
) -> User:
    """
    Dependency function to get current authenticated user.

    Authentication priority:
    1. Authorization header (Bearer token) for API consumers
    2. auth_token cookie set by login
    3. Raise AuthenticationError (401) if neither is found
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "").strip()
    elif auth_token:
        token = auth_token

    if not token:
        raise AuthenticationError("Missing authentication token")

    user_id = token_user_id(token)
    if not user_id:
        raise AuthenticationError("Invalid or expired token")

    user = await store.get_user(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if user.account_status == AccountStatus.CANCELLED:
        raise PermissionDeniedError("This account has been cancelled")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise PermissionDeniedError("Administrator access required")
    return current_user


async def require_active_account(current_user: User = Depends(get_current_user)) -> User:
    """Course content is only served to accounts that are neither disabled nor suspended."""
    if current_user.account_status != AccountStatus.ACTIVE:
        raise PermissionDeniedError(f"Account is {current_user.account_status.value}")
    return current_user


async def require_billable_account(current_user: User = Depends(get_current_user)) -> User:
    """
    Members may pay their way out of an overdue account, but not out of a
    suspension or an administrator block; only an admin reactivates those.
    """
    status = current_user.account_status
    if status == AccountStatus.SUSPENDED or (
        status == AccountStatus.DISABLED and current_user.disabled_reason != DisabledReason.PAYMENT_OVERDUE
    ):
        logger.info(f"Self-service billing refused for {current_user.username} ({status.value})")
        raise PermissionDeniedError(f"Account is {status.value}; contact an administrator")
    return current_user


@auth_router.get("/me")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information from JWT token"""
    return success_response({"user": current_user.public_dict()})
