"""
Users Router - admin management of member accounts
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import require_admin
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import SubscriptionTier, User
from services.access_service import AccessService, group_by_category
from services.catalog_service import CatalogService
from services.program_service import ProgramService

users_router = APIRouter(prefix="/api/admin/users", tags=["admin-users"])


class UserCreateRequest(BaseModel):
    username: str
    email: str
    password: str
    subscription: SubscriptionTier = SubscriptionTier.DEBUTANT
    is_admin: bool = False


class ProgramAssignmentRequest(BaseModel):
    program_id: Optional[str] = Field(None, description="None removes the assigned program")


@users_router.get("")
async def list_users(
    include_admins: bool = False,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    users = await CatalogService(store).list_users(include_admins=include_admins)
    return success_response([user.public_dict() for user in users])


@users_router.post("")
async def create_user(
    request: UserCreateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await CatalogService(store).create_user(
        username=request.username,
        email=request.email,
        password=request.password,
        subscription=request.subscription,
        is_admin=request.is_admin,
    )
    return success_response(user.public_dict(), message="User created", status=201)


@users_router.get("/{user_id}")
async def get_user(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await CatalogService(store).get_user(user_id)
    return success_response(user.public_dict())


@users_router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await CatalogService(store).delete_user(user_id, acting_user_id=admin.id)
    return success_response(message="User deleted")


@users_router.get("/{user_id}/courses")
async def get_user_courses(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Courses a member can open and the ones locked for them, as the member would see them."""
    listing = await AccessService(store).partition_courses(user_id)
    return success_response({
        "available": group_by_category(listing.available),
        "locked": listing.locked,
    })


@users_router.put("/{user_id}/program")
async def assign_program(
    user_id: str,
    request: ProgramAssignmentRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await ProgramService(store).assign_program(user_id, request.program_id)
    message = "Program assigned" if request.program_id else "Program removed"
    return success_response(user.public_dict(), message=message)
