"""
Courses Router - admin course catalog and per-user access overrides
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import require_admin
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import SubscriptionTier, User
from services.access_service import AccessService
from services.catalog_service import CatalogService

courses_router = APIRouter(prefix="/api/admin/courses", tags=["admin-courses"])
access_router = APIRouter(prefix="/api/admin/access", tags=["admin-access"])


class CourseCreateRequest(BaseModel):
    title: str
    description: str
    video_url: str
    level: SubscriptionTier = SubscriptionTier.DEBUTANT
    category: str
    duration: int = Field(30, description="Duration in minutes")
    instructor: str
    thumbnail: Optional[str] = None


class CourseUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    video_url: Optional[str] = None
    level: Optional[SubscriptionTier] = None
    category: Optional[str] = None
    duration: Optional[int] = None
    instructor: Optional[str] = None
    thumbnail: Optional[str] = None


class AccessUpdateRequest(BaseModel):
    has_access: bool
    reason: Optional[str] = None


@courses_router.get("")
async def list_courses(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    return success_response(await CatalogService(store).list_courses())


@courses_router.post("")
async def create_course(
    request: CourseCreateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    course = await CatalogService(store).create_course(**request.model_dump())
    return success_response(course, message="Course created", status=201)


@courses_router.get("/{course_id}")
async def get_course(
    course_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return success_response(await CatalogService(store).get_course(course_id))


@courses_router.put("/{course_id}")
async def update_course(
    course_id: str,
    request: CourseUpdateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    course = await CatalogService(store).update_course(course_id, **request.model_dump(exclude_unset=True))
    return success_response(course, message="Course updated")


@courses_router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await CatalogService(store).delete_course(course_id)
    return success_response(message="Course deleted")


@access_router.get("")
async def get_access_matrix(
    level: Optional[SubscriptionTier] = None,
    search: Optional[str] = None,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Effective access grid of members x courses, filterable by course level and username."""
    rows = await AccessService(store).access_matrix(level_filter=level, search=search)
    return success_response(rows)


@access_router.get("/{user_id}/{course_id}")
async def get_access(
    user_id: str,
    course_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return success_response(await AccessService(store).resolve(user_id, course_id))


@access_router.put("/{user_id}/{course_id}")
async def set_access(
    user_id: str,
    course_id: str,
    request: AccessUpdateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    decision = await AccessService(store).set_access(
        user_id,
        course_id,
        request.has_access,
        reason=request.reason,
    )
    return success_response(decision, message="Access updated")
