"""
Dashboard Router - member-facing courses, program and subscription
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import get_current_user, require_active_account, require_billable_account
from backend.utils.errors import PermissionDeniedError
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import BillingInterval, User
from services.access_service import AccessService, group_by_category
from services.account_service import AccountService, quote_price
from services.catalog_service import CatalogService
from services.program_service import ProgramService

logger = logging.getLogger(__name__)

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


class SubscribeRequest(BaseModel):
    plan_id: str
    interval: BillingInterval = BillingInterval.MONTHLY
    app_access: bool = False


@dashboard_router.get("/courses")
async def get_my_courses(
    current_user: User = Depends(require_active_account),
    store: EntityStore = Depends(get_store),
):
    """Courses the member can open, grouped by category, plus the locked ones."""
    listing = await AccessService(store).partition_courses(current_user.id)
    return success_response({
        "subscription": current_user.subscription,
        "available": group_by_category(listing.available),
        "locked": listing.locked,
    })


@dashboard_router.get("/courses/{course_id}")
async def open_course(
    course_id: str,
    current_user: User = Depends(require_active_account),
    store: EntityStore = Depends(get_store),
):
    decision = await AccessService(store).resolve(current_user.id, course_id)
    if not decision.has_access:
        logger.info(f"{current_user.username} tried to open locked course {course_id}")
        raise PermissionDeniedError("This course is not included in your subscription")
    course = await CatalogService(store).get_course(course_id)
    return success_response({"course": course, "access": decision})


@dashboard_router.get("/program")
async def get_my_program(
    current_user: User = Depends(require_active_account),
    store: EntityStore = Depends(get_store),
):
    """The member's assigned weekly program with the courses of each day expanded."""
    service = ProgramService(store)
    program = await service.get_user_program(current_user.id)
    if program is None:
        return success_response(None, message="No program assigned")

    courses = {course.id: course for course in await CatalogService(store).list_courses()}
    durations = await service.day_durations(program)
    days = []
    for day in program.schedule:
        days.append({
            **day.model_dump(),
            "courses": [courses[cid] for cid in day.courses if cid in courses],
            "total_duration": durations.get(day.day_of_week, 0),
        })
    return success_response({
        "id": program.id,
        "name": program.name,
        "description": program.description,
        "schedule": days,
    })


@dashboard_router.get("/subscription")
async def get_my_subscription(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    subscription = await AccountService(store).get_user_subscription(current_user.id)
    plan = await store.get_subscription_plan(subscription.plan_id) if subscription else None
    return success_response({
        "account_status": current_user.account_status,
        "disabled_reason": current_user.disabled_reason,
        "suspended_until": current_user.suspended_until,
        "subscription": subscription,
        "plan": plan,
    })


@dashboard_router.post("/subscription")
async def subscribe(
    request: SubscribeRequest,
    current_user: User = Depends(require_billable_account),
    store: EntityStore = Depends(get_store),
):
    """Self-service subscription; payment is simulated and always succeeds."""
    subscription = await AccountService(store).assign_user_to_subscription(
        current_user.id,
        request.plan_id,
        request.interval,
        app_access=request.app_access,
    )
    return success_response(subscription, message="Subscription confirmed", status=201)


@dashboard_router.delete("/subscription")
async def cancel_my_subscription(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Stop the current subscription; the account stays open."""
    subscription = await AccountService(store).cancel_subscription(current_user.id)
    return success_response(subscription, message="Subscription cancelled")


@dashboard_router.get("/plans")
async def list_plans_with_prices(
    app_access: bool = False,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Available plans with monthly and annual prices (and annual savings)."""
    plans = []
    for plan in await CatalogService(store).list_plans():
        monthly = quote_price(plan, BillingInterval.MONTHLY, app_access)
        annual = quote_price(plan, BillingInterval.ANNUAL, app_access)
        plans.append({
            **plan.model_dump(mode="json"),
            "monthly_total": monthly.price,
            "annual_total": annual.price,
            "annual_savings": annual.annual_savings,
        })
    return success_response(plans)
