"""
Subscriptions Router - admin subscription plans, plan assignment and account status actions
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import require_admin
from backend.utils.responses import success_response
from crud import get_store
from crud.base import EntityStore
from models.fitness import BillingInterval, SubscriptionTier, User
from services.account_service import AccountService
from services.catalog_service import CatalogService

plans_router = APIRouter(prefix="/api/admin/plans", tags=["admin-plans"])
accounts_router = APIRouter(prefix="/api/admin", tags=["admin-accounts"])


class PlanCreateRequest(BaseModel):
    name: str
    level: SubscriptionTier
    monthly_price: float
    annual_price: float
    features: List[str] = []
    app_access: bool = False
    is_family: bool = False


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = None
    level: Optional[SubscriptionTier] = None
    monthly_price: Optional[float] = None
    annual_price: Optional[float] = None
    features: Optional[List[str]] = None
    app_access: Optional[bool] = None
    is_family: Optional[bool] = None


class AssignSubscriptionRequest(BaseModel):
    user_id: str
    plan_id: str
    interval: BillingInterval = BillingInterval.MONTHLY
    app_access: bool = False


class SuspendRequest(BaseModel):
    until: date
    reason: Optional[str] = None


# ============================================================================
# PLANS
# ============================================================================

@plans_router.get("")
async def list_plans(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    return success_response(await CatalogService(store).list_plans())


@plans_router.post("")
async def create_plan(
    request: PlanCreateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    plan = await CatalogService(store).create_plan(**request.model_dump())
    return success_response(plan, message="Plan created", status=201)


@plans_router.put("/{plan_id}")
async def update_plan(
    plan_id: str,
    request: PlanUpdateRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    plan = await CatalogService(store).update_plan(plan_id, **request.model_dump(exclude_unset=True))
    return success_response(plan, message="Plan updated")


@plans_router.delete("/{plan_id}")
async def delete_plan(
    plan_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await CatalogService(store).delete_plan(plan_id)
    return success_response(message="Plan deleted")


# ============================================================================
# SUBSCRIPTIONS & ACCOUNT STATUS
# ============================================================================

@accounts_router.get("/subscriptions")
async def list_subscriptions(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    return success_response(await AccountService(store).list_subscriptions())


@accounts_router.post("/subscriptions")
async def assign_subscription(
    request: AssignSubscriptionRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    subscription = await AccountService(store).assign_user_to_subscription(
        request.user_id,
        request.plan_id,
        request.interval,
        app_access=request.app_access,
    )
    return success_response(subscription, message="Subscription assigned", status=201)


@accounts_router.get("/accounts/kpi")
async def get_accounts_kpi(store: EntityStore = Depends(get_store), admin: User = Depends(require_admin)):
    kpi = await AccountService(store).accounts_kpi()
    return success_response(kpi.to_dict())


@accounts_router.post("/accounts/{user_id}/overdue")
async def mark_overdue(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await AccountService(store).set_subscription_overdue(user_id)
    return success_response(user.public_dict(), message="Account disabled for overdue payment")


@accounts_router.post("/accounts/{user_id}/cancel")
async def cancel_account(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await AccountService(store).cancel_account(user_id)
    return success_response(user.public_dict(), message="Account cancelled")


@accounts_router.post("/accounts/{user_id}/reactivate")
async def reactivate_account(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await AccountService(store).reactivate_account(user_id)
    return success_response(user.public_dict(), message="Account reactivated")


@accounts_router.post("/accounts/{user_id}/suspend")
async def suspend_account(
    user_id: str,
    request: SuspendRequest,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await AccountService(store).suspend_account(user_id, request.until, reason=request.reason)
    return success_response(user.public_dict(), message="Account suspended")


@accounts_router.post("/accounts/{user_id}/disable")
async def disable_account(
    user_id: str,
    store: EntityStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    user = await AccountService(store).disable_account(user_id)
    return success_response(user.public_dict(), message="Account disabled")
