"""
Tests for subscription assignment and the account status lifecycle
"""
from datetime import date, datetime

import pytest

from backend.utils.errors import ConflictError, NotFoundError, ValidationError
from models.fitness import (
    AccountStatus,
    BillingInterval,
    DisabledReason,
    SubscriptionStatus,
    SubscriptionTier,
)
from services.account_service import AccountService, add_interval, quote_price

NOW = datetime(2024, 1, 31, 10, 0, 0)


@pytest.mark.parametrize(
    "moment, interval, expected",
    [
        (datetime(2024, 1, 15), BillingInterval.MONTHLY, datetime(2024, 2, 15)),
        (datetime(2024, 1, 31), BillingInterval.MONTHLY, datetime(2024, 2, 29)),
        (datetime(2023, 1, 31), BillingInterval.MONTHLY, datetime(2023, 2, 28)),
        (datetime(2024, 12, 10), BillingInterval.MONTHLY, datetime(2025, 1, 10)),
        (datetime(2024, 2, 29), BillingInterval.ANNUAL, datetime(2025, 2, 28)),
        (datetime(2024, 6, 1), "annuel", datetime(2025, 6, 1)),
    ],
)
def test_add_interval(moment, interval, expected):
    assert add_interval(moment, interval) == expected


async def _subscribed_user(store, make_user, make_plan, interval=BillingInterval.MONTHLY):
    user = await make_user(store)
    plan = await make_plan(store, level=SubscriptionTier.MEDIUM)
    subscription = await AccountService(store).assign_user_to_subscription(user.id, plan.id, interval, now=NOW)
    return user, plan, subscription


async def test_assign_sets_tier_and_dates(any_store, make_user, make_plan):
    user, plan, subscription = await _subscribed_user(any_store, make_user, make_plan)

    assert subscription.status == SubscriptionStatus.ACTIVE
    assert subscription.start_date == NOW
    assert subscription.end_date == datetime(2024, 2, 29, 10, 0, 0)
    assert subscription.next_payment_date == subscription.end_date
    stored_user = await any_store.get_user(user.id)
    assert stored_user.subscription == SubscriptionTier.MEDIUM
    assert stored_user.account_status == AccountStatus.ACTIVE


async def test_assign_cancels_previous_subscription(any_store, make_user, make_plan):
    user, _, first = await _subscribed_user(any_store, make_user, make_plan)
    expert_plan = await make_plan(any_store, "Expert", SubscriptionTier.EXPERT)

    service = AccountService(any_store)
    second = await service.assign_user_to_subscription(user.id, expert_plan.id, BillingInterval.ANNUAL, now=NOW)

    statuses = {sub.id: sub.status for sub in await any_store.list_user_subscriptions()}
    assert statuses[first.id] == SubscriptionStatus.CANCELLED
    assert statuses[second.id] == SubscriptionStatus.ACTIVE
    current = await service.get_user_subscription(user.id)
    assert current.id == second.id
    assert (await any_store.get_user(user.id)).subscription == SubscriptionTier.EXPERT


async def test_assign_unknown_plan(any_store, make_user):
    user = await make_user(any_store)
    with pytest.raises(NotFoundError):
        await AccountService(any_store).assign_user_to_subscription(user.id, "plan-missing", BillingInterval.MONTHLY)


async def test_overdue_disables_account(any_store, make_user, make_plan):
    user, _, subscription = await _subscribed_user(any_store, make_user, make_plan)

    updated = await AccountService(any_store).set_subscription_overdue(user.id, now=NOW)

    assert updated.account_status == AccountStatus.DISABLED
    assert updated.disabled_reason == DisabledReason.PAYMENT_OVERDUE
    [stored] = await any_store.list_user_subscriptions()
    assert stored.status == SubscriptionStatus.OVERDUE
    assert stored.overdue_date == NOW


async def test_overdue_requires_active_subscription(any_store, make_user):
    user = await make_user(any_store)
    with pytest.raises(ConflictError):
        await AccountService(any_store).set_subscription_overdue(user.id)
    assert (await any_store.get_user(user.id)).account_status == AccountStatus.ACTIVE


async def test_reactivate_extends_from_now(any_store, make_user, make_plan):
    user, _, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)
    await service.set_subscription_overdue(user.id, now=NOW)

    later = datetime(2024, 5, 20, 8, 30, 0)
    updated = await service.reactivate_account(user.id, now=later)

    assert updated.account_status == AccountStatus.ACTIVE
    assert updated.disabled_reason is None
    [stored] = await any_store.list_user_subscriptions()
    assert stored.status == SubscriptionStatus.ACTIVE
    assert stored.end_date == datetime(2024, 6, 20, 8, 30, 0)
    assert stored.next_payment_date == stored.end_date
    assert stored.overdue_date is None


async def test_cancel_is_terminal(any_store, make_user, make_plan):
    user, _, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)

    updated = await service.cancel_account(user.id)

    assert updated.account_status == AccountStatus.CANCELLED
    [stored] = await any_store.list_user_subscriptions()
    assert stored.status == SubscriptionStatus.CANCELLED
    with pytest.raises(ConflictError):
        await service.reactivate_account(user.id)
    with pytest.raises(ConflictError):
        await service.suspend_account(user.id, NOW.date(), now=NOW)
    with pytest.raises(ConflictError):
        await service.cancel_account(user.id)


async def test_cancel_from_disabled(any_store, make_user, make_plan):
    user, _, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)
    await service.set_subscription_overdue(user.id, now=NOW)

    updated = await service.cancel_account(user.id)

    assert updated.account_status == AccountStatus.CANCELLED
    assert updated.disabled_reason is None


async def test_cancel_subscription_keeps_account_open(any_store, make_user, make_plan):
    user, _, subscription = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)

    cancelled = await service.cancel_subscription(user.id)

    assert cancelled.id == subscription.id
    assert cancelled.status == SubscriptionStatus.CANCELLED
    assert await service.get_user_subscription(user.id) is None
    stored = await any_store.get_user(user.id)
    assert stored.account_status == AccountStatus.ACTIVE
    assert stored.subscription == SubscriptionTier.MEDIUM


async def test_cancel_overdue_subscription_leaves_account_disabled(any_store, make_user, make_plan):
    user, _, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)
    await service.set_subscription_overdue(user.id, now=NOW)

    await service.cancel_subscription(user.id)

    stored = await any_store.get_user(user.id)
    assert stored.account_status == AccountStatus.DISABLED
    assert stored.disabled_reason == DisabledReason.PAYMENT_OVERDUE
    assert [sub.status for sub in await any_store.list_user_subscriptions()] == [SubscriptionStatus.CANCELLED]


async def test_cancel_subscription_without_one(any_store, make_user, make_plan):
    user, _, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)
    await service.cancel_subscription(user.id)

    with pytest.raises(ConflictError):
        await service.cancel_subscription(user.id)
    with pytest.raises(NotFoundError):
        await service.cancel_subscription("user-missing")


async def test_suspend_and_reactivate(any_store, make_user):
    user = await make_user(any_store)
    service = AccountService(any_store)

    suspended = await service.suspend_account(user.id, date(2024, 2, 15), reason="Blessure", now=NOW)
    assert suspended.account_status == AccountStatus.SUSPENDED
    assert suspended.suspended_until == date(2024, 2, 15)
    assert suspended.suspension_reason == "Blessure"

    reactivated = await service.reactivate_account(user.id, now=NOW)
    assert reactivated.account_status == AccountStatus.ACTIVE
    assert reactivated.suspended_until is None
    assert reactivated.suspension_reason is None


async def test_suspend_until_today_is_allowed(any_store, make_user):
    user = await make_user(any_store)
    suspended = await AccountService(any_store).suspend_account(user.id, NOW.date(), now=NOW)
    assert suspended.suspended_until == NOW.date()


async def test_suspend_in_the_past_is_rejected(any_store, make_user):
    user = await make_user(any_store)
    with pytest.raises(ValidationError):
        await AccountService(any_store).suspend_account(user.id, date(2024, 1, 30), now=NOW)
    assert (await any_store.get_user(user.id)).account_status == AccountStatus.ACTIVE


async def test_disable_by_admin(any_store, make_user):
    user = await make_user(any_store)
    service = AccountService(any_store)

    updated = await service.disable_account(user.id)

    assert updated.account_status == AccountStatus.DISABLED
    assert updated.disabled_reason == DisabledReason.ADMIN_ACTION
    with pytest.raises(ConflictError):
        await service.disable_account(user.id)


async def test_reactivate_active_account_is_rejected(any_store, make_user):
    user = await make_user(any_store)
    with pytest.raises(ConflictError):
        await AccountService(any_store).reactivate_account(user.id)


async def test_new_subscription_reactivates_disabled_account(any_store, make_user, make_plan):
    user, plan, _ = await _subscribed_user(any_store, make_user, make_plan)
    service = AccountService(any_store)
    await service.set_subscription_overdue(user.id, now=NOW)

    await service.assign_user_to_subscription(user.id, plan.id, BillingInterval.MONTHLY, now=NOW)

    stored = await any_store.get_user(user.id)
    assert stored.account_status == AccountStatus.ACTIVE
    assert stored.disabled_reason is None
    statuses = sorted(sub.status.value for sub in await any_store.list_user_subscriptions())
    assert statuses == ["active", "cancelled"]


async def test_accounts_kpi(any_store, make_user, make_plan):
    service = AccountService(any_store)
    await make_user(any_store, "admin", is_admin=True)
    await make_user(any_store, "active")
    plan = await make_plan(any_store)
    late = await make_user(any_store, "late")
    await service.assign_user_to_subscription(late.id, plan.id, BillingInterval.MONTHLY, now=NOW)
    await service.set_subscription_overdue(late.id, now=NOW)
    gone = await make_user(any_store, "gone")
    await service.cancel_account(gone.id)
    blocked = await make_user(any_store, "blocked")
    await service.disable_account(blocked.id)

    kpi = await service.accounts_kpi()

    assert kpi.total == 4
    assert kpi.active == 1
    assert kpi.overdue == 1
    assert kpi.cancelled == 1
    assert [user.username for user in kpi.overdue_users] == ["late"]
    assert [user["username"] for user in kpi.to_dict()["cancelled_users"]] == ["gone"]


def test_quote_price_with_app_access(test_settings):
    from models.fitness import SubscriptionPlan

    plan = SubscriptionPlan(name="Medium", level=SubscriptionTier.MEDIUM, monthly_price=30.0, annual_price=300.0)

    monthly = quote_price(plan, BillingInterval.MONTHLY, app_access=True)
    annual = quote_price(plan, BillingInterval.ANNUAL, app_access=True)

    assert monthly.price == round(30.0 + test_settings.app_access_monthly_fee, 2)
    assert annual.price == round(300.0 + test_settings.app_access_annual_fee, 2)
    assert annual.annual_savings == round(monthly.price * 12 - annual.price, 2)
    assert quote_price(plan, BillingInterval.ANNUAL, app_access=False).annual_savings == 60.0
