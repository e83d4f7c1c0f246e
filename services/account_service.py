"""
Account Service - account status lifecycle driven by subscription billing events

States: active, disabled (payment_overdue | admin_action), suspended, cancelled.
Every transition is a direct assignment on the stored user and subscription.
Nothing here is clock-driven: the end of a suspension is only recorded, a
separate scheduler decides when to reactivate.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from backend.utils.errors import ConflictError, NotFoundError, ValidationError
from config.settings import settings
from crud.base import EntityStore
from models.fitness import (
    AccountStatus,
    BillingInterval,
    DisabledReason,
    SubscriptionPlan,
    SubscriptionStatus,
    User,
    UserSubscription,
    utcnow,
    with_changes,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "simulation_locale"


def add_interval(moment: datetime, interval: BillingInterval) -> datetime:
    """
    Add one billing interval (a calendar month or a calendar year).
    The day is clamped to the last day of the target month (Jan 31 -> Feb 28).
    """
    if BillingInterval(interval) == BillingInterval.MONTHLY:
        extra_years, month_index = divmod(moment.month, 12)
        year, month = moment.year + extra_years, month_index + 1
    else:
        year, month = moment.year + 1, moment.month
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass
class AccountsKPI:
    total: int = 0
    active: int = 0
    overdue: int = 0
    cancelled: int = 0
    overdue_users: List[User] = field(default_factory=list)
    cancelled_users: List[User] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "overdue": self.overdue,
            "cancelled": self.cancelled,
            "overdue_users": [user.public_dict() for user in self.overdue_users],
            "cancelled_users": [user.public_dict() for user in self.cancelled_users],
        }


@dataclass(frozen=True)
class PriceQuote:
    price: float
    annual_savings: float


def quote_price(plan: SubscriptionPlan, interval: BillingInterval, app_access: bool) -> PriceQuote:
    """Price of a plan for an interval, with the optional app access fee."""
    monthly_fee = settings.app_access_monthly_fee if app_access else 0.0
    if BillingInterval(interval) == BillingInterval.MONTHLY:
        return PriceQuote(price=round(plan.monthly_price + monthly_fee, 2), annual_savings=0.0)
    annual_fee = settings.app_access_annual_fee if app_access else 0.0
    price = plan.annual_price + annual_fee
    savings = (plan.monthly_price + monthly_fee) * 12 - price
    return PriceQuote(price=round(price, 2), annual_savings=round(savings, 2))


class AccountService:
    """
    Service class for subscription assignment and account status transitions.
    Every mutating operation accepts an optional `now` so callers and tests can
    pin the clock.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    async def _require_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _current_subscriptions(self, user_id: str) -> List[UserSubscription]:
        return [
            subscription for subscription in await self.store.list_user_subscriptions()
            if subscription.user_id == user_id and subscription.is_current
        ]

    async def get_user_subscription(self, user_id: str) -> Optional[UserSubscription]:
        """The user's active or overdue subscription, if any."""
        await self._require_user(user_id)
        current = await self._current_subscriptions(user_id)
        return current[-1] if current else None

    async def list_subscriptions(self) -> List[UserSubscription]:
        return await self.store.list_user_subscriptions()

    async def assign_user_to_subscription(
        self,
        user_id: str,
        plan_id: str,
        interval: BillingInterval,
        app_access: bool = False,
        payment_method: str = DEFAULT_PAYMENT_METHOD,
        now: Optional[datetime] = None,
    ) -> UserSubscription:
        """
        Start a new subscription for a user, cancelling the one they had.
        Last write wins: nothing from the previous subscription is carried over.
        """
        now = now or utcnow()
        interval = BillingInterval(interval)
        user = await self._require_user(user_id)
        plan = await self.store.get_subscription_plan(plan_id)
        if plan is None:
            raise NotFoundError("SubscriptionPlan", plan_id)

        for previous in await self._current_subscriptions(user_id):
            await self.store.put_user_subscription(
                with_changes(previous, status=SubscriptionStatus.CANCELLED)
            )
            logger.info(f"Cancelled previous subscription {previous.id} of {user.username}")

        end_date = add_interval(now, interval)
        subscription = UserSubscription(
            user_id=user_id,
            plan_id=plan_id,
            interval=interval,
            app_access=app_access,
            start_date=now,
            end_date=end_date,
            next_payment_date=end_date,
            status=SubscriptionStatus.ACTIVE,
            payment_method=payment_method,
        )
        await self.store.put_user_subscription(subscription)
        await self.store.put_user(with_changes(
            user,
            subscription=plan.level,
            account_status=AccountStatus.ACTIVE,
            disabled_reason=None,
            suspended_until=None,
            suspension_reason=None,
        ))
        logger.info(f"Assigned plan '{plan.name}' ({interval.value}) to {user.username}")
        return subscription

    async def cancel_subscription(self, user_id: str) -> UserSubscription:
        """
        Stop the member's current subscription. The account itself is untouched:
        its status and tier stay as they are, and a new plan can be taken later.
        """
        user = await self._require_user(user_id)
        current = await self._current_subscriptions(user_id)
        if not current:
            raise ConflictError(f"User {user.username} has no subscription to cancel")

        cancelled = [with_changes(subscription, status=SubscriptionStatus.CANCELLED) for subscription in current]
        for subscription in cancelled:
            await self.store.put_user_subscription(subscription)
        logger.info(f"{user.username} cancelled subscription {cancelled[-1].id}")
        return cancelled[-1]

    async def set_subscription_overdue(self, user_id: str, now: Optional[datetime] = None) -> User:
        """active -> disabled(payment_overdue); the subscription becomes overdue."""
        now = now or utcnow()
        user = await self._require_user(user_id)
        if user.account_status != AccountStatus.ACTIVE:
            raise ConflictError(f"Only an active account can be marked overdue (status: {user.account_status.value})")
        active = [
            subscription for subscription in await self._current_subscriptions(user_id)
            if subscription.status == SubscriptionStatus.ACTIVE
        ]
        if not active:
            raise ConflictError(f"User {user.username} has no active subscription")

        for subscription in active:
            await self.store.put_user_subscription(
                with_changes(subscription, status=SubscriptionStatus.OVERDUE, overdue_date=now)
            )
        updated = with_changes(
            user,
            account_status=AccountStatus.DISABLED,
            disabled_reason=DisabledReason.PAYMENT_OVERDUE,
        )
        await self.store.put_user(updated)
        logger.warning(f"Account of {user.username} disabled for overdue payment")
        return updated

    async def cancel_account(self, user_id: str) -> User:
        """active|disabled -> cancelled. There is no way back from cancelled."""
        user = await self._require_user(user_id)
        if user.account_status not in (AccountStatus.ACTIVE, AccountStatus.DISABLED):
            raise ConflictError(f"Cannot cancel an account in status {user.account_status.value}")

        for subscription in await self._current_subscriptions(user_id):
            await self.store.put_user_subscription(
                with_changes(subscription, status=SubscriptionStatus.CANCELLED)
            )
        updated = with_changes(user, account_status=AccountStatus.CANCELLED, disabled_reason=None)
        await self.store.put_user(updated)
        logger.warning(f"Account of {user.username} cancelled")
        return updated

    async def reactivate_account(self, user_id: str, now: Optional[datetime] = None) -> User:
        """
        disabled|suspended -> active.

        An overdue subscription goes back to active with its end date and next
        payment date pushed one interval past now (not past the stale end date).
        """
        now = now or utcnow()
        user = await self._require_user(user_id)
        if user.account_status not in (AccountStatus.DISABLED, AccountStatus.SUSPENDED):
            raise ConflictError(f"Cannot reactivate an account in status {user.account_status.value}")

        for subscription in await self._current_subscriptions(user_id):
            if subscription.status != SubscriptionStatus.OVERDUE:
                continue
            new_end = add_interval(now, subscription.interval)
            await self.store.put_user_subscription(with_changes(
                subscription,
                status=SubscriptionStatus.ACTIVE,
                end_date=new_end,
                next_payment_date=new_end,
                overdue_date=None,
            ))
            logger.info(f"Subscription {subscription.id} extended to {new_end.isoformat()}")

        updated = with_changes(
            user,
            account_status=AccountStatus.ACTIVE,
            disabled_reason=None,
            suspended_until=None,
            suspension_reason=None,
        )
        await self.store.put_user(updated)
        logger.info(f"Account of {user.username} reactivated")
        return updated

    async def suspend_account(
        self,
        user_id: str,
        until: date,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """active -> suspended until a date that is today or later."""
        now = now or utcnow()
        if until < now.date():
            raise ValidationError("Suspension end date cannot be in the past")
        user = await self._require_user(user_id)
        if user.account_status != AccountStatus.ACTIVE:
            raise ConflictError(f"Only an active account can be suspended (status: {user.account_status.value})")

        updated = with_changes(
            user,
            account_status=AccountStatus.SUSPENDED,
            suspended_until=until,
            suspension_reason=reason,
        )
        await self.store.put_user(updated)
        logger.warning(f"Account of {user.username} suspended until {until.isoformat()}")
        return updated

    async def disable_account(self, user_id: str) -> User:
        """active -> disabled(admin_action), unrelated to billing."""
        user = await self._require_user(user_id)
        if user.account_status != AccountStatus.ACTIVE:
            raise ConflictError(f"Only an active account can be disabled (status: {user.account_status.value})")

        updated = with_changes(
            user,
            account_status=AccountStatus.DISABLED,
            disabled_reason=DisabledReason.ADMIN_ACTION,
        )
        await self.store.put_user(updated)
        logger.warning(f"Account of {user.username} disabled by an administrator")
        return updated

    async def accounts_kpi(self) -> AccountsKPI:
        """Counts over non-admin users, recomputed on every call."""
        kpi = AccountsKPI()
        for user in await self.store.list_users():
            if user.is_admin:
                continue
            kpi.total += 1
            if user.account_status == AccountStatus.ACTIVE:
                kpi.active += 1
            elif (
                user.account_status == AccountStatus.DISABLED
                and user.disabled_reason == DisabledReason.PAYMENT_OVERDUE
            ):
                kpi.overdue += 1
                kpi.overdue_users.append(user)
            elif user.account_status == AccountStatus.CANCELLED:
                kpi.cancelled += 1
                kpi.cancelled_users.append(user)
        return kpi
