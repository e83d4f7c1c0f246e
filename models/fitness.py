"""
Domain models for the gym portal: users, courses, access overrides,
subscription plans, user subscriptions, shop products and weekly programs.
"""
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every store round-trips unchanged."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(kind: str) -> str:
    return f"{kind}-{uuid.uuid4().hex}"


class SubscriptionTier(str, Enum):
    """Subscription level of a user, and minimum level required by a course."""
    DEBUTANT = "debutant"
    MEDIUM = "medium"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        return TIER_RANKS[self]


TIER_RANKS = {
    SubscriptionTier.DEBUTANT: 1,
    SubscriptionTier.MEDIUM: 2,
    SubscriptionTier.EXPERT: 3,
}


def tier_rank(tier) -> int:
    """Integer rank of a tier (accepts the enum or its string value)."""
    return SubscriptionTier(tier).rank


class AccountStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class DisabledReason(str, Enum):
    PAYMENT_OVERDUE = "payment_overdue"
    ADMIN_ACTION = "admin_action"


class BillingInterval(str, Enum):
    MONTHLY = "mensuel"
    ANNUAL = "annuel"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


# Statuses that count as "the user's current subscription"
CURRENT_SUBSCRIPTION_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.OVERDUE)


class User(BaseModel):
    id: str = Field(default_factory=lambda: new_id("user"))
    username: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password_hash: str = Field(default="", repr=False)
    subscription: SubscriptionTier = SubscriptionTier.DEBUTANT
    is_admin: bool = False
    account_status: AccountStatus = AccountStatus.ACTIVE
    disabled_reason: Optional[DisabledReason] = None
    suspended_until: Optional[date] = None
    suspension_reason: Optional[str] = None
    assigned_program_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_status_fields(self):
        suspended = self.account_status == AccountStatus.SUSPENDED
        if suspended != (self.suspended_until is not None):
            raise ValueError("suspended_until must be set exactly when the account is suspended")
        if self.disabled_reason is not None and self.account_status != AccountStatus.DISABLED:
            raise ValueError("disabled_reason is only valid on a disabled account")
        return self

    def public_dict(self) -> dict:
        """Serializable view without the credential."""
        return self.model_dump(mode="json", exclude={"password_hash"})


class Course(BaseModel):
    id: str = Field(default_factory=lambda: new_id("course"))
    title: str = Field(min_length=1)
    description: str = ""
    video_url: str = ""
    level: SubscriptionTier = SubscriptionTier.DEBUTANT
    category: str = ""
    duration: int = Field(default=30, gt=0)  # minutes
    instructor: str = ""
    thumbnail: Optional[str] = None


class AccessOverride(BaseModel):
    """
    Admin decision for one (user, course) pair. The absence of a record means
    "follow the subscription tier", which is not the same as has_access=False.
    """
    user_id: str
    course_id: str
    has_access: bool
    override_subscription: bool = True
    reason: Optional[str] = None
    granted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None


class SubscriptionPlan(BaseModel):
    id: str = Field(default_factory=lambda: new_id("plan"))
    name: str = Field(min_length=1)
    level: SubscriptionTier
    monthly_price: float = Field(ge=0)
    annual_price: float = Field(ge=0)
    features: List[str] = Field(default_factory=list)
    app_access: bool = False
    is_family: bool = False

    @field_validator("features")
    @classmethod
    def drop_blank_features(cls, value: List[str]) -> List[str]:
        return [feature.strip() for feature in value if feature and feature.strip()]


class UserSubscription(BaseModel):
    id: str = Field(default_factory=lambda: new_id("sub"))
    user_id: str
    plan_id: str
    interval: BillingInterval = BillingInterval.MONTHLY
    app_access: bool = False
    start_date: datetime = Field(default_factory=utcnow)
    end_date: Optional[datetime] = None
    next_payment_date: Optional[datetime] = None
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    overdue_date: Optional[datetime] = None
    payment_method: Optional[str] = None

    @property
    def is_current(self) -> bool:
        return self.status in CURRENT_SUBSCRIPTION_STATUSES


class Product(BaseModel):
    id: str = Field(default_factory=lambda: new_id("product"))
    label: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


# Display order of the week (Monday first), day_of_week follows 0 = Sunday
DAYS_OF_WEEK = [
    (1, "Lundi"),
    (2, "Mardi"),
    (3, "Mercredi"),
    (4, "Jeudi"),
    (5, "Vendredi"),
    (6, "Samedi"),
    (0, "Dimanche"),
]


class DaySchedule(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    day_name: str = ""
    is_rest_day: bool = False
    rest_description: Optional[str] = None
    courses: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def rest_day_has_no_courses(self):
        if self.is_rest_day and self.courses:
            raise ValueError("a rest day cannot reference courses")
        if not self.day_name:
            self.day_name = dict(DAYS_OF_WEEK)[self.day_of_week]
        return self


class WeeklyProgram(BaseModel):
    id: str = Field(default_factory=lambda: new_id("program"))
    name: str = Field(min_length=1)
    description: Optional[str] = None
    schedule: List[DaySchedule] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("schedule")
    @classmethod
    def one_entry_per_day(cls, value: List[DaySchedule]) -> List[DaySchedule]:
        days = [day.day_of_week for day in value]
        if len(days) != len(set(days)):
            raise ValueError("each day of the week can appear only once")
        return value


def default_schedule() -> List[DaySchedule]:
    """Seven empty training days, Monday first."""
    return [DaySchedule(day_of_week=day, day_name=name) for day, name in DAYS_OF_WEEK]


def with_changes(model: BaseModel, **changes) -> BaseModel:
    """
    Copy of a model with fields replaced, re-validated so that cross-field
    invariants (e.g. suspended_until iff suspended) hold on the result.
    """
    data = model.model_dump()
    data.update(changes)
    return type(model).model_validate(data)
