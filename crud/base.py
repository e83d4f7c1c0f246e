"""
EntityStore: the persistence contract consumed by the services.

Two implementations exist (relational via SQLAlchemy, local JSON key-value
file). Both hand out detached pydantic models; mutating a returned model has
no effect until it is passed back to a put_* method.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from models.fitness import (
    AccessOverride,
    Course,
    Product,
    SubscriptionPlan,
    User,
    UserSubscription,
    WeeklyProgram,
)


class EntityStore(ABC):

    # Users
    @abstractmethod
    async def list_users(self) -> List[User]: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in await self.list_users():
            if user.username == username:
                return user
        return None

    @abstractmethod
    async def put_user(self, user: User) -> None: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None: ...

    # Courses
    @abstractmethod
    async def list_courses(self) -> List[Course]: ...

    @abstractmethod
    async def get_course(self, course_id: str) -> Optional[Course]: ...

    @abstractmethod
    async def put_course(self, course: Course) -> None: ...

    @abstractmethod
    async def delete_course(self, course_id: str) -> None: ...

    # Access overrides
    @abstractmethod
    async def list_access_overrides(self) -> List[AccessOverride]: ...

    async def get_access_override(self, user_id: str, course_id: str) -> Optional[AccessOverride]:
        for override in await self.list_access_overrides():
            if override.user_id == user_id and override.course_id == course_id:
                return override
        return None

    @abstractmethod
    async def put_access_override(self, user_id: str, course_id: str, fields: dict) -> None:
        """Insert or replace the override of a (user, course) pair."""

    @abstractmethod
    async def remove_access_override(self, user_id: str, course_id: str) -> None:
        """Delete the override of a pair. Absent overrides are a no-op."""

    # Subscription plans
    @abstractmethod
    async def list_subscription_plans(self) -> List[SubscriptionPlan]: ...

    async def get_subscription_plan(self, plan_id: str) -> Optional[SubscriptionPlan]:
        for plan in await self.list_subscription_plans():
            if plan.id == plan_id:
                return plan
        return None

    @abstractmethod
    async def put_subscription_plan(self, plan: SubscriptionPlan) -> None: ...

    @abstractmethod
    async def delete_subscription_plan(self, plan_id: str) -> None: ...

    # User subscriptions
    @abstractmethod
    async def list_user_subscriptions(self) -> List[UserSubscription]: ...

    @abstractmethod
    async def put_user_subscription(self, subscription: UserSubscription) -> None: ...

    @abstractmethod
    async def delete_user_subscription(self, subscription_id: str) -> None: ...

    # Shop
    @abstractmethod
    async def list_products(self) -> List[Product]: ...

    @abstractmethod
    async def put_product(self, product: Product) -> None: ...

    @abstractmethod
    async def delete_product(self, product_id: str) -> None: ...

    # Weekly programs
    @abstractmethod
    async def list_weekly_programs(self) -> List[WeeklyProgram]: ...

    async def get_weekly_program(self, program_id: str) -> Optional[WeeklyProgram]:
        for program in await self.list_weekly_programs():
            if program.id == program_id:
                return program
        return None

    @abstractmethod
    async def put_weekly_program(self, program: WeeklyProgram) -> None: ...

    @abstractmethod
    async def delete_weekly_program(self, program_id: str) -> None: ...
