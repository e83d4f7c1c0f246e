"""
Relational EntityStore backed by the async SQLAlchemy session
"""
from enum import Enum
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

import database_models as orm
from crud.base import EntityStore
from models.fitness import (
    AccessOverride,
    Course,
    DaySchedule,
    Product,
    SubscriptionPlan,
    User,
    UserSubscription,
    WeeklyProgram,
)


def _column_values(model, exclude=()) -> dict:
    """Dump a pydantic model to plain column values (enums stored by value)."""
    values = {}
    for key, value in model.model_dump(exclude=set(exclude)).items():
        values[key] = value.value if isinstance(value, Enum) else value
    return values


class SqlEntityStore(EntityStore):
    """
    Repository class for all portal entities.
    Writes are flushed, never committed: the session_scope owner commits or rolls back.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the store with a database session.

        Args:
            db: AsyncSession instance for database operations
        """
        self.db = db

    async def _all(self, row_class, *order_by):
        result = await self.db.execute(select(row_class).order_by(*order_by))
        return result.scalars().all()

    async def _upsert(self, row_class, values: dict) -> None:
        row = await self.db.get(row_class, values["id"])
        if row is None:
            self.db.add(row_class(**values))
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await self.db.flush()

    async def _delete(self, row_class, entity_id: str) -> None:
        await self.db.execute(delete(row_class).where(row_class.id == entity_id))
        await self.db.flush()

    # Users

    async def list_users(self) -> List[User]:
        rows = await self._all(orm.User, orm.User.created_at)
        return [User.model_validate(row, from_attributes=True) for row in rows]

    async def get_user(self, user_id: str) -> Optional[User]:
        row = await self.db.get(orm.User, user_id)
        return User.model_validate(row, from_attributes=True) if row else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(orm.User).where(orm.User.username == username))
        row = result.scalar_one_or_none()
        return User.model_validate(row, from_attributes=True) if row else None

    async def put_user(self, user: User) -> None:
        await self._upsert(orm.User, _column_values(user))

    async def delete_user(self, user_id: str) -> None:
        await self._delete(orm.User, user_id)

    # Courses

    async def list_courses(self) -> List[Course]:
        rows = await self._all(orm.Course, orm.Course.created_at)
        return [Course.model_validate(row, from_attributes=True) for row in rows]

    async def get_course(self, course_id: str) -> Optional[Course]:
        row = await self.db.get(orm.Course, course_id)
        return Course.model_validate(row, from_attributes=True) if row else None

    async def put_course(self, course: Course) -> None:
        await self._upsert(orm.Course, _column_values(course))

    async def delete_course(self, course_id: str) -> None:
        await self._delete(orm.Course, course_id)

    # Access overrides

    async def list_access_overrides(self) -> List[AccessOverride]:
        rows = await self._all(orm.UserCourseAccess, orm.UserCourseAccess.id)
        return [AccessOverride.model_validate(row, from_attributes=True) for row in rows]

    async def _get_access_row(self, user_id: str, course_id: str):
        result = await self.db.execute(
            select(orm.UserCourseAccess).where(
                orm.UserCourseAccess.user_id == user_id,
                orm.UserCourseAccess.course_id == course_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_access_override(self, user_id: str, course_id: str) -> Optional[AccessOverride]:
        row = await self._get_access_row(user_id, course_id)
        return AccessOverride.model_validate(row, from_attributes=True) if row else None

    async def put_access_override(self, user_id: str, course_id: str, fields: dict) -> None:
        row = await self._get_access_row(user_id, course_id)
        if row is None:
            row = orm.UserCourseAccess(user_id=user_id, course_id=course_id)
            self.db.add(row)
        for key in ("has_access", "override_subscription", "reason", "granted_at", "revoked_at"):
            if key in fields:
                setattr(row, key, fields[key])
        await self.db.flush()

    async def remove_access_override(self, user_id: str, course_id: str) -> None:
        await self.db.execute(
            delete(orm.UserCourseAccess).where(
                orm.UserCourseAccess.user_id == user_id,
                orm.UserCourseAccess.course_id == course_id,
            )
        )
        await self.db.flush()

    # Subscription plans

    async def list_subscription_plans(self) -> List[SubscriptionPlan]:
        rows = await self._all(orm.SubscriptionPlan, orm.SubscriptionPlan.created_at)
        return [SubscriptionPlan.model_validate(row, from_attributes=True) for row in rows]

    async def get_subscription_plan(self, plan_id: str) -> Optional[SubscriptionPlan]:
        row = await self.db.get(orm.SubscriptionPlan, plan_id)
        return SubscriptionPlan.model_validate(row, from_attributes=True) if row else None

    async def put_subscription_plan(self, plan: SubscriptionPlan) -> None:
        await self._upsert(orm.SubscriptionPlan, _column_values(plan))

    async def delete_subscription_plan(self, plan_id: str) -> None:
        await self._delete(orm.SubscriptionPlan, plan_id)

    # User subscriptions

    async def list_user_subscriptions(self) -> List[UserSubscription]:
        rows = await self._all(orm.UserSubscription, orm.UserSubscription.created_at)
        return [UserSubscription.model_validate(row, from_attributes=True) for row in rows]

    async def put_user_subscription(self, subscription: UserSubscription) -> None:
        await self._upsert(orm.UserSubscription, _column_values(subscription))

    async def delete_user_subscription(self, subscription_id: str) -> None:
        await self._delete(orm.UserSubscription, subscription_id)

    # Shop

    async def list_products(self) -> List[Product]:
        rows = await self._all(orm.Product, orm.Product.created_at)
        return [Product.model_validate(row, from_attributes=True) for row in rows]

    async def put_product(self, product: Product) -> None:
        await self._upsert(orm.Product, _column_values(product))

    async def delete_product(self, product_id: str) -> None:
        await self._delete(orm.Product, product_id)

    # Weekly programs

    @staticmethod
    def _program_from_row(row) -> WeeklyProgram:
        return WeeklyProgram(
            id=row.id,
            name=row.name,
            description=row.description,
            created_at=row.created_at,
            schedule=[
                DaySchedule(
                    day_of_week=day.day_of_week,
                    day_name=day.day_name,
                    is_rest_day=day.is_rest_day,
                    rest_description=day.rest_description,
                    courses=[entry.course_id for entry in day.courses],
                )
                for day in row.day_schedules
            ],
        )

    async def list_weekly_programs(self) -> List[WeeklyProgram]:
        rows = await self._all(orm.WeeklyProgram, orm.WeeklyProgram.created_at)
        return [self._program_from_row(row) for row in rows]

    async def get_weekly_program(self, program_id: str) -> Optional[WeeklyProgram]:
        row = await self.db.get(orm.WeeklyProgram, program_id)
        return self._program_from_row(row) if row else None

    async def put_weekly_program(self, program: WeeklyProgram) -> None:
        """
        Write the program with its day schedules and ordered courses in a
        single flush, so a failure leaves no partially written program.
        """
        row = await self.db.get(orm.WeeklyProgram, program.id)
        if row is None:
            row = orm.WeeklyProgram(id=program.id, created_at=program.created_at)
            self.db.add(row)
        row.name = program.name
        row.description = program.description
        row.day_schedules = [
            orm.DaySchedule(
                day_of_week=day.day_of_week,
                day_name=day.day_name,
                is_rest_day=day.is_rest_day,
                rest_description=day.rest_description,
                courses=[
                    orm.ScheduleCourse(course_id=course_id, order_index=index)
                    for index, course_id in enumerate(day.courses)
                ],
            )
            for day in program.schedule
        ]
        await self.db.flush()

    async def delete_weekly_program(self, program_id: str) -> None:
        row = await self.db.get(orm.WeeklyProgram, program_id)
        if row is not None:
            await self.db.delete(row)
            await self.db.flush()
