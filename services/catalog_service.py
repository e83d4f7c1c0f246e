"""
Catalog Service - admin management of users, courses, subscription plans and shop products
"""
import logging
from typing import List, Optional

from auth_utils import hash_password
from backend.utils.errors import ConflictError, NotFoundError, ValidationError
from crud.base import EntityStore
from models.fitness import (
    Course,
    Product,
    SubscriptionPlan,
    SubscriptionTier,
    User,
)
from services.validation import build, require_fields, update
from utils.security_utils import validate_email, validate_password_strength

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Service class for the admin console CRUD operations.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    # Users

    async def list_users(self, include_admins: bool = True) -> List[User]:
        users = await self.store.list_users()
        return users if include_admins else [user for user in users if not user.is_admin]

    async def get_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        subscription: SubscriptionTier = SubscriptionTier.DEBUTANT,
        is_admin: bool = False,
    ) -> User:
        """
        Create an account. Username and email must both be unused.

        Raises:
            ValidationError: On blank fields, malformed email, weak password or duplicates
        """
        require_fields(username=username, email=email, password=password)
        username = username.strip()
        email = email.strip().lower()
        if not validate_email(email):
            raise ValidationError("Invalid email format")
        try:
            validate_password_strength(password)
        except ValueError as e:
            raise ValidationError(str(e))

        for existing in await self.store.list_users():
            if existing.username == username or existing.email.lower() == email:
                raise ValidationError("A user with this username or email already exists")

        user = build(
            User,
            username=username,
            email=email,
            password_hash=hash_password(password),
            subscription=subscription,
            is_admin=is_admin,
        )
        await self.store.put_user(user)
        logger.info(f"Created user {username} ({user.subscription.value})")
        return user

    async def delete_user(self, user_id: str, acting_user_id: Optional[str] = None) -> None:
        """Delete a user with their access overrides and subscriptions."""
        if acting_user_id is not None and user_id == acting_user_id:
            raise ConflictError("You cannot delete your own account")
        user = await self.get_user(user_id)

        for override in await self.store.list_access_overrides():
            if override.user_id == user_id:
                await self.store.remove_access_override(user_id, override.course_id)
        for subscription in await self.store.list_user_subscriptions():
            if subscription.user_id == user_id:
                await self.store.delete_user_subscription(subscription.id)
        await self.store.delete_user(user_id)
        logger.info(f"Deleted user {user.username}")

    # Courses

    async def list_courses(self) -> List[Course]:
        return await self.store.list_courses()

    async def get_course(self, course_id: str) -> Course:
        course = await self.store.get_course(course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    async def create_course(self, **fields) -> Course:
        require_fields(
            title=fields.get("title"),
            description=fields.get("description"),
            video_url=fields.get("video_url"),
            category=fields.get("category"),
            instructor=fields.get("instructor"),
        )
        course = build(Course, **fields)
        await self.store.put_course(course)
        logger.info(f"Created course '{course.title}' ({course.level.value})")
        return course

    async def update_course(self, course_id: str, **changes) -> Course:
        course = update(await self.get_course(course_id), **changes)
        await self.store.put_course(course)
        return course

    async def delete_course(self, course_id: str) -> None:
        """Delete a course, its access overrides and its slots in weekly programs."""
        course = await self.get_course(course_id)

        for override in await self.store.list_access_overrides():
            if override.course_id == course_id:
                await self.store.remove_access_override(override.user_id, course_id)
        for program in await self.store.list_weekly_programs():
            if not any(course_id in day.courses for day in program.schedule):
                continue
            schedule = [
                day.model_copy(update={"courses": [cid for cid in day.courses if cid != course_id]})
                for day in program.schedule
            ]
            await self.store.put_weekly_program(program.model_copy(update={"schedule": schedule}))
        await self.store.delete_course(course_id)
        logger.info(f"Deleted course '{course.title}'")

    # Subscription plans

    async def list_plans(self) -> List[SubscriptionPlan]:
        return await self.store.list_subscription_plans()

    async def get_plan(self, plan_id: str) -> SubscriptionPlan:
        plan = await self.store.get_subscription_plan(plan_id)
        if plan is None:
            raise NotFoundError("SubscriptionPlan", plan_id)
        return plan

    async def _ensure_plan_unused(self, plan: SubscriptionPlan, action: str) -> None:
        for subscription in await self.store.list_user_subscriptions():
            if subscription.plan_id == plan.id and subscription.is_current:
                logger.warning(f"Refused to {action} plan '{plan.name}': still used by {subscription.user_id}")
                raise ConflictError(
                    f"Cannot {action} plan '{plan.name}': it is assigned to an active or overdue subscription"
                )

    async def create_plan(self, **fields) -> SubscriptionPlan:
        require_fields(name=fields.get("name"))
        plan = build(SubscriptionPlan, **fields)
        await self.store.put_subscription_plan(plan)
        logger.info(f"Created plan '{plan.name}'")
        return plan

    async def update_plan(self, plan_id: str, **changes) -> SubscriptionPlan:
        plan = await self.get_plan(plan_id)
        await self._ensure_plan_unused(plan, "edit")
        updated = update(plan, **changes)
        await self.store.put_subscription_plan(updated)
        return updated

    async def delete_plan(self, plan_id: str) -> None:
        plan = await self.get_plan(plan_id)
        await self._ensure_plan_unused(plan, "delete")
        await self.store.delete_subscription_plan(plan_id)
        logger.info(f"Deleted plan '{plan.name}'")

    # Shop

    async def list_products(self) -> List[Product]:
        return await self.store.list_products()

    async def create_product(
        self,
        label: str,
        description: str,
        price: float,
        image: Optional[str] = None,
    ) -> Product:
        require_fields(label=label, description=description, price=price)
        product = build(
            Product,
            label=label.strip(),
            description=description.strip(),
            price=price,
            image=image or None,
        )
        await self.store.put_product(product)
        logger.info(f"Created product '{product.label}'")
        return product

    async def delete_product(self, product_id: str) -> None:
        if not any(product.id == product_id for product in await self.store.list_products()):
            raise NotFoundError("Product", product_id)
        await self.store.delete_product(product_id)
