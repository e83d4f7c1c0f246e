"""
Local key-value EntityStore persisted as a single JSON document.

Each collection lives under its own key and is rewritten in full on every
save (last writer wins, no locking). The document goes to a temporary file
that replaces the real one only once fully written, so an interrupted save
leaves the previous version readable.
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Type

import aiofiles
from pydantic import BaseModel

from crud.base import EntityStore
from models.fitness import (
    AccessOverride,
    Course,
    Product,
    SubscriptionPlan,
    User,
    UserSubscription,
    WeeklyProgram,
)

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "users": "fitness_app_users",
    "courses": "fitness_app_courses",
    "course_access": "fitness_app_course_access",
    "subscription_plans": "fitness_app_subscription_plans",
    "user_subscriptions": "fitness_app_user_subscriptions",
    "products": "fitness_app_products",
    "weekly_programs": "fitness_app_weekly_programs",
}


class JsonFileEntityStore(EntityStore):

    def __init__(self, path: Path):
        self.path = Path(path)

    async def _read(self) -> Dict[str, list]:
        file_exists = await asyncio.to_thread(self.path.exists)
        if not file_exists:
            return {}
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            content = await f.read()
        return json.loads(content) if content.strip() else {}

    async def _write(self, document: Dict[str, list]) -> None:
        await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".json.tmp")
        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(document, indent=2, ensure_ascii=False))
                await f.flush()
                await asyncio.to_thread(os.fsync, f.fileno())
            await asyncio.to_thread(os.replace, temp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to save {self.path}: {e}")
            await asyncio.to_thread(temp_path.unlink, missing_ok=True)
            raise

    async def _load(self, collection: str, model: Type[BaseModel]) -> list:
        document = await self._read()
        return [model.model_validate(item) for item in document.get(STORAGE_KEYS[collection], [])]

    async def _save(self, collection: str, items: List[BaseModel]) -> None:
        document = await self._read()
        document[STORAGE_KEYS[collection]] = [item.model_dump(mode="json") for item in items]
        await self._write(document)
        logger.debug(f"Saved {len(items)} {collection} to {self.path}")

    async def _upsert(self, collection: str, model: Type[BaseModel], entity: BaseModel) -> None:
        items = await self._load(collection, model)
        for index, item in enumerate(items):
            if item.id == entity.id:
                items[index] = entity
                break
        else:
            items.append(entity)
        await self._save(collection, items)

    async def _remove(self, collection: str, model: Type[BaseModel], entity_id: str) -> None:
        items = await self._load(collection, model)
        await self._save(collection, [item for item in items if item.id != entity_id])

    async def _get(self, collection: str, model: Type[BaseModel], entity_id: str):
        for item in await self._load(collection, model):
            if item.id == entity_id:
                return item
        return None

    # Users

    async def list_users(self) -> List[User]:
        return await self._load("users", User)

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._get("users", User, user_id)

    async def put_user(self, user: User) -> None:
        await self._upsert("users", User, user)

    async def delete_user(self, user_id: str) -> None:
        await self._remove("users", User, user_id)

    # Courses

    async def list_courses(self) -> List[Course]:
        return await self._load("courses", Course)

    async def get_course(self, course_id: str) -> Optional[Course]:
        return await self._get("courses", Course, course_id)

    async def put_course(self, course: Course) -> None:
        await self._upsert("courses", Course, course)

    async def delete_course(self, course_id: str) -> None:
        await self._remove("courses", Course, course_id)

    # Access overrides

    async def list_access_overrides(self) -> List[AccessOverride]:
        return await self._load("course_access", AccessOverride)

    async def put_access_override(self, user_id: str, course_id: str, fields: dict) -> None:
        overrides = await self.list_access_overrides()
        for index, override in enumerate(overrides):
            if override.user_id == user_id and override.course_id == course_id:
                data = override.model_dump()
                data.update(fields)
                overrides[index] = AccessOverride.model_validate(data)
                break
        else:
            overrides.append(AccessOverride(user_id=user_id, course_id=course_id, **fields))
        await self._save("course_access", overrides)

    async def remove_access_override(self, user_id: str, course_id: str) -> None:
        overrides = await self.list_access_overrides()
        remaining = [
            override for override in overrides
            if not (override.user_id == user_id and override.course_id == course_id)
        ]
        if len(remaining) != len(overrides):
            await self._save("course_access", remaining)

    # Subscription plans

    async def list_subscription_plans(self) -> List[SubscriptionPlan]:
        return await self._load("subscription_plans", SubscriptionPlan)

    async def put_subscription_plan(self, plan: SubscriptionPlan) -> None:
        await self._upsert("subscription_plans", SubscriptionPlan, plan)

    async def delete_subscription_plan(self, plan_id: str) -> None:
        await self._remove("subscription_plans", SubscriptionPlan, plan_id)

    # User subscriptions

    async def list_user_subscriptions(self) -> List[UserSubscription]:
        return await self._load("user_subscriptions", UserSubscription)

    async def put_user_subscription(self, subscription: UserSubscription) -> None:
        await self._upsert("user_subscriptions", UserSubscription, subscription)

    async def delete_user_subscription(self, subscription_id: str) -> None:
        await self._remove("user_subscriptions", UserSubscription, subscription_id)

    # Shop

    async def list_products(self) -> List[Product]:
        return await self._load("products", Product)

    async def put_product(self, product: Product) -> None:
        await self._upsert("products", Product, product)

    async def delete_product(self, product_id: str) -> None:
        await self._remove("products", Product, product_id)

    # Weekly programs

    async def list_weekly_programs(self) -> List[WeeklyProgram]:
        return await self._load("weekly_programs", WeeklyProgram)

    async def put_weekly_program(self, program: WeeklyProgram) -> None:
        await self._upsert("weekly_programs", WeeklyProgram, program)

    async def delete_weekly_program(self, program_id: str) -> None:
        await self._remove("weekly_programs", WeeklyProgram, program_id)
