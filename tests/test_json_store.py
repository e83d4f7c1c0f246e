"""
Tests for the local JSON key-value store
"""
import json
import os

import pytest

from crud.json_store import STORAGE_KEYS, JsonFileEntityStore
from models.fitness import SubscriptionTier
from services.seed_service import DEFAULT_COURSES, seed_defaults


async def test_empty_store_reads_as_empty(json_store):
    assert await json_store.list_users() == []
    assert await json_store.get_user("user-missing") is None
    await json_store.remove_access_override("user-missing", "course-missing")
    assert not json_store.path.exists()


async def test_collections_use_storage_keys(json_store, make_user, make_course):
    user = await make_user(json_store)
    await make_course(json_store, "Yoga")

    document = json.loads(json_store.path.read_text(encoding="utf-8"))

    assert set(document) == {STORAGE_KEYS["users"], STORAGE_KEYS["courses"]}
    [stored_user] = document[STORAGE_KEYS["users"]]
    assert stored_user["id"] == user.id
    assert stored_user["subscription"] == "debutant"


async def test_data_survives_a_new_store_instance(json_store, make_user):
    user = await make_user(json_store, subscription=SubscriptionTier.EXPERT)

    reopened = JsonFileEntityStore(json_store.path)

    assert await reopened.get_user(user.id) == user
    assert (await reopened.get_user_by_username(user.username)).id == user.id


async def test_put_replaces_existing_entity(json_store, make_course):
    course = await make_course(json_store, "Yoga")
    await json_store.put_course(course.model_copy(update={"title": "Yoga doux"}))

    courses = await json_store.list_courses()
    assert [c.title for c in courses] == ["Yoga doux"]


async def test_seed_runs_only_on_empty_store(json_store):
    await seed_defaults(json_store)
    await seed_defaults(json_store)

    users = await json_store.list_users()
    assert [(u.username, u.is_admin, u.subscription) for u in users] == [("admin", True, SubscriptionTier.EXPERT)]
    assert len(await json_store.list_courses()) == len(DEFAULT_COURSES)


async def test_save_leaves_no_temporary_file(json_store, make_user):
    await make_user(json_store)
    await make_user(json_store, username="bob")

    assert [p.name for p in json_store.path.parent.iterdir()] == [json_store.path.name]
    assert len(json.loads(json_store.path.read_text(encoding="utf-8"))[STORAGE_KEYS["users"]]) == 2


async def test_interrupted_save_keeps_previous_document(json_store, make_user, monkeypatch):
    alice = await make_user(json_store)

    def interrupted_replace(src, dst):
        raise OSError("disk full")

    with monkeypatch.context() as patch:
        patch.setattr(os, "replace", interrupted_replace)
        with pytest.raises(OSError):
            await make_user(json_store, username="bob")

    assert [u.id for u in await json_store.list_users()] == [alice.id]
    assert not json_store.path.with_suffix(".json.tmp").exists()
