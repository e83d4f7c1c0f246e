"""
Entity store selection for request handlers
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, AsyncIterator

from config.settings import settings, STORE_JSON
from crud.base import EntityStore
from crud.json_store import JsonFileEntityStore
from crud.sql_store import SqlEntityStore
from database import session_scope


@asynccontextmanager
async def open_store() -> AsyncIterator[EntityStore]:
    """
    Pick the configured backend; business rules are identical for both.
    A database session is only opened for the relational backend.
    """
    if settings.store_backend.lower() == STORE_JSON:
        yield JsonFileEntityStore(Path(settings.json_store_path))
        return
    async with session_scope() as session:
        yield SqlEntityStore(session)


async def get_store() -> AsyncGenerator[EntityStore, None]:
    async with open_store() as store:
        yield store
