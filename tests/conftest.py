"""
Pytest configuration and fixtures for testing
"""
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from auth_utils import create_jwt, hash_password
from config.settings import settings, STORE_SQL
from crud import get_store
from crud.json_store import JsonFileEntityStore
from crud.sql_store import SqlEntityStore
from database import Base
from models.fitness import Course, SubscriptionPlan, SubscriptionTier, User

# Create in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# One shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    poolclass=StaticPool,
)

# Create test session factory
TestAsyncSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

TEST_PASSWORD = "correct-horse-42"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Sign tokens with a fixed secret and always use the relational store."""
    monkeypatch.setattr(settings, "jwt_secret_key", "test-secret-key")
    monkeypatch.setattr(settings, "store_backend", STORE_SQL)
    return settings


@pytest.fixture
async def test_db():
    """
    Fixture that provides an isolated, in-memory SQLite database connection for each test.

    This fixture:
    - Creates all tables before the test runs
    - Yields a clean AsyncSession for the test
    - Drops all tables after the test completes
    """
    async with test_engine.begin() as conn:
        # Import models to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Each test runs on its own event loop; do not carry the connection over
    await test_engine.dispose()


@pytest.fixture
def store(test_db):
    return SqlEntityStore(test_db)


@pytest.fixture
def json_store(tmp_path):
    return JsonFileEntityStore(tmp_path / "portal_store.json")


@pytest.fixture(params=["sql", "json"])
async def any_store(request, test_db, tmp_path):
    """Runs a test once per store backend."""
    if request.param == "json":
        return JsonFileEntityStore(tmp_path / "portal_store.json")
    return SqlEntityStore(test_db)


async def _make_user(store, username="alice", subscription=SubscriptionTier.DEBUTANT, **fields) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        subscription=subscription,
        **fields,
    )
    await store.put_user(user)
    return user


async def _make_course(store, title="Course", level=SubscriptionTier.DEBUTANT, **fields) -> Course:
    data = {
        "description": "A course",
        "video_url": "https://www.youtube.com/embed/test",
        "category": "Cardio",
        "duration": 30,
        "instructor": "Coach",
    }
    data.update(fields)
    course = Course(title=title, level=level, **data)
    await store.put_course(course)
    return course


async def _make_plan(store, name="Medium", level=SubscriptionTier.MEDIUM, **fields) -> SubscriptionPlan:
    data = {"monthly_price": 29.99, "annual_price": 299.99}
    data.update(fields)
    plan = SubscriptionPlan(name=name, level=level, **data)
    await store.put_subscription_plan(plan)
    return plan


def _auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_jwt(user.id)}"}


@pytest.fixture
def test_password():
    return TEST_PASSWORD


@pytest.fixture
def make_user():
    return _make_user


@pytest.fixture
def make_course():
    return _make_course


@pytest.fixture
def make_plan():
    return _make_plan


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
async def client(test_db):
    """HTTP client bound to the app, with requests sharing the test database."""
    from main import app

    async def override_get_store():
        async with TestAsyncSessionLocal() as session:
            try:
                yield SqlEntityStore(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_store] = override_get_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
