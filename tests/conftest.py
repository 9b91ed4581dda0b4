import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TIMEZONE"] = "UTC"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskpulse.core.deps import get_local_store  # noqa: E402
from taskpulse.core.security import create_access_token  # noqa: E402
from taskpulse.database import Base, get_db  # noqa: E402
from taskpulse.main import app  # noqa: E402
from taskpulse.models.user import User  # noqa: E402
from taskpulse.services.local_store import LocalTaskStore  # noqa: E402
from taskpulse.utils.password import hash_password  # noqa: E402

TEST_PASSWORD = "secret123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def local_store(tmp_path):
    return LocalTaskStore(tmp_path / "local_tasks.json")


async def _create_user(db, email, name="Test User"):
    user = User(email=email, name=name, hashed_password=hash_password(TEST_PASSWORD))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def user(db):
    return await _create_user(db, "owner@example.com", "Owner")


@pytest.fixture
async def other_user(db):
    return await _create_user(db, "other@example.com", "Other")


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def auth_headers(user):
    return bearer(user)


@pytest.fixture
async def client(session_factory, local_store):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_local_store] = lambda: local_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    return bearer
