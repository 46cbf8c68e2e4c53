import os

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Тесты работают на SQLite; переменные задаются до импорта приложения
TEST_DB_URL = "sqlite+aiosqlite:///./test_laneboard.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["STREAM_HANDSHAKE_TIMEOUT"] = "1"

from laneboard.db.models import Base
from laneboard.db.database import get_async_session, seed_labels
from laneboard.main import app
from laneboard.models.user import User
from laneboard.services.board_service import BoardService
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.security_service import SecurityService
from laneboard.services.stream_service import BoardStreamRegistry

PASSWORD = "password123"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        await seed_labels(session)
    return factory


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry():
    """Fresh stream registry wired into the application"""
    registry = BoardStreamRegistry()
    app.state.stream_registry = registry
    app.state.broadcaster = BoardBroadcaster(registry)
    return registry


@pytest.fixture
def broadcaster(registry):
    return app.state.broadcaster


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, registry):
    """HTTP test client with overridden DB dependency"""

    async def override_get_async_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_get_async_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_user(db_session, username: str) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=SecurityService.create_password_hash(PASSWORD),
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = SecurityService.create_tokens(user.id)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def owner(db_session):
    return await create_user(db_session, "owner")


@pytest_asyncio.fixture
async def outsider(db_session):
    return await create_user(db_session, "outsider")


@pytest_asyncio.fixture
async def board(db_session, owner):
    return await BoardService.create(db_session, "Roadmap", owner)
