from typing import AsyncGenerator, Awaitable, Callable, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from mundo_tango.core.database import create_all, create_sessionmaker
from mundo_tango.core.database.entities.users import User, UserRole
from test.settings import test_settings

# In-memory SQLite by default; StaticPool keeps the single connection alive
TEST_DATABASE_URL = test_settings.database.url

UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh database per test so tests never see each other's rows."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from mundo_tango.core.database import get_session
    from mundo_tango.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("mundo_tango.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url=test_settings.base_url) as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: AsyncSession) -> UserFactory:
    """Insert a user straight into the database and return it."""
    counter = {"n": 0}

    async def _make_user(username: str = "", role: UserRole = UserRole.USER, **fields) -> User:
        counter["n"] += 1
        username = username or f"dancer{counter['n']}"
        user = User(
            name=fields.pop("name", username.title()),
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            role=role,
            **fields,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth() -> Callable[[User], Dict[str, str]]:
    """Build the headers that act as a given user."""

    def _auth(user: User) -> Dict[str, str]:
        return {"X-User-Id": str(user.id)}

    return _auth
