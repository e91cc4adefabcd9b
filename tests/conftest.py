"""
Pytest configuration and fixtures for tests.
Provides reusable fixtures for the database, users, clock and services.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dm_core.core.database import get_db
from dm_core.core.identity import IdentityProvider
from dm_core.core.live_updates import LiveUpdateChannel
from dm_core.core.notifications import NotificationDispatcher
from dm_core.core.rate_limit import limiter
from dm_core.core.security import create_access_token
from dm_core.models import Base, User
from dm_core.services.block_service import BlockService
from dm_core.services.conversation_service import ConversationService
from dm_core.services.message_service import MessageService
from dm_core.services.reaction_service import ReactionService


# In-memory SQLite shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    """Controllable clock; call it to read the time."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class RecordingSink:
    """Notification sink that remembers deliveries."""

    def __init__(self):
        self.deliveries: List[Tuple[str, Dict[str, Any]]] = []

    async def deliver(self, target_user_id: str, payload: Dict[str, Any]) -> None:
        self.deliveries.append((target_user_id, payload))


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _make_user(db_session: AsyncSession, username: str, display_name: str) -> User:
    user = User(username=username, display_name=display_name)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def alice(db_session):
    return await _make_user(db_session, "alice", "Alice")


@pytest.fixture
async def bob(db_session):
    return await _make_user(db_session, "bob", "Bob")


@pytest.fixture
async def carol(db_session):
    return await _make_user(db_session, "carol", None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def live_channel():
    return LiveUpdateChannel()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def dispatcher(sink):
    return NotificationDispatcher(sink)


@pytest.fixture
def identity(db_session):
    return IdentityProvider(db_session, use_cache=False)


@pytest.fixture
def block_service(db_session, clock):
    return BlockService(db_session, clock)


@pytest.fixture
def conversation_service(db_session, identity, clock):
    return ConversationService(db_session, identity, clock)


@pytest.fixture
def message_service(db_session, identity, block_service, live_channel, dispatcher, clock):
    return MessageService(db_session, identity, block_service, live_channel, dispatcher, clock)


@pytest.fixture
def reaction_service(db_session, clock):
    return ReactionService(db_session, clock)


@pytest.fixture
async def conversation_id(conversation_service, alice, bob):
    """Conversation between Alice and Bob."""
    return await conversation_service.get_or_create_conversation(alice.id, bob.id)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture(scope="function")
async def client(db_session, clock, live_channel, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with dependency overrides."""
    from dm_core.dependencies import get_clock, get_live_channel, get_notification_dispatcher
    from dm_core.main import fastapi_app

    async def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_clock] = lambda: clock
    fastapi_app.dependency_overrides[get_live_channel] = lambda: live_channel
    fastapi_app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Authorization headers for a user."""
    return auth_headers
