"""Shared test fixtures - uses async SQLite for isolated testing."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from peertutor.db.database import Base, get_db
from peertutor.errors import TransientBackendError
from peertutor.models.user import User
from peertutor.services.notification_service import NotificationService
from peertutor.services.object_store import ObjectStore
from peertutor.services.push_service import PushChannel

# In-memory SQLite for tests (no Docker needed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///file::memory:?cache=shared&uri=true"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


class RecordingPush(PushChannel):
    """Push channel double: records sends, optionally fails every call."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    async def send(self, token, title, body, data):
        if self.fail:
            raise RuntimeError("push backend down")
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        return True


class RecordingFeed:
    """Feed double: records what would be published to Redis."""

    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def publish(self, user_id, message):
        self.published.append((user_id, message))


class RecordingStore(ObjectStore):
    """Object store double: keeps uploads in memory, records deletes."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []

    async def upload(self, path, data, content_type):
        if self.fail:
            raise TransientBackendError("File storage is not available")
        self.objects[path] = (data, content_type)
        return f"https://files.test/{path}"

    async def delete(self, path):
        if self.fail:
            raise TransientBackendError("File storage is not available")
        self.objects.pop(path, None)
        self.deleted.append(path)


async def _override_get_db():
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    # Import all models so Base.metadata knows about them
    import peertutor.models  # noqa: F401

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db():
    """Direct async DB session for service-level tests."""
    async with test_session_factory() as session:
        yield session
        await session.commit()


@pytest.fixture
def push():
    return RecordingPush()


@pytest.fixture
def feed():
    return RecordingFeed()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def notifier(push, feed):
    return NotificationService(push=push, feed=feed)


@pytest.fixture
def make_user(db):
    """Factory for persisted users: await make_user("Alice", skills=[...], needs=[...])."""
    counter = 0

    async def _make(name: str = "User", **fields) -> User:
        nonlocal counter
        counter += 1
        user = User(display_name=name, email=f"{name.lower()}{counter}@example.com", **fields)
        db.add(user)
        await db.flush()
        return user

    return _make


@pytest.fixture
async def client(notifier, store):
    """Async HTTP test client with test DB override and recording delivery doubles."""
    from peertutor.main import app

    app.dependency_overrides[get_db] = _override_get_db
    app.state.notification_service = notifier
    app.state.object_store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def signup(client, name: str, **profile) -> str:
    """Create a user over HTTP, optionally fill their profile, return the id."""
    resp = await client.post(
        "/api/users/", json={"display_name": name, "email": f"{name.lower()}@example.com"}
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["id"]
    if profile:
        resp = await client.patch("/api/users/me", json=profile, headers=as_user(user_id))
        assert resp.status_code == 200, resp.text
    return user_id


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}
