"""
Shared pytest fixtures for TripCollab tests.

- Environment configured before any app module is imported
- Disposable SQLite database (aiosqlite), recreated per test
- Redis client replaced by an AsyncMock behind the real RedisCache
- Activity logger whose queue records entries instead of persisting them
"""
import asyncio
import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# ─────────────────────────── ENVIRONMENT ───────────────────────────

TEST_ROOT = Path(__file__).resolve().parent
DATA_DIR = TEST_ROOT / "tmp_data"
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_FILE = DATA_DIR / "test.db"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_FILE}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["FRONTEND_BASE_URL"] = "http://testserver"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ACTIVITY_LOG_RETRY_BASE_DELAY"] = "0"
os.environ["ADMIN_EMAIL"] = "admin@example.com"

from app.core.cache import RedisCache  # noqa: E402
from app.core.database import SessionLocal  # noqa: E402
from app.core.init_db import drop_db, init_db  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.models.trips.trip_collaborator import CollaboratorRole, TripCollaborator  # noqa: E402
from app.models.user.user import User  # noqa: E402
from app.schemas.trip.trip_schema import TripCreate  # noqa: E402
from app.services.activity.activity_logger import ActivityLogger  # noqa: E402
from app.services.trips.collaborator_service import CollaboratorService  # noqa: E402
from app.services.trips.trip_service import TripService  # noqa: E402

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


# ─────────────────────────── TEST DOUBLES ───────────────────────────

class RecordingQueue:
    """Stands in for ActivityLogQueue; keeps entries in memory."""

    def __init__(self):
        self.entries = []

    def enqueue(self, entry):
        self.entries.append(entry)
        return True

    def actions(self):
        return [entry.action_type.value for entry in self.entries]


class FailingQueue:
    def enqueue(self, entry):
        raise RuntimeError("activity store unavailable")


def reset_database():
    async def _reset():
        await drop_db()
        await init_db()
    asyncio.run(_reset())


# ─────────────────────────── FIXTURES ───────────────────────────

@pytest.fixture
def mock_redis():
    client = AsyncMock()
    client.get.return_value = None
    client.scan.return_value = (0, [])
    return client


@pytest.fixture
def cache(mock_redis):
    return RedisCache(mock_redis)


@pytest.fixture
def activity_queue():
    return RecordingQueue()


@pytest.fixture
def activity_logger(activity_queue):
    return ActivityLogger(activity_queue)


@pytest.fixture
def trip_service(cache, activity_logger):
    return TripService(cache, activity_logger)


@pytest.fixture
def collaborator_service(cache, activity_logger):
    return CollaboratorService(cache, activity_logger)


@pytest_asyncio.fixture
async def db():
    await drop_db()
    await init_db()
    async with SessionLocal() as session:
        yield session


async def create_user(db, email: str, name: str) -> User:
    user = User(email=email, name=name, hashed_password=PASSWORD_HASH)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner(db):
    return await create_user(db, "owner@example.com", "Olivia Owner")


@pytest_asyncio.fixture
async def editor(db):
    return await create_user(db, "editor@example.com", "Eddie Editor")


@pytest_asyncio.fixture
async def viewer(db):
    return await create_user(db, "viewer@example.com", "Vera Viewer")


@pytest_asyncio.fixture
async def stranger(db):
    return await create_user(db, "stranger@example.com", "Sam Stranger")


@pytest_asyncio.fixture
async def admin(db):
    user = await create_user(db, "admin@example.com", "Ada Admin")
    user.is_admin = True
    await db.commit()
    return user

@pytest_asyncio.fixture
async def trip(db, trip_service, activity_queue, owner, editor, viewer):
    """Trip owned by ``owner`` with an editor and a viewer; activity log cleared."""
    created = await trip_service.create_trip(db, TripCreate(name="Lisbon 2026"), owner)
    db.add_all([
        TripCollaborator(trip_id=created.id, user_id=editor.id, role=CollaboratorRole.EDITOR),
        TripCollaborator(trip_id=created.id, user_id=viewer.id, role=CollaboratorRole.VIEWER),
    ])
    await db.commit()
    activity_queue.entries.clear()
    return await trip_service.get_trip(db, created.id, owner)


@pytest.fixture
def failing_activity_logger():
    return ActivityLogger(FailingQueue())


@pytest.fixture
def client(cache, activity_logger):
    """TestClient without lifespan, so no Redis connection or log worker is started."""
    from fastapi.testclient import TestClient

    from app.core.redis_lifecyle import get_cache
    from app.main import app
    from app.services.activity.activity_logger import get_activity_logger

    reset_database()
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_activity_logger] = lambda: activity_logger
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register and log in a user; returns (user json, auth headers)."""
    def _signup(email: str, name: str):
        resp = client.post("/auth/register", json={"email": email, "name": name, "password": PASSWORD})
        assert resp.status_code == 201, resp.text
        token = client.post("/auth/login", json={"email": email, "password": PASSWORD}).json()["access_token"]
        return resp.json(), {"Authorization": f"Bearer {token}"}
    return _signup
