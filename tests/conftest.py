"""Test fixtures — throwaway SQLite database, fresh tables per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. The database URL points at a temp SQLite file BEFORE stockroom is
   imported, so the app's engine never touches a real database.
2. Each test creates the tables, runs, then drops them. Auto-increment
   ids therefore start at 1 in every test.
3. REST tests talk to the app through httpx's ASGITransport with get_db
   and get_notifier overridden; WebSocket tests use Starlette's
   TestClient, which runs the real lifespan.
"""

import asyncio
import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="stockroom-tests-")
os.environ["STOCKROOM_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from stockroom.api.deps import get_notifier  # noqa: E402
from stockroom.db.engine import async_session_factory, drop_db, get_db, init_db  # noqa: E402
from stockroom.events.types import ChangeEvent  # noqa: E402
from stockroom.main import app  # noqa: E402
from stockroom.realtime.notifier import ChangeNotifier  # noqa: E402
from stockroom.services.widget_service import WidgetService  # noqa: E402


class RecordingSink:
    """Test sink — remembers every event it receives."""

    def __init__(self):
        self.events: list[ChangeEvent] = []

    async def send_event(self, event: ChangeEvent) -> None:
        self.events.append(event)


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on freshly created tables."""
    await init_db()
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
    await drop_db()


@pytest_asyncio.fixture()
async def notifier():
    n = ChangeNotifier()
    yield n
    await n.close()


@pytest_asyncio.fixture()
async def recorder(notifier):
    """A RecordingSink already subscribed to the notifier."""
    sink = RecordingSink()
    await notifier.subscribe(notifier.next_connection_id(), sink)
    return sink


@pytest_asyncio.fixture()
async def svc(db_session, notifier):
    return WidgetService(db_session, notifier)


@pytest_asyncio.fixture()
async def client(db_session, notifier):
    """HTTP client with the app's get_db and get_notifier overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def live_client():
    """Sync TestClient running the real lifespan (tables + notifier).

    Learn: Needed for WebSocket tests — httpx's ASGITransport does not
    speak WebSocket. Tables are dropped after the lifespan shuts down.
    """
    with TestClient(app) as tc:
        yield tc
    asyncio.run(drop_db())
