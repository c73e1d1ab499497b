"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from goalstore.config import settings
from goalstore.db import get_session, init_db, make_engine
from goalstore.engine.store import GoalStore
from goalstore.main import app


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, year: int, month: int, day: int) -> None:
        self.now = datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def utc_days(monkeypatch):
    """Pin the local calendar to UTC so day keys don't depend on the host."""
    monkeypatch.setattr(settings, "default_tz", "UTC")


@pytest.fixture()
def clock():
    """Today is Thursday 2025-06-05."""
    return FixedClock(datetime(2025, 6, 5, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(clock):
    return GoalStore(clock=clock)


@pytest.fixture()
async def session_factory(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'goals.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(store, session_factory):
    """App client backed by the test store and a throwaway SQLite file."""
    async def _override():
        async with session_factory() as session:
            yield session

    app.state.store = store
    app.dependency_overrides[get_session] = _override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
