from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from goalstore.config import settings


def _normalize_url(raw_url: str) -> str:
    if raw_url.startswith("sqlite:///"):
        return raw_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return raw_url


def make_engine(raw_url: str) -> AsyncEngine:
    return create_async_engine(_normalize_url(raw_url))


engine = make_engine(settings.database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create the key/value table used by the goal and draft collaborators."""
    async with (target or engine).begin() as conn:
        await conn.execute(
            text(
                "CREATE TABLE IF NOT EXISTS kv_entries ("
                "key TEXT PRIMARY KEY, "
                "value TEXT NOT NULL, "
                "saved_at TEXT NOT NULL)"
            )
        )


async def get_session() -> AsyncSession:  # type: ignore[misc]
    async with async_session() as session:
        yield session
