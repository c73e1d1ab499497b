"""Persistence collaborators: the goal collection and the add-goal draft.

Both live as JSON documents in the ``kv_entries`` table (key, value, saved_at).
The collection round-trips exactly; the draft is best-effort and expires
after ``settings.draft_ttl_seconds``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goalstore.config import settings
from goalstore.engine.models import Goal

logger = logging.getLogger(__name__)

GOALS_KEY = "goals"
DRAFT_KEY = "draft:add-goal"

_GOALS_ADAPTER: TypeAdapter[list[Goal]] = TypeAdapter(list[Goal])

_UPSERT = (
    "INSERT INTO kv_entries (key, value, saved_at) VALUES (:key, :value, :saved_at) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, saved_at = excluded.saved_at"
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _read(session: AsyncSession, key: str) -> dict[str, Any] | None:
    result = await session.execute(
        text("SELECT value, saved_at FROM kv_entries WHERE key = :key"), {"key": key}
    )
    row = result.fetchone()
    if row is None:
        return None
    return dict(zip(result.keys(), row))


async def _write(session: AsyncSession, key: str, value: str, saved_at: datetime) -> None:
    await session.execute(text(_UPSERT), {"key": key, "value": value, "saved_at": saved_at.isoformat()})
    await session.commit()


async def _delete(session: AsyncSession, key: str) -> None:
    await session.execute(text("DELETE FROM kv_entries WHERE key = :key"), {"key": key})
    await session.commit()


# ---------------------------------------------------------------------------
# Goal collection
# ---------------------------------------------------------------------------


def dump_goals(goals: list[Goal]) -> str:
    return _GOALS_ADAPTER.dump_json(goals, by_alias=True).decode()


def parse_goals(payload: str) -> list[Goal]:
    return _GOALS_ADAPTER.validate_json(payload)


async def load_goals(session: AsyncSession) -> list[Goal]:
    """Return the saved collection, or an empty list on first start."""
    row = await _read(session, GOALS_KEY)
    if row is None:
        return []
    return parse_goals(row["value"])


async def save_goals(session: AsyncSession, goals: list[Goal], now: datetime | None = None) -> None:
    await _write(session, GOALS_KEY, dump_goals(goals), now or _now())


# ---------------------------------------------------------------------------
# Add-goal draft autosave
# ---------------------------------------------------------------------------


async def save_draft(session: AsyncSession, draft: dict[str, Any], now: datetime | None = None) -> bool:
    """Stage the in-progress form. Failures are logged and swallowed."""
    try:
        await _write(session, DRAFT_KEY, json.dumps(draft), now or _now())
    except (SQLAlchemyError, TypeError, ValueError) as exc:
        logger.warning("Draft autosave failed: %s", exc)
        await session.rollback()
        return False
    return True


async def load_draft(
    session: AsyncSession,
    now: datetime | None = None,
    ttl_seconds: int | None = None,
) -> dict[str, Any] | None:
    """Return the staged draft, discarding it unread once older than the TTL."""
    row = await _read(session, DRAFT_KEY)
    if row is None:
        return None
    ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.draft_ttl_seconds)
    saved_at = datetime.fromisoformat(row["saved_at"])
    if (now or _now()) - saved_at > ttl:
        logger.info("Discarding expired add-goal draft saved at %s", row["saved_at"])
        await _delete(session, DRAFT_KEY)
        return None
    return json.loads(row["value"])


async def clear_draft(session: AsyncSession) -> None:
    await _delete(session, DRAFT_KEY)
