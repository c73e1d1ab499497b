"""Goal HTTP router: the UI-facing surface of the goal store.

Every successful write is followed by a save of the whole collection.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from goalstore.db import get_session
from goalstore.engine import storage
from goalstore.engine.errors import GoalStoreError
from goalstore.engine.models import DayGoals, Goal, GoalSummary
from goalstore.engine.store import GoalStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["goals"])


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


class LogValue(_Body):
    value: float
    date_key: str | None = None


class GoalPatch(_Body):
    name: str | None = None
    categories: list[str] | None = None


class SelectedDate(_Body):
    date_key: str


def get_store(request: Request) -> GoalStore:
    return request.app.state.store


def _run(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a store operation, mapping refusals to 422 and misses to 404."""
    try:
        result = fn(*args)
    except GoalStoreError as exc:
        logger.warning("Refused %s: %s", fn.__name__, exc)
        raise HTTPException(status_code=422, detail=str(exc))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Unknown goal: {args[0]}")
    return result


async def _persist(session: AsyncSession, store: GoalStore) -> None:
    await storage.save_goals(session, store.list_goals())


# ---------------------------------------------------------------------------
# /goals
# ---------------------------------------------------------------------------


@router.get("/goals", response_model=list[Goal])
async def goals_list(store: GoalStore = Depends(get_store)) -> list[Goal]:
    return store.list_goals()


@router.post("/goals", status_code=201)
async def goal_create(
    draft: dict[str, Any] = Body(...),
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    goal_id = _run(store.create_goal, draft)
    await _persist(session, store)
    return {"id": goal_id}


@router.get("/goals/{goal_id}", response_model=Goal)
async def goal_detail(goal_id: str, store: GoalStore = Depends(get_store)) -> Goal:
    goal = store.get_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail=f"Unknown goal: {goal_id}")
    return goal


@router.put("/goals/{goal_id}", response_model=Goal)
async def goal_edit(
    goal_id: str,
    draft: dict[str, Any] = Body(...),
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.edit_goal, goal_id, draft)
    await _persist(session, store)
    return goal


@router.patch("/goals/{goal_id}", response_model=Goal)
async def goal_update(
    goal_id: str,
    patch: GoalPatch,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.update_goal, goal_id, patch.name, patch.categories)
    await _persist(session, store)
    return goal


@router.delete("/goals/{goal_id}")
async def goal_delete(
    goal_id: str,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> dict[str, bool]:
    if not store.delete_goal(goal_id):
        raise HTTPException(status_code=404, detail=f"Unknown goal: {goal_id}")
    await _persist(session, store)
    return {"deleted": True}


@router.get("/goals/{goal_id}/summary", response_model=GoalSummary)
async def goal_summary(
    goal_id: str,
    store: GoalStore = Depends(get_store),
    date_key: str | None = Query(default=None, alias="date", description="Day (YYYY-MM-DD); default: selected day"),
) -> GoalSummary:
    return _run(store.summary, goal_id, date_key)


# ---------------------------------------------------------------------------
# /goals/{id}/... log writes
# ---------------------------------------------------------------------------


@router.post("/goals/{goal_id}/completion", response_model=Goal)
async def log_completion(
    goal_id: str,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
    date_key: str | None = Query(default=None, alias="date"),
) -> Goal:
    goal = _run(store.toggle_completion, goal_id, date_key)
    await _persist(session, store)
    return goal


@router.put("/goals/{goal_id}/numeric", response_model=Goal)
async def log_numeric_set(
    goal_id: str,
    body: LogValue,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.set_numeric, goal_id, body.value, body.date_key)
    await _persist(session, store)
    return goal


@router.post("/goals/{goal_id}/numeric", response_model=Goal)
async def log_numeric_add(
    goal_id: str,
    body: LogValue,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.add_numeric, goal_id, body.value, body.date_key)
    await _persist(session, store)
    return goal


@router.post("/goals/{goal_id}/timer", response_model=Goal)
async def log_timer(
    goal_id: str,
    body: LogValue,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.add_timer_seconds, goal_id, body.value, body.date_key)
    await _persist(session, store)
    return goal


@router.post("/goals/{goal_id}/checklist/{item_id}", response_model=Goal)
async def log_checklist(
    goal_id: str,
    item_id: str,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
    date_key: str | None = Query(default=None, alias="date"),
) -> Goal:
    goal = _run(store.toggle_checklist_item, goal_id, item_id, date_key)
    await _persist(session, store)
    return goal


@router.post("/goals/{goal_id}/flex", response_model=Goal)
async def log_flex(
    goal_id: str,
    body: LogValue,
    store: GoalStore = Depends(get_store),
    session: AsyncSession = Depends(get_session),
) -> Goal:
    goal = _run(store.add_flex_progress, goal_id, body.value, body.date_key)
    await _persist(session, store)
    return goal


# ---------------------------------------------------------------------------
# /days, /selected-date
# ---------------------------------------------------------------------------


@router.get("/days/{date_key}", response_model=DayGoals)
async def day_goals(date_key: str, store: GoalStore = Depends(get_store)) -> DayGoals:
    try:
        return store.goals_for_date(date_key)
    except GoalStoreError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/selected-date", response_model=SelectedDate)
async def selected_date(store: GoalStore = Depends(get_store)) -> SelectedDate:
    return SelectedDate(date_key=store.selected_date_key)


@router.put("/selected-date", response_model=SelectedDate)
async def selected_date_set(body: SelectedDate, store: GoalStore = Depends(get_store)) -> SelectedDate:
    try:
        store.set_selected_date_key(body.date_key)
    except GoalStoreError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return SelectedDate(date_key=store.selected_date_key)


# ---------------------------------------------------------------------------
# /drafts/add-goal
# ---------------------------------------------------------------------------


@router.get("/drafts/add-goal")
async def draft_get(session: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    draft = await storage.load_draft(session)
    if draft is None:
        raise HTTPException(status_code=404, detail="No saved draft")
    return draft


@router.put("/drafts/add-goal")
async def draft_put(
    draft: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> dict[str, bool]:
    return {"saved": await storage.save_draft(session, draft)}


@router.delete("/drafts/add-goal")
async def draft_delete(session: AsyncSession = Depends(get_session)) -> dict[str, bool]:
    await storage.clear_draft(session)
    return {"deleted": True}
