"""In-memory goal collection and the operations that change it.

The collection is replaced, never edited in place: each write builds a new
dict holding one new Goal record, so any reader sees a single consistent
snapshot. Stats (streak + longest-streak watermark) are refreshed after
every log write.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel

from goalstore.engine import dates, evaluation
from goalstore.engine.errors import GoalValidationError
from goalstore.engine.models import (
    ChecklistEntry,
    CompletionEntry,
    DayGoals,
    FlexEntry,
    FlexLog,
    Goal,
    GoalKind,
    GoalLogs,
    GoalStats,
    GoalSummary,
    NumericEntry,
    TimerEntry,
)
from goalstore.engine.normalizer import DEFAULT_CATEGORY, normalize

logger = logging.getLogger(__name__)

Draft = Mapping[str, Any] | BaseModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _finite(value: float, field: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise GoalValidationError(f"{field} must be a finite number, got {value}")
    return value


class GoalStore:
    """Goal collection plus the currently selected day."""

    def __init__(
        self,
        goals: Iterable[Goal] = (),
        selected_date_key: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._clock = clock
        self._goals: dict[str, Goal] = {g.id: g for g in goals}
        self.selected_date_key = self.today_key()
        if selected_date_key is not None:
            self.set_selected_date_key(selected_date_key)

    # -- reads --------------------------------------------------------------

    def today_key(self) -> str:
        return dates.to_key(self._clock())

    def get_goal(self, goal_id: str) -> Goal | None:
        return self._goals.get(goal_id)

    def list_goals(self) -> list[Goal]:
        return list(self._goals.values())

    def goals_for_date(self, date_key: str | None = None) -> DayGoals:
        key = self._resolve_key(date_key)
        return evaluation.get_goals_for_date(self._goals.values(), key, self.today_key())

    def summary(self, goal_id: str, date_key: str | None = None) -> GoalSummary | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        return evaluation.summarize(goal, self._resolve_key(date_key))

    # -- collection ---------------------------------------------------------

    def load(self, goals: Iterable[Goal]) -> None:
        self._goals = {g.id: g for g in goals}
        logger.info("Loaded %d goals", len(self._goals))

    def set_selected_date_key(self, date_key: str) -> str:
        dates.from_key(date_key)
        self.selected_date_key = date_key
        return date_key

    def create_goal(self, draft: Draft) -> str:
        config = normalize(draft, today=self.today_key())
        goal = Goal(id=uuid.uuid4().hex, created_at=self._clock(), **dict(config))
        self._replace(goal)
        logger.info("Created %s goal %s (%s)", goal.kind.value, goal.id, goal.name)
        return goal.id

    def edit_goal(self, goal_id: str, draft: Draft) -> Goal | None:
        """Re-normalize a goal. A kind change wipes logs and stats; otherwise
        logs (flex progress included) carry over."""
        current = self.get_goal(goal_id)
        if current is None:
            return None
        config = normalize(draft, today=self.today_key())
        updates: dict[str, Any] = dict(config)
        if config.kind is not current.kind:
            logger.info(
                "Goal %s changed kind %s -> %s; logs reset",
                goal_id, current.kind.value, config.kind.value,
            )
            updates["logs"] = GoalLogs()
            updates["stats"] = GoalStats()
        goal = self._with_stats(current.model_copy(update=updates), self.selected_date_key)
        self._replace(goal)
        return goal

    def update_goal(
        self,
        goal_id: str,
        name: str | None = None,
        categories: list[str] | None = None,
    ) -> Goal | None:
        """Rename / recategorize without touching configuration or logs."""
        current = self.get_goal(goal_id)
        if current is None:
            return None
        updates: dict[str, Any] = {}
        if name is not None and name.strip():
            updates["name"] = name.strip()
        if categories is not None:
            cleaned = [c.strip() for c in categories if c and c.strip()]
            updates["categories"] = list(dict.fromkeys(cleaned)) or [DEFAULT_CATEGORY]
        goal = current.model_copy(update=updates)
        self._replace(goal)
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        if goal_id not in self._goals:
            return False
        self._goals = {k: g for k, g in self._goals.items() if k != goal_id}
        logger.info("Deleted goal %s", goal_id)
        return True

    # -- log mutations ------------------------------------------------------

    def toggle_completion(self, goal_id: str, date_key: str | None = None) -> Goal | None:
        goal, key = self._target(goal_id, date_key, GoalKind.completion)
        if goal is None:
            return None
        completion = dict(goal.logs.completion)
        if completion.get(key) is not None and completion[key].done:
            del completion[key]
        else:
            completion[key] = CompletionEntry(done=True)
        return self._write_logs(goal, key, completion=completion)

    def set_numeric(self, goal_id: str, value: float, date_key: str | None = None) -> Goal | None:
        goal, key = self._target(goal_id, date_key, GoalKind.numeric)
        if goal is None:
            return None
        value = _finite(value, "value")
        numeric = {**goal.logs.numeric, key: NumericEntry(value=max(0.0, value))}
        return self._write_logs(goal, key, numeric=numeric)

    def add_numeric(self, goal_id: str, delta: float, date_key: str | None = None) -> Goal | None:
        goal, key = self._target(goal_id, date_key, GoalKind.numeric)
        if goal is None:
            return None
        current = goal.logs.numeric.get(key, NumericEntry()).value
        return self.set_numeric(goal_id, current + _finite(delta, "delta"), key)

    def add_timer_seconds(self, goal_id: str, seconds: int, date_key: str | None = None) -> Goal | None:
        goal, key = self._target(goal_id, date_key, GoalKind.timer)
        if goal is None:
            return None
        current = goal.logs.timer.get(key, TimerEntry()).seconds
        seconds = int(_finite(seconds, "seconds"))
        timer = {**goal.logs.timer, key: TimerEntry(seconds=max(0, current + seconds))}
        return self._write_logs(goal, key, timer=timer)

    def toggle_checklist_item(self, goal_id: str, item_id: str, date_key: str | None = None) -> Goal | None:
        goal, key = self._target(goal_id, date_key, GoalKind.checklist)
        if goal is None:
            return None
        if item_id not in {item.id for item in goal.checklist.items}:
            raise GoalValidationError(f"Goal {goal_id} has no checklist item {item_id!r}")
        checked = list(goal.logs.checklist.get(key, ChecklistEntry()).checked_ids)
        if item_id in checked:
            checked.remove(item_id)
        else:
            checked.append(item_id)
        checklist = {**goal.logs.checklist, key: ChecklistEntry(checked_ids=checked)}
        return self._write_logs(goal, key, checklist=checklist)

    def add_flex_progress(self, goal_id: str, delta: float, date_key: str | None = None) -> Goal | None:
        """Append a dated progress entry. Negative deltas undo; total stays >= 0."""
        goal, key = self._target(goal_id, date_key, GoalKind.flex)
        if goal is None:
            return None
        delta = _finite(delta, "delta")
        log = goal.logs.flex
        flex = FlexLog(
            total=max(0.0, _finite(log.total + delta, "total")),
            entries=[*log.entries, FlexEntry(date_key=key, delta=delta)],
        )
        return self._write_logs(goal, key, flex=flex)

    # -- internals ----------------------------------------------------------

    def _resolve_key(self, date_key: str | None) -> str:
        key = date_key or self.selected_date_key
        dates.from_key(key)
        return key

    def _target(self, goal_id: str, date_key: str | None, kind: GoalKind) -> tuple[Goal | None, str]:
        key = self._resolve_key(date_key)
        goal = self.get_goal(goal_id)
        if goal is not None and goal.kind is not kind:
            raise GoalValidationError(
                f"Goal {goal_id} is a {goal.kind.value} goal, not {kind.value}"
            )
        return goal, key

    def _write_logs(self, goal: Goal, date_key: str, **logs: Any) -> Goal:
        updated = goal.model_copy(update={"logs": goal.logs.model_copy(update=logs)})
        updated = self._with_stats(updated, date_key)
        self._replace(updated)
        logger.debug("Logged %s for goal %s on %s", ",".join(logs), goal.id, date_key)
        return updated

    @staticmethod
    def _with_stats(goal: Goal, date_key: str) -> Goal:
        streak = evaluation.get_streak(goal, date_key)
        stats = GoalStats(
            streak=streak,
            longest_streak=evaluation.next_longest_streak(goal.stats.longest_streak, streak),
        )
        return goal.model_copy(update={"stats": stats})

    def _replace(self, goal: Goal) -> None:
        self._goals = {**self._goals, goal.id: goal}
