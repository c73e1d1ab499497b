"""Pure goal evaluation: schedules, done-ness, streaks, deadline logic.

Nothing here mutates a goal or performs I/O; every function may be called
repeatedly against the same snapshot. Derived values are never cached.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from goalstore.config import settings
from goalstore.engine import dates
from goalstore.engine.models import (
    DayGoals,
    FlexWarning,
    Goal,
    GoalKind,
    GoalSummary,
    ScheduleMode,
    WeeklyStats,
)
from goalstore.engine.normalizer import scheduled_weekdays


# ---------------------------------------------------------------------------
# Schedule / range membership
# ---------------------------------------------------------------------------

def is_scheduled_on(goal: Goal, date_key: str) -> bool:
    """Weekday-membership test. Floating schedules are always scheduled."""
    if goal.schedule.mode is ScheduleMode.floating:
        return True
    return dates.weekday_index(date_key) in scheduled_weekdays(goal.schedule)


def is_within_active_range(goal: Goal, date_key: str) -> bool:
    tb = goal.time_bound
    if not tb.enabled:
        return True
    if tb.start_date and date_key < tb.start_date:
        return False
    if tb.end_date and date_key > tb.end_date:
        return False
    return True


# ---------------------------------------------------------------------------
# Done rules
# ---------------------------------------------------------------------------

def flex_is_complete(goal: Goal) -> bool:
    target = goal.flex.target
    return target > 0 and goal.logs.flex.total >= target


def is_done_for_day(goal: Goal, date_key: str) -> bool:
    """Kind-dispatched done rule. Logs of other kinds are never consulted."""
    logs = goal.logs
    if goal.kind is GoalKind.completion:
        entry = logs.completion.get(date_key)
        return bool(entry and entry.done)
    if goal.kind is GoalKind.numeric:
        entry = logs.numeric.get(date_key)
        return entry is not None and entry.value >= goal.measurable.target
    if goal.kind is GoalKind.timer:
        entry = logs.timer.get(date_key)
        return entry is not None and entry.seconds >= goal.timer.target_seconds
    if goal.kind is GoalKind.checklist:
        items = goal.checklist.items
        if not items:
            return False
        entry = logs.checklist.get(date_key)
        checked = set(entry.checked_ids) if entry else set()
        return all(item.id in checked for item in items)
    if goal.kind is GoalKind.flex:
        return flex_is_complete(goal)
    return False


# ---------------------------------------------------------------------------
# Flex (deadline) goals
# ---------------------------------------------------------------------------

def flex_visible_on_date(goal: Goal, date_key: str, today_key: str) -> bool:
    """Past days show only if progress was logged that day; today and later
    show until the deadline passes or the goal is complete."""
    if date_key < today_key:
        return any(e.date_key == date_key for e in goal.logs.flex.entries)
    deadline = goal.flex.deadline_key
    if deadline and date_key > deadline:
        return False
    return not flex_is_complete(goal)


def flex_warning(goal: Goal, date_key: str) -> FlexWarning | None:
    if goal.kind is not GoalKind.flex:
        return None
    deadline = goal.flex.deadline_key
    if not deadline or flex_is_complete(goal):
        return None
    days_left = dates.days_between(date_key, deadline)
    if days_left not in goal.flex.warn_days and days_left > 0:
        return None
    return FlexWarning(
        days_left=days_left,
        remaining=max(0.0, goal.flex.target - goal.logs.flex.total),
    )


# ---------------------------------------------------------------------------
# Collection queries
# ---------------------------------------------------------------------------

def get_goals_for_date(goals: Iterable[Goal], date_key: str, today_key: str) -> DayGoals:
    """Split goals into recurring goals scheduled on `date_key` and flex goals
    visible on it. Input order is preserved."""
    scheduled: list[Goal] = []
    floating: list[Goal] = []
    for goal in goals:
        if not is_within_active_range(goal, date_key):
            continue
        if goal.schedule.mode is ScheduleMode.floating:
            if goal.kind is GoalKind.flex and flex_visible_on_date(goal, date_key, today_key):
                floating.append(goal)
        elif is_scheduled_on(goal, date_key):
            scheduled.append(goal)
    return DayGoals(scheduled=scheduled, floating=floating)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def get_streak(goal: Goal, date_key: str, lookback_days: int | None = None) -> int:
    """Consecutive done days ending at `date_key` (inclusive).

    Unscheduled and out-of-range days are skipped; a scheduled day that is
    not done ends the walk, as does reaching the goal's creation day.
    Flex goals have no per-day notion and always return 0.
    """
    if goal.kind is GoalKind.flex:
        return 0

    limit = lookback_days if lookback_days is not None else settings.streak_lookback_days
    created_key = dates.to_key(goal.created_at)
    ref = dates.from_key(date_key)
    streak = 0

    for i in range(limit):
        key = dates.to_key(ref - timedelta(days=i))
        if key < created_key:
            break
        if not is_within_active_range(goal, key) or not is_scheduled_on(goal, key):
            continue
        if not is_done_for_day(goal, key):
            break
        streak += 1

    return streak


def next_longest_streak(previous_longest: int, current_streak: int) -> int:
    return max(previous_longest, current_streak)


def weekly_stats(goal: Goal, date_key: str) -> WeeklyStats:
    keys = dates.last_7_keys(date_key)
    return WeeklyStats(
        done_count=sum(1 for k in keys if is_done_for_day(goal, k)),
        total_days=len(keys),
    )


def summarize(goal: Goal, date_key: str) -> GoalSummary:
    streak = get_streak(goal, date_key)
    return GoalSummary(
        goal=goal,
        date_key=date_key,
        done=is_done_for_day(goal, date_key),
        streak=streak,
        longest_streak=next_longest_streak(goal.stats.longest_streak, streak),
        weekly=weekly_stats(goal, date_key),
        warning=flex_warning(goal, date_key),
    )
