"""Draft → canonical GoalConfig.

Missing optional input falls back to defaults; only structurally invalid
input (bad dates, non-positive targets, an all-blank checklist) raises
GoalValidationError.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping

from pydantic import BaseModel

from goalstore.config import settings
from goalstore.engine import dates
from goalstore.engine.drafts import (
    ChecklistDraft,
    FlexDraft,
    GoalDraft,
    NumericDraft,
    ScheduleDraft,
    TimeBoundDraft,
    TimerDraft,
    parse_draft,
)
from goalstore.engine.errors import GoalValidationError, InvalidDateKey
from goalstore.engine.models import (
    ChecklistConfig,
    ChecklistItem,
    FlexConfig,
    GoalConfig,
    GoalKind,
    Measurable,
    Plan,
    Schedule,
    ScheduleMode,
    Smart,
    TimeBound,
    TimerConfig,
)

DEFAULT_NAME = "New Goal"
DEFAULT_CATEGORY = "Custom"
DEFAULT_UNIT = "times"
DEFAULT_TARGET = 1.0
DEFAULT_TIMER_SECONDS = 600

WEEKDAY_INDICES = [1, 2, 3, 4, 5]


def _checked_key(value: str | None, field: str) -> str | None:
    if value is None or value == "":
        return None
    if not dates.is_valid_key(value):
        raise GoalValidationError(f"{field}: {InvalidDateKey(value)}")
    return value


def _positive(value: float | None, default: float, field: str) -> float:
    if value is None:
        return default
    if value <= 0:
        raise GoalValidationError(f"{field} must be greater than 0, got {value}")
    return value


def _clean_categories(raw: list[str]) -> list[str]:
    out: list[str] = []
    for c in raw:
        c = (c or "").strip()
        if c and c not in out:
            out.append(c)
    return out or [DEFAULT_CATEGORY]


def _schedule(kind: GoalKind, draft: ScheduleDraft | None) -> Schedule:
    if kind is GoalKind.flex:
        return Schedule(mode=ScheduleMode.floating)

    mode = draft.mode if draft else None
    days = draft.days if draft else None
    if mode is None:
        mode = "custom" if days else "everyday"
    if mode in ("everyday", "floating"):
        # floating belongs to flex goals only
        return Schedule(mode=ScheduleMode.everyday)
    if mode == "weekdays":
        return Schedule(mode=ScheduleMode.weekdays)
    if mode != "custom":
        raise GoalValidationError(f"Unknown schedule mode: {mode}")

    cleaned = sorted(set(days or []))
    if not cleaned:
        raise GoalValidationError("A custom schedule needs at least one day")
    if any(d < 0 or d > 6 for d in cleaned):
        raise GoalValidationError(f"Schedule days must be 0-6 (Sunday = 0), got {cleaned}")
    return Schedule(mode=ScheduleMode.custom, days=cleaned)


def _time_bound(draft: TimeBoundDraft | None) -> TimeBound:
    if draft is None:
        return TimeBound()
    start = _checked_key(draft.start_date, "timeBound.startDate")
    end = _checked_key(draft.end_date, "timeBound.endDate")
    if draft.enabled and start and end and start > end:
        raise GoalValidationError(f"timeBound starts after it ends ({start} > {end})")
    return TimeBound(enabled=draft.enabled, start_date=start, end_date=end)


def _checklist(draft: ChecklistDraft) -> ChecklistConfig:
    if draft.items is None:
        return ChecklistConfig()
    items: list[ChecklistItem] = []
    seen: set[str] = set()
    for item in draft.items:
        text = item.text.strip()
        if not text:
            continue
        item_id = item.id or uuid.uuid4().hex[:8]
        if item_id in seen:
            raise GoalValidationError(f"Duplicate checklist item id: {item_id}")
        seen.add(item_id)
        items.append(ChecklistItem(id=item_id, text=text))
    if draft.items and not items:
        raise GoalValidationError("Checklist is empty after removing blank items")
    return ChecklistConfig(items=items)


def _flex(draft: FlexDraft, today: str) -> FlexConfig:
    warn_days = draft.warn_days if draft.warn_days is not None else list(settings.default_warn_days)
    if any(d < 0 for d in warn_days):
        raise GoalValidationError(f"warnDays must not be negative, got {warn_days}")
    for b in draft.benchmarks:
        _checked_key(b.date_key, "flex.benchmarks.dateKey")
    return FlexConfig(
        target=_positive(draft.target, DEFAULT_TARGET, "flex.target"),
        unit=(draft.unit or "").strip() or DEFAULT_UNIT,
        deadline_key=_checked_key(draft.deadline_key, "flex.deadlineKey") or today,
        warn_days=sorted(set(warn_days), reverse=True),
        benchmarks=list(draft.benchmarks),
    )


def frequency_label(schedule: Schedule) -> str:
    if schedule.mode is ScheduleMode.floating:
        return "Flexible"
    if schedule.mode is ScheduleMode.everyday:
        return "Every day"
    if schedule.mode is ScheduleMode.weekdays:
        return "Weekdays"
    return " ".join(dates.DAY_SHORT_NAMES[d] for d in schedule.days)


def scheduled_weekdays(schedule: Schedule) -> list[int]:
    """Weekday indices (Sunday = 0) a recurring schedule covers."""
    if schedule.mode in (ScheduleMode.everyday, ScheduleMode.floating):
        return list(range(7))
    if schedule.mode is ScheduleMode.weekdays:
        return list(WEEKDAY_INDICES)
    return list(schedule.days)


def normalize(draft: GoalDraft | Mapping[str, Any] | BaseModel, today: str | None = None) -> GoalConfig:
    """Produce the canonical, id-less configuration of a goal."""
    draft = parse_draft(draft)
    today = today or dates.today_key()
    kind = GoalKind(draft.kind)

    schedule = _schedule(kind, draft.schedule)
    fields: dict[str, Any] = {
        "name": draft.name.strip() or DEFAULT_NAME,
        "categories": _clean_categories(draft.categories),
        "kind": kind,
        "schedule": schedule,
        "time_bound": _time_bound(draft.time_bound),
        "frequency_label": (draft.frequency_label or "").strip() or frequency_label(schedule),
        "smart": draft.smart or Smart(),
        "plan": draft.plan or Plan(),
    }

    if isinstance(draft, NumericDraft):
        fields["measurable"] = Measurable(
            target=_positive(draft.target, DEFAULT_TARGET, "measurable.target"),
            unit=(draft.unit or "").strip() or DEFAULT_UNIT,
        )
    elif isinstance(draft, TimerDraft):
        seconds = _positive(draft.target_seconds, DEFAULT_TIMER_SECONDS, "timer.targetSeconds")
        fields["timer"] = TimerConfig(target_seconds=int(seconds))
    elif isinstance(draft, ChecklistDraft):
        fields["checklist"] = _checklist(draft)
    elif isinstance(draft, FlexDraft):
        fields["flex"] = _flex(draft, today)

    return GoalConfig(**fields)
