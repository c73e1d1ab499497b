"""Goal record contract: Pydantic v2 models.

Records are frozen; every change produces a new record via ``model_copy``.
Field names are snake_case in Python and camelCase on the wire / on disk.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, allow_inf_nan=False
    )


class GoalKind(str, Enum):
    completion = "completion"
    numeric = "numeric"
    timer = "timer"
    checklist = "checklist"
    flex = "flex"


class ScheduleMode(str, Enum):
    everyday = "everyday"
    weekdays = "weekdays"
    custom = "custom"
    floating = "floating"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class Schedule(_Record):
    mode: ScheduleMode = ScheduleMode.everyday
    days: list[int] = Field(default_factory=list)  # Sunday = 0; only read for custom


class TimeBound(_Record):
    enabled: bool = False
    start_date: str | None = None
    end_date: str | None = None


class Measurable(_Record):
    target: float = 1.0
    unit: str = "times"


class TimerConfig(_Record):
    target_seconds: int = 600


class ChecklistItem(_Record):
    id: str
    text: str


class ChecklistConfig(_Record):
    items: list[ChecklistItem] = Field(default_factory=list)


class Benchmark(_Record):
    amount: float
    date_key: str | None = None


class FlexConfig(_Record):
    target: float = 1.0
    unit: str = "times"
    deadline_key: str | None = None
    warn_days: list[int] = Field(default_factory=lambda: [7, 3, 1])
    benchmarks: list[Benchmark] = Field(default_factory=list)


class Smart(_Record):
    specific: str = ""
    measurable: str = ""
    achievable: str = ""
    relevant: str = ""
    time_bound: str = ""


class Plan(_Record):
    when: str = ""
    where: str = ""
    cue: str = ""
    reward: str = ""


class GoalConfig(_Record):
    """Everything about a goal except its identity, logs and stats."""

    name: str
    categories: list[str] = Field(default_factory=lambda: ["Custom"])
    kind: GoalKind = GoalKind.completion
    schedule: Schedule = Field(default_factory=Schedule)
    time_bound: TimeBound = Field(default_factory=TimeBound)
    measurable: Measurable = Field(default_factory=Measurable)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    checklist: ChecklistConfig = Field(default_factory=ChecklistConfig)
    flex: FlexConfig = Field(default_factory=FlexConfig)
    frequency_label: str = ""
    smart: Smart = Field(default_factory=Smart)
    plan: Plan = Field(default_factory=Plan)


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


class CompletionEntry(_Record):
    done: bool = False


class NumericEntry(_Record):
    value: float = 0.0


class TimerEntry(_Record):
    seconds: int = 0


class ChecklistEntry(_Record):
    checked_ids: list[str] = Field(default_factory=list)  # unique, insertion order


class FlexEntry(_Record):
    date_key: str
    delta: float


class FlexLog(_Record):
    total: float = 0.0  # running sum of entry deltas, never below 0
    entries: list[FlexEntry] = Field(default_factory=list)


class GoalLogs(_Record):
    completion: dict[str, CompletionEntry] = Field(default_factory=dict)
    numeric: dict[str, NumericEntry] = Field(default_factory=dict)
    timer: dict[str, TimerEntry] = Field(default_factory=dict)
    checklist: dict[str, ChecklistEntry] = Field(default_factory=dict)
    flex: FlexLog = Field(default_factory=FlexLog)


class GoalStats(_Record):
    streak: int = 0
    longest_streak: int = 0  # watermark, never decreases while logs accumulate


class Goal(GoalConfig):
    id: str
    logs: GoalLogs = Field(default_factory=GoalLogs)
    stats: GoalStats = Field(default_factory=GoalStats)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Derived (computed on demand, never stored)
# ---------------------------------------------------------------------------


class FlexWarning(_Record):
    days_left: int
    remaining: float


class DayGoals(_Record):
    scheduled: list[Goal] = Field(default_factory=list)
    floating: list[Goal] = Field(default_factory=list)


class WeeklyStats(_Record):
    done_count: int = 0
    total_days: int = 7


class GoalSummary(_Record):
    goal: Goal
    date_key: str
    done: bool
    streak: int
    longest_streak: int
    weekly: WeeklyStats
    warning: FlexWarning | None = None
