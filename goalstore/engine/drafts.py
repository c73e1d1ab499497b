"""Add/edit drafts: one model per goal kind, discriminated on ``kind``.

``parse_draft`` accepts the loose dicts a form produces (historical field
names included) and turns them into exactly one typed draft.
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from goalstore.engine.errors import GoalValidationError
from goalstore.engine.models import Benchmark, Plan, Smart

KIND_ALIASES = {"quantity": "numeric"}
MODE_ALIASES = {"days": "custom", "daily": "everyday"}
KNOWN_KINDS = ("completion", "numeric", "timer", "checklist", "flex")


class _Draft(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", allow_inf_nan=False
    )


class ScheduleDraft(_Draft):
    mode: str | None = None
    days: list[int] | None = None


class TimeBoundDraft(_Draft):
    enabled: bool = False
    start_date: str | None = None
    end_date: str | None = None


class ChecklistItemDraft(_Draft):
    id: str | None = None
    text: str = ""


class _GoalDraft(_Draft):
    name: str = ""
    categories: list[str] = Field(default_factory=list)
    schedule: ScheduleDraft | None = None
    time_bound: TimeBoundDraft | None = None
    frequency_label: str | None = None
    smart: Smart | None = None
    plan: Plan | None = None


class CompletionDraft(_GoalDraft):
    kind: Literal["completion"] = "completion"


class NumericDraft(_GoalDraft):
    kind: Literal["numeric"] = "numeric"
    target: float | None = None
    unit: str | None = None


class TimerDraft(_GoalDraft):
    kind: Literal["timer"] = "timer"
    target_seconds: int | None = None


class ChecklistDraft(_GoalDraft):
    kind: Literal["checklist"] = "checklist"
    items: list[ChecklistItemDraft] | None = None


class FlexDraft(_GoalDraft):
    kind: Literal["flex"] = "flex"
    target: float | None = None
    unit: str | None = None
    deadline_key: str | None = None
    warn_days: list[int] | None = None
    benchmarks: list[Benchmark] = Field(default_factory=list)


GoalDraft = Annotated[
    Union[CompletionDraft, NumericDraft, TimerDraft, ChecklistDraft, FlexDraft],
    Field(discriminator="kind"),
]

_DRAFT_ADAPTER: TypeAdapter[GoalDraft] = TypeAdapter(GoalDraft)


def _pick(names: tuple[str, ...], *sources: Mapping[str, Any]) -> Any:
    """First non-None value for any of `names`, searching `sources` in order."""
    for source in sources:
        for name in names:
            if source.get(name) is not None:
                return source[name]
    return None


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else {}


def _canonical_kind(raw: Mapping[str, Any]) -> str:
    kind = _pick(("kind", "type"), raw)
    if not isinstance(kind, str):
        return "completion"
    kind = KIND_ALIASES.get(kind.strip().lower(), kind.strip().lower())
    # Unknown kinds fail soft to the plain completion kind
    return kind if kind in KNOWN_KINDS else "completion"


def _canonical_schedule(raw: Mapping[str, Any]) -> dict[str, Any] | None:
    sched = raw.get("schedule")
    if not isinstance(sched, Mapping):
        return None
    mode = _pick(("mode", "type"), sched)
    if isinstance(mode, str):
        mode = MODE_ALIASES.get(mode.strip().lower(), mode.strip().lower())
    return {"mode": mode, "days": sched.get("days")}


def _canonical_items(raw: Mapping[str, Any]) -> list[dict[str, Any]] | None:
    items = _pick(("items",), _section(raw, "checklist"))
    if items is None:
        items = raw.get("items")
    if items is None:
        return None
    if not isinstance(items, (list, tuple)):
        raise GoalValidationError(f"Checklist items must be a list, got {type(items).__name__}")
    out: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, Mapping):
            out.append({"id": item.get("id"), "text": item.get("text") or ""})
        else:
            out.append({"text": "" if item is None else str(item)})
    return out


def _minutes_to_seconds(minutes: Any) -> int:
    try:
        value = float(minutes) * 60
    except (TypeError, ValueError):
        raise GoalValidationError(f"targetMinutes must be a number, got {minutes!r}") from None
    if not math.isfinite(value):
        raise GoalValidationError(f"targetMinutes must be a finite number, got {minutes!r}")
    return round(value)


def _canonical_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Fold historical field names into the shape of the typed drafts."""
    kind = _canonical_kind(raw)
    data: dict[str, Any] = {
        "kind": kind,
        "name": raw.get("name") or "",
        "categories": raw.get("categories") or ([raw["category"]] if raw.get("category") else []),
        "schedule": _canonical_schedule(raw),
        "timeBound": _pick(("timeBound", "time_bound"), raw),
        "frequencyLabel": _pick(("frequencyLabel", "frequency_label"), raw),
        "smart": raw.get("smart"),
        "plan": raw.get("plan"),
    }

    measurable = _section(raw, "measurable")
    if kind == "numeric":
        data["target"] = _pick(("target",), raw, measurable)
        data["unit"] = _pick(("unit",), raw, measurable)
    elif kind == "timer":
        sources = (raw, _section(raw, "timer"), measurable)
        seconds = _pick(("targetSeconds", "target_seconds"), *sources)
        minutes = _pick(("targetMinutes", "target_minutes"), *sources)
        if seconds is None and minutes is not None:
            seconds = _minutes_to_seconds(minutes)
        data["targetSeconds"] = seconds
    elif kind == "checklist":
        data["items"] = _canonical_items(raw)
    elif kind == "flex":
        sources = (_section(raw, "flex"), raw, measurable)
        data["target"] = _pick(("target",), *sources)
        data["unit"] = _pick(("unit",), *sources)
        data["deadlineKey"] = _pick(("deadlineKey", "deadline_key", "deadline"), *sources)
        data["warnDays"] = _pick(("warnDays", "warn_days"), *sources)
        data["benchmarks"] = _pick(("benchmarks",), *sources) or []

    return {k: v for k, v in data.items() if v is not None}


def parse_draft(raw: Mapping[str, Any] | BaseModel) -> GoalDraft:
    """Turn a form payload into a typed draft.

    Typed drafts pass through unchanged. Missing fields are left for the
    normalizer to default; only values of the wrong shape are rejected.
    """
    if isinstance(raw, (CompletionDraft, NumericDraft, TimerDraft, ChecklistDraft, FlexDraft)):
        return raw
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    try:
        return _DRAFT_ADAPTER.validate_python(_canonical_fields(raw))
    except ValidationError as exc:
        raise GoalValidationError(f"Malformed goal draft: {exc.errors()[0]['msg']}") from exc
