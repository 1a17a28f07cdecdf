"""Turn an untrusted model payload into ScheduleItems.

Structure is enforced strictly: a missing schedule array or an item without
time, numeric duration and task fails the whole payload. Content is coerced
leniently: durations are clamped and unknown enum labels get defaults.
"""
from __future__ import annotations

import math
from numbers import Real
from typing import Any, List

from pulse.api.schemas.plan import ScheduleItem
from pulse.services.ai.errors import ScheduleValidationError

MIN_DURATION = 5
MAX_DURATION = 240
PRIORITIES = ("high", "medium", "low")
ITEM_TYPES = ("work", "break", "meeting")


def clamp_duration(minutes: float) -> int:
    return int(max(MIN_DURATION, min(minutes, MAX_DURATION)))


def validate_schedule_payload(payload: Any) -> List[ScheduleItem]:
    """Validate the `schedule` array of a parsed model response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("schedule"), list):
        raise ScheduleValidationError(
            ScheduleValidationError.NOT_AN_ARRAY,
            "Invalid schedule format: missing or invalid schedule array",
        )
    return [_validate_item(index, item) for index, item in enumerate(payload["schedule"])]


def _validate_item(index: int, item: Any) -> ScheduleItem:
    if not isinstance(item, dict) or not _has_required_fields(item):
        raise ScheduleValidationError(
            ScheduleValidationError.MISSING_FIELD,
            f"Invalid schedule item at index {index}: missing required fields",
            index=index,
        )

    priority = item.get("priority")
    item_type = item.get("type")
    task_id = item.get("taskId")
    return ScheduleItem(
        time=str(item["time"]),
        duration=clamp_duration(item["duration"]),
        task=str(item["task"]),
        priority=priority if priority in PRIORITIES else "medium",
        type=item_type if item_type in ITEM_TYPES else "work",
        task_id=str(task_id) if task_id else None,
    )


def _has_required_fields(item: dict) -> bool:
    duration = item.get("duration")
    numeric = isinstance(duration, Real) and not isinstance(duration, bool) and not math.isnan(duration)
    return bool(item.get("time")) and numeric and bool(item.get("task"))
