"""Deterministic, network-free daily schedule."""
from __future__ import annotations

from typing import List

from pulse.api.schemas.plan import ScheduleItem
from pulse.services.planning.types import ScheduleContext, sort_by_priority
from pulse.services.planning.validator import PRIORITIES, clamp_duration

MAX_FALLBACK_TASKS = 5
DEFAULT_START_HOUR = 9
DEFAULT_FOCUS_MINUTES = 25
DEFAULT_BREAK_MINUTES = 5
BREAK_LABEL = "Short break"


class _Cursor:
    """Running (hour, minute) position; hours are not wrapped past 23."""

    def __init__(self, hour: int, minute: int = 0) -> None:
        self.hour = hour
        self.minute = minute

    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def advance(self, minutes: int) -> None:
        self.minute += minutes
        self.hour += self.minute // 60
        self.minute %= 60


def build_fallback_schedule(context: ScheduleContext) -> List[ScheduleItem]:
    """
    Lay out up to five open tasks by priority from the start of the work day.

    Work blocks are capped at twice the focus length and separated by breaks.
    Never raises and never touches a collaborator; no open tasks yields [].
    """
    profile = context.profile
    focus_minutes = profile.optimal_focus_duration or DEFAULT_FOCUS_MINUTES
    break_minutes = clamp_duration(profile.preferred_break_duration or DEFAULT_BREAK_MINUTES)
    cursor = _Cursor(profile.preferred_work_start_hour or DEFAULT_START_HOUR)

    open_tasks = [task for task in context.todays_tasks if not task.completed]
    selected = sort_by_priority(open_tasks)[:MAX_FALLBACK_TASKS]

    schedule: List[ScheduleItem] = []
    for index, task in enumerate(selected):
        work_minutes = clamp_duration(min(task.time_estimate or focus_minutes, focus_minutes * 2))
        schedule.append(
            ScheduleItem(
                time=cursor.label(),
                duration=work_minutes,
                task=str(task.title or "Untitled task"),
                priority=task.priority if task.priority in PRIORITIES else "medium",
                type="work",
                task_id=str(task.id) if task.id is not None else None,
            )
        )
        cursor.advance(work_minutes)

        if index < len(selected) - 1:
            schedule.append(
                ScheduleItem(
                    time=cursor.label(),
                    duration=break_minutes,
                    task=BREAK_LABEL,
                    priority="low",
                    type="break",
                )
            )
            cursor.advance(break_minutes)
    return schedule
