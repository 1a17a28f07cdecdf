"""Immutable inputs for daily schedule synthesis."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional, Tuple

Priority = Literal["high", "medium", "low"]

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
DEFAULT_PRODUCTIVE_HOURS: Tuple[int, ...] = (9, 10, 11)


@dataclass(frozen=True)
class UserInfo:
    name: str
    timezone: str = "UTC"


@dataclass(frozen=True)
class PlanningProfile:
    optimal_focus_duration: int = 25
    preferred_work_start_hour: int = 9
    preferred_work_end_hour: int = 17
    preferred_break_duration: int = 5
    most_productive_hours: Tuple[int, ...] = DEFAULT_PRODUCTIVE_HOURS
    common_distraction_times: Tuple[int, ...] = ()
    avg_plan_acceptance_rate: float = 0.0


@dataclass(frozen=True)
class DailySummary:
    date: date
    total_focus_minutes: float = 0
    completion_rate: float = 0.0
    daily_rating: Optional[float] = None


@dataclass(frozen=True)
class PlanningTask:
    id: str
    title: str
    priority: Priority = "medium"
    time_estimate: Optional[int] = None
    completed: bool = False
    due_date: Optional[date] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class PlanningGoal:
    title: str
    progress: int = 0
    target_date: Optional[date] = None


@dataclass(frozen=True)
class PlanningHabit:
    id: str
    name: str
    frequency: Literal["daily", "weekly"] = "daily"
    preferred_time: Optional[str] = None
    duration: int = 15


@dataclass(frozen=True)
class ScheduleContext:
    """Snapshot of one user's planning-relevant state at generation time."""

    user: UserInfo
    profile: PlanningProfile
    current_time: str
    recent_aggregates: Tuple[DailySummary, ...] = field(default_factory=tuple)
    todays_tasks: Tuple[PlanningTask, ...] = field(default_factory=tuple)
    active_goals: Tuple[PlanningGoal, ...] = field(default_factory=tuple)
    active_habits: Tuple[PlanningHabit, ...] = field(default_factory=tuple)


def priority_rank(priority: str) -> int:
    return PRIORITY_RANK.get(priority, PRIORITY_RANK["medium"])


def sort_by_priority(tasks) -> list:
    """Order tasks high -> medium -> low, keeping input order within a priority."""
    return sorted(tasks, key=lambda task: priority_rank(task.priority))
