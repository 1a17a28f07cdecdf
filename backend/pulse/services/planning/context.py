"""Collect everything needed to plan one user's day into a ScheduleContext."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from pulse.core.config import PlannerConfig
from pulse.db.models.ai_profile import UserAIProfile
from pulse.db.models.daily_aggregate import DailyAggregate
from pulse.db.models.goal import Goal
from pulse.db.models.habit import Habit
from pulse.db.models.task import Task
from pulse.db.models.user import User
from pulse.services.ai.sanitize import sanitize_user_input
from pulse.services.planning.types import (
    PRIORITY_RANK,
    DailySummary,
    PlanningGoal,
    PlanningHabit,
    PlanningProfile,
    PlanningTask,
    ScheduleContext,
    UserInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_TASK_ESTIMATE = 30
DEFAULT_HABIT_DURATION = 15


def build_schedule_context(
    db: Session,
    user_id: UUID,
    *,
    config: PlannerConfig,
    now: Optional[datetime] = None,
) -> ScheduleContext:
    """Read a user's planning inputs from storage. Raises ValueError for unknown users."""
    user = db.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    max_length = config.input_max_length
    tz_name = user.timezone or "UTC"
    profile_row = db.query(UserAIProfile).filter(UserAIProfile.user_id == user_id).one_or_none()
    aggregates = (
        db.query(DailyAggregate)
        .filter(DailyAggregate.user_id == user_id)
        .order_by(DailyAggregate.date.desc())
        .limit(config.aggregate_window_days)
        .all()
    )
    tasks = (
        db.query(Task)
        .filter(Task.user_id == user_id, Task.completed.is_(False))
        .order_by(Task.created_at.asc())
        .all()
    )
    goals = db.query(Goal).filter(Goal.user_id == user_id, Goal.status == "active").all()
    habits = (
        db.query(Habit)
        .filter(Habit.user_id == user_id, Habit.auto_schedule.isnot(False))
        .order_by(Habit.created_at.asc())
        .all()
    )

    context = ScheduleContext(
        user=UserInfo(name=sanitize_user_input(user.name, max_length) or "User", timezone=tz_name),
        profile=profile_from_row(profile_row),
        current_time=_local_clock(now, tz_name),
        recent_aggregates=tuple(
            DailySummary(
                date=row.date,
                total_focus_minutes=row.total_focus_minutes or 0,
                completion_rate=row.completion_rate or 0.0,
                daily_rating=row.daily_rating,
            )
            for row in aggregates
        ),
        todays_tasks=tuple(_task_from_row(row, max_length) for row in tasks),
        active_goals=tuple(
            PlanningGoal(
                title=sanitize_user_input(row.title, max_length),
                progress=row.progress or 0,
                target_date=row.target_date,
            )
            for row in goals
        ),
        active_habits=tuple(
            PlanningHabit(
                id=str(row.id),
                name=sanitize_user_input(row.name, max_length),
                frequency="weekly" if row.frequency == "weekly" else "daily",
                preferred_time=row.preferred_time,
                duration=row.duration or DEFAULT_HABIT_DURATION,
            )
            for row in habits
        ),
    )
    logger.debug(
        "Built schedule context for user %s (tasks=%s, goals=%s, habits=%s, aggregates=%s)",
        user_id,
        len(context.todays_tasks),
        len(context.active_goals),
        len(context.active_habits),
        len(context.recent_aggregates),
    )
    return context


def profile_from_row(row: Optional[UserAIProfile]) -> PlanningProfile:
    """Map a stored profile onto planning preferences, defaulting when absent."""
    if row is None:
        return PlanningProfile()
    return PlanningProfile(
        optimal_focus_duration=row.optimal_focus_duration,
        preferred_work_start_hour=row.preferred_work_start_hour,
        preferred_work_end_hour=row.preferred_work_end_hour,
        preferred_break_duration=row.preferred_break_duration,
        most_productive_hours=_hours(row.most_productive_hours),
        common_distraction_times=_hours(row.common_distraction_times),
        avg_plan_acceptance_rate=row.avg_plan_acceptance_rate or 0.0,
    )


def _task_from_row(row: Task, max_length: int) -> PlanningTask:
    priority = row.priority if row.priority in PRIORITY_RANK else "medium"
    return PlanningTask(
        id=str(row.id),
        title=sanitize_user_input(row.title, max_length),
        priority=priority,
        time_estimate=row.time_estimate or DEFAULT_TASK_ESTIMATE,
        completed=bool(row.completed),
        due_date=row.due_date,
        category=sanitize_user_input(row.category, max_length) or None,
    )


def _hours(raw) -> Tuple[int, ...]:
    return tuple(int(hour) for hour in (raw or []) if isinstance(hour, (int, float)) and 0 <= hour <= 23)


def _local_clock(now: Optional[datetime], tz_name: str) -> str:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown timezone %r; using UTC", tz_name)
        zone = ZoneInfo("UTC")
    return current.astimezone(zone).strftime("%H:%M")
