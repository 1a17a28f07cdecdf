"""Keep each user's planning profile in step with their recent history."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Literal, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pulse.db.models.ai_plan import AIPlan
from pulse.db.models.ai_profile import UserAIProfile
from pulse.db.models.daily_aggregate import DailyAggregate

logger = logging.getLogger(__name__)

PlanAction = Literal["generated", "accepted", "rejected"]

HOURS_IN_DAY = 24
DEFAULT_HOURLY_SCORE = 0.5
PRODUCTIVE_SCORE_FLOOR = 0.3
ACTIVE_SCORE_FLOOR = 0.2
DEFAULT_FOCUS_MINUTES = 25
DEFAULT_WORK_START = 9
DEFAULT_WORK_END = 17


def ensure_user_profile(db: Session, user_id: UUID) -> UserAIProfile:
    """Return the user's profile, creating the default one when missing."""
    profile = get_user_profile(db, user_id)
    if profile:
        return profile

    profile = UserAIProfile(
        user_id=user_id,
        optimal_focus_duration=DEFAULT_FOCUS_MINUTES,
        preferred_work_start_hour=DEFAULT_WORK_START,
        preferred_work_end_hour=DEFAULT_WORK_END,
        preferred_break_duration=5,
        hourly_performance_scores=[DEFAULT_HOURLY_SCORE] * HOURS_IN_DAY,
        most_productive_hours=[9, 10, 11],
        common_distraction_times=[],
        total_plans_generated=0,
        total_plans_accepted=0,
        total_plans_rejected=0,
        avg_plan_acceptance_rate=0.0,
    )
    db.add(profile)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        existing = get_user_profile(db, user_id)
        if existing:
            return existing
        raise
    db.commit()
    db.refresh(profile)
    logger.info("Created default planning profile for user %s", user_id)
    return profile


def get_user_profile(db: Session, user_id: UUID) -> Optional[UserAIProfile]:
    return db.query(UserAIProfile).filter(UserAIProfile.user_id == user_id).one_or_none()


def hourly_performance_scores(aggregates: List[DailyAggregate]) -> List[float]:
    """Average a per-hour score of 60% focus time and 40% completion rate."""
    totals = [0.0] * HOURS_IN_DAY
    counts = [0] * HOURS_IN_DAY
    for aggregate in aggregates:
        completion_rate = aggregate.completion_rate or 0
        for hour, minutes in enumerate((aggregate.hourly_activity or [])[:HOURS_IN_DAY]):
            if not minutes or minutes <= 0:
                continue
            totals[hour] += min(minutes / 60, 1) * 0.6 + completion_rate * 0.4
            counts[hour] += 1
    return [round(totals[h] / counts[h], 2) if counts[h] else 0 for h in range(HOURS_IN_DAY)]


def _optimal_focus_duration(aggregates: List[DailyAggregate]) -> int:
    durations = sorted(
        a.avg_focus_duration for a in aggregates if a.avg_focus_duration and (a.completion_rate or 0) > 0.5
    )
    if not durations:
        return DEFAULT_FOCUS_MINUTES
    return int(round(durations[len(durations) // 2]))


def refresh_user_profile(
    db: Session,
    user_id: UUID,
    *,
    today: date,
    window_days: int = 30,
) -> UserAIProfile:
    """Recompute the planning profile from the last `window_days` of aggregates."""
    since = today - timedelta(days=window_days)
    aggregates = (
        db.query(DailyAggregate)
        .filter(DailyAggregate.user_id == user_id, DailyAggregate.date >= since)
        .order_by(DailyAggregate.date.desc())
        .all()
    )
    if not aggregates:
        return ensure_user_profile(db, user_id)

    scores = hourly_performance_scores(aggregates)
    ranked = sorted(range(HOURS_IN_DAY), key=lambda h: -scores[h])
    productive = [h for h in ranked if scores[h] > PRODUCTIVE_SCORE_FLOOR][:3]
    distraction = sorted(
        (h for h in range(HOURS_IN_DAY) if 0 < scores[h] < PRODUCTIVE_SCORE_FLOOR),
        key=lambda h: scores[h],
    )[:3]
    active = [h for h in range(HOURS_IN_DAY) if scores[h] > ACTIVE_SCORE_FLOOR]
    focus = _optimal_focus_duration(aggregates)

    plans = db.query(AIPlan.status).filter(AIPlan.user_id == user_id, AIPlan.plan_date >= since).all()
    total_plans = len(plans)
    accepted = sum(1 for (status,) in plans if status == "accepted")
    rejected = sum(1 for (status,) in plans if status == "rejected")

    profile = ensure_user_profile(db, user_id)
    profile.optimal_focus_duration = focus
    profile.preferred_work_start_hour = min(active) if active else DEFAULT_WORK_START
    profile.preferred_work_end_hour = max(active) + 1 if active else DEFAULT_WORK_END
    profile.preferred_break_duration = max(5, round(focus / 5))
    profile.hourly_performance_scores = scores
    profile.most_productive_hours = productive
    profile.common_distraction_times = distraction
    profile.total_plans_generated = total_plans
    profile.total_plans_accepted = accepted
    profile.total_plans_rejected = rejected
    profile.avg_plan_acceptance_rate = round(accepted / total_plans, 2) if total_plans else 0.0
    profile.last_analyzed_date = today
    db.commit()
    db.refresh(profile)
    logger.info(
        "Refreshed planning profile for user %s (days=%s, focus=%s, productive=%s)",
        user_id,
        len(aggregates),
        focus,
        productive,
    )
    return profile


def update_plan_stats(db: Session, user_id: UUID, action: PlanAction) -> UserAIProfile:
    """Bump one plan counter and recompute the acceptance rate."""
    profile = ensure_user_profile(db, user_id)
    if action == "generated":
        profile.total_plans_generated = (profile.total_plans_generated or 0) + 1
    elif action == "accepted":
        profile.total_plans_accepted = (profile.total_plans_accepted or 0) + 1
    elif action == "rejected":
        profile.total_plans_rejected = (profile.total_plans_rejected or 0) + 1
    else:
        raise ValueError(f"Unknown plan action: {action}")

    generated = profile.total_plans_generated or 0
    accepted = profile.total_plans_accepted or 0
    profile.avg_plan_acceptance_rate = round(accepted / generated, 2) if generated else 0.0
    db.commit()
    db.refresh(profile)
    return profile
