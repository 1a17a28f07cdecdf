"""Batch runner for the once-daily plan generation job."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from time import perf_counter
from typing import Iterable, List, Literal, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from pulse.core.config import PlannerConfig
from pulse.db.models.user import User
from pulse.observability.metrics import log_metric
from pulse.services.personalization import refresh_user_profile, update_plan_stats
from pulse.services.planning.context import build_schedule_context
from pulse.services.planning.generator import JSONGenerator, plan_schedule
from pulse.services.planning.store import save_plan

logger = logging.getLogger(__name__)


@dataclass
class UserRunResult:
    user_id: UUID
    status: Literal["success", "error"]
    model_version: Optional[str] = None
    schedule_items: int = 0
    error: Optional[str] = None


@dataclass
class DailyBrainRunResult:
    results: List[UserRunResult] = field(default_factory=list)
    latency_ms: float = 0.0

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.status == "success")

    @property
    def error_count(self) -> int:
        return sum(1 for result in self.results if result.status == "error")


def _active_user_ids(db: Session) -> List[UUID]:
    rows = (
        db.query(User.id)
        .filter(User.onboarding_completed.is_(True))
        .order_by(User.created_at.asc())
        .all()
    )
    return [row[0] for row in rows]


def _normalize_user_ids(user_ids: Optional[Iterable[UUID]], db: Session) -> List[UUID]:
    if user_ids is None:
        return _active_user_ids(db)
    return list(dict.fromkeys(user_ids))


def run_daily_brain_for_user(
    db: Session,
    user_id: UUID,
    *,
    client: JSONGenerator | None,
    config: PlannerConfig,
    today: Optional[date] = None,
    request_id: str | None = None,
) -> UserRunResult:
    if not db.get(User, user_id):
        raise ValueError("User not found")
    plan_date = today or datetime.now(timezone.utc).date()
    refresh_user_profile(db, user_id, today=plan_date, window_days=config.profile_window_days)
    context = build_schedule_context(db, user_id, config=config)
    outcome = plan_schedule(user_id, context, client=client, config=config, request_id=request_id)
    _, created = save_plan(db, user_id=user_id, plan=outcome.plan, plan_date=plan_date)
    if created:
        update_plan_stats(db, user_id, "generated")
    return UserRunResult(
        user_id=user_id,
        status="success",
        model_version=outcome.plan.model_version,
        schedule_items=len(outcome.plan.schedule),
    )


def run_daily_brain_for_all_users(
    db: Session,
    *,
    client: JSONGenerator | None,
    config: PlannerConfig,
    user_ids: Optional[Iterable[UUID]] = None,
    today: Optional[date] = None,
    request_id: str | None = None,
) -> DailyBrainRunResult:
    """Generate one plan per user; a failure for one user never stops the batch."""
    start = perf_counter()
    ids = _normalize_user_ids(user_ids, db)
    run = DailyBrainRunResult()
    for uid in ids:
        try:
            result = run_daily_brain_for_user(
                db,
                uid,
                client=client,
                config=config,
                today=today,
                request_id=request_id,
            )
        except Exception as exc:
            db.rollback()
            logger.exception("Daily brain job failed for user %s", uid)
            result = UserRunResult(user_id=uid, status="error", error=str(exc) or type(exc).__name__)
        run.results.append(result)

    run.latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.daily_brain.processed", run.processed)
    log_metric("jobs.daily_brain.errors", run.error_count)
    log_metric("jobs.daily_brain.latency_ms", run.latency_ms)
    logger.info(
        "Daily brain run complete: processed=%s, success=%s, errors=%s, latency_ms=%.0f",
        run.processed,
        run.success_count,
        run.error_count,
        run.latency_ms,
    )
    return run
