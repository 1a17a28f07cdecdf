"""Persistence for generated plans."""
from __future__ import annotations

from datetime import date
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pulse.api.schemas.plan import GeneratedPlan
from pulse.db.models.ai_plan import AIPlan


def save_plan(db: Session, *, user_id: UUID, plan: GeneratedPlan, plan_date: date) -> Tuple[AIPlan, bool]:
    """
    Upsert the plan for (user, date); the latest generation overwrites the previous one.

    Returns the row and whether a new (user, date) row was created. A concurrent
    writer that inserts the same day first is absorbed: the insert is rolled back
    and its row is overwritten instead.
    """
    row = load_plan_for_date(db, user_id, plan_date)
    created = row is None
    if created:
        row = AIPlan(user_id=user_id, plan_date=plan_date)
        _apply_plan(row, plan)
        db.add(row)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            row = load_plan_for_date(db, user_id, plan_date)
            if row is None:
                raise
            created = False
            _apply_plan(row, plan)
    else:
        _apply_plan(row, plan)
    db.commit()
    db.refresh(row)
    return row, created


def _apply_plan(row: AIPlan, plan: GeneratedPlan) -> None:
    row.schedule = [item.model_dump(mode="json", by_alias=True) for item in plan.schedule]
    row.explanation = plan.explanation
    row.reasoning = plan.reasoning
    row.model_version = plan.model_version
    row.generated_at = plan.generated_at
    row.status = "pending"
    row.accepted_at = None
    row.rejected_at = None
    row.original_schedule = None
    row.edit_count = 0
    row.last_edited_at = None


def load_plan_for_date(db: Session, user_id: UUID, plan_date: date) -> Optional[AIPlan]:
    return (
        db.query(AIPlan)
        .filter(AIPlan.user_id == user_id, AIPlan.plan_date == plan_date)
        .one_or_none()
    )
