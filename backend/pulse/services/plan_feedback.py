"""Accept, reject, and edit flows for persisted daily plans."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from pulse.api.schemas.plan import ScheduleItem
from pulse.db.models.agent_action_log import AgentActionLog
from pulse.db.models.ai_plan import AIPlan
from pulse.services.personalization import update_plan_stats
from pulse.services.planning.store import load_plan_for_date

logger = logging.getLogger(__name__)


def get_todays_plan(db: Session, user_id: UUID, today: Optional[date] = None) -> Optional[AIPlan]:
    return load_plan_for_date(db, user_id, today or datetime.now(timezone.utc).date())


def get_owned_plan(db: Session, plan_id: UUID, user_id: UUID) -> AIPlan:
    plan = db.get(AIPlan, plan_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    if plan.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Plan does not belong to user")
    return plan


def accept_plan(db: Session, plan_id: UUID, user_id: UUID, *, request_id: str | None = None) -> AIPlan:
    plan = get_owned_plan(db, plan_id, user_id)
    plan.status = "accepted"
    plan.accepted_at = datetime.now(timezone.utc)
    _log_event(db, plan, "plan_accepted", {"request_id": request_id})
    db.commit()
    update_plan_stats(db, user_id, "accepted")
    db.refresh(plan)
    logger.info("Plan %s accepted by user %s", plan.id, user_id)
    return plan


def reject_plan(
    db: Session,
    plan_id: UUID,
    user_id: UUID,
    *,
    reason: str | None = None,
    request_id: str | None = None,
) -> AIPlan:
    plan = get_owned_plan(db, plan_id, user_id)
    plan.status = "rejected"
    plan.rejected_at = datetime.now(timezone.utc)
    _log_event(db, plan, "plan_rejected", {"request_id": request_id}, reason=reason)
    db.commit()
    update_plan_stats(db, user_id, "rejected")
    db.refresh(plan)
    logger.info("Plan %s rejected by user %s", plan.id, user_id)
    return plan


def edit_plan(
    db: Session,
    plan_id: UUID,
    user_id: UUID,
    new_schedule: List[ScheduleItem],
    *,
    request_id: str | None = None,
) -> AIPlan:
    """Replace the schedule, keeping the first generated version in original_schedule."""
    plan = get_owned_plan(db, plan_id, user_id)
    if plan.original_schedule is None:
        plan.original_schedule = list(plan.schedule or [])
    plan.schedule = [item.model_dump(mode="json", by_alias=True) for item in new_schedule]
    plan.status = "edited"
    plan.edit_count = (plan.edit_count or 0) + 1
    plan.last_edited_at = datetime.now(timezone.utc)
    _log_event(
        db,
        plan,
        "plan_edited",
        {"edit_count": plan.edit_count, "items": len(new_schedule), "request_id": request_id},
    )
    db.commit()
    db.refresh(plan)
    logger.info("Plan %s edited by user %s (edit_count=%s)", plan.id, user_id, plan.edit_count)
    return plan


def _log_event(
    db: Session,
    plan: AIPlan,
    action_type: str,
    payload: Dict[str, Any],
    *,
    reason: str | None = None,
) -> None:
    entry = AgentActionLog(
        user_id=plan.user_id,
        plan_id=plan.id,
        action_type=action_type,
        action_payload={key: value for key, value in payload.items() if value is not None},
        reason=reason,
    )
    db.add(entry)
