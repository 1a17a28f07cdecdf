"""Daily plan generation and feedback endpoints."""
from __future__ import annotations

from datetime import datetime, timezone
from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from pulse.api.deps import get_generation_client, get_planner_config
from pulse.api.schemas.plan import (
    PlanEditRequest,
    PlanFeedbackRequest,
    PlanGenerateRequest,
    PlanResponse,
)
from pulse.core.config import PlannerConfig
from pulse.db.deps import get_db
from pulse.db.models.ai_plan import AIPlan
from pulse.observability.metrics import log_metric
from pulse.observability.tracing import trace
from pulse.services.ai.client import GenerationClient
from pulse.services.personalization import update_plan_stats
from pulse.services.plan_feedback import accept_plan, edit_plan, get_todays_plan, reject_plan
from pulse.services.planning.context import build_schedule_context
from pulse.services.planning.generator import plan_schedule
from pulse.services.planning.store import save_plan

router = APIRouter()


def _plan_response(plan: AIPlan, request_id: str | None) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        user_id=plan.user_id,
        plan_date=plan.plan_date,
        schedule=plan.schedule or [],
        explanation=plan.explanation or "",
        reasoning=plan.reasoning or {},
        model_version=plan.model_version,
        status=plan.status,
        edit_count=plan.edit_count or 0,
        generated_at=plan.generated_at,
        request_id=request_id or "",
    )


@router.post("/ai/plans/generate", response_model=PlanResponse, tags=["plans"])
def generate_plan(
    request: Request,
    payload: PlanGenerateRequest,
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
    config: PlannerConfig = Depends(get_planner_config),
) -> PlanResponse:
    request_id = getattr(request.state, "request_id", None)
    user_id = payload.user_id
    start = perf_counter()

    try:
        context = build_schedule_context(db, user_id, config=config)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    metadata = {"user_id": str(user_id), "request_id": request_id, "ai_enabled": config.ai_enabled}
    with trace("plans.generate", metadata=metadata, user_id=user_id, request_id=request_id):
        outcome = plan_schedule(user_id, context, client=client, config=config, request_id=request_id)
        plan_date = datetime.now(timezone.utc).date()
        row, created = save_plan(db, user_id=user_id, plan=outcome.plan, plan_date=plan_date)
        if created:
            update_plan_stats(db, user_id, "generated")

    latency_ms = (perf_counter() - start) * 1000
    log_metric(
        "plans.generate.success",
        1,
        metadata={"user_id": str(user_id), "fallback": outcome.used_fallback},
    )
    log_metric("plans.generate.latency_ms", latency_ms, metadata={"user_id": str(user_id)})
    return _plan_response(row, request_id)


@router.get("/ai/plans/today", response_model=PlanResponse, tags=["plans"])
def todays_plan(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> PlanResponse:
    request_id = getattr(request.state, "request_id", None)
    plan = get_todays_plan(db, user_id)
    if not plan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No plan for today")
    return _plan_response(plan, request_id)


@router.post("/ai/plans/{plan_id}/accept", response_model=PlanResponse, tags=["plans"])
def accept_plan_endpoint(
    plan_id: UUID,
    request: Request,
    payload: PlanFeedbackRequest,
    db: Session = Depends(get_db),
) -> PlanResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("plans.accept", metadata={"plan_id": str(plan_id)}, user_id=payload.user_id, request_id=request_id):
        plan = accept_plan(db, plan_id, payload.user_id, request_id=request_id)
    log_metric("plans.accept.success", 1, metadata={"user_id": str(payload.user_id)})
    return _plan_response(plan, request_id)


@router.post("/ai/plans/{plan_id}/reject", response_model=PlanResponse, tags=["plans"])
def reject_plan_endpoint(
    plan_id: UUID,
    request: Request,
    payload: PlanFeedbackRequest,
    db: Session = Depends(get_db),
) -> PlanResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("plans.reject", metadata={"plan_id": str(plan_id)}, user_id=payload.user_id, request_id=request_id):
        plan = reject_plan(db, plan_id, payload.user_id, reason=payload.reason, request_id=request_id)
    log_metric("plans.reject.success", 1, metadata={"user_id": str(payload.user_id)})
    return _plan_response(plan, request_id)


@router.post("/ai/plans/{plan_id}/edit", response_model=PlanResponse, tags=["plans"])
def edit_plan_endpoint(
    plan_id: UUID,
    request: Request,
    payload: PlanEditRequest,
    db: Session = Depends(get_db),
) -> PlanResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("plans.edit", metadata={"plan_id": str(plan_id)}, user_id=payload.user_id, request_id=request_id):
        plan = edit_plan(db, plan_id, payload.user_id, payload.schedule, request_id=request_id)
    log_metric("plans.edit.success", 1, metadata={"user_id": str(payload.user_id)})
    return _plan_response(plan, request_id)
