"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

import hmac
from time import perf_counter

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from pulse.api.deps import get_generation_client, get_planner_config
from pulse.api.schemas.jobs import DailyBrainRunRequest, DailyBrainRunResponse, UserRunPayload
from pulse.core.config import PlannerConfig, settings
from pulse.db.deps import get_db
from pulse.observability.metrics import log_metric
from pulse.observability.tracing import trace
from pulse.services.ai.client import GenerationClient
from pulse.services.job_runner import run_daily_brain_for_all_users

router = APIRouter()


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    expected = settings.cron_secret
    if not expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Cron secret not configured")
    if not authorization or not hmac.compare_digest(authorization, f"Bearer {expected}"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "daily_brain_enabled": settings.daily_brain_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "daily_time": f"{settings.daily_job_hour:02d}:{settings.daily_job_minute:02d}",
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post(
    "/jobs/daily-brain/run",
    response_model=DailyBrainRunResponse,
    tags=["jobs"],
    dependencies=[Depends(require_cron_secret)],
)
def run_daily_brain(
    request: Request,
    payload: DailyBrainRunRequest | None = None,
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
    config: PlannerConfig = Depends(get_planner_config),
) -> DailyBrainRunResponse:
    request_id = getattr(request.state, "request_id", None)
    if not settings.daily_brain_enabled:
        return DailyBrainRunResponse(
            enabled=False,
            processed=0,
            success_count=0,
            error_count=0,
            latency_ms=0.0,
            results=[],
            request_id=request_id or "",
        )

    user_ids = payload.user_ids if payload else None
    start = perf_counter()
    with trace("jobs.daily_brain", metadata={"request_id": request_id}, request_id=request_id):
        result = run_daily_brain_for_all_users(
            db,
            client=client,
            config=config,
            user_ids=user_ids,
            request_id=request_id,
        )
    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.daily_brain.run.latency_ms", latency_ms)

    return DailyBrainRunResponse(
        enabled=True,
        processed=result.processed,
        success_count=result.success_count,
        error_count=result.error_count,
        latency_ms=result.latency_ms,
        results=[
            UserRunPayload(
                user_id=item.user_id,
                status=item.status,
                model_version=item.model_version,
                schedule_items=item.schedule_items,
                error=item.error,
            )
            for item in result.results
        ],
        request_id=request_id or "",
    )
