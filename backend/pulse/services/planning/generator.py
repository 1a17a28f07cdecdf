"""Model-or-fallback daily schedule generation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Optional, Protocol
from uuid import UUID

from pulse.api.schemas.plan import FALLBACK_MODEL_VERSION, GeneratedPlan
from pulse.core.config import PlannerConfig
from pulse.observability.metrics import log_metric
from pulse.observability.tracing import trace
from pulse.services.planning.fallback import build_fallback_schedule
from pulse.services.planning.prompts import compose_schedule_prompt
from pulse.services.planning.types import ScheduleContext
from pulse.services.planning.validator import validate_schedule_payload

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATION = "AI-generated schedule based on your productivity patterns."
FALLBACK_EXPLANATION = (
    "This is a simple schedule based on your task priorities. "
    "AI-powered scheduling is currently unavailable."
)


class JSONGenerator(Protocol):
    model_name: str

    def generate_json(self, prompt: str, system_instruction: str | None = None, history: Any = None) -> Any:
        ...


@dataclass(frozen=True)
class ScheduleOutcome:
    """Result of the two-branch composition; `plan` is always usable."""

    plan: GeneratedPlan
    used_fallback: bool
    failure: Optional[Exception] = None

    @property
    def failure_reason(self) -> Optional[str]:
        if self.failure is None:
            return None
        return getattr(self.failure, "kind", type(self.failure).__name__)


def model_available(client: JSONGenerator | None) -> bool:
    """False when there is no client or it reports missing credentials."""
    if client is None:
        return False
    is_configured = getattr(client, "is_configured", None)
    return bool(is_configured()) if callable(is_configured) else True


def generate_daily_schedule(
    user_id: UUID,
    context: ScheduleContext,
    *,
    client: JSONGenerator,
    request_id: str | None = None,
) -> GeneratedPlan:
    """Model-only path. Raises GenerationError / ScheduleValidationError on failure."""
    start = perf_counter()
    logger.info(
        "Schedule generation started for user %s (tasks=%s, goals=%s, aggregate_days=%s)",
        user_id,
        len(context.todays_tasks),
        len(context.active_goals),
        len(context.recent_aggregates),
    )
    metadata = {
        "task_count": len(context.todays_tasks),
        "goal_count": len(context.active_goals),
        "habit_count": len(context.active_habits),
        "model": client.model_name,
    }
    with trace("schedule.generate", metadata=metadata, user_id=str(user_id), request_id=request_id) as span:
        prompt, system_instruction = compose_schedule_prompt(context)
        payload = client.generate_json(prompt, system_instruction)
        schedule = validate_schedule_payload(payload)
        if span:
            span.update(metadata={**metadata, "item_count": len(schedule)})

    explanation = payload.get("explanation")
    reasoning = payload.get("reasoning")
    latency_ms = (perf_counter() - start) * 1000
    log_metric("schedule.generate.latency_ms", latency_ms, metadata={"user_id": str(user_id)})
    logger.info(
        "Schedule generation succeeded for user %s (items=%s, latency_ms=%.0f)",
        user_id,
        len(schedule),
        latency_ms,
    )
    return GeneratedPlan(
        user_id=user_id,
        schedule=schedule,
        explanation=explanation if isinstance(explanation, str) and explanation.strip() else DEFAULT_EXPLANATION,
        reasoning=reasoning if isinstance(reasoning, dict) else {},
        model_version=client.model_name,
        generated_at=datetime.now(timezone.utc),
    )


def generate_fallback_schedule(user_id: UUID, context: ScheduleContext) -> GeneratedPlan:
    """Network-free plan built purely from task priorities."""
    break_minutes = context.profile.preferred_break_duration or 5
    return GeneratedPlan(
        user_id=user_id,
        schedule=build_fallback_schedule(context),
        explanation=FALLBACK_EXPLANATION,
        reasoning={
            "prioritization": "Tasks ordered by priority (high first)",
            "breakStrategy": f"{break_minutes}-minute breaks between tasks",
        },
        model_version=FALLBACK_MODEL_VERSION,
        generated_at=datetime.now(timezone.utc),
    )


def plan_schedule(
    user_id: UUID,
    context: ScheduleContext,
    *,
    client: JSONGenerator | None,
    config: PlannerConfig,
    request_id: str | None = None,
) -> ScheduleOutcome:
    """Try the model path; on any failure discard it and use the fallback path."""
    if not config.ai_enabled or not model_available(client):
        logger.info("Model path unavailable for user %s; using fallback schedule", user_id)
        log_metric("schedule.generate.fallback", 1, metadata={"reason": "disabled"})
        return ScheduleOutcome(plan=generate_fallback_schedule(user_id, context), used_fallback=True)

    try:
        plan = generate_daily_schedule(user_id, context, client=client, request_id=request_id)
    except Exception as exc:
        reason = getattr(exc, "kind", type(exc).__name__)
        logger.warning("Schedule fallback triggered for user %s (%s): %s", user_id, reason, exc)
        log_metric("schedule.generate.success", 0, metadata={"user_id": str(user_id)})
        log_metric("schedule.generate.fallback", 1, metadata={"reason": reason})
        return ScheduleOutcome(
            plan=generate_fallback_schedule(user_id, context),
            used_fallback=True,
            failure=exc,
        )

    log_metric("schedule.generate.success", 1, metadata={"user_id": str(user_id)})
    return ScheduleOutcome(plan=plan, used_fallback=False)


def generate_schedule_with_fallback(
    user_id: UUID,
    context: ScheduleContext,
    *,
    client: JSONGenerator | None,
    config: PlannerConfig,
    request_id: str | None = None,
) -> GeneratedPlan:
    """Always returns a plan; `model_version` tells which path produced it."""
    return plan_schedule(user_id, context, client=client, config=config, request_id=request_id).plan
