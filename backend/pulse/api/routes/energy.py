"""Energy sample capture and analysis endpoints."""
from __future__ import annotations

from datetime import datetime, timezone
from time import perf_counter
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from pulse.api.deps import get_generation_client, get_planner_config
from pulse.api.schemas.energy import (
    EnergyAnalysisPayload,
    EnergyEntryCreate,
    EnergyEntryPayload,
    EnergyEntryResponse,
    EnergyOverviewResponse,
    EnergyRecommendations,
    HourlyAverage,
)
from pulse.core.config import PlannerConfig
from pulse.db.deps import get_db
from pulse.db.models.energy import EnergyEntry, UserEnergyPattern
from pulse.db.models.user import User
from pulse.observability.metrics import log_metric
from pulse.observability.tracing import trace
from pulse.services.ai.client import GenerationClient
from pulse.services.energy import (
    EnergyAnalysis,
    analyze_energy,
    get_energy_pattern,
    load_recent_entries,
    record_energy_entry,
    save_energy_pattern,
)

router = APIRouter()


def _entry_payload(entry: EnergyEntry) -> EnergyEntryPayload:
    return EnergyEntryPayload(
        id=entry.id,
        energy_level=entry.energy_level,
        hour_of_day=entry.hour_of_day,
        notes=entry.notes,
        context=entry.context,
        recorded_at=entry.recorded_at,
    )


def _analysis_payload(analysis: EnergyAnalysis) -> EnergyAnalysisPayload:
    return EnergyAnalysisPayload(
        peak_hours=analysis.peak_hours,
        moderate_hours=analysis.moderate_hours,
        low_hours=analysis.low_hours,
        hourly_averages=[HourlyAverage(**item) for item in analysis.hourly_averages],
        insights=analysis.insights,
        recommendations=EnergyRecommendations(
            focus_start=analysis.focus_start,
            focus_end=analysis.focus_end,
            break_frequency=analysis.break_frequency,
            task_scheduling=analysis.task_scheduling,
        ),
        source=analysis.source,
    )


def _pattern_payload(pattern: UserEnergyPattern) -> EnergyAnalysisPayload:
    return EnergyAnalysisPayload(
        peak_hours=pattern.peak_hours or [],
        moderate_hours=pattern.moderate_hours or [],
        low_hours=pattern.low_hours or [],
        hourly_averages=[HourlyAverage(**item) for item in pattern.hourly_averages or []],
        insights=pattern.insights or [],
        recommendations=EnergyRecommendations(
            focus_start=pattern.recommended_focus_start or 9,
            focus_end=pattern.recommended_focus_end or 17,
            break_frequency=pattern.recommended_break_frequency or 45,
            task_scheduling=[],
        ),
        source=pattern.source or "stored",
    )


def _is_today(entry: EnergyEntry, today) -> bool:
    recorded = entry.recorded_at
    if recorded.tzinfo is None:
        recorded = recorded.replace(tzinfo=timezone.utc)
    return recorded.astimezone(timezone.utc).date() == today


@router.post("/energy", response_model=EnergyEntryResponse, status_code=status.HTTP_201_CREATED, tags=["energy"])
def create_energy_entry(
    request: Request,
    payload: EnergyEntryCreate,
    db: Session = Depends(get_db),
    config: PlannerConfig = Depends(get_planner_config),
) -> EnergyEntryResponse:
    request_id = getattr(request.state, "request_id", None)
    try:
        entry = record_energy_entry(
            db,
            user_id=payload.user_id,
            energy_level=payload.energy_level,
            notes=payload.notes,
            context=payload.context,
            recorded_at=payload.recorded_at,
            max_length=config.input_max_length,
        )
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    log_metric("energy.entry.success", 1, metadata={"user_id": str(payload.user_id)})
    return EnergyEntryResponse(entry=_entry_payload(entry), request_id=request_id or "")


@router.get("/energy", response_model=EnergyOverviewResponse, tags=["energy"])
def energy_overview(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    analyze: bool = Query(False, description="Run pattern analysis"),
    days: int | None = Query(None, ge=1, le=90, description="Lookback window in days"),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
    config: PlannerConfig = Depends(get_planner_config),
) -> EnergyOverviewResponse:
    request_id = getattr(request.state, "request_id", None)
    if not db.get(User, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    start = perf_counter()
    entries: List[EnergyEntry] = load_recent_entries(db, user_id, days=days or config.energy_window_days)
    today = datetime.now(timezone.utc).date()
    entry_payloads = [_entry_payload(entry) for entry in entries]
    today_payloads = [_entry_payload(entry) for entry in entries if _is_today(entry, today)]

    if not analyze:
        pattern = get_energy_pattern(db, user_id)
        return EnergyOverviewResponse(
            user_id=user_id,
            entries=entry_payloads,
            today_entries=today_payloads,
            status="entries_only",
            analysis=_pattern_payload(pattern) if pattern else None,
            confidence_score=pattern.confidence_score if pattern else None,
            request_id=request_id or "",
        )

    metadata = {"user_id": str(user_id), "entries": len(entries), "request_id": request_id}
    with trace("energy.overview.analyze", metadata=metadata, user_id=user_id, request_id=request_id):
        result = analyze_energy(entries, client=client, config=config, user_id=user_id, request_id=request_id)
        if result.analysis is not None:
            save_energy_pattern(db, user_id, result)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("energy.overview.latency_ms", latency_ms, metadata={"user_id": str(user_id)})
    return EnergyOverviewResponse(
        user_id=user_id,
        entries=entry_payloads,
        today_entries=today_payloads,
        status=result.status,
        message=result.message,
        analysis=_analysis_payload(result.analysis) if result.analysis else None,
        confidence_score=result.confidence_score,
        request_id=request_id or "",
    )
