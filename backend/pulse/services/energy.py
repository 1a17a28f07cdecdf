"""Energy sample tracking and peak-hour analysis."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pulse.core.config import PlannerConfig
from pulse.db.models.energy import EnergyEntry, UserEnergyPattern
from pulse.db.models.user import User
from pulse.observability.metrics import log_metric
from pulse.observability.tracing import trace
from pulse.services.ai.sanitize import sanitize_user_input
from pulse.services.planning.generator import model_available

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3
BAND_SIZE = 4
CONFIDENCE_SAMPLE_TARGET = 30
FALLBACK_FOCUS_START = 9
FALLBACK_FOCUS_END_CAP = 18
FALLBACK_BREAK_FREQUENCY = 45

ENERGY_SYSTEM_INSTRUCTION = (
    "You are an energy and productivity optimization AI. Analyze energy patterns and provide "
    "practical, specific recommendations. Be concise and actionable. Always return valid JSON."
)


class EnergyInsightDraft(BaseModel):
    """Shape the generation service must return for energy insights."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    insights: List[str] = Field(..., min_length=1)
    task_scheduling: List[str] = Field(..., alias="taskScheduling", min_length=1)
    focus_start: int = Field(..., alias="focusStart", ge=0, le=23)
    focus_end: int = Field(..., alias="focusEnd", ge=0, le=23)
    break_frequency: int = Field(..., alias="breakFrequency", gt=0)


@dataclass(frozen=True)
class HourlyBands:
    hourly_averages: List[Dict[str, float]]
    peak_hours: List[int]
    moderate_hours: List[int]
    low_hours: List[int]


@dataclass
class EnergyAnalysis:
    peak_hours: List[int]
    moderate_hours: List[int]
    low_hours: List[int]
    hourly_averages: List[Dict[str, float]]
    insights: List[str]
    focus_start: int
    focus_end: int
    break_frequency: int
    task_scheduling: List[str]
    source: str


@dataclass
class EnergyAnalysisResult:
    status: str
    sample_count: int
    analysis: Optional[EnergyAnalysis] = None
    message: Optional[str] = None
    confidence_score: Optional[float] = None
    failure: Optional[str] = field(default=None, repr=False)


def compute_hourly_averages(samples: Sequence[Any]) -> List[Dict[str, float]]:
    """Group samples by hour of day and average their levels, sorted by hour."""
    grouped: Dict[int, List[int]] = defaultdict(list)
    for sample in samples:
        grouped[int(sample.hour_of_day)].append(int(sample.energy_level))
    return [
        {"hour": hour, "average": sum(levels) / len(levels)}
        for hour, levels in sorted(grouped.items())
    ]


def classify_hours(hourly_averages: Sequence[Dict[str, float]]) -> HourlyBands:
    """Split sampled hours into disjoint peak / low / moderate bands by rank."""
    ranked = sorted(hourly_averages, key=lambda item: (-item["average"], item["hour"]))
    peak = sorted(int(item["hour"]) for item in ranked[:BAND_SIZE])
    low_candidates = [int(item["hour"]) for item in ranked[-BAND_SIZE:] if int(item["hour"]) not in peak]
    low = sorted(low_candidates)
    moderate = [
        int(item["hour"])
        for item in hourly_averages
        if int(item["hour"]) not in peak and int(item["hour"]) not in low
    ]
    return HourlyBands(
        hourly_averages=list(hourly_averages),
        peak_hours=peak,
        moderate_hours=sorted(moderate),
        low_hours=low,
    )


def build_energy_prompt(bands: HourlyBands) -> str:
    averages = "\n".join(f"{int(item['hour'])}:00 - {item['average']:.1f}" for item in bands.hourly_averages)
    return (
        "Analyze this user's energy patterns and provide productivity recommendations.\n\n"
        "Energy data (hourly averages, 1=very low, 5=peak):\n"
        f"{averages}\n\n"
        f"Peak energy hours: {', '.join(str(h) for h in bands.peak_hours)}\n"
        f"Low energy hours: {', '.join(str(h) for h in bands.low_hours)}\n\n"
        "Based on this data, provide a JSON response with:\n"
        '1. "insights": Array of 3-4 short, actionable insights about their energy patterns\n'
        '2. "taskScheduling": Array of 3-4 specific recommendations for scheduling different types of tasks\n'
        '3. "focusStart": Best hour to start focused work (integer 0-23)\n'
        '4. "focusEnd": Best hour to end focused work (integer 0-23)\n'
        '5. "breakFrequency": Recommended minutes between breaks (integer)\n\n'
        "Return ONLY valid JSON."
    )


def fallback_energy_analysis(bands: HourlyBands, sample_count: int) -> EnergyAnalysis:
    """Templated insights derived only from the computed bands."""
    peak = bands.peak_hours
    low = bands.low_hours
    peak_label = "-".join(str(h) for h in peak[:2]) or str(FALLBACK_FOCUS_START)
    focus_start = peak[0] if peak else FALLBACK_FOCUS_START
    last_peak = peak[-1] if peak else 12
    insights = [f"Your peak energy hours are around {peak_label}:00"]
    if low:
        insights.append(f"Energy tends to dip around {low[0]}:00 - consider a break")
    insights.append(f"You have {sample_count} energy records in the analysis period")
    return EnergyAnalysis(
        peak_hours=list(peak),
        moderate_hours=list(bands.moderate_hours),
        low_hours=list(low),
        hourly_averages=list(bands.hourly_averages),
        insights=insights,
        focus_start=focus_start,
        focus_end=min(last_peak + 2, FALLBACK_FOCUS_END_CAP),
        break_frequency=FALLBACK_BREAK_FREQUENCY,
        task_scheduling=[
            f"Schedule important tasks during your peak hours ({peak_label}:00)",
            "Take breaks during low energy periods",
            "Save routine tasks for moderate energy times",
        ],
        source="fallback",
    )


def analyze_energy(
    samples: Sequence[Any],
    *,
    client: Any = None,
    config: PlannerConfig,
    user_id: UUID | None = None,
    request_id: str | None = None,
) -> EnergyAnalysisResult:
    """Compute bands, then ask the model for insights or fall back to templates."""
    sample_count = len(samples)
    if sample_count < MIN_SAMPLES:
        return EnergyAnalysisResult(
            status="insufficient_data",
            sample_count=sample_count,
            message=f"Need at least {MIN_SAMPLES} energy entries for analysis",
        )

    bands = classify_hours(compute_hourly_averages(samples))
    confidence = min(sample_count / CONFIDENCE_SAMPLE_TARGET, 1.0)

    if not config.ai_enabled or not model_available(client):
        log_metric("energy.analyze.fallback", 1, metadata={"reason": "disabled"})
        return EnergyAnalysisResult(
            status="ok",
            sample_count=sample_count,
            analysis=fallback_energy_analysis(bands, sample_count),
            confidence_score=confidence,
        )

    metadata = {"sample_count": sample_count, "hours": len(bands.hourly_averages)}
    try:
        with trace(
            "energy.analyze",
            metadata=metadata,
            user_id=str(user_id) if user_id else None,
            request_id=request_id,
        ):
            payload = client.generate_json(build_energy_prompt(bands), ENERGY_SYSTEM_INSTRUCTION)
            draft = EnergyInsightDraft.model_validate(payload)
    except Exception as exc:
        reason = getattr(exc, "kind", type(exc).__name__)
        logger.warning("Energy analysis fell back for user %s (%s): %s", user_id, reason, exc)
        log_metric("energy.analyze.fallback", 1, metadata={"reason": reason})
        return EnergyAnalysisResult(
            status="ok",
            sample_count=sample_count,
            analysis=fallback_energy_analysis(bands, sample_count),
            confidence_score=confidence,
            failure=reason,
        )

    log_metric("energy.analyze.success", 1, metadata={"sample_count": sample_count})
    analysis = EnergyAnalysis(
        peak_hours=bands.peak_hours,
        moderate_hours=bands.moderate_hours,
        low_hours=bands.low_hours,
        hourly_averages=bands.hourly_averages,
        insights=draft.insights,
        focus_start=draft.focus_start,
        focus_end=draft.focus_end,
        break_frequency=draft.break_frequency,
        task_scheduling=draft.task_scheduling,
        source=getattr(client, "model_name", "model"),
    )
    return EnergyAnalysisResult(
        status="ok",
        sample_count=sample_count,
        analysis=analysis,
        confidence_score=confidence,
    )


def record_energy_entry(
    db: Session,
    *,
    user_id: UUID,
    energy_level: int,
    notes: str | None = None,
    context: str | None = None,
    recorded_at: datetime | None = None,
    max_length: int = 2000,
) -> EnergyEntry:
    """Append one sample; hour_of_day is taken in the user's local timezone."""
    user = db.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    moment = recorded_at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    entry = EnergyEntry(
        user_id=user_id,
        energy_level=energy_level,
        hour_of_day=_local_hour(moment, user.timezone),
        notes=sanitize_user_input(notes, max_length) or None,
        context=context or None,
        recorded_at=moment,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def load_recent_entries(db: Session, user_id: UUID, *, days: int, now: datetime | None = None) -> List[EnergyEntry]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    return (
        db.query(EnergyEntry)
        .filter(EnergyEntry.user_id == user_id, EnergyEntry.recorded_at >= cutoff)
        .order_by(EnergyEntry.recorded_at.desc())
        .all()
    )


def save_energy_pattern(db: Session, user_id: UUID, result: EnergyAnalysisResult) -> UserEnergyPattern:
    """Upsert the one-per-user pattern row from an analysis result."""
    if result.analysis is None:
        raise ValueError("No analysis to persist")

    pattern = get_energy_pattern(db, user_id)
    if pattern is None:
        pattern = UserEnergyPattern(user_id=user_id)
        _apply_analysis(pattern, result)
        db.add(pattern)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            pattern = get_energy_pattern(db, user_id)
            if pattern is None:
                raise
            _apply_analysis(pattern, result)
    else:
        _apply_analysis(pattern, result)
    db.commit()
    db.refresh(pattern)
    return pattern


def _apply_analysis(pattern: UserEnergyPattern, result: EnergyAnalysisResult) -> None:
    analysis = result.analysis
    pattern.hourly_averages = analysis.hourly_averages
    pattern.peak_hours = analysis.peak_hours
    pattern.moderate_hours = analysis.moderate_hours
    pattern.low_hours = analysis.low_hours
    pattern.insights = analysis.insights
    pattern.recommended_focus_start = analysis.focus_start
    pattern.recommended_focus_end = analysis.focus_end
    pattern.recommended_break_frequency = analysis.break_frequency
    pattern.total_entries_analyzed = result.sample_count
    pattern.confidence_score = result.confidence_score or 0.0
    pattern.source = analysis.source
    pattern.last_analyzed_at = datetime.now(timezone.utc)


def _local_hour(moment: datetime, tz_name: str | None) -> int:
    try:
        zone = ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    return moment.astimezone(zone).hour


def get_energy_pattern(db: Session, user_id: UUID) -> Optional[UserEnergyPattern]:
    return db.query(UserEnergyPattern).filter(UserEnergyPattern.user_id == user_id).one_or_none()
