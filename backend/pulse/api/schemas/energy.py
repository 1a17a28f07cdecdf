"""Schemas for energy tracking and analysis."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class EnergyEntryCreate(BaseModel):
    user_id: UUID
    energy_level: int = Field(ge=1, le=5)
    notes: Optional[str] = Field(default=None, max_length=1000)
    context: Optional[str] = Field(default=None, max_length=64)
    recorded_at: Optional[datetime] = None


class EnergyEntryPayload(BaseModel):
    id: UUID
    energy_level: int
    hour_of_day: int
    notes: Optional[str]
    context: Optional[str]
    recorded_at: datetime


class HourlyAverage(BaseModel):
    hour: int
    average: float


class EnergyRecommendations(BaseModel):
    focus_start: int
    focus_end: int
    break_frequency: int
    task_scheduling: List[str]


class EnergyAnalysisPayload(BaseModel):
    peak_hours: List[int]
    moderate_hours: List[int]
    low_hours: List[int]
    hourly_averages: List[HourlyAverage]
    insights: List[str]
    recommendations: EnergyRecommendations
    source: str


class EnergyEntryResponse(BaseModel):
    entry: EnergyEntryPayload
    request_id: str


class EnergyOverviewResponse(BaseModel):
    user_id: UUID
    entries: List[EnergyEntryPayload]
    today_entries: List[EnergyEntryPayload]
    status: Literal["entries_only", "ok", "insufficient_data"]
    message: Optional[str] = None
    analysis: Optional[EnergyAnalysisPayload] = None
    confidence_score: Optional[float] = None
    request_id: str
