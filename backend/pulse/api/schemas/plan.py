"""Schemas for daily plans."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

FALLBACK_MODEL_VERSION = "fallback"


class ScheduleItem(BaseModel):
    time: str
    duration: int = Field(ge=5, le=240)
    task: str = Field(min_length=1)
    priority: Literal["high", "medium", "low"] = "medium"
    type: Literal["work", "break", "meeting"] = "work"
    task_id: Optional[str] = Field(default=None, alias="taskId")

    model_config = {"populate_by_name": True}


class GeneratedPlan(BaseModel):
    user_id: UUID
    schedule: List[ScheduleItem]
    explanation: str
    reasoning: Dict[str, Any] = Field(default_factory=dict)
    model_version: str
    generated_at: datetime

    @property
    def is_fallback(self) -> bool:
        return self.model_version == FALLBACK_MODEL_VERSION


class PlanGenerateRequest(BaseModel):
    user_id: UUID


class PlanResponse(BaseModel):
    id: UUID
    user_id: UUID
    plan_date: date
    schedule: List[ScheduleItem]
    explanation: str
    reasoning: Dict[str, Any]
    model_version: str
    status: str
    edit_count: int
    generated_at: Optional[datetime]
    request_id: str


class PlanFeedbackRequest(BaseModel):
    user_id: UUID
    reason: Optional[str] = Field(default=None, max_length=500)


class PlanEditRequest(BaseModel):
    user_id: UUID
    schedule: List[ScheduleItem]
