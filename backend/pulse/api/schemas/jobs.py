"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class DailyBrainRunRequest(BaseModel):
    user_ids: Optional[List[UUID]] = None


class UserRunPayload(BaseModel):
    user_id: UUID
    status: Literal["success", "error"]
    model_version: Optional[str] = None
    schedule_items: int = 0
    error: Optional[str] = None


class DailyBrainRunResponse(BaseModel):
    enabled: bool
    processed: int
    success_count: int
    error_count: int
    latency_ms: float
    results: List[UserRunPayload]
    request_id: str
