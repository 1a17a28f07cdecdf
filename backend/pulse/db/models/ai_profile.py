"""Per-user personalization profile ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base
from pulse.db.types import JSONBCompat


class UserAIProfile(Base):
    __tablename__ = "user_ai_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    optimal_focus_duration = Column(Integer, nullable=False, server_default=sa_text("25"))
    preferred_work_start_hour = Column(Integer, nullable=False, server_default=sa_text("9"))
    preferred_work_end_hour = Column(Integer, nullable=False, server_default=sa_text("17"))
    preferred_break_duration = Column(Integer, nullable=False, server_default=sa_text("5"))
    hourly_performance_scores = Column(JSONBCompat, nullable=False, default=list)
    most_productive_hours = Column(JSONBCompat, nullable=False, default=list)
    common_distraction_times = Column(JSONBCompat, nullable=False, default=list)
    total_plans_generated = Column(Integer, nullable=False, server_default=sa_text("0"))
    total_plans_accepted = Column(Integer, nullable=False, server_default=sa_text("0"))
    total_plans_rejected = Column(Integer, nullable=False, server_default=sa_text("0"))
    avg_plan_acceptance_rate = Column(Float, nullable=False, server_default=sa_text("0"))
    last_analyzed_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
