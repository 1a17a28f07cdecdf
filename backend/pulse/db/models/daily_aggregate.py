"""Per-day performance summary ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base
from pulse.db.types import JSONBCompat


class DailyAggregate(Base):
    __tablename__ = "daily_aggregates"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_aggregates_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    total_focus_minutes = Column(Integer, nullable=False, server_default=sa_text("0"))
    focus_session_count = Column(Integer, nullable=False, server_default=sa_text("0"))
    avg_focus_duration = Column(Float, nullable=False, server_default=sa_text("0"))
    longest_focus_session = Column(Integer, nullable=False, server_default=sa_text("0"))
    tasks_completed = Column(Integer, nullable=False, server_default=sa_text("0"))
    tasks_created = Column(Integer, nullable=False, server_default=sa_text("0"))
    high_priority_completed = Column(Integer, nullable=False, server_default=sa_text("0"))
    completion_rate = Column(Float, nullable=False, server_default=sa_text("0"))
    distraction_count = Column(Integer, nullable=False, server_default=sa_text("0"))
    total_distraction_minutes = Column(Integer, nullable=False, server_default=sa_text("0"))
    # 24 entries of focus minutes, index = hour of day
    hourly_activity = Column(JSONBCompat, nullable=False, default=list)
    mood_score = Column(Integer, nullable=True)
    daily_rating = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
