"""Persisted daily plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base
from pulse.db.types import JSONBCompat


class AIPlan(Base):
    __tablename__ = "ai_plans"
    __table_args__ = (UniqueConstraint("user_id", "plan_date", name="uq_ai_plans_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    plan_date = Column(Date, nullable=False)
    schedule = Column(JSONBCompat, nullable=False, default=list)
    explanation = Column(Text, nullable=False, server_default=sa_text("''"))
    reasoning = Column(JSONBCompat, nullable=False, default=dict)
    model_version = Column(String(length=64), nullable=False)
    status = Column(String(length=20), nullable=False, server_default=sa_text("'pending'"))
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    original_schedule = Column(JSONBCompat, nullable=True)
    edit_count = Column(Integer, nullable=False, server_default=sa_text("0"))
    last_edited_at = Column(DateTime(timezone=True), nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
