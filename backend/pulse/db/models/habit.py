"""Habit ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (Index("ix_habits_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String(length=16), nullable=False, server_default=sa_text("'daily'"))
    # morning / afternoon / evening, or a free-form "HH:MM"
    preferred_time = Column(String(length=32), nullable=True)
    duration = Column(Integer, nullable=True)
    auto_schedule = Column(Boolean, nullable=False, server_default=sa_text("true"))
    category = Column(String(length=32), nullable=True)
    current_streak = Column(Integer, nullable=False, server_default=sa_text("0"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
