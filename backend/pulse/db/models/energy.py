"""Energy sample and computed pattern ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from pulse.db.base import Base
from pulse.db.types import JSONBCompat


class EnergyEntry(Base):
    __tablename__ = "energy_entries"
    __table_args__ = (Index("ix_energy_entries_user_recorded", "user_id", "recorded_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    energy_level = Column(Integer, nullable=False)
    hour_of_day = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    context = Column(String(length=64), nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserEnergyPattern(Base):
    __tablename__ = "user_energy_patterns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    hourly_averages = Column(JSONBCompat, nullable=False, default=list)
    peak_hours = Column(JSONBCompat, nullable=False, default=list)
    moderate_hours = Column(JSONBCompat, nullable=False, default=list)
    low_hours = Column(JSONBCompat, nullable=False, default=list)
    insights = Column(JSONBCompat, nullable=False, default=list)
    recommended_focus_start = Column(Integer, nullable=True)
    recommended_focus_end = Column(Integer, nullable=True)
    recommended_break_frequency = Column(Integer, nullable=True)
    total_entries_analyzed = Column(Integer, nullable=False, default=0)
    confidence_score = Column(Float, nullable=False, default=0.0)
    source = Column(String(length=64), nullable=True)
    last_analyzed_at = Column(DateTime(timezone=True), nullable=True)
