from __future__ import annotations

from datetime import date, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pulse.db.base import Base
from pulse.db import models  # noqa: F401  ensure models are loaded
from pulse.db.models.ai_plan import AIPlan
from pulse.db.models.ai_profile import UserAIProfile
from pulse.db.models.daily_aggregate import DailyAggregate
from pulse.db.models.user import User
from pulse.services import personalization
from pulse.services.personalization import (
    ensure_user_profile,
    hourly_performance_scores,
    refresh_user_profile,
    update_plan_stats,
)

TODAY = date(2024, 6, 10)


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _seed_user(session) -> User:
    user = User(id=uuid4(), name="Casey")
    session.add(user)
    session.commit()
    return user


def _activity(**minutes_by_hour) -> list:
    hours = [0] * 24
    for hour, minutes in minutes_by_hour.items():
        hours[int(hour.lstrip("h"))] = minutes
    return hours


def test_ensure_profile_creates_default_once(db_session) -> None:
    user = _seed_user(db_session)

    first = ensure_user_profile(db_session, user.id)
    second = ensure_user_profile(db_session, user.id)

    assert first.id == second.id
    assert first.optimal_focus_duration == 25
    assert first.most_productive_hours == [9, 10, 11]
    assert db_session.query(UserAIProfile).count() == 1


def test_ensure_profile_recovers_when_another_writer_created_it(db_session, monkeypatch) -> None:
    user = _seed_user(db_session)
    existing = ensure_user_profile(db_session, user.id)
    real_get = personalization.get_user_profile
    calls = []

    def stale_get(db, user_id):
        calls.append(user_id)
        return None if len(calls) == 1 else real_get(db, user_id)

    monkeypatch.setattr(personalization, "get_user_profile", stale_get)

    profile = ensure_user_profile(db_session, user.id)

    assert profile.id == existing.id
    assert len(calls) == 2
    assert db_session.query(UserAIProfile).count() == 1


def test_hourly_scores_blend_focus_and_completion() -> None:
    aggregate = DailyAggregate(completion_rate=0.5, hourly_activity=_activity(h9=60, h10=30))

    scores = hourly_performance_scores([aggregate])

    assert scores[9] == 0.8
    assert scores[10] == 0.5
    assert scores[11] == 0


def test_refresh_without_history_keeps_default(db_session) -> None:
    user = _seed_user(db_session)

    profile = refresh_user_profile(db_session, user.id, today=TODAY)

    assert profile.preferred_work_start_hour == 9
    assert profile.last_analyzed_date is None


def test_refresh_derives_profile_from_aggregates(db_session) -> None:
    user = _seed_user(db_session)
    db_session.add_all(
        [
            DailyAggregate(
                user_id=user.id,
                date=TODAY - timedelta(days=1),
                completion_rate=0.8,
                avg_focus_duration=40,
                hourly_activity=_activity(h8=60, h9=60, h10=45, h15=3),
            ),
            DailyAggregate(
                user_id=user.id,
                date=TODAY - timedelta(days=2),
                completion_rate=0.6,
                avg_focus_duration=50,
                hourly_activity=_activity(h8=30, h9=60),
            ),
            DailyAggregate(
                user_id=user.id,
                date=TODAY - timedelta(days=3),
                completion_rate=0.2,
                avg_focus_duration=10,
                hourly_activity=_activity(h14=6),
            ),
            AIPlan(user_id=user.id, plan_date=TODAY - timedelta(days=1), model_version="m", status="accepted"),
            AIPlan(user_id=user.id, plan_date=TODAY - timedelta(days=2), model_version="m", status="rejected"),
        ]
    )
    db_session.commit()

    profile = refresh_user_profile(db_session, user.id, today=TODAY)

    assert profile.most_productive_hours == [9, 10, 8]
    assert profile.common_distraction_times == [14]
    assert profile.optimal_focus_duration == 50
    assert profile.preferred_break_duration == 10
    assert profile.preferred_work_start_hour == 8
    assert profile.preferred_work_end_hour == 16
    assert profile.total_plans_generated == 2
    assert profile.total_plans_accepted == 1
    assert profile.total_plans_rejected == 1
    assert profile.avg_plan_acceptance_rate == 0.5
    assert profile.last_analyzed_date == TODAY


def test_update_plan_stats_tracks_acceptance_rate(db_session) -> None:
    user = _seed_user(db_session)

    update_plan_stats(db_session, user.id, "generated")
    update_plan_stats(db_session, user.id, "generated")
    profile = update_plan_stats(db_session, user.id, "accepted")

    assert profile.total_plans_generated == 2
    assert profile.total_plans_accepted == 1
    assert profile.avg_plan_acceptance_rate == 0.5


def test_update_plan_stats_rejects_unknown_action(db_session) -> None:
    user = _seed_user(db_session)

    with pytest.raises(ValueError):
        update_plan_stats(db_session, user.id, "archived")  # type: ignore[arg-type]
