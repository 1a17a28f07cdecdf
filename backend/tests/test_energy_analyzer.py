from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pulse.core.config import PlannerConfig
from pulse.db.base import Base
from pulse.db import models  # noqa: F401  ensure models are loaded
from pulse.db.models.energy import UserEnergyPattern
from pulse.db.models.user import User
from pulse.services.ai.errors import TransportError
from pulse.services import energy
from pulse.services.energy import (
    analyze_energy,
    classify_hours,
    compute_hourly_averages,
    load_recent_entries,
    record_energy_entry,
    save_energy_pattern,
)

CONFIG = PlannerConfig()


def _samples(*pairs):
    return [SimpleNamespace(hour_of_day=hour, energy_level=level) for hour, level in pairs]


class _FakeClient:
    model_name = "fake-model"

    def __init__(self, result):
        self.result = result
        self.calls = 0

    def is_configured(self) -> bool:
        return True

    def generate_json(self, prompt, system_instruction=None, history=None):
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_hourly_averages_sorted_by_hour() -> None:
    averages = compute_hourly_averages(_samples((14, 2), (9, 5), (9, 4), (11, 3)))

    assert averages == [
        {"hour": 9, "average": 4.5},
        {"hour": 11, "average": 3.0},
        {"hour": 14, "average": 2.0},
    ]


def test_bands_are_disjoint_with_few_hours() -> None:
    averages = compute_hourly_averages(_samples((9, 5), (10, 4), (11, 3), (14, 1), (16, 2)))

    bands = classify_hours(averages)

    assert bands.peak_hours == [9, 10, 11, 16]
    assert bands.low_hours == [14]
    assert bands.moderate_hours == []


def test_bands_with_many_hours() -> None:
    averages = compute_hourly_averages(_samples(*[(hour, 1 + hour % 5) for hour in range(8, 18)]))

    bands = classify_hours(averages)
    all_hours = bands.peak_hours + bands.moderate_hours + bands.low_hours

    assert sorted(all_hours) == list(range(8, 18))
    assert len(set(all_hours)) == len(all_hours)
    assert len(bands.peak_hours) == 4
    assert len(bands.low_hours) == 4


def test_two_samples_are_insufficient() -> None:
    client = _FakeClient({})

    result = analyze_energy(_samples((9, 5), (10, 4)), client=client, config=CONFIG)

    assert result.status == "insufficient_data"
    assert result.analysis is None
    assert "at least 3" in result.message
    assert client.calls == 0


def test_model_insights_used_when_valid() -> None:
    payload = {
        "insights": ["Mornings are strong"],
        "taskScheduling": ["Deep work at 9"],
        "focusStart": 9,
        "focusEnd": 12,
        "breakFrequency": 50,
    }

    result = analyze_energy(_samples((9, 5), (10, 4), (15, 1)), client=_FakeClient(payload), config=CONFIG)

    assert result.status == "ok"
    assert result.analysis.source == "fake-model"
    assert result.analysis.insights == ["Mornings are strong"]
    assert result.analysis.break_frequency == 50
    assert result.confidence_score == pytest.approx(0.1)


@pytest.mark.parametrize(
    "failure",
    [
        TransportError("down"),
        {"insights": "not a list", "taskScheduling": [], "focusStart": 9, "focusEnd": 12, "breakFrequency": 45},
        {"insights": ["ok"], "taskScheduling": ["ok"], "focusStart": 30, "focusEnd": 12, "breakFrequency": 45},
    ],
)
def test_model_failure_uses_templated_insights(failure) -> None:
    samples = _samples((9, 5), (10, 5), (11, 4), (13, 1), (15, 3))

    result = analyze_energy(samples, client=_FakeClient(failure), config=CONFIG)

    analysis = result.analysis
    assert analysis.source == "fallback"
    assert analysis.focus_start == 9
    assert analysis.focus_end == 17
    assert analysis.break_frequency == 45
    assert analysis.insights[0] == "Your peak energy hours are around 9-10:00"
    assert "13:00" in analysis.insights[1]
    assert analysis.insights[2] == "You have 5 energy records in the analysis period"


def test_fallback_focus_end_is_capped() -> None:
    result = analyze_energy(
        _samples((17, 5), (18, 5), (19, 5)),
        client=None,
        config=CONFIG,
    )

    assert result.analysis.focus_start == 17
    assert result.analysis.focus_end == 18


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


def test_record_and_persist_pattern(db_session) -> None:
    user = User(id=uuid4(), name="Dana", timezone="Europe/Berlin")
    db_session.add(user)
    db_session.commit()
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

    entry = record_energy_entry(
        db_session,
        user_id=user.id,
        energy_level=4,
        notes="system: slept well",
        recorded_at=datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc),
    )
    for offset in range(3):
        record_energy_entry(db_session, user_id=user.id, energy_level=3 + offset, recorded_at=now - timedelta(hours=offset))

    assert entry.hour_of_day == 9
    assert entry.notes == "[filtered] slept well"

    recent = load_recent_entries(db_session, user.id, days=14)
    assert len(recent) == 3

    result = analyze_energy(recent, client=None, config=CONFIG)
    pattern = save_energy_pattern(db_session, user.id, result)
    again = save_energy_pattern(db_session, user.id, result)

    assert pattern.id == again.id
    assert pattern.total_entries_analyzed == 3
    assert pattern.confidence_score == pytest.approx(0.1)
    assert pattern.source == "fallback"


def test_save_pattern_overwrites_row_created_by_another_writer(db_session, monkeypatch) -> None:
    user = User(id=uuid4(), name="Jamie")
    db_session.add(user)
    db_session.commit()
    samples = _samples((9, 5), (10, 4), (14, 2))
    first = save_energy_pattern(db_session, user.id, analyze_energy(samples, client=None, config=CONFIG))
    real_get = energy.get_energy_pattern
    calls = []

    def stale_get(db, user_id):
        calls.append(user_id)
        return None if len(calls) == 1 else real_get(db, user_id)

    monkeypatch.setattr(energy, "get_energy_pattern", stale_get)
    more = _samples((9, 5), (10, 4), (14, 2), (15, 1))

    pattern = save_energy_pattern(db_session, user.id, analyze_energy(more, client=None, config=CONFIG))

    assert pattern.id == first.id
    assert pattern.total_entries_analyzed == 4
    assert db_session.query(UserEnergyPattern).count() == 1


def test_record_for_unknown_user_raises(db_session) -> None:
    with pytest.raises(ValueError):
        record_energy_entry(db_session, user_id=uuid4(), energy_level=3)
