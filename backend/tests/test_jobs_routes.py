from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pulse.api.deps import get_generation_client
from pulse.core.config import settings
from pulse.db.base import Base
from pulse.db import models  # noqa: F401  ensure models are loaded
from pulse.db.deps import get_db
from pulse.db.models.ai_plan import AIPlan
from pulse.db.models.task import Task
from pulse.db.models.user import User
from pulse.main import app

SECRET = "test-cron-secret"
AUTH = {"Authorization": f"Bearer {SECRET}"}


@pytest.fixture()
def client(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generation_client] = lambda: None
    monkeypatch.setattr(settings, "cron_secret", SECRET)
    monkeypatch.setattr(settings, "daily_brain_enabled", True)
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _seed_user(session_factory):
    session = session_factory()
    try:
        user_id = uuid4()
        session.add(User(id=user_id, name="Harper", onboarding_completed=True))
        session.add(Task(user_id=user_id, title="Plan sprint", priority="high", time_estimate=30))
        session.commit()
        return user_id
    finally:
        session.close()


def test_jobs_config(client) -> None:
    test_client, _ = client

    resp = test_client.get("/jobs")

    assert resp.status_code == 200
    data = resp.json()
    assert "scheduler_enabled" in data
    assert data["daily_brain_enabled"] is True
    assert data["request_id"]


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": SECRET}])
def test_daily_brain_requires_bearer_secret(client, headers) -> None:
    test_client, _ = client

    resp = test_client.post("/jobs/daily-brain/run", headers=headers)

    assert resp.status_code == 401


def test_daily_brain_runs_for_onboarded_users(client) -> None:
    test_client, session_factory = client
    first = _seed_user(session_factory)
    second = _seed_user(session_factory)

    resp = test_client.post("/jobs/daily-brain/run", headers=AUTH)

    assert resp.status_code == 200
    data = resp.json()
    assert data["enabled"] is True
    assert data["processed"] == 2
    assert data["success_count"] == 2
    assert {item["user_id"] for item in data["results"]} == {str(first), str(second)}
    assert all(item["model_version"] == "fallback" for item in data["results"])

    session = session_factory()
    try:
        assert session.query(AIPlan).count() == 2
    finally:
        session.close()


def test_daily_brain_reports_per_user_errors(client) -> None:
    test_client, session_factory = client
    user_id = _seed_user(session_factory)
    missing = uuid4()

    resp = test_client.post(
        "/jobs/daily-brain/run",
        headers=AUTH,
        json={"user_ids": [str(user_id), str(missing)]},
    )

    data = resp.json()
    assert [item["status"] for item in data["results"]] == ["success", "error"]
    assert data["error_count"] == 1


def test_daily_brain_disabled_is_noop(client, monkeypatch) -> None:
    test_client, session_factory = client
    _seed_user(session_factory)
    monkeypatch.setattr(settings, "daily_brain_enabled", False)

    resp = test_client.post("/jobs/daily-brain/run", headers=AUTH)

    assert resp.status_code == 200
    data = resp.json()
    assert data["enabled"] is False
    assert data["processed"] == 0
