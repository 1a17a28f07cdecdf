from __future__ import annotations

from typing import Any, List
from uuid import uuid4

import pytest

from pulse.core.config import PlannerConfig
from pulse.services.ai.errors import MalformedOutputError, ScheduleValidationError, TransportError
from pulse.services.planning import generator
from pulse.services.planning.generator import (
    DEFAULT_EXPLANATION,
    FALLBACK_EXPLANATION,
    generate_daily_schedule,
    generate_schedule_with_fallback,
    plan_schedule,
)
from pulse.services.planning.types import PlanningProfile, PlanningTask, ScheduleContext, UserInfo


class _FakeClient:
    model_name = "fake-model"

    def __init__(self, result: Any):
        self.result = result
        self.prompts: List[str] = []

    def is_configured(self) -> bool:
        return True

    def generate_json(self, prompt, system_instruction=None, history=None):
        self.prompts.append(prompt)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


CONFIG = PlannerConfig()


def _context() -> ScheduleContext:
    return ScheduleContext(
        user=UserInfo(name="Jo"),
        profile=PlanningProfile(preferred_break_duration=10),
        current_time="08:00",
        todays_tasks=(
            PlanningTask(id="a", title="Low task", priority="low", time_estimate=20),
            PlanningTask(id="b", title="High task", priority="high", time_estimate=20),
        ),
    )


def test_model_path_returns_validated_plan() -> None:
    payload = {
        "schedule": [{"time": "09:00", "duration": 500, "task": "Deep work", "priority": "high", "taskId": "b"}],
        "explanation": "Tailored to your mornings.",
        "reasoning": {"focusHours": ["9"]},
    }
    client = _FakeClient(payload)

    plan = generate_daily_schedule(uuid4(), _context(), client=client)

    assert plan.model_version == "fake-model"
    assert plan.is_fallback is False
    assert plan.schedule[0].duration == 240
    assert plan.explanation == "Tailored to your mornings."
    assert plan.reasoning == {"focusHours": ["9"]}
    assert "High task" in client.prompts[0]


def test_model_path_defaults_missing_explanation_and_reasoning() -> None:
    client = _FakeClient({"schedule": [], "reasoning": "not a dict"})

    plan = generate_daily_schedule(uuid4(), _context(), client=client)

    assert plan.explanation == DEFAULT_EXPLANATION
    assert plan.reasoning == {}


def test_model_path_raises_on_invalid_payload() -> None:
    with pytest.raises(ScheduleValidationError):
        generate_daily_schedule(uuid4(), _context(), client=_FakeClient({"items": []}))


@pytest.mark.parametrize(
    "failure",
    [
        TransportError("down"),
        MalformedOutputError("bad json", raw_excerpt="{"),
        {"schedule": [{"time": "09:00"}]},
        RuntimeError("unexpected"),
    ],
)
def test_any_model_failure_yields_fallback(failure) -> None:
    user_id = uuid4()

    outcome = plan_schedule(user_id, _context(), client=_FakeClient(failure), config=CONFIG)

    assert outcome.used_fallback is True
    assert outcome.failure is not None
    plan = outcome.plan
    assert plan.user_id == user_id
    assert plan.model_version == "fallback"
    assert plan.explanation == FALLBACK_EXPLANATION
    assert plan.reasoning["breakStrategy"] == "10-minute breaks between tasks"
    assert [item.task_id for item in plan.schedule if item.type == "work"] == ["b", "a"]


def test_transport_failure_reason_is_reported() -> None:
    outcome = plan_schedule(uuid4(), _context(), client=_FakeClient(TransportError("down")), config=CONFIG)

    assert outcome.failure_reason == "transport"


def test_disabled_model_path_skips_client() -> None:
    client = _FakeClient({"schedule": []})

    plan = generate_schedule_with_fallback(
        uuid4(),
        _context(),
        client=client,
        config=PlannerConfig(ai_enabled=False),
    )

    assert plan.model_version == "fallback"
    assert client.prompts == []


def test_unconfigured_client_skips_model_path() -> None:
    client = _FakeClient({"schedule": []})
    client.is_configured = lambda: False  # type: ignore[method-assign]

    plan = generate_schedule_with_fallback(uuid4(), _context(), client=client, config=CONFIG)

    assert plan.model_version == "fallback"
    assert client.prompts == []


def test_fallback_emits_warning_and_metric(monkeypatch, caplog) -> None:
    metrics: List[tuple] = []
    monkeypatch.setattr(generator, "log_metric", lambda name, value, metadata=None: metrics.append((name, value)))

    with caplog.at_level("WARNING", logger="pulse.services.planning.generator"):
        plan_schedule(uuid4(), _context(), client=_FakeClient(TransportError("down")), config=CONFIG)

    assert ("schedule.generate.fallback", 1) in metrics
    assert any("fallback" in record.getMessage() for record in caplog.records)
