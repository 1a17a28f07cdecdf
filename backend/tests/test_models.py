from pulse.db.base import Base
from pulse.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "tasks",
        "goals",
        "habits",
        "user_ai_profiles",
        "daily_aggregates",
        "ai_plans",
        "energy_entries",
        "user_energy_patterns",
        "agent_actions_log",
    }

    assert expected.issubset(table_names)


def test_plans_are_unique_per_user_and_day() -> None:
    constraints = {constraint.name for constraint in Base.metadata.tables["ai_plans"].constraints}

    assert "uq_ai_plans_user_date" in constraints
