"""Initial planner schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _user_fk() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _jsonb(name: str, default: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB(astext_type=sa.Text()),
        nullable=nullable,
        server_default=None if nullable else sa.text(f"'{default}'::jsonb"),
    )


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default=sa.text("'UTC'")),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )

    op.create_table(
        "tasks",
        _uuid_pk(),
        _user_fk(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("time_estimate", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"], unique=False)
    op.create_index("ix_tasks_completed", "tasks", ["completed"], unique=False)

    op.create_table(
        "goals",
        _uuid_pk(),
        _user_fk(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("target_date", sa.Date(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"], unique=False)

    op.create_table(
        "habits",
        _uuid_pk(),
        _user_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=16), nullable=False, server_default=sa.text("'daily'")),
        sa.Column("preferred_time", sa.String(length=32), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("auto_schedule", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("category", sa.String(length=32), nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"], unique=False)

    op.create_table(
        "user_ai_profiles",
        _uuid_pk(),
        _user_fk(),
        sa.Column("optimal_focus_duration", sa.Integer(), nullable=False, server_default=sa.text("25")),
        sa.Column("preferred_work_start_hour", sa.Integer(), nullable=False, server_default=sa.text("9")),
        sa.Column("preferred_work_end_hour", sa.Integer(), nullable=False, server_default=sa.text("17")),
        sa.Column("preferred_break_duration", sa.Integer(), nullable=False, server_default=sa.text("5")),
        _jsonb("hourly_performance_scores", "[]"),
        _jsonb("most_productive_hours", "[]"),
        _jsonb("common_distraction_times", "[]"),
        sa.Column("total_plans_generated", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_plans_accepted", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_plans_rejected", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("avg_plan_acceptance_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_analyzed_date", sa.Date(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_user_ai_profiles_user_id"),
    )

    op.create_table(
        "daily_aggregates",
        _uuid_pk(),
        _user_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_focus_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("focus_session_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("avg_focus_duration", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("longest_focus_session", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tasks_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tasks_created", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("high_priority_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completion_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("distraction_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_distraction_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _jsonb("hourly_activity", "[]"),
        sa.Column("mood_score", sa.Integer(), nullable=True),
        sa.Column("daily_rating", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_aggregates_user_date"),
    )

    op.create_table(
        "ai_plans",
        _uuid_pk(),
        _user_fk(),
        sa.Column("plan_date", sa.Date(), nullable=False),
        _jsonb("schedule", "[]"),
        sa.Column("explanation", sa.Text(), nullable=False, server_default=sa.text("''")),
        _jsonb("reasoning", "{}"),
        sa.Column("model_version", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        _jsonb("original_schedule", "[]", nullable=True),
        sa.Column("edit_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "plan_date", name="uq_ai_plans_user_date"),
    )

    op.create_table(
        "energy_entries",
        _uuid_pk(),
        _user_fk(),
        sa.Column("energy_level", sa.Integer(), nullable=False),
        sa.Column("hour_of_day", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("context", sa.String(length=64), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_energy_entries_user_recorded",
        "energy_entries",
        ["user_id", "recorded_at"],
        unique=False,
    )

    op.create_table(
        "user_energy_patterns",
        _uuid_pk(),
        _user_fk(),
        _jsonb("hourly_averages", "[]"),
        _jsonb("peak_hours", "[]"),
        _jsonb("moderate_hours", "[]"),
        _jsonb("low_hours", "[]"),
        _jsonb("insights", "[]"),
        sa.Column("recommended_focus_start", sa.Integer(), nullable=True),
        sa.Column("recommended_focus_end", sa.Integer(), nullable=True),
        sa.Column("recommended_break_frequency", sa.Integer(), nullable=True),
        sa.Column("total_entries_analyzed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("confidence_score", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("source", sa.String(length=64), nullable=True),
        sa.Column("last_analyzed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_user_energy_patterns_user_id"),
    )

    op.create_table(
        "agent_actions_log",
        _uuid_pk(),
        _user_fk(),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action_type", sa.Text(), nullable=False),
        _jsonb("action_payload", "{}"),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["plan_id"], ["ai_plans.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_agent_actions_log_user_id", "agent_actions_log", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_agent_actions_log_user_id", table_name="agent_actions_log")
    op.drop_table("agent_actions_log")
    op.drop_table("user_energy_patterns")
    op.drop_index("ix_energy_entries_user_recorded", table_name="energy_entries")
    op.drop_table("energy_entries")
    op.drop_table("ai_plans")
    op.drop_table("daily_aggregates")
    op.drop_table("user_ai_profiles")
    op.drop_index("ix_habits_user_id", table_name="habits")
    op.drop_table("habits")
    op.drop_index("ix_goals_user_id", table_name="goals")
    op.drop_table("goals")
    op.drop_index("ix_tasks_completed", table_name="tasks")
    op.drop_index("ix_tasks_user_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("users")
