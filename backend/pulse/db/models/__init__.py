"""ORM models exposed for metadata discovery."""
from pulse.db.models.agent_action_log import AgentActionLog
from pulse.db.models.ai_plan import AIPlan
from pulse.db.models.ai_profile import UserAIProfile
from pulse.db.models.daily_aggregate import DailyAggregate
from pulse.db.models.energy import EnergyEntry, UserEnergyPattern
from pulse.db.models.goal import Goal
from pulse.db.models.habit import Habit
from pulse.db.models.task import Task
from pulse.db.models.user import User

__all__ = [
    "AgentActionLog",
    "AIPlan",
    "DailyAggregate",
    "EnergyEntry",
    "Goal",
    "Habit",
    "Task",
    "User",
    "UserAIProfile",
    "UserEnergyPattern",
]
