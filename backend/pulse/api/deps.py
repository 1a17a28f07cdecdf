"""FastAPI dependencies for the planning pipeline collaborators."""
from __future__ import annotations

from pulse.core.config import PlannerConfig, settings
from pulse.services.ai.client import GenerationClient


def get_planner_config() -> PlannerConfig:
    return PlannerConfig.from_settings(settings)


def get_generation_client() -> GenerationClient:
    return GenerationClient.from_settings(settings)
