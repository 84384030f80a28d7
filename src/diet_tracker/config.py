"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from diet_tracker.domain.nutrition import DEFAULT_GOALS, MacroGoals

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str | None = None
    openai_extraction_model: str = "gpt-5-mini"
    openai_reasoning_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    storage_backend: str = "file"
    data_file: Path = Path("data/diet_logs.json")
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "daily_logs"
    locale: str = "en"
    goal_calories: float = DEFAULT_GOALS.calories
    goal_protein_g: float = DEFAULT_GOALS.protein_g
    goal_carbs_share: float = DEFAULT_GOALS.carbs_share
    goal_fat_share: float = DEFAULT_GOALS.fat_share
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def goals_from_settings(settings: Settings) -> MacroGoals:
    """Build macro goals from settings, keeping shares within [0, 1]."""
    return MacroGoals(
        calories=max(settings.goal_calories, 0.0),
        protein_g=max(settings.goal_protein_g, 0.0),
        carbs_share=_clamp_share(settings.goal_carbs_share),
        fat_share=_clamp_share(settings.goal_fat_share),
    )


def _clamp_share(value: float) -> float:
    return min(1.0, max(0.0, value))
