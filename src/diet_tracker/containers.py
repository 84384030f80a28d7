"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from diet_tracker.adapters.json_file_log_repository import JsonFileLogRepository
from diet_tracker.adapters.openai_llm_client import OpenAILlmClient
from diet_tracker.adapters.supabase_log_repository import SupabaseLogRepository
from diet_tracker.config import Settings, goals_from_settings
from diet_tracker.services.diary import DiaryService
from diet_tracker.services.extraction import FoodExtractionService
from diet_tracker.services.recommendation import RecommendationService
from diet_tracker.services.reports import ReportService
from diet_tracker.services.store import LogRepository, LogStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: LogStore
    diary_service: DiaryService
    close_resources: Callable[[], Awaitable[None]]


def build_log_repository(settings: Settings) -> LogRepository:
    """Select the persistence backend configured in settings."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage needs SUPABASE_URL and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseLogRepository(client, table=settings.supabase_table)
    if settings.storage_backend == "file":
        return JsonFileLogRepository(settings.data_file)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = LogStore.load(
        build_log_repository(resolved_settings), locale=resolved_settings.locale
    )
    llm_client = OpenAILlmClient.create(resolved_settings.openai_api_key)
    extraction_service = FoodExtractionService(
        client=llm_client,
        model=resolved_settings.openai_extraction_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        locale=resolved_settings.locale,
    )
    recommendation_service = RecommendationService(
        client=llm_client,
        model=resolved_settings.openai_reasoning_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        locale=resolved_settings.locale,
    )
    report_service = ReportService(
        client=llm_client,
        model=resolved_settings.openai_reasoning_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        locale=resolved_settings.locale,
    )
    diary_service = DiaryService(
        store=store,
        goals=goals_from_settings(resolved_settings),
        extraction_service=extraction_service,
        recommendation_service=recommendation_service,
        report_service=report_service,
    )

    async def close_resources() -> None:
        await llm_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        diary_service=diary_service,
        close_resources=close_resources,
    )
