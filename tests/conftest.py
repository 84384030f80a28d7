"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from diet_tracker.config import Settings
from diet_tracker.containers import AppContainer
from diet_tracker.domain.logs import DailyLog
from diet_tracker.domain.nutrition import DEFAULT_GOALS, Ingredient
from diet_tracker.services.diary import DiaryService
from diet_tracker.services.extraction import FoodExtractionService
from diet_tracker.services.llm import LlmClient
from diet_tracker.services.logs import append_items, new_daily_log
from diet_tracker.services.recommendation import RecommendationService
from diet_tracker.services.reports import ReportService
from diet_tracker.services.store import LogRepository, LogStore

FIXED_NOW = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)


@dataclass
class InMemoryLogRepository(LogRepository):
    """In-memory log repository for tests."""

    payloads: dict[str, dict[str, object]] = field(default_factory=dict)
    saves: list[str] = field(default_factory=list)
    fail_load: bool = False
    fail_save: bool = False

    def load_all(self) -> dict[str, dict[str, object]]:
        if self.fail_load:
            raise OSError("disk unavailable")
        return dict(self.payloads)

    def save_log(self, day: str, payload: dict[str, object]) -> None:
        if self.fail_save:
            raise OSError("disk full")
        self.payloads[day] = payload
        self.saves.append(day)


@dataclass
class FakeLlmClient(LlmClient):
    """Fake LLM client returning fixed payloads and recording prompts."""

    structured_payload: dict[str, object] = field(
        default_factory=lambda: {
            "items": [
                {
                    "name": "Stir-fried broccoli",
                    "weight_g": 150,
                    "calories": 120,
                    "protein_g": 4,
                    "carbs_g": 10,
                    "fat_g": 8,
                    "added_oil_calories": 45,
                    "notes": "sauteed",
                }
            ],
            "cooking_analysis": "Sauteed with about 5 g of oil",
        }
    )
    text: str = "## Report\nLooks good."
    error: Exception | None = None
    structured_calls: list[dict[str, object]] = field(default_factory=list)
    text_calls: list[dict[str, object]] = field(default_factory=list)

    async def extract_structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.structured_calls.append(
            {
                "model": model,
                "prompt": prompt,
                "schema_name": schema_name,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        return self.structured_payload

    async def generate_text(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
    ) -> str:
        self.text_calls.append({"model": model, "prompt": prompt})
        if self.error is not None:
            raise self.error
        return self.text


def make_item(  # noqa: PLR0913
    item_id: str,
    name: str = "Rice",
    weight_g: float = 100,
    calories: float = 130,
    protein_g: float = 2.5,
    carbs_g: float = 28,
    fat_g: float = 0.3,
    added_oil_calories: float = 0,
) -> Ingredient:
    return Ingredient(
        id=item_id,
        name=name,
        weight_g=weight_g,
        calories=calories,
        protein_g=protein_g,
        carbs_g=carbs_g,
        fat_g=fat_g,
        added_oil_calories=added_oil_calories,
    )


def make_log(day: date, lunch: list[Ingredient] | None = None) -> DailyLog:
    log = new_daily_log(day, now=FIXED_NOW)
    if lunch:
        log = append_items(log, "lunch", lunch)
    return log


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        data_file=tmp_path / "logs.json",
    )


@pytest.fixture
def llm_client() -> FakeLlmClient:
    return FakeLlmClient()


@pytest.fixture
def log_repository() -> InMemoryLogRepository:
    return InMemoryLogRepository()


@pytest.fixture
def diary_service(
    llm_client: FakeLlmClient, log_repository: InMemoryLogRepository
) -> DiaryService:
    return DiaryService(
        store=LogStore.load(log_repository),
        goals=DEFAULT_GOALS,
        extraction_service=FoodExtractionService(
            client=llm_client, model="extract-model", reasoning_effort=None, store=False
        ),
        recommendation_service=RecommendationService(
            client=llm_client, model="reason-model", reasoning_effort=None, store=False
        ),
        report_service=ReportService(
            client=llm_client, model="reason-model", reasoning_effort=None, store=False
        ),
    )


@pytest.fixture
def container(settings: Settings, diary_service: DiaryService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=diary_service.store,
        diary_service=diary_service,
        close_resources=close_resources,
    )
