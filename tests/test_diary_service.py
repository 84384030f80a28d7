"""Tests for the diary service."""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import pytest

from diet_tracker.services.diary import DiaryService
from diet_tracker.services.extraction import ExtractionError
from diet_tracker.services.guard import RequestCancelledError, RequestInFlightError
from tests.conftest import FakeLlmClient, InMemoryLogRepository

DAY = date(2024, 5, 1)


@dataclass
class BlockingLlmClient(FakeLlmClient):
    """Fake client whose structured calls wait until released."""

    release: asyncio.Event = field(default_factory=asyncio.Event)
    started: asyncio.Event = field(default_factory=asyncio.Event)

    async def extract_structured(self, **kwargs) -> dict[str, object]:  # type: ignore[no-untyped-def, override]
        self.started.set()
        await self.release.wait()
        return await super().extract_structured(**kwargs)


def _with_client(diary: DiaryService, client: FakeLlmClient) -> DiaryService:
    diary.extraction_service.client = client
    diary.recommendation_service.client = client
    return diary


def test_add_food_appends_items_and_note(
    diary_service: DiaryService, log_repository: InMemoryLogRepository
) -> None:
    log = asyncio.run(diary_service.add_food(DAY, "lunch", "broccoli stir fry"))

    lunch = log.meal("lunch")
    assert lunch is not None
    assert lunch.items[0].name == "Stir-fried broccoli"
    assert lunch.items[0].id
    assert lunch.cooking_note == "Sauteed with about 5 g of oil"
    assert log_repository.saves == ["2024-05-01"]


def test_add_food_twice_appends_again(diary_service: DiaryService) -> None:
    asyncio.run(diary_service.add_food(DAY, "lunch", "broccoli"))
    log = asyncio.run(diary_service.add_food(DAY, "lunch", "broccoli"))

    lunch = log.meal("lunch")
    assert len(lunch.items) == 2
    assert lunch.items[0].id != lunch.items[1].id
    assert lunch.cooking_note.count(";") == 1


def test_add_food_with_empty_input_is_noop(
    diary_service: DiaryService,
    llm_client: FakeLlmClient,
    log_repository: InMemoryLogRepository,
) -> None:
    log = asyncio.run(diary_service.add_food(DAY, "lunch", "  "))

    assert log.meal("lunch").items == ()
    assert llm_client.structured_calls == []
    assert log_repository.saves == []


def test_extraction_failure_leaves_meal_untouched(
    diary_service: DiaryService, llm_client: FakeLlmClient
) -> None:
    before = asyncio.run(diary_service.add_food(DAY, "lunch", "broccoli"))
    llm_client.error = OSError("network unreachable")

    with pytest.raises(ExtractionError, match="network unreachable"):
        asyncio.run(diary_service.add_food(DAY, "lunch", "more broccoli"))

    assert diary_service.get_log(DAY) == before
    assert not diary_service.guard.is_busy(("extract", DAY, "lunch"))


def test_add_food_unknown_slot(diary_service: DiaryService) -> None:
    with pytest.raises(KeyError):
        asyncio.run(diary_service.add_food(DAY, "brunch", "eggs"))


def test_concurrent_add_for_same_slot_is_refused(
    diary_service: DiaryService,
) -> None:
    async def scenario() -> None:
        client = BlockingLlmClient()
        _with_client(diary_service, client)
        first = asyncio.create_task(diary_service.add_food(DAY, "lunch", "rice"))
        await client.started.wait()
        with pytest.raises(RequestInFlightError):
            await diary_service.add_food(DAY, "lunch", "rice")
        client.release.set()
        await first

    asyncio.run(scenario())

    assert len(diary_service.get_log(DAY).meal("lunch").items) == 1


def test_cancelled_extraction_is_dropped(diary_service: DiaryService) -> None:
    async def scenario() -> None:
        client = BlockingLlmClient()
        _with_client(diary_service, client)
        task = asyncio.create_task(diary_service.add_food(DAY, "dinner", "rice"))
        await client.started.wait()
        diary_service.cancel(DAY, "dinner")
        client.release.set()
        await task

    asyncio.run(scenario())

    assert diary_service.get_log(DAY).meal("dinner").items == ()


def test_cancelled_recommendation_raises(diary_service: DiaryService) -> None:
    async def scenario() -> None:
        client = BlockingLlmClient(
            structured_payload={
                "recommendation": "Salad",
                "suggested_portions": "greens 150 g",
                "reasoning": "Light dinner.",
            }
        )
        _with_client(diary_service, client)
        task = asyncio.create_task(
            diary_service.recommend(DAY, "dinner", "salad, pizza")
        )
        await client.started.wait()
        diary_service.cancel(DAY, "dinner")
        client.release.set()
        with pytest.raises(RequestCancelledError):
            await task

    asyncio.run(scenario())

    assert not diary_service.guard.is_busy(("recommend", DAY, "dinner"))


def test_update_item_rescales_and_renames(diary_service: DiaryService) -> None:
    log = diary_service.update_item(
        DAY, "breakfast", "fixed-egg", name="Two eggs", weight_g=100
    )

    egg = log.meal("breakfast").items[0]
    assert egg.name == "Two eggs"
    assert egg.calories == pytest.approx(140)


def test_update_item_rejects_negative_weight(diary_service: DiaryService) -> None:
    with pytest.raises(ValueError):
        diary_service.update_item(DAY, "breakfast", "fixed-egg", weight_g=-10)


def test_progress_for_default_day(diary_service: DiaryService) -> None:
    totals, progress = diary_service.progress(DAY)

    assert totals.calories == pytest.approx(220)
    assert progress.target_carbs_g == 186
    assert not progress.calories_over_budget


def test_recommend_uses_slot_label(
    diary_service: DiaryService, llm_client: FakeLlmClient
) -> None:
    llm_client.structured_payload = {
        "recommendation": "Salad",
        "suggested_portions": "greens 150 g",
        "reasoning": "Light dinner.",
    }

    result = asyncio.run(diary_service.recommend(DAY, "dinner", "salad, pizza"))

    assert result is not None
    assert result.recommendation == "Salad"
    assert "Meal to plan: Dinner." in llm_client.structured_calls[0]["prompt"]


def test_weekly_report_uses_recent_logs(
    diary_service: DiaryService, llm_client: FakeLlmClient
) -> None:
    diary_service.set_notes(DAY, "tired")

    report = asyncio.run(diary_service.weekly_report("nutrition"))

    assert report == llm_client.text
    assert "2024-05-01" in llm_client.text_calls[0]["prompt"]
