"""Narrative daily and weekly reports."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from diet_tracker.domain.extraction import ReportKind
from diet_tracker.domain.logs import DailyLog
from diet_tracker.services.llm import LlmClient, response_language
from diet_tracker.services.progress import OILY_ITEM_THRESHOLD_KCAL, aggregate_totals

_logger = logging.getLogger(__name__)

WEEKLY_DAYS = 7
FOOD_SAMPLE_SIZE = 5
REPORT_FAILURE_PREFIX = "Report generation failed"

_WEEKLY_FOCUS: dict[str, str] = {
    "nutrition": (
        "Write a weekly nutrition balance report. Focus on: "
        "1. macro ratio trends (is carbohydrate above 50% of energy?); "
        "2. food diversity judged from the food names; "
        "3. hidden added-oil warnings; "
        "4. regularity of meals."
    ),
    "fat_loss": (
        "Write a weekly fat-loss progress report. Focus on: "
        "1. how the calorie deficit relates to weight and waist changes; "
        "2. the worst day, when calories blew up and which foods caused it; "
        "3. whether protein is enough to protect muscle during the deficit; "
        "4. strategy adjustments for next week."
    ),
}


def daily_summary(log: DailyLog) -> dict[str, object]:
    """Context for a daily report: totals and per-item oil breakdown."""
    totals = aggregate_totals(log)
    return {
        "date": log.day.isoformat(),
        "meals": [
            {
                "name": meal.name,
                "skipped": meal.is_skipped,
                "items": [
                    {
                        "name": item.name,
                        "weight_g": round(item.weight_g, 1),
                        "added_oil_calories": round(item.added_oil_calories, 1),
                        "oily": item.added_oil_calories > OILY_ITEM_THRESHOLD_KCAL,
                    }
                    for item in meal.items
                ],
            }
            for meal in log.meals
        ],
        "total_calories": round(totals.calories, 1),
        "total_protein_g": round(totals.protein_g, 1),
        "total_added_oil_calories": round(totals.added_oil_calories, 1),
    }


def weekly_summary(logs: Sequence[DailyLog]) -> list[dict[str, object]]:
    """Per-day totals, body metrics and a sample of food names."""
    recent = sorted(logs, key=lambda log: log.day)[-WEEKLY_DAYS:]
    summary: list[dict[str, object]] = []
    for log in recent:
        totals = aggregate_totals(log)
        foods = [item.name for meal in log.meals for item in meal.items]
        summary.append(
            {
                "date": log.day.isoformat(),
                "calories": round(totals.calories, 1),
                "protein_g": round(totals.protein_g, 1),
                "carbs_g": round(totals.carbs_g, 1),
                "fat_g": round(totals.fat_g, 1),
                "added_oil_calories": round(totals.added_oil_calories, 1),
                "weight_kg": log.metrics.weight_kg,
                "waist_cm": log.metrics.waist_cm,
                "foods": foods[:FOOD_SAMPLE_SIZE],
            }
        )
    return summary


@dataclass
class ReportService:
    """Service producing best-effort narrative reports."""

    client: LlmClient
    model: str
    reasoning_effort: str | None
    store: bool
    locale: str = "en"

    async def daily_report(self, log: DailyLog) -> str:
        """Return a short daily review, or a failure message."""
        prompt = (
            "Write a short, pointed nutrition review of today's intake: "
            f"{json.dumps(daily_summary(log), ensure_ascii=False)}. "
            "Include: 1. goal status (calories over? protein enough?); "
            "2. oil detective: which dishes sneaked in added oil, and whether "
            "today's added oil is too much; 3. advice for tomorrow. "
            f"Format as Markdown in {response_language(self.locale)}."
        )
        return await self._generate(prompt)

    async def weekly_report(
        self, logs: Sequence[DailyLog], kind: ReportKind
    ) -> str:
        """Return a weekly report of the given kind, or a failure message."""
        focus = _WEEKLY_FOCUS.get(kind)
        if focus is None:
            return f"{REPORT_FAILURE_PREFIX}: unknown report kind {kind!r}"
        prompt = (
            f"{focus}\n"
            f"Data JSON: {json.dumps(weekly_summary(logs), ensure_ascii=False)}.\n"
            "Use Markdown with a professional and caring tone, in "
            f"{response_language(self.locale)}."
        )
        return await self._generate(prompt)

    async def _generate(self, prompt: str) -> str:
        try:
            text = await self.client.generate_text(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
            )
        except Exception as exc:
            _logger.warning("Report generation failed: %s", exc)
            return f"{REPORT_FAILURE_PREFIX}: {exc}"
        if not text or not text.strip():
            return f"{REPORT_FAILURE_PREFIX}: empty response"
        return text
