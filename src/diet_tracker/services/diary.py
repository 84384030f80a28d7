"""Food diary service tying the store, reducers and AI contracts together."""

import logging
from dataclasses import dataclass, field
from datetime import date

from diet_tracker.domain.extraction import MealRecommendation, ReportKind
from diet_tracker.domain.logs import MEAL_SLOTS, DailyLog, meal_label
from diet_tracker.domain.nutrition import MacroGoals, MacroTotals
from diet_tracker.services import logs as reducers
from diet_tracker.services.extraction import FoodExtractionService, to_ingredients
from diet_tracker.services.guard import RequestCancelledError, RequestGuard
from diet_tracker.services.progress import (
    GoalProgress,
    PeriodSummary,
    aggregate_totals,
    evaluate_goals,
    summarize_period,
)
from diet_tracker.services.recommendation import RecommendationService
from diet_tracker.services.reports import WEEKLY_DAYS, ReportService
from diet_tracker.services.store import LogStore

_logger = logging.getLogger(__name__)


@dataclass
class DiaryService:
    """Application service for reading and changing daily logs."""

    store: LogStore
    goals: MacroGoals
    extraction_service: FoodExtractionService
    recommendation_service: RecommendationService
    report_service: ReportService
    guard: RequestGuard = field(default_factory=RequestGuard)

    def get_log(self, day: date) -> DailyLog:
        """Return the log for a date, default-populated when new."""
        return self.store.get(day)

    def recent_logs(self, limit: int = WEEKLY_DAYS) -> list[DailyLog]:
        """Return the most recent stored logs, oldest first."""
        return self.store.recent(limit)

    def progress(self, day: date) -> tuple[MacroTotals, GoalProgress]:
        """Return day totals and their evaluation against the goals."""
        totals = aggregate_totals(self.store.get(day))
        return totals, evaluate_goals(totals, self.goals)

    def week_summary(self) -> PeriodSummary:
        """Return totals and averages for the recent logged days."""
        return summarize_period(self.store.recent(WEEKLY_DAYS))

    async def add_food(
        self,
        day: date,
        slot: str,
        description: str,
        image_bytes: bytes | None = None,
    ) -> DailyLog:
        """Parse a food description and append the result to a meal.

        Empty input is a no-op. Extraction failures propagate and leave the
        meal untouched; a response for an abandoned request is discarded.
        """
        _require_slot(slot)
        if not description.strip() and not image_bytes:
            return self.store.get(day)
        token = self.guard.begin(("extract", day, slot))
        try:
            extract = await self.extraction_service.parse(description, image_bytes)
            if not self.guard.is_current(token):
                _logger.info("Dropping stale extraction for %s %s", day, slot)
                return self.store.get(day)
            log = reducers.append_items(
                self.store.get(day),
                slot,
                to_ingredients(extract),
                cooking_note=extract.cooking_analysis,
            )
            return self.store.upsert(log)
        finally:
            self.guard.finish(token)

    async def recommend(
        self, day: date, slot: str, options: str | list[str]
    ) -> MealRecommendation | None:
        """Pick among meal options for a slot given the day's budget."""
        _require_slot(slot)
        token = self.guard.begin(("recommend", day, slot))
        try:
            result = await self.recommendation_service.recommend(
                options,
                self.store.get(day),
                self.goals,
                meal_label(slot, self.store.locale),
            )
            if not self.guard.is_current(token):
                _logger.info("Dropping stale recommendation for %s %s", day, slot)
                raise RequestCancelledError(
                    f"Recommendation for {slot} on {day.isoformat()} was cancelled"
                )
            return result
        finally:
            self.guard.finish(token)

    def cancel(self, day: date, slot: str) -> None:
        """Abandon outstanding AI calls for a meal slot."""
        self.guard.invalidate_slot(day, slot)

    def update_item(
        self,
        day: date,
        slot: str,
        item_id: str,
        *,
        name: str | None = None,
        weight_g: object = None,
    ) -> DailyLog:
        """Rename and/or rescale one item."""
        log = self.store.get(day)
        if weight_g is not None:
            log = reducers.set_item_weight(
                log, slot, item_id, reducers.validate_weight(weight_g)
            )
        if name is not None:
            log = reducers.rename_item(log, slot, item_id, name)
        return self.store.upsert(log)

    def delete_item(self, day: date, slot: str, item_id: str) -> DailyLog:
        """Remove one item from a meal."""
        return self.store.upsert(
            reducers.delete_item(self.store.get(day), slot, item_id)
        )

    def set_skipped(self, day: date, slot: str, skipped: bool) -> DailyLog:
        """Skip a meal (clearing its items) or restore it."""
        return self.store.upsert(
            reducers.set_skipped(self.store.get(day), slot, skipped)
        )

    def update_metrics(self, day: date, changes: dict[str, object]) -> DailyLog:
        """Update body measurements for a date."""
        return self.store.upsert(
            reducers.update_metrics(self.store.get(day), changes)
        )

    def set_notes(self, day: date, notes: str | None) -> DailyLog:
        """Replace the daily notes."""
        return self.store.upsert(reducers.set_notes(self.store.get(day), notes))

    async def daily_report(self, day: date) -> str:
        """Return the narrative report for one date."""
        return await self.report_service.daily_report(self.store.get(day))

    async def weekly_report(self, kind: ReportKind) -> str:
        """Return the narrative report over the recent logged days."""
        return await self.report_service.weekly_report(
            self.store.recent(WEEKLY_DAYS), kind
        )


def _require_slot(slot: str) -> None:
    if slot not in MEAL_SLOTS:
        raise KeyError(slot)
