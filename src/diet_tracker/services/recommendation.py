"""Meal option recommendation against the remaining daily budget."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from diet_tracker.domain.extraction import MealRecommendation
from diet_tracker.domain.logs import DailyLog
from diet_tracker.domain.nutrition import MacroGoals, MacroTotals
from diet_tracker.services.llm import LlmClient, response_language
from diet_tracker.services.progress import aggregate_totals

_logger = logging.getLogger(__name__)

_OPTION_SEPARATORS = re.compile(r"[,，\n]")

RECOMMENDATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "recommendation": {"type": "string"},
        "suggested_portions": {"type": "string"},
        "reasoning": {"type": "string"},
    },
    "required": ["recommendation", "suggested_portions", "reasoning"],
    "additionalProperties": False,
}


class RecommendationError(RuntimeError):
    """Raised when no recommendation could be produced."""


@dataclass(frozen=True)
class RemainingBudget:
    """Goal minus what has been eaten so far; may be negative."""

    consumed_calories: float
    consumed_protein_g: float
    remaining_calories: float
    remaining_protein_g: float


def split_options(raw: str | Iterable[str]) -> list[str]:
    """Split user input into clean option names, dropping blanks."""
    chunks = [raw] if isinstance(raw, str) else list(raw)
    options: list[str] = []
    for chunk in chunks:
        for part in _OPTION_SEPARATORS.split(chunk):
            value = part.strip()
            if value:
                options.append(value)
    return options


def remaining_budget(totals: MacroTotals, goals: MacroGoals) -> RemainingBudget:
    """Compute the calorie and protein budget left for the day."""
    return RemainingBudget(
        consumed_calories=totals.calories,
        consumed_protein_g=totals.protein_g,
        remaining_calories=goals.calories - totals.calories,
        remaining_protein_g=goals.protein_g - totals.protein_g,
    )


@dataclass
class RecommendationService:
    """Service that asks the LLM to pick one of several meal options."""

    client: LlmClient
    model: str
    reasoning_effort: str | None
    store: bool
    locale: str = "en"

    async def recommend(
        self,
        options: str | Iterable[str],
        log: DailyLog,
        goals: MacroGoals,
        meal_label: str,
    ) -> MealRecommendation | None:
        """Return the best option for the meal, or None without options."""
        cleaned = split_options(options)
        if not cleaned:
            return None
        budget = remaining_budget(aggregate_totals(log), goals)
        prompt = build_recommendation_prompt(
            cleaned, budget, goals, meal_label, self.locale
        )
        try:
            raw = await self.client.extract_structured(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
                schema=RECOMMENDATION_SCHEMA,
                schema_name="meal_recommendation",
            )
            return MealRecommendation.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Recommendation returned invalid data: %s", exc)
            raise RecommendationError(
                "Recommendation returned an invalid result"
            ) from exc
        except Exception as exc:
            _logger.warning("Recommendation failed: %s", exc)
            raise RecommendationError(str(exc) or "Recommendation failed") from exc


def build_recommendation_prompt(
    options: list[str],
    budget: RemainingBudget,
    goals: MacroGoals,
    meal_label: str,
    locale: str = "en",
) -> str:
    """Prompt weighing options against the remaining budget."""
    return (
        "User context:\n"
        f"- Daily goal: {round(goals.calories)} kcal, "
        f"{round(goals.protein_g)} g protein.\n"
        f"- Eaten so far: {round(budget.consumed_calories)} kcal, "
        f"{round(budget.consumed_protein_g)} g protein.\n"
        f"- Remaining budget: {round(budget.remaining_calories)} kcal, "
        f"{round(budget.remaining_protein_g)} g protein.\n"
        f"- Meal to plan: {meal_label}.\n"
        f"Options: {', '.join(options)}.\n"
        "Pick the single option that best fits the remaining budget (keep "
        "carbohydrate above half of total energy), give exact cooked-weight "
        "portions per ingredient that fill the remaining calories, and explain "
        "the choice against the remaining budget. If the budget is already "
        "exceeded, suggest a smaller portion. "
        f"Answer in {response_language(locale)}."
    )
