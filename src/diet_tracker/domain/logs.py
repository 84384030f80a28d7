"""Domain models for daily food logs."""

from dataclasses import dataclass
from datetime import date, datetime

from diet_tracker.domain.nutrition import Ingredient

MEAL_SLOTS: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")

MEAL_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "breakfast": "Breakfast",
        "lunch": "Lunch",
        "dinner": "Dinner",
        "snack": "Snack",
    },
    "zh": {
        "breakfast": "早餐",
        "lunch": "午餐",
        "dinner": "晚餐",
        "snack": "加餐",
    },
}


def meal_label(slot: str, locale: str = "en") -> str:
    """Return the display label for a meal slot."""
    labels = MEAL_LABELS.get(locale) or MEAL_LABELS["en"]
    return labels.get(slot, slot.title())


def meal_id_for(day: date, slot: str) -> str:
    """Deterministic meal id for a (date, slot) pair."""
    return f"{slot}-{day.isoformat()}"


@dataclass(frozen=True)
class Meal:
    """A meal slot within a daily log."""

    id: str
    slot: str
    name: str
    created_at: datetime
    items: tuple[Ingredient, ...] = ()
    cooking_note: str | None = None
    is_skipped: bool = False


@dataclass(frozen=True)
class BodyMetrics:
    """Optional body measurements for a day; None means not measured."""

    weight_kg: float | None = None
    waist_cm: float | None = None
    thigh_cm: float | None = None
    calf_cm: float | None = None


@dataclass(frozen=True)
class DailyLog:
    """All meals, metrics and notes recorded for one calendar date."""

    day: date
    meals: tuple[Meal, ...]
    metrics: BodyMetrics
    notes: str | None = None

    def meal(self, slot: str) -> Meal | None:
        """Return the meal for a slot, if present."""
        for meal in self.meals:
            if meal.slot == slot:
                return meal
        return None
