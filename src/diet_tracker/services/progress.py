"""Macro aggregation and goal evaluation for daily logs."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from diet_tracker.domain.logs import DailyLog, Meal
from diet_tracker.domain.nutrition import (
    CARB_KCAL_PER_G,
    FAT_KCAL_PER_G,
    Ingredient,
    MacroGoals,
    MacroTotals,
)

CARB_RATIO_TARGET = 50.0
OILY_ITEM_THRESHOLD_KCAL = 5.0

_ZERO = MacroTotals(
    calories=0.0, protein_g=0.0, carbs_g=0.0, fat_g=0.0, added_oil_calories=0.0
)


@dataclass(frozen=True)
class GoalProgress:
    """Progress of aggregated totals against macro goals."""

    target_calories: float
    target_protein_g: float
    target_carbs_g: int
    target_fat_g: int
    calories_pct: float
    protein_pct: float
    carbs_pct: float
    fat_pct: float
    carb_energy_ratio: float
    carb_ratio_on_target: bool
    calories_over_budget: bool


@dataclass(frozen=True)
class DayTotals:
    """Totals and body weight for one logged day."""

    day: date
    totals: MacroTotals
    weight_kg: float | None


@dataclass(frozen=True)
class PeriodSummary:
    """Per-day totals and averages over a run of logged days."""

    daily: list[DayTotals]
    avg_calories: float
    avg_protein_g: float
    avg_carbs_g: float
    avg_fat_g: float
    avg_added_oil_calories: float


def sum_items(items: Iterable[Ingredient]) -> MacroTotals:
    """Elementwise sum of ingredient macros."""
    total = _ZERO
    for item in items:
        total = MacroTotals(
            calories=total.calories + item.calories,
            protein_g=total.protein_g + item.protein_g,
            carbs_g=total.carbs_g + item.carbs_g,
            fat_g=total.fat_g + item.fat_g,
            added_oil_calories=total.added_oil_calories + item.added_oil_calories,
        )
    return total


def meal_totals(meal: Meal) -> MacroTotals:
    """Return the summed macros of one meal."""
    return sum_items(meal.items)


def aggregate_totals(log: DailyLog) -> MacroTotals:
    """Sum every item of every meal in a log.

    Skipped meals are not special-cased; whatever items they still hold count.
    """
    return sum_items(item for meal in log.meals for item in meal.items)


def target_carbs_g(goals: MacroGoals) -> int:
    """Carbohydrate target in grams derived from the energy share."""
    return round(goals.calories * goals.carbs_share / CARB_KCAL_PER_G)


def target_fat_g(goals: MacroGoals) -> int:
    """Fat target in grams derived from the energy share."""
    return round(goals.calories * goals.fat_share / FAT_KCAL_PER_G)


def clamped_percent(actual: float, target: float) -> float:
    """Return ``100 * actual / target`` clamped to [0, 100]."""
    if target <= 0:
        return 0.0
    return min(100.0, max(0.0, actual / target * 100.0))


def carb_energy_ratio(totals: MacroTotals) -> float:
    """Percentage of calories coming from carbohydrate; 0 with no calories."""
    if totals.calories <= 0:
        return 0.0
    return totals.carbs_g * CARB_KCAL_PER_G / totals.calories * 100.0


def evaluate_goals(totals: MacroTotals, goals: MacroGoals) -> GoalProgress:
    """Compare aggregated totals against macro goals."""
    carbs_target = target_carbs_g(goals)
    fat_target = target_fat_g(goals)
    ratio = carb_energy_ratio(totals)
    return GoalProgress(
        target_calories=goals.calories,
        target_protein_g=goals.protein_g,
        target_carbs_g=carbs_target,
        target_fat_g=fat_target,
        calories_pct=clamped_percent(totals.calories, goals.calories),
        protein_pct=clamped_percent(totals.protein_g, goals.protein_g),
        carbs_pct=clamped_percent(totals.carbs_g, carbs_target),
        fat_pct=clamped_percent(totals.fat_g, fat_target),
        carb_energy_ratio=ratio,
        carb_ratio_on_target=ratio >= CARB_RATIO_TARGET,
        calories_over_budget=totals.calories > goals.calories,
    )


def oily_items(log: DailyLog) -> list[Ingredient]:
    """Items carrying noticeable added cooking oil."""
    return [
        item
        for meal in log.meals
        for item in meal.items
        if item.added_oil_calories > OILY_ITEM_THRESHOLD_KCAL
    ]


def summarize_period(logs: Sequence[DailyLog]) -> PeriodSummary:
    """Return per-day totals and averages for the given logs."""
    daily = [
        DayTotals(
            day=log.day,
            totals=aggregate_totals(log),
            weight_kg=log.metrics.weight_kg,
        )
        for log in sorted(logs, key=lambda entry: entry.day)
    ]
    total_days = max(len(daily), 1)
    totals = sum_totals(entry.totals for entry in daily)
    return PeriodSummary(
        daily=daily,
        avg_calories=totals.calories / total_days,
        avg_protein_g=totals.protein_g / total_days,
        avg_carbs_g=totals.carbs_g / total_days,
        avg_fat_g=totals.fat_g / total_days,
        avg_added_oil_calories=totals.added_oil_calories / total_days,
    )


def sum_totals(values: Iterable[MacroTotals]) -> MacroTotals:
    """Elementwise sum of several totals."""
    total = _ZERO
    for value in values:
        total = MacroTotals(
            calories=total.calories + value.calories,
            protein_g=total.protein_g + value.protein_g,
            carbs_g=total.carbs_g + value.carbs_g,
            fat_g=total.fat_g + value.fat_g,
            added_oil_calories=total.added_oil_calories + value.added_oil_calories,
        )
    return total


def weight_trend(logs: Sequence[DailyLog]) -> list[tuple[date, float | None]]:
    """Body weight per logged day, oldest first."""
    return [
        (log.day, log.metrics.weight_kg)
        for log in sorted(logs, key=lambda entry: entry.day)
    ]
