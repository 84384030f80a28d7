"""Daily log factory, item rescaling and pure update functions.

Every function here takes a log (or ingredient) and returns a new value; none
of them touch the store. Callers persist the result with ``LogStore.upsert``.
"""

import math
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, date, datetime

from diet_tracker.domain.logs import (
    MEAL_SLOTS,
    BodyMetrics,
    DailyLog,
    Meal,
    meal_id_for,
    meal_label,
)
from diet_tracker.domain.nutrition import FIXED_BREAKFAST_ITEMS, Ingredient

DEFAULT_BREAKFAST_NOTES = {"en": "Boiled / raw", "zh": "水煮/生鲜"}

METRIC_FIELDS = ("weight_kg", "waist_cm", "thigh_cm", "calf_cm")


def new_daily_log(
    day: date, locale: str = "en", now: datetime | None = None
) -> DailyLog:
    """Build the default log for a date: four slots, fixed breakfast."""
    created_at = now or datetime.now(tz=UTC)
    meals = []
    for slot in MEAL_SLOTS:
        is_breakfast = slot == "breakfast"
        meals.append(
            Meal(
                id=meal_id_for(day, slot),
                slot=slot,
                name=meal_label(slot, locale),
                created_at=created_at,
                items=FIXED_BREAKFAST_ITEMS if is_breakfast else (),
                cooking_note=(
                    DEFAULT_BREAKFAST_NOTES.get(locale, DEFAULT_BREAKFAST_NOTES["en"])
                    if is_breakfast
                    else None
                ),
            )
        )
    return DailyLog(day=day, meals=tuple(meals), metrics=BodyMetrics())


def rescale_ingredient(item: Ingredient, new_weight_g: float) -> Ingredient:
    """Return the item at a new weight with macros scaled proportionally.

    A zero-weight item keeps its macros; only the weight changes.
    """
    if item.weight_g == 0:
        return replace(item, weight_g=new_weight_g)
    ratio = new_weight_g / item.weight_g
    return replace(
        item,
        weight_g=new_weight_g,
        calories=item.calories * ratio,
        protein_g=item.protein_g * ratio,
        carbs_g=item.carbs_g * ratio,
        fat_g=item.fat_g * ratio,
        added_oil_calories=item.added_oil_calories * ratio,
    )


def validate_weight(value: object) -> float:
    """Coerce a requested weight, rejecting negative or non-numeric values."""
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise ValueError(f"Invalid weight: {value!r}")
    try:
        weight = float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid weight: {value!r}") from exc
    if not math.isfinite(weight) or weight < 0:
        raise ValueError(f"Invalid weight: {value!r}")
    return weight


def update_meal(
    log: DailyLog, slot: str, update: Callable[[Meal], Meal]
) -> DailyLog:
    """Return a log with one meal replaced by ``update(meal)``."""
    if log.meal(slot) is None:
        raise KeyError(slot)
    meals = tuple(update(meal) if meal.slot == slot else meal for meal in log.meals)
    return replace(log, meals=meals)


def append_items(
    log: DailyLog,
    slot: str,
    items: Iterable[Ingredient],
    cooking_note: str | None = None,
) -> DailyLog:
    """Append items to a meal and accumulate its cooking note."""
    new_items = tuple(items)

    def _append(meal: Meal) -> Meal:
        note = meal.cooking_note
        if cooking_note:
            note = f"{note}; {cooking_note}" if note else cooking_note
        return replace(
            meal,
            items=meal.items + new_items,
            cooking_note=note,
            is_skipped=False,
        )

    return update_meal(log, slot, _append)


def _update_item(
    log: DailyLog,
    slot: str,
    item_id: str,
    update: Callable[[Ingredient], Ingredient],
) -> DailyLog:
    def _apply(meal: Meal) -> Meal:
        if not any(item.id == item_id for item in meal.items):
            raise KeyError(item_id)
        return replace(
            meal,
            items=tuple(
                update(item) if item.id == item_id else item for item in meal.items
            ),
        )

    return update_meal(log, slot, _apply)


def set_item_weight(
    log: DailyLog, slot: str, item_id: str, weight_g: float
) -> DailyLog:
    """Rescale one item of a meal to a new weight."""
    return _update_item(
        log, slot, item_id, lambda item: rescale_ingredient(item, weight_g)
    )


def rename_item(log: DailyLog, slot: str, item_id: str, name: str) -> DailyLog:
    """Rename one item of a meal."""
    return _update_item(log, slot, item_id, lambda item: replace(item, name=name))


def delete_item(log: DailyLog, slot: str, item_id: str) -> DailyLog:
    """Remove one item from a meal; unknown ids leave the meal unchanged."""
    return update_meal(
        log,
        slot,
        lambda meal: replace(
            meal, items=tuple(item for item in meal.items if item.id != item_id)
        ),
    )


def set_skipped(log: DailyLog, slot: str, skipped: bool) -> DailyLog:
    """Mark a meal skipped (clearing its items) or not skipped."""
    if skipped:
        return update_meal(
            log, slot, lambda meal: replace(meal, items=(), is_skipped=True)
        )
    return update_meal(log, slot, lambda meal: replace(meal, is_skipped=False))


def update_metrics(log: DailyLog, changes: dict[str, object]) -> DailyLog:
    """Apply body metric changes; unparsable values clear the measurement."""
    unknown = set(changes) - set(METRIC_FIELDS)
    if unknown:
        raise KeyError(", ".join(sorted(unknown)))
    values = {key: parse_metric(value) for key, value in changes.items()}
    return replace(log, metrics=replace(log.metrics, **values))


def set_notes(log: DailyLog, notes: str | None) -> DailyLog:
    """Replace the free-text daily notes."""
    cleaned = notes.strip() if notes else ""
    return replace(log, notes=cleaned or None)


def parse_metric(value: object) -> float | None:
    """Return a finite non-negative number, or None when the value has none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number
