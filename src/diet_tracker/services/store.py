"""Log store keyed by date, with a pluggable persistence repository."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol

from diet_tracker.domain.logs import (
    MEAL_SLOTS,
    BodyMetrics,
    DailyLog,
    Meal,
    meal_id_for,
    meal_label,
)
from diet_tracker.domain.nutrition import Ingredient
from diet_tracker.services.logs import new_daily_log, parse_metric

_logger = logging.getLogger(__name__)


class LogRepository(Protocol):
    """Persistence interface for serialized daily logs."""

    def load_all(self) -> dict[str, dict[str, object]]:
        """Return every stored log payload keyed by ``YYYY-MM-DD``."""

    def save_log(self, day: str, payload: dict[str, object]) -> None:
        """Store one log payload under its date key."""


@dataclass
class LogStore:
    """In-memory view of all daily logs, written through to a repository."""

    repository: LogRepository
    locale: str = "en"
    _logs: dict[date, DailyLog] = field(default_factory=dict)

    @classmethod
    def load(cls, repository: LogRepository, locale: str = "en") -> "LogStore":
        """Load every stored log; unreadable storage yields an empty store."""
        try:
            raw = repository.load_all()
        except Exception:
            _logger.exception("Failed to load daily logs, starting empty")
            raw = {}
        logs: dict[date, DailyLog] = {}
        for key, payload in raw.items():
            try:
                log = parse_log(payload)
            except (KeyError, TypeError, ValueError) as exc:
                _logger.warning("Skipping malformed log %s: %s", key, exc)
                continue
            logs[log.day] = log
        return cls(repository=repository, locale=locale, _logs=logs)

    def get(self, day: date) -> DailyLog:
        """Return the stored log for a date or a fresh default one."""
        existing = self._logs.get(day)
        if existing is not None:
            return existing
        return new_daily_log(day, locale=self.locale)

    def contains(self, day: date) -> bool:
        """Return True when a log has been stored for the date."""
        return day in self._logs

    def upsert(self, log: DailyLog) -> DailyLog:
        """Replace the log for its date and persist it."""
        self._logs = {**self._logs, log.day: log}
        try:
            self.repository.save_log(log.day.isoformat(), dump_log(log))
        except Exception:
            _logger.exception("Failed to persist daily log %s", log.day)
        return log

    def recent(self, limit: int = 7) -> list[DailyLog]:
        """Return the most recent stored logs, oldest first."""
        if limit <= 0:
            return []
        days = sorted(self._logs)[-limit:]
        return [self._logs[day] for day in days]


def dump_log(log: DailyLog) -> dict[str, object]:
    """Serialize a daily log into plain JSON-compatible data."""
    return {
        "date": log.day.isoformat(),
        "meals": [_dump_meal(meal) for meal in log.meals],
        "metrics": {
            "weight_kg": log.metrics.weight_kg,
            "waist_cm": log.metrics.waist_cm,
            "thigh_cm": log.metrics.thigh_cm,
            "calf_cm": log.metrics.calf_cm,
        },
        "notes": log.notes,
    }


def dump_ingredient(item: Ingredient) -> dict[str, object]:
    """Serialize one ingredient."""
    return {
        "id": item.id,
        "name": item.name,
        "weight_g": item.weight_g,
        "calories": item.calories,
        "protein_g": item.protein_g,
        "carbs_g": item.carbs_g,
        "fat_g": item.fat_g,
        "added_oil_calories": item.added_oil_calories,
        "notes": item.notes,
    }


def _dump_meal(meal: Meal) -> dict[str, object]:
    return {
        "id": meal.id,
        "slot": meal.slot,
        "name": meal.name,
        "created_at": meal.created_at.isoformat(),
        "items": [dump_ingredient(item) for item in meal.items],
        "cooking_note": meal.cooking_note,
        "is_skipped": meal.is_skipped,
    }


def parse_log(payload: dict[str, object]) -> DailyLog:
    """Build a daily log from its serialized form."""
    if not isinstance(payload, dict):
        raise TypeError("log payload must be an object")
    day = date.fromisoformat(str(payload["date"]))
    meals_raw = payload.get("meals") or []
    if not isinstance(meals_raw, list):
        raise TypeError("meals must be a list")
    metrics_raw = payload.get("metrics") or {}
    if not isinstance(metrics_raw, dict):
        raise TypeError("metrics must be an object")
    by_slot = {meal.slot: meal for meal in map(_parse_meal, meals_raw)}
    # Slots missing from stored data come back empty, never with defaults.
    meals = tuple(
        by_slot.get(slot)
        or Meal(
            id=meal_id_for(day, slot),
            slot=slot,
            name=meal_label(slot),
            created_at=datetime.now(tz=UTC),
        )
        for slot in MEAL_SLOTS
    )
    notes = payload.get("notes")
    return DailyLog(
        day=day,
        meals=meals,
        metrics=BodyMetrics(
            weight_kg=parse_metric(metrics_raw.get("weight_kg")),
            waist_cm=parse_metric(metrics_raw.get("waist_cm")),
            thigh_cm=parse_metric(metrics_raw.get("thigh_cm")),
            calf_cm=parse_metric(metrics_raw.get("calf_cm")),
        ),
        notes=str(notes) if notes else None,
    )


def parse_ingredient(payload: object) -> Ingredient:
    """Build an ingredient from its serialized form."""
    if not isinstance(payload, dict):
        raise TypeError("ingredient payload must be an object")
    notes = payload.get("notes")
    return Ingredient(
        id=str(payload["id"]),
        name=str(payload.get("name") or ""),
        weight_g=_to_float(payload.get("weight_g")),
        calories=_to_float(payload.get("calories")),
        protein_g=_to_float(payload.get("protein_g")),
        carbs_g=_to_float(payload.get("carbs_g")),
        fat_g=_to_float(payload.get("fat_g")),
        added_oil_calories=_to_float(payload.get("added_oil_calories")),
        notes=str(notes) if notes is not None else None,
    )


def _parse_meal(payload: object) -> Meal:
    if not isinstance(payload, dict):
        raise TypeError("meal payload must be an object")
    items_raw = payload.get("items") or []
    if not isinstance(items_raw, list):
        raise TypeError("meal items must be a list")
    created_raw = payload.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str)
        else datetime.now(tz=UTC)
    )
    note = payload.get("cooking_note")
    return Meal(
        id=str(payload["id"]),
        slot=str(payload["slot"]),
        name=str(payload.get("name") or payload["slot"]),
        created_at=created_at,
        items=tuple(parse_ingredient(item) for item in items_raw),
        cooking_note=str(note) if note else None,
        is_skipped=bool(payload.get("is_skipped", False)),
    )


def _to_float(value: object) -> float:
    number = parse_metric(value)
    return 0.0 if number is None else number
