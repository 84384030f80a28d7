"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import asdict
from datetime import date

from fastapi import FastAPI, HTTPException, Request, status

from diet_tracker.api.schemas import (
    FoodEntryRequest,
    ItemUpdateRequest,
    MetricsUpdateRequest,
    NotesRequest,
    RecommendationRequest,
    SkipRequest,
    WeeklyReportRequest,
)
from diet_tracker.app_logging import configure_logging
from diet_tracker.containers import AppContainer
from diet_tracker.domain.logs import DailyLog
from diet_tracker.domain.nutrition import MacroGoals
from diet_tracker.services.diary import DiaryService
from diet_tracker.services.extraction import ExtractionError
from diet_tracker.services.guard import RequestCancelledError, RequestInFlightError
from diet_tracker.services.progress import (
    aggregate_totals,
    evaluate_goals,
    meal_totals,
    oily_items,
    target_carbs_g,
    target_fat_g,
    weight_trend,
)
from diet_tracker.services.recommendation import RecommendationError
from diet_tracker.services.store import dump_log


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/goals")
    async def goals(request: Request) -> dict[str, object]:
        """Return the macro goals with derived gram targets."""
        return _format_goals(_diary(request).goals)

    @app.get("/logs")
    async def recent_logs(request: Request, limit: int = 7) -> dict[str, object]:
        """Return the most recent stored logs."""
        diary = _diary(request)
        return {
            "logs": [
                _format_log(log, diary.goals) for log in diary.recent_logs(limit)
            ]
        }

    @app.get("/logs/{day}")
    async def get_log(day: date, request: Request) -> dict[str, object]:
        """Return one day's log with totals and goal progress."""
        _require_not_future(day)
        diary = _diary(request)
        return _format_log(diary.get_log(day), diary.goals)

    @app.post("/logs/{day}/meals/{slot}/entries")
    async def add_food(
        day: date, slot: str, payload: FoodEntryRequest, request: Request
    ) -> dict[str, object]:
        """Parse a food description and append it to a meal."""
        _require_not_future(day)
        diary = _diary(request)
        image_bytes = _decode_image(payload.image_base64)
        with _domain_errors():
            try:
                log = await diary.add_food(day, slot, payload.text, image_bytes)
            except RequestInFlightError as exc:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail=str(exc)
                ) from exc
            except ExtractionError as exc:
                logger.warning("Food entry failed for %s %s: %s", day, slot, exc)
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"Could not recognise the food: {exc}",
                ) from exc
        return _format_log(log, diary.goals)

    @app.post("/logs/{day}/meals/{slot}/cancel")
    async def cancel(day: date, slot: str, request: Request) -> dict[str, str]:
        """Abandon AI calls still running for a meal slot."""
        _diary(request).cancel(day, slot)
        return {"status": "ok"}

    @app.patch("/logs/{day}/meals/{slot}/items/{item_id}")
    async def update_item(
        day: date,
        slot: str,
        item_id: str,
        payload: ItemUpdateRequest,
        request: Request,
    ) -> dict[str, object]:
        """Rename and/or rescale an item."""
        _require_not_future(day)
        diary = _diary(request)
        with _domain_errors():
            log = diary.update_item(
                day, slot, item_id, name=payload.name, weight_g=payload.weight_g
            )
        return _format_log(log, diary.goals)

    @app.delete("/logs/{day}/meals/{slot}/items/{item_id}")
    async def delete_item(
        day: date, slot: str, item_id: str, request: Request
    ) -> dict[str, object]:
        """Remove an item from a meal."""
        _require_not_future(day)
        diary = _diary(request)
        with _domain_errors():
            log = diary.delete_item(day, slot, item_id)
        return _format_log(log, diary.goals)

    @app.put("/logs/{day}/meals/{slot}/skip")
    async def skip_meal(
        day: date, slot: str, payload: SkipRequest, request: Request
    ) -> dict[str, object]:
        """Skip or restore a meal."""
        _require_not_future(day)
        diary = _diary(request)
        with _domain_errors():
            log = diary.set_skipped(day, slot, payload.skipped)
        return _format_log(log, diary.goals)

    @app.put("/logs/{day}/metrics")
    async def update_metrics(
        day: date, payload: MetricsUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Update body measurements."""
        _require_not_future(day)
        diary = _diary(request)
        with _domain_errors():
            log = diary.update_metrics(day, payload.model_dump(exclude_unset=True))
        return _format_log(log, diary.goals)

    @app.put("/logs/{day}/notes")
    async def update_notes(
        day: date, payload: NotesRequest, request: Request
    ) -> dict[str, object]:
        """Replace the daily notes."""
        _require_not_future(day)
        diary = _diary(request)
        return _format_log(diary.set_notes(day, payload.notes), diary.goals)

    @app.post("/logs/{day}/recommendation")
    async def recommend(
        day: date, payload: RecommendationRequest, request: Request
    ) -> dict[str, object]:
        """Choose one of several meal options for the remaining budget."""
        _require_not_future(day)
        diary = _diary(request)
        with _domain_errors():
            try:
                result = await diary.recommend(day, payload.meal_slot, payload.options)
            except (RequestInFlightError, RequestCancelledError) as exc:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail=str(exc)
                ) from exc
            except RecommendationError as exc:
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail=f"Recommendation failed: {exc}",
                ) from exc
        if result is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Provide at least one option",
            )
        return result.model_dump()

    @app.post("/logs/{day}/reports/daily")
    async def daily_report(day: date, request: Request) -> dict[str, str]:
        """Generate the narrative report for one day."""
        _require_not_future(day)
        return {"report": await _diary(request).daily_report(day)}

    @app.post("/reports/weekly")
    async def weekly_report(
        payload: WeeklyReportRequest, request: Request
    ) -> dict[str, str]:
        """Generate a weekly nutrition or fat-loss report."""
        return {"report": await _diary(request).weekly_report(payload.kind)}

    @app.get("/stats/week")
    async def week_stats(request: Request) -> dict[str, object]:
        """Return per-day totals, averages and weight trend."""
        diary = _diary(request)
        summary = diary.week_summary()
        return {
            "daily": [
                {
                    "date": entry.day.isoformat(),
                    "totals": asdict(entry.totals),
                    "weight_kg": entry.weight_kg,
                }
                for entry in summary.daily
            ],
            "averages": {
                "calories": summary.avg_calories,
                "protein_g": summary.avg_protein_g,
                "carbs_g": summary.avg_carbs_g,
                "fat_g": summary.avg_fat_g,
                "added_oil_calories": summary.avg_added_oil_calories,
            },
            "weight_trend": [
                {"date": day.isoformat(), "weight_kg": weight}
                for day, weight in weight_trend(diary.recent_logs())
            ],
        }

    return app


def _diary(request: Request) -> DiaryService:
    container: AppContainer = request.app.state.container
    return container.diary_service


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Translate lookup and validation errors into HTTP errors."""
    try:
        yield
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Not found: {exc}"
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc


def _require_not_future(day: date) -> None:
    if day > date.today():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Cannot log a future date",
        )


def _decode_image(value: str | None) -> bytes | None:
    """Decode base64 image data, tolerating a data URL prefix."""
    if not value:
        return None
    _, _, encoded = value.rpartition(",")
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="image_base64 is not valid base64",
        ) from exc


def _format_goals(goals: MacroGoals) -> dict[str, object]:
    return {
        **asdict(goals),
        "target_carbs_g": target_carbs_g(goals),
        "target_fat_g": target_fat_g(goals),
    }


def _format_log(log: DailyLog, goals: MacroGoals) -> dict[str, object]:
    totals = aggregate_totals(log)
    payload = dump_log(log)
    payload["meal_totals"] = {
        meal.slot: asdict(meal_totals(meal)) for meal in log.meals
    }
    payload["totals"] = asdict(totals)
    payload["progress"] = asdict(evaluate_goals(totals, goals))
    payload["oily_item_ids"] = [item.id for item in oily_items(log)]
    return payload
