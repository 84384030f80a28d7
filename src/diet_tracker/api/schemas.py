"""Pydantic models for HTTP request payloads."""

from pydantic import BaseModel, Field

from diet_tracker.domain.extraction import ReportKind


class FoodEntryRequest(BaseModel):
    """Free-text and/or photo description of food to log."""

    text: str = ""
    image_base64: str | None = None


class ItemUpdateRequest(BaseModel):
    """Rename and/or rescale one logged item."""

    name: str | None = Field(default=None, min_length=1)
    weight_g: float | None = Field(default=None, ge=0.0, allow_inf_nan=False)


class SkipRequest(BaseModel):
    """Skip or restore a meal."""

    skipped: bool = True


class MetricsUpdateRequest(BaseModel):
    """Partial body metric update; null clears a measurement."""

    weight_kg: float | str | None = None
    waist_cm: float | str | None = None
    thigh_cm: float | str | None = None
    calf_cm: float | str | None = None


class NotesRequest(BaseModel):
    """Daily free-text notes."""

    notes: str | None = None


class RecommendationRequest(BaseModel):
    """Meal options to choose between."""

    options: str | list[str]
    meal_slot: str = "lunch"


class WeeklyReportRequest(BaseModel):
    """Kind of weekly report to produce."""

    kind: ReportKind = "nutrition"
