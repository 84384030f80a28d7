"""Models for AI-structured extraction and recommendation results."""

from typing import Literal

from pydantic import BaseModel, Field

ReportKind = Literal["nutrition", "fat_loss"]

NO_COOKING_NOTES = "No cooking notes"


class ExtractedIngredient(BaseModel):
    """Single ingredient parsed from a food description."""

    name: str = Field(min_length=1)
    weight_g: float = Field(ge=0.0)
    calories: float = Field(ge=0.0)
    protein_g: float = Field(ge=0.0)
    carbs_g: float = Field(ge=0.0)
    fat_g: float = Field(ge=0.0)
    added_oil_calories: float = Field(ge=0.0)
    notes: str | None = None


class FoodExtract(BaseModel):
    """Structured output for food entry extraction."""

    items: list[ExtractedIngredient]
    cooking_analysis: str = NO_COOKING_NOTES


class MealRecommendation(BaseModel):
    """Structured output for choosing between meal options."""

    recommendation: str = Field(min_length=1)
    suggested_portions: str
    reasoning: str
