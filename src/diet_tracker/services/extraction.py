"""Food entry extraction using LLMs."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import uuid4

from pydantic import ValidationError

from diet_tracker.domain.extraction import FoodExtract
from diet_tracker.domain.nutrition import Ingredient
from diet_tracker.services.llm import LlmClient, response_language, to_data_url

_logger = logging.getLogger(__name__)

_NUMBER = {"type": "number", "minimum": 0}

FOOD_EXTRACT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "weight_g": _NUMBER,
                    "calories": _NUMBER,
                    "protein_g": _NUMBER,
                    "carbs_g": _NUMBER,
                    "fat_g": _NUMBER,
                    "added_oil_calories": _NUMBER,
                    "notes": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                },
                "required": [
                    "name",
                    "weight_g",
                    "calories",
                    "protein_g",
                    "carbs_g",
                    "fat_g",
                    "added_oil_calories",
                    "notes",
                ],
                "additionalProperties": False,
            },
        },
        "cooking_analysis": {"type": "string"},
    },
    "required": ["items", "cooking_analysis"],
    "additionalProperties": False,
}


class ExtractionError(RuntimeError):
    """Raised when a food description cannot be turned into records."""


@dataclass
class FoodExtractionService:
    """Service that prepares extraction prompts and validates results."""

    client: LlmClient
    model: str
    reasoning_effort: str | None
    store: bool
    locale: str = "en"

    async def parse(
        self, description: str, image_bytes: bytes | None = None
    ) -> FoodExtract:
        """Turn a text and/or photo description into structured ingredients."""
        text = description.strip()
        if not text and not image_bytes:
            raise ValueError("A description or a photo is required")
        try:
            raw = await self.client.extract_structured(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=build_extraction_prompt(text, self.locale),
                schema=FOOD_EXTRACT_SCHEMA,
                schema_name="food_extract",
                image_data_url=to_data_url(image_bytes) if image_bytes else None,
            )
            return FoodExtract.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Food extraction returned invalid data: %s", exc)
            raise ExtractionError(
                f"Food analysis returned an invalid result: {exc.error_count()} "
                "validation error(s)"
            ) from exc
        except Exception as exc:
            _logger.warning("Food extraction failed: %s", exc)
            raise ExtractionError(str(exc) or "Food analysis failed") from exc


def build_extraction_prompt(description: str, locale: str = "en") -> str:
    """Prompt asking for a cooked-weight ingredient breakdown."""
    subject = f'description: "{description}"' if description else "photo only"
    return (
        f"Analyze this food record ({subject}). "
        "Break it down into individual ingredients using cooked weight in grams. "
        "Estimate added_oil_calories separately from the cooking method: frying "
        "and sauteing add oil, steaming and boiling add almost none. "
        "Fat that belongs to the meat itself goes into fat_g; added_oil_calories "
        "only counts oil or fat used for cooking. "
        'If the user says "replace A with B", return only the ingredients of B. '
        "Give a short cooking_analysis explaining the oil estimate. "
        f"Write every name and the analysis in {response_language(locale)}."
    )


def to_ingredients(
    extract: FoodExtract, id_factory: Callable[[], str] | None = None
) -> list[Ingredient]:
    """Convert extracted items into ingredients with fresh ids."""
    make_id = id_factory or _new_item_id
    return [
        Ingredient(
            id=make_id(),
            name=item.name,
            weight_g=item.weight_g,
            calories=item.calories,
            protein_g=item.protein_g,
            carbs_g=item.carbs_g,
            fat_g=item.fat_g,
            added_oil_calories=item.added_oil_calories,
            notes=item.notes,
        )
        for item in extract.items
    ]


def _new_item_id() -> str:
    return uuid4().hex[:12]
