"""Nutrition domain models."""

from dataclasses import dataclass

CARB_KCAL_PER_G = 4.0
FAT_KCAL_PER_G = 9.0


@dataclass(frozen=True)
class Ingredient:
    """One ingredient's cooked weight and macro values.

    ``added_oil_calories`` overlaps with the fat calories of the item; it is
    never added on top of ``calories``.
    """

    id: str
    name: str
    weight_g: float
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    added_oil_calories: float
    notes: str | None = None


@dataclass(frozen=True)
class MacroTotals:
    """Summed macros for a meal or a day."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    added_oil_calories: float


@dataclass(frozen=True)
class MacroGoals:
    """Daily calorie/protein targets plus carb and fat energy shares."""

    calories: float
    protein_g: float
    carbs_share: float
    fat_share: float


DEFAULT_GOALS = MacroGoals(
    calories=1350,
    protein_g=75,
    carbs_share=0.55,
    fat_share=0.25,
)

FIXED_BREAKFAST_ITEMS: tuple[Ingredient, ...] = (
    Ingredient(
        id="fixed-egg",
        name="Boiled Egg",
        weight_g=50,
        calories=70,
        protein_g=6,
        carbs_g=0.6,
        fat_g=5,
        added_oil_calories=0,
        notes="Standard large egg",
    ),
    Ingredient(
        id="fixed-milk",
        name="Milk (Whole)",
        weight_g=250,
        calories=150,
        protein_g=8,
        carbs_g=12,
        fat_g=8,
        added_oil_calories=0,
        notes="250ml",
    ),
)
