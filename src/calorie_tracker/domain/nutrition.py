"""Nutrition value types."""

from dataclasses import dataclass, fields

MICRONUTRIENTS: tuple[str, ...] = (
    "omega3",
    "omega6",
    "sodium",
    "potassium",
    "calcium",
    "magnesium",
    "iron",
    "zinc",
    "vitamin_a",
    "vitamin_c",
    "vitamin_d",
    "vitamin_e",
    "vitamin_k",
    "vitamin_b12",
    "folate",
    "choline",
    "cholesterol",
)


@dataclass(frozen=True)
class NutrientProfile:
    """Energy and macronutrient values for a quantity of food."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    saturated_fat: float = 0.0
    unsaturated_fat: float = 0.0

    def scaled(self, factor: float) -> "NutrientProfile":
        """Return the profile multiplied by ``factor``."""
        return NutrientProfile(
            **{name: getattr(self, name) * factor for name in NUTRIENTS}
        )

    def __add__(self, other: "NutrientProfile") -> "NutrientProfile":
        if not isinstance(other, NutrientProfile):
            return NotImplemented
        return NutrientProfile(
            **{name: getattr(self, name) + getattr(other, name) for name in NUTRIENTS}
        )

    def as_dict(self) -> dict[str, float]:
        """Return the profile keyed by nutrient name."""
        return {name: getattr(self, name) for name in NUTRIENTS}


NUTRIENTS: tuple[str, ...] = tuple(item.name for item in fields(NutrientProfile))
