"""Domain models for meals and their ingredients.

Nutrient values of an ingredient are never stored directly. Each ingredient
keeps the amount and nutrient profile it was created with (its *base*) and
derives current values from the ratio ``amount / base_amount``. Meal totals
are summed from the ingredients on every read.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from calorie_tracker.domain.errors import IngredientIndexError, IngredientNotFoundError
from calorie_tracker.domain.nutrition import NutrientProfile

MAX_AMOUNT_FACTOR = 3.0


def new_id() -> str:
    """Return a fresh identifier for meals and ingredients."""
    return str(uuid4())


@dataclass
class Ingredient:
    """A single food component with a user-adjustable amount."""

    name: str
    amount: float
    base_nutrients: NutrientProfile
    unit: str = "g"
    base_amount: float | None = None
    base_micronutrients: dict[str, float] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.base_amount is None:
            self.base_amount = self.amount
        if not math.isfinite(self.base_amount):
            self.base_amount = 0.0
        self.amount = self._clamp(self.amount)

    @property
    def scale_factor(self) -> float:
        """Ratio between the current and the base amount."""
        if not self.base_amount or self.base_amount <= 0:
            return 1.0
        return self.amount / self.base_amount

    @property
    def min_amount(self) -> float:
        return 0.0

    @property
    def max_amount(self) -> float:
        return max(self.base_amount or 0.0, 0.0) * MAX_AMOUNT_FACTOR

    @property
    def nutrients(self) -> NutrientProfile:
        """Nutrient values for the current amount."""
        return self.base_nutrients.scaled(self.scale_factor)

    @property
    def calories(self) -> float:
        return self.base_nutrients.calories * self.scale_factor

    @property
    def protein(self) -> float:
        return self.base_nutrients.protein * self.scale_factor

    @property
    def carbs(self) -> float:
        return self.base_nutrients.carbs * self.scale_factor

    @property
    def fat(self) -> float:
        return self.base_nutrients.fat * self.scale_factor

    @property
    def fiber(self) -> float:
        return self.base_nutrients.fiber * self.scale_factor

    @property
    def sugar(self) -> float:
        return self.base_nutrients.sugar * self.scale_factor

    @property
    def saturated_fat(self) -> float:
        return self.base_nutrients.saturated_fat * self.scale_factor

    @property
    def unsaturated_fat(self) -> float:
        return self.base_nutrients.unsaturated_fat * self.scale_factor

    @property
    def micronutrients(self) -> dict[str, float]:
        """Scaled micronutrients; nutrients without data are omitted."""
        factor = self.scale_factor
        return {
            name: value * factor for name, value in self.base_micronutrients.items()
        }

    def micronutrient(self, name: str) -> float | None:
        value = self.base_micronutrients.get(name)
        if value is None:
            return None
        return value * self.scale_factor

    def update_amount(self, new_amount: float) -> None:
        """Set the amount, clamped to the ingredient bounds."""
        self.amount = self._clamp(new_amount)

    def reset_amount(self) -> None:
        self.amount = self._clamp(self.base_amount or 0.0)

    def copy(self) -> "Ingredient":
        return replace(self, base_micronutrients=dict(self.base_micronutrients))

    def _clamp(self, value: float) -> float:
        """Clamp to the bounds; NaN counts as the minimum."""
        value = float(value)
        if math.isnan(value):
            return self.min_amount
        return min(max(value, self.min_amount), self.max_amount)


@dataclass
class Meal:
    """A logged food event made of ordered ingredients."""

    id: str
    name: str
    ingredients: list[Ingredient] = field(default_factory=list)
    scanned_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    image_bytes: bytes | None = None
    image_url: str | None = None
    confidence: float | None = None
    analysis_notes: str | None = None
    ai_evaluation: str | None = None
    is_highly_processed: bool | None = None
    image_classification: str | None = None

    def totals(self) -> NutrientProfile:
        """Sum of nutrient values across all ingredients."""
        total = NutrientProfile()
        for ingredient in self.ingredients:
            total = total + ingredient.nutrients
        return total

    @property
    def total_calories(self) -> float:
        return sum(ingredient.calories for ingredient in self.ingredients)

    @property
    def total_protein(self) -> float:
        return sum(ingredient.protein for ingredient in self.ingredients)

    @property
    def total_carbs(self) -> float:
        return sum(ingredient.carbs for ingredient in self.ingredients)

    @property
    def total_fat(self) -> float:
        return sum(ingredient.fat for ingredient in self.ingredients)

    @property
    def total_fiber(self) -> float:
        return sum(ingredient.fiber for ingredient in self.ingredients)

    @property
    def total_sugar(self) -> float:
        return sum(ingredient.sugar for ingredient in self.ingredients)

    @property
    def total_saturated_fat(self) -> float:
        return sum(ingredient.saturated_fat for ingredient in self.ingredients)

    @property
    def total_unsaturated_fat(self) -> float:
        return sum(ingredient.unsaturated_fat for ingredient in self.ingredients)

    def total_micronutrient(self, name: str) -> float | None:
        """Sum a micronutrient, or None when no ingredient reports it."""
        reported = (ingredient.micronutrient(name) for ingredient in self.ingredients)
        values = [value for value in reported if value is not None]
        if not values:
            return None
        return sum(values)

    def update_ingredient_amount(self, index: int, new_amount: float) -> None:
        """Change the amount of the ingredient at ``index``."""
        self._ingredient_at(index).update_amount(new_amount)

    def update_ingredient_amount_by_id(
        self, ingredient_id: str, new_amount: float
    ) -> None:
        for ingredient in self.ingredients:
            if ingredient.id == ingredient_id:
                ingredient.update_amount(new_amount)
                return
        raise IngredientNotFoundError(ingredient_id)

    def remove_ingredient(self, index: int) -> Ingredient:
        """Remove and return the ingredient at ``index``."""
        self._ingredient_at(index)
        return self.ingredients.pop(index)

    def remove_ingredient_by_id(self, ingredient_id: str) -> None:
        self.ingredients = [
            item for item in self.ingredients if item.id != ingredient_id
        ]

    def add_ingredient(self, ingredient: Ingredient) -> None:
        self.ingredients.append(ingredient)

    def copy(self) -> "Meal":
        """Return a working copy that shares no mutable state with this meal."""
        return replace(
            self, ingredients=[ingredient.copy() for ingredient in self.ingredients]
        )

    def _ingredient_at(self, index: int) -> Ingredient:
        if not 0 <= index < len(self.ingredients):
            raise IngredientIndexError(index, len(self.ingredients))
        return self.ingredients[index]


@dataclass(frozen=True)
class QuickAddItem:
    """Saved shortcut for re-logging a meal."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    usage_count: int = 0
    image_url: str | None = None

    def to_meal(self) -> Meal:
        """Create a single-serving meal from this shortcut."""
        return Meal(
            id=new_id(),
            name=self.name,
            image_url=self.image_url,
            ingredients=[
                Ingredient(
                    name=self.name,
                    amount=1.0,
                    unit="serving",
                    base_nutrients=NutrientProfile(
                        calories=self.calories,
                        protein=self.protein,
                        carbs=self.carbs,
                        fat=self.fat,
                    ),
                )
            ],
        )
