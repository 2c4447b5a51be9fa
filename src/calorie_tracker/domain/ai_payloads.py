"""Models for nutrition payloads returned by the AI model."""

import math
import re

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from calorie_tracker.domain.errors import NotFoodError
from calorie_tracker.domain.meals import Ingredient, Meal, new_id
from calorie_tracker.domain.nutrition import MICRONUTRIENTS, NUTRIENTS, NutrientProfile

DEFAULT_QUANTITY = "100g"
DEFAULT_AMOUNT = 100.0
NO_FOOD_CLASSIFICATION = "no_food_no_label"

_QUANTITY_RE = re.compile(r"([\d.]+)\s*(\w+)?")


class AiIngredient(BaseModel):
    """Single ingredient as described by the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = "Unknown"
    quantity: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    saturated_fat: float | None = Field(default=None, alias="saturatedFat")
    unsaturated_fat: float | None = Field(default=None, alias="unsaturatedFat")
    omega3: float | None = None
    omega6: float | None = None
    sodium: float | None = None
    potassium: float | None = None
    calcium: float | None = None
    magnesium: float | None = None
    iron: float | None = None
    zinc: float | None = None
    vitamin_a: float | None = Field(default=None, alias="vitaminA")
    vitamin_c: float | None = Field(default=None, alias="vitaminC")
    vitamin_d: float | None = Field(default=None, alias="vitaminD")
    vitamin_e: float | None = Field(default=None, alias="vitaminE")
    vitamin_k: float | None = Field(default=None, alias="vitaminK")
    vitamin_b12: float | None = Field(default=None, alias="vitaminB12")
    folate: float | None = None
    choline: float | None = None
    cholesterol: float | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: object) -> object:
        return "Unknown" if value is None else value

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_as_text(cls, value: object) -> str | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int | float):
            return f"{value}g"
        return str(value)

    @field_validator(*NUTRIENTS, *MICRONUTRIENTS, mode="before")
    @classmethod
    def _coerce_number(cls, value: object) -> float | None:
        if isinstance(value, bool):
            return None
        if not isinstance(value, int | float | str):
            return None
        try:
            number = float(value)
        except (ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None

    def nutrient_profile(self) -> NutrientProfile:
        """Macronutrients with missing or negative values set to zero."""
        return NutrientProfile(
            **{name: max(getattr(self, name) or 0.0, 0.0) for name in NUTRIENTS}
        )

    def to_ingredient(self) -> Ingredient:
        amount, unit = parse_quantity(self.quantity)
        micronutrients = {
            name: max(getattr(self, name), 0.0)
            for name in MICRONUTRIENTS
            if getattr(self, name) is not None
        }
        return Ingredient(
            name=self.name,
            amount=amount,
            unit=unit,
            base_nutrients=self.nutrient_profile(),
            base_micronutrients=micronutrients,
        )


class NutritionPayload(BaseModel):
    """Structured nutrition output for a dish or a searched ingredient."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dish_name: str | None = Field(default=None, alias="dishName")
    ingredients: list[AiIngredient] = Field(default_factory=list)
    is_food: bool | None = None
    confidence: float | None = None
    analysis_notes: str | None = Field(default=None, alias="analysisNotes")
    ai_evaluation: str | None = Field(
        default=None,
        validation_alias=AliasChoices("aiEvaluation", "evaluation", "ai_eval"),
    )
    is_highly_processed: bool | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "isHighlyProcessed", "highlyProcessed", "highly_processed"
        ),
    )
    image_classification: str = "food"

    @field_validator("ingredients", mode="before")
    @classmethod
    def _drop_invalid_ingredients(cls, value: object) -> list[AiIngredient]:
        if not isinstance(value, list):
            return []
        parsed: list[AiIngredient] = []
        for item in value:
            if not isinstance(item, dict):
                continue
            try:
                parsed.append(AiIngredient.model_validate(item))
            except ValidationError:
                continue
        return parsed

    @field_validator("is_highly_processed", "is_food", mode="before")
    @classmethod
    def _parse_bool(cls, value: object) -> bool | None:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "yes"}:
                return True
            if lowered in {"false", "no"}:
                return False
        return None

    @field_validator("confidence", mode="before")
    @classmethod
    def _parse_confidence(cls, value: object) -> float | None:
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    @field_validator("image_classification", mode="before")
    @classmethod
    def _default_classification(cls, value: object) -> object:
        return value or "food"

    def to_meal(
        self, image_bytes: bytes | None = None, meal_id: str | None = None
    ) -> Meal:
        """Build a meal, rejecting images classified as containing no food."""
        if self.image_classification == NO_FOOD_CLASSIFICATION:
            raise NotFoodError(classification=self.image_classification)
        return Meal(
            id=meal_id or new_id(),
            name=self.dish_name or "Scanned Meal",
            ingredients=[item.to_ingredient() for item in self.ingredients],
            image_bytes=image_bytes,
            confidence=self.confidence,
            analysis_notes=self.analysis_notes,
            ai_evaluation=self.ai_evaluation,
            is_highly_processed=self.is_highly_processed,
            image_classification=self.image_classification,
        )


def parse_quantity(quantity: str | None) -> tuple[float, str]:
    """Split strings such as "75g" or "30 ml" into amount and unit.

    Missing, unparseable, non-finite or non-positive amounts fall back to 100.
    """
    match = _QUANTITY_RE.search((quantity or DEFAULT_QUANTITY).strip().lower())
    if match is None:
        return DEFAULT_AMOUNT, "g"
    try:
        amount = float(match.group(1))
    except ValueError:
        amount = 0.0
    unit = match.group(2) or "g"
    if not math.isfinite(amount) or amount <= 0:
        amount = DEFAULT_AMOUNT
    return amount, unit
