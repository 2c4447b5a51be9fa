"""Meal recognition from food photos using an LLM."""

import logging
from dataclasses import dataclass
from typing import Protocol

from calorie_tracker.domain.ai_payloads import NutritionPayload
from calorie_tracker.domain.meals import Meal
from calorie_tracker.domain.nutrition import MICRONUTRIENTS

logger = logging.getLogger(__name__)

_ESSENTIAL_FIELDS: tuple[str, ...] = (
    "calories",
    "protein",
    "carbs",
    "sugar",
    "fat",
    "fiber",
    "saturatedFat",
    "unsaturatedFat",
)
_MICRONUTRIENT_FIELDS: tuple[str, ...] = tuple(
    {
        "vitamin_a": "vitaminA",
        "vitamin_c": "vitaminC",
        "vitamin_d": "vitaminD",
        "vitamin_e": "vitaminE",
        "vitamin_k": "vitaminK",
        "vitamin_b12": "vitaminB12",
    }.get(name, name)
    for name in MICRONUTRIENTS
)


def nutrition_schema(*, comprehensive: bool) -> dict[str, object]:
    """JSON schema for dish analysis and ingredient search responses."""
    numeric = _ESSENTIAL_FIELDS + (_MICRONUTRIENT_FIELDS if comprehensive else ())
    ingredient_properties: dict[str, object] = {
        "name": {"type": "string"},
        "quantity": {"type": "string"},
    }
    ingredient_properties.update({name: {"type": "number"} for name in numeric})
    return {
        "type": "object",
        "properties": {
            "is_food": {
                "type": "boolean",
                "description": "Whether the image contains real food or food products.",
            },
            "image_classification": {
                "type": "string",
                "enum": [
                    "food",
                    "nutritional_label_on_packed_product",
                    "packaged_product_only",
                    "no_food_no_label",
                ],
            },
            "ingredients": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": ingredient_properties,
                    "required": ["name", "quantity", *_ESSENTIAL_FIELDS],
                },
            },
            "dishName": {"type": "string"},
            "confidence": {"type": "number"},
            "analysisNotes": {"type": "string"},
            "aiEvaluation": {
                "type": "string",
                "description": "One or two sentences on healthiness and suggestions.",
            },
            "isHighlyProcessed": {"type": "boolean"},
        },
        "required": ["ingredients", "dishName"],
    }


ANALYSIS_SYSTEM_PROMPT = """\
You analyze food images and identify ALL individual ingredients with their
nutritional values.

1. Identify every ingredient visible in the image(s).
2. Estimate the quantity of each ingredient in grams (g) or milliliters (ml).
3. Provide nutritional values for EACH ingredient separately, for the
   estimated quantity.

When several images are given, treat each image as ONE ingredient of a single
combined dish and name the dish after the combination.
If an image shows a packaged product with a nutrition panel, use that panel.
If the image contains neither food nor a nutrition label, set
image_classification to "no_food_no_label".
"""

COMPREHENSIVE_SUFFIX = """\
Also include fatty acids (omega-3, omega-6), minerals (sodium, potassium,
calcium, magnesium, iron, zinc), vitamins (A, C, D, E, K, B12, folate),
choline and cholesterol for each ingredient.
"""

AUDIO_PROMPT = """\
Listen to this audio recording where the user describes what they ate.
Identify all the food items and ingredients mentioned, estimate reasonable
portions, and provide nutritional information for each.
If the user mentions specific quantities, use those. Otherwise, estimate
typical serving sizes.
"""


class AiClient(Protocol):
    """Interface for structured LLM generation."""

    async def generate_json(
        self,
        *,
        model: str,
        system_prompt: str,
        prompt: str,
        schema: dict[str, object],
        images: list[bytes] | None = None,
        audio: bytes | None = None,
        audio_format: str = "aac",
    ) -> dict[str, object] | None:
        """Return the parsed JSON answer, or None when the model said nothing."""


@dataclass
class MealAnalysisService:
    """Service that turns food photos into editable meals."""

    client: AiClient
    model: str

    async def analyze_images(
        self,
        images: list[bytes],
        *,
        include_vitamins: bool = False,
        custom_prompt: str | None = None,
    ) -> Meal:
        """Analyze one or more photos of a single dish.

        The first image becomes the meal image. Raises ``NotFoodError`` when the
        model reports that the photo shows no food.
        """
        if not images:
            raise ValueError("No images provided.")
        if custom_prompt:
            prompt = custom_prompt
        elif len(images) == 1:
            prompt = (
                "Analyze this food image and identify all ingredients "
                "with their nutritional values."
            )
        else:
            prompt = (
                f"Analyze these {len(images)} food images. Each image represents "
                "ONE ingredient. Combine them into a single dish."
            )
        system_prompt = ANALYSIS_SYSTEM_PROMPT
        if include_vitamins:
            system_prompt = f"{system_prompt}\n{COMPREHENSIVE_SUFFIX}"
        raw = await self.client.generate_json(
            model=self.model,
            system_prompt=system_prompt,
            prompt=prompt,
            schema=nutrition_schema(comprehensive=include_vitamins),
            images=images,
        )
        if raw is None:
            raise RuntimeError("Failed to analyze image")
        payload = NutritionPayload.model_validate(raw)
        meal = payload.to_meal(image_bytes=images[0])
        logger.info(
            "Analyzed meal",
            extra={"meal_id": meal.id, "ingredients": len(meal.ingredients)},
        )
        return meal

    async def analyze_image(
        self,
        image: bytes,
        *,
        include_vitamins: bool = False,
        custom_prompt: str | None = None,
    ) -> Meal:
        return await self.analyze_images(
            [image], include_vitamins=include_vitamins, custom_prompt=custom_prompt
        )

    async def analyze_audio(self, audio: bytes, *, audio_format: str = "aac") -> Meal:
        """Build a meal from a spoken description of what was eaten."""
        if not audio:
            raise ValueError("No audio provided.")
        raw = await self.client.generate_json(
            model=self.model,
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            prompt=AUDIO_PROMPT,
            schema=nutrition_schema(comprehensive=False),
            audio=audio,
            audio_format=audio_format,
        )
        if raw is None:
            raise RuntimeError("Failed to analyze audio")
        meal = NutritionPayload.model_validate(raw).to_meal()
        logger.info(
            "Analyzed spoken meal",
            extra={"meal_id": meal.id, "ingredients": len(meal.ingredients)},
        )
        return meal
