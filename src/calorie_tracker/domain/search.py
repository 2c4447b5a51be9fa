"""Preview and merge rules for ingredient search results."""

from dataclasses import dataclass

from calorie_tracker.domain.ai_payloads import DEFAULT_QUANTITY, NutritionPayload
from calorie_tracker.domain.meals import Ingredient, Meal

SearchResult = NutritionPayload


@dataclass(frozen=True)
class SearchPreview:
    """What the user sees before confirming a search result."""

    name: str
    quantity: str
    calories: float
    protein: float
    carbs: float
    fat: float
    ingredient_count: int


def build_preview(result: SearchResult) -> SearchPreview | None:
    """Summarize a search result, or return None when it has no ingredients.

    A single ingredient is shown under its own name and quantity. Several
    ingredients are shown under the dish name with the default quantity,
    while the totals always cover every returned ingredient.
    """
    if not result.ingredients:
        return None
    dish_name = result.dish_name or "Searched Item"
    name = dish_name
    quantity = DEFAULT_QUANTITY
    if len(result.ingredients) == 1:
        only = result.ingredients[0]
        name = only.name or dish_name
        quantity = only.quantity or DEFAULT_QUANTITY
    profiles = [item.nutrient_profile() for item in result.ingredients]
    return SearchPreview(
        name=name,
        quantity=quantity,
        calories=sum(profile.calories for profile in profiles),
        protein=sum(profile.protein for profile in profiles),
        carbs=sum(profile.carbs for profile in profiles),
        fat=sum(profile.fat for profile in profiles),
        ingredient_count=len(result.ingredients),
    )


def merge_search_result(meal: Meal, result: SearchResult) -> list[Ingredient]:
    """Append every ingredient of ``result`` to ``meal`` and return them."""
    added = [item.to_ingredient() for item in result.ingredients]
    for ingredient in added:
        meal.add_ingredient(ingredient)
    return added


def added_message(added: list[Ingredient]) -> str:
    if len(added) == 1:
        return f"{added[0].name or 'Ingredient'} added!"
    return f"{len(added)} ingredients added!"
