"""Editing session behind the food details screen."""

from dataclasses import dataclass, field
from typing import Literal

from calorie_tracker.domain.errors import PersistenceFailure, SearchFailure
from calorie_tracker.domain.meals import Ingredient, Meal
from calorie_tracker.domain.search import (
    SearchPreview,
    SearchResult,
    added_message,
    build_preview,
    merge_search_result,
)
from calorie_tracker.formatting import (
    format_amount,
    format_calories,
    format_grams,
    format_per_quantity,
    round_half_up,
)
from calorie_tracker.services.meals import MealService, meal_to_quick_add
from calorie_tracker.services.search import IngredientSearchService


@dataclass(frozen=True)
class Notice:
    """Transient message shown to the user after an action."""

    message: str
    level: Literal["success", "error"] = "success"


@dataclass
class FoodDetailsEditor:
    """Holds a working copy of a meal while the user edits it.

    The meal passed in as ``original`` is never mutated; all edits go to
    ``meal``, which is what gets persisted on save.
    """

    original: Meal
    meal_service: MealService
    search_service: IngredientSearchService
    is_new_meal: bool = True
    meal: Meal = field(init=False)
    is_saving: bool = field(default=False, init=False)
    is_searching: bool = field(default=False, init=False)
    added_to_quick_add: bool = field(default=False, init=False)
    search_result: SearchResult | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.meal = self.original.copy()

    @property
    def search_preview(self) -> SearchPreview | None:
        if self.search_result is None:
            return None
        return build_preview(self.search_result)

    def update_ingredient_amount(self, index: int, new_amount: float) -> None:
        self.meal.update_ingredient_amount(index, new_amount)

    def remove_ingredient(self, index: int) -> Ingredient:
        return self.meal.remove_ingredient(index)

    async def search(self, query: str) -> Notice | None:
        """Look up an ingredient; a failed lookup keeps the previous result."""
        if not query.strip():
            return None
        self.is_searching = True
        try:
            result = await self.search_service.search(query)
        except SearchFailure as exc:
            return Notice(f"Search failed: {exc}", level="error")
        finally:
            self.is_searching = False
        if result is not None:
            self.search_result = result
        return None

    def clear_search(self) -> None:
        self.search_result = None

    def add_searched_ingredients(self) -> Notice | None:
        """Append every ingredient of the current search result."""
        if self.search_result is None or not self.search_result.ingredients:
            return None
        added = merge_search_result(self.meal, self.search_result)
        self.clear_search()
        return Notice(added_message(added))

    async def save(self) -> Notice | None:
        """Persist the working copy; returns None while a save is running.

        The id returned by the first save is used for later updates.
        """
        if self.is_saving:
            return None
        self.is_saving = True
        try:
            if self.is_new_meal:
                self.meal.id = await self.meal_service.save_meal(self.meal)
                self.is_new_meal = False
                return Notice("Meal saved successfully!")
            await self.meal_service.update_meal(self.meal.id, self.meal)
            return Notice("Meal updated successfully!")
        except PersistenceFailure as exc:
            return Notice(f"Failed to save: {exc}", level="error")
        finally:
            self.is_saving = False

    async def add_to_quick_add(self) -> Notice | None:
        if self.added_to_quick_add:
            return None
        try:
            await self.meal_service.save_quick_add_item(meal_to_quick_add(self.meal))
        except PersistenceFailure as exc:
            return Notice(f"Failed to add: {exc}", level="error")
        self.added_to_quick_add = True
        return Notice("Added to Quick Add!")

    def view(self) -> dict[str, object]:
        """Render the session state for the client."""
        meal = self.meal
        totals = meal.totals()
        preview = self.search_preview
        return {
            "meal_id": meal.id,
            "name": meal.name,
            "is_new_meal": self.is_new_meal,
            "is_saving": self.is_saving,
            "is_searching": self.is_searching,
            "added_to_quick_add": self.added_to_quick_add,
            "image_url": meal.image_url,
            "ai_evaluation": meal.ai_evaluation,
            "is_highly_processed": meal.is_highly_processed,
            "totals": {
                "calories": round_half_up(totals.calories),
                "protein": format_grams(totals.protein),
                "carbs": format_grams(totals.carbs),
                "fat": format_grams(totals.fat),
                "fiber": format_grams(totals.fiber),
                "sugar": format_grams(totals.sugar),
                "saturated_fat": format_grams(totals.saturated_fat),
                "unsaturated_fat": format_grams(totals.unsaturated_fat),
            },
            "ingredients": [
                {
                    "index": index,
                    "id": ingredient.id,
                    "name": ingredient.name,
                    "amount": ingredient.amount,
                    "unit": ingredient.unit,
                    "min_amount": ingredient.min_amount,
                    "max_amount": ingredient.max_amount,
                    "amount_label": format_amount(ingredient.amount, ingredient.unit),
                    "calories_label": format_calories(ingredient.calories),
                }
                for index, ingredient in enumerate(meal.ingredients)
            ],
            "search_preview": _preview_view(preview),
        }


def _preview_view(preview: SearchPreview | None) -> dict[str, object] | None:
    if preview is None:
        return None
    return {
        "name": preview.name,
        "quantity_label": format_per_quantity(preview.quantity),
        "calories": round_half_up(preview.calories),
        "protein": format_grams(preview.protein),
        "carbs": format_grams(preview.carbs),
        "fat": format_grams(preview.fat),
        "ingredient_count": preview.ingredient_count,
    }
