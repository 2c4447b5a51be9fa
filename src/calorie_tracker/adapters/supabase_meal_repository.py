"""Supabase repository for meals and quick add items."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from calorie_tracker.domain.meals import Ingredient, Meal, QuickAddItem
from calorie_tracker.domain.nutrition import NUTRIENTS, NutrientProfile
from calorie_tracker.services.meals import MealRepository


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals and quick add items."""

    client: Client

    def save_meal(self, meal: Meal) -> str:
        """Insert a meal row and return its id."""
        response = self.client.table("meals").insert(meal_to_row(meal)).execute()
        if not response.data:
            raise RuntimeError("Failed to save meal")
        return str(response.data[0]["id"])

    def update_meal(self, meal_id: str, meal: Meal) -> None:
        """Upsert a meal row under ``meal_id``."""
        row = meal_to_row(meal)
        row["id"] = meal_id
        self.client.table("meals").upsert(row).execute()

    def get_meal(self, meal_id: str) -> Meal | None:
        """Return a meal by id."""
        response = (
            self.client.table("meals")
            .select("*")
            .eq("id", meal_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return meal_from_row(response.data[0])

    def delete_meal(self, meal_id: str) -> None:
        self.client.table("meals").delete().eq("id", meal_id).execute()

    def list_meals(self) -> list[Meal]:
        """Return all meals, newest first."""
        response = (
            self.client.table("meals")
            .select("*")
            .order("scanned_at", desc=True)
            .execute()
        )
        return [meal_from_row(row) for row in response.data or []]

    def save_quick_add_item(self, item: QuickAddItem) -> None:
        """Upsert a quick add row."""
        self.client.table("quick_add_items").upsert(
            {
                "id": item.id,
                "name": item.name,
                "calories": item.calories,
                "protein": item.protein,
                "carbs": item.carbs,
                "fat": item.fat,
                "usage_count": item.usage_count,
                "image_url": item.image_url,
            }
        ).execute()

    def get_quick_add_item(self, item_id: str) -> QuickAddItem | None:
        response = (
            self.client.table("quick_add_items")
            .select("*")
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_quick_add(response.data[0])

    def list_quick_add_items(self) -> list[QuickAddItem]:
        response = (
            self.client.table("quick_add_items")
            .select("*")
            .order("usage_count", desc=True)
            .execute()
        )
        return [_parse_quick_add(row) for row in response.data or []]

    def increment_quick_add_usage(self, item_id: str) -> None:
        """Increment the usage counter of a quick add row."""
        response = (
            self.client.table("quick_add_items")
            .select("usage_count")
            .eq("id", item_id)
            .limit(1)
            .execute()
        )
        current = 0
        if response.data:
            current = int(response.data[0].get("usage_count") or 0)
        self.client.table("quick_add_items").update(
            {"usage_count": current + 1}
        ).eq("id", item_id).execute()


def meal_to_row(meal: Meal) -> dict[str, object]:
    """Serialize a meal, storing totals alongside for quick queries."""
    return {
        "id": meal.id,
        "name": meal.name,
        "scanned_at": meal.scanned_at.isoformat(),
        "ingredients": [_ingredient_to_row(item) for item in meal.ingredients],
        "image_url": meal.image_url,
        "confidence": meal.confidence,
        "analysis_notes": meal.analysis_notes,
        "ai_evaluation": meal.ai_evaluation,
        "is_highly_processed": meal.is_highly_processed,
        "image_classification": meal.image_classification,
        "total_calories": meal.total_calories,
        "total_protein": meal.total_protein,
        "total_carbs": meal.total_carbs,
        "total_fat": meal.total_fat,
    }


def meal_from_row(row: dict[str, object]) -> Meal:
    ingredients = row.get("ingredients") or []
    confidence = row.get("confidence")
    return Meal(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        scanned_at=datetime.fromisoformat(str(row["scanned_at"])),
        ingredients=[_parse_ingredient(item) for item in ingredients],
        image_url=row.get("image_url"),
        confidence=float(confidence) if confidence is not None else None,
        analysis_notes=row.get("analysis_notes"),
        ai_evaluation=row.get("ai_evaluation"),
        is_highly_processed=row.get("is_highly_processed"),
        image_classification=row.get("image_classification"),
    )


def _ingredient_to_row(ingredient: Ingredient) -> dict[str, object]:
    return {
        "id": ingredient.id,
        "name": ingredient.name,
        "amount": ingredient.amount,
        "base_amount": ingredient.base_amount,
        "unit": ingredient.unit,
        "base_nutrients": ingredient.base_nutrients.as_dict(),
        "base_micronutrients": dict(ingredient.base_micronutrients),
    }


def _parse_ingredient(row: dict[str, object]) -> Ingredient:
    nutrients = row.get("base_nutrients") or {}
    micronutrients = row.get("base_micronutrients") or {}
    return Ingredient(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        amount=float(row.get("amount", 0.0)),
        base_amount=float(row.get("base_amount", 0.0)),
        unit=str(row.get("unit") or "g"),
        base_nutrients=NutrientProfile(
            **{name: float(nutrients.get(name, 0.0)) for name in NUTRIENTS}
        ),
        base_micronutrients={
            str(name): float(value) for name, value in micronutrients.items()
        },
    )


def _parse_quick_add(row: dict[str, object]) -> QuickAddItem:
    return QuickAddItem(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        calories=float(row.get("calories", 0.0)),
        protein=float(row.get("protein", 0.0)),
        carbs=float(row.get("carbs", 0.0)),
        fat=float(row.get("fat", 0.0)),
        usage_count=int(row.get("usage_count") or 0),
        image_url=row.get("image_url"),
    )
