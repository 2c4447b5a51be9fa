"""Meal persistence service."""

import csv
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol, TypeVar

from calorie_tracker.domain.errors import PersistenceFailure
from calorie_tracker.domain.meals import Meal, QuickAddItem
from calorie_tracker.formatting import round_half_up

logger = logging.getLogger(__name__)

T = TypeVar("T")

CSV_HEADER = [
    "Date",
    "Time",
    "Name",
    "Calories",
    "Protein (g)",
    "Carbs (g)",
    "Fat (g)",
    "Fiber (g)",
    "Sugar (g)",
]


class MealRepository(Protocol):
    """Persistence interface for meals and quick add items."""

    def save_meal(self, meal: Meal) -> str:
        """Store a new meal and return its id."""

    def update_meal(self, meal_id: str, meal: Meal) -> None:
        """Replace a stored meal, creating it when missing."""

    def get_meal(self, meal_id: str) -> Meal | None:
        """Return a stored meal by id, if present."""

    def delete_meal(self, meal_id: str) -> None:
        """Delete a stored meal."""

    def list_meals(self) -> list[Meal]:
        """Return all stored meals, newest first."""

    def save_quick_add_item(self, item: QuickAddItem) -> None:
        """Store a quick add item, replacing one with the same id."""

    def get_quick_add_item(self, item_id: str) -> QuickAddItem | None:
        """Return a quick add item by id, if present."""

    def list_quick_add_items(self) -> list[QuickAddItem]:
        """Return quick add items."""

    def increment_quick_add_usage(self, item_id: str) -> None:
        """Increment the usage counter of a quick add item."""


class ImageStorage(Protocol):
    """Storage interface for meal photos."""

    def store_image(self, image_bytes: bytes, meal_id: str) -> str:
        """Upload a meal image and return its URL."""

    def delete_image(self, meal_id: str) -> None:
        """Delete the image of a meal, if any."""


@dataclass
class MealService:
    """Application service for storing edited meals.

    Every repository or storage error is re-raised as ``PersistenceFailure``.
    """

    repository: MealRepository
    image_storage: ImageStorage

    async def save_meal(self, meal: Meal) -> str:
        """Upload the meal image, then store the meal and return its id.

        ``meal`` only receives the image URL once the row is stored; a failed
        save removes the uploaded image again.
        """
        image_bytes = meal.image_bytes
        image_url = meal.image_url
        if image_bytes is not None:
            image_url = _persist(
                "upload meal image",
                lambda: self.image_storage.store_image(image_bytes, meal.id),
            )
        stored = replace(meal, image_url=image_url)
        try:
            meal_id = _persist("save meal", lambda: self.repository.save_meal(stored))
        except PersistenceFailure:
            if image_bytes is not None:
                self._discard_image(meal.id)
            raise
        meal.image_url = image_url
        logger.info("Saved meal", extra={"meal_id": meal_id})
        return meal_id

    async def update_meal(self, meal_id: str, meal: Meal) -> None:
        _persist("update meal", lambda: self.repository.update_meal(meal_id, meal))
        logger.info("Updated meal", extra={"meal_id": meal_id})

    async def get_meal(self, meal_id: str) -> Meal | None:
        return _persist("load meal", lambda: self.repository.get_meal(meal_id))

    async def delete_meal(self, meal_id: str) -> None:
        """Delete the meal row first, then its image."""
        _persist("delete meal", lambda: self.repository.delete_meal(meal_id))
        _persist("delete meal image", lambda: self.image_storage.delete_image(meal_id))

    async def save_quick_add_item(self, item: QuickAddItem) -> None:
        _persist(
            "save quick add item", lambda: self.repository.save_quick_add_item(item)
        )

    async def get_quick_add_item(self, item_id: str) -> QuickAddItem | None:
        return _persist(
            "load quick add item", lambda: self.repository.get_quick_add_item(item_id)
        )

    async def list_quick_add_items(self) -> list[QuickAddItem]:
        """Return quick add items, most used first."""
        items = _persist(
            "list quick add items", self.repository.list_quick_add_items
        )
        return sorted(items, key=lambda item: item.usage_count, reverse=True)

    async def add_meal_from_quick_add(self, item: QuickAddItem) -> Meal:
        """Log a new meal from a quick add shortcut."""
        _persist(
            "update quick add usage",
            lambda: self.repository.increment_quick_add_usage(item.id),
        )
        meal = item.to_meal()
        await self.save_meal(meal)
        return meal

    async def export_meals_csv(self) -> str:
        return meals_to_csv(_persist("list meals", self.repository.list_meals))

    def _discard_image(self, meal_id: str) -> None:
        try:
            self.image_storage.delete_image(meal_id)
        except Exception:
            logger.exception("Failed to remove image of unsaved meal %s", meal_id)


def meal_to_quick_add(meal: Meal) -> QuickAddItem:
    """Build a quick add shortcut from the current meal totals."""
    return QuickAddItem(
        id=meal.id,
        name=meal.name,
        calories=meal.total_calories,
        protein=meal.total_protein,
        carbs=meal.total_carbs,
        fat=meal.total_fat,
        image_url=meal.image_url,
    )


def meals_to_csv(meals: list[Meal]) -> str:
    """Render meals as CSV with rounded totals."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for meal in meals:
        writer.writerow(
            [
                meal.scanned_at.strftime("%Y-%m-%d"),
                meal.scanned_at.strftime("%H:%M"),
                meal.name,
                round_half_up(meal.total_calories),
                round_half_up(meal.total_protein),
                round_half_up(meal.total_carbs),
                round_half_up(meal.total_fat),
                round_half_up(meal.total_fiber),
                round_half_up(meal.total_sugar),
            ]
        )
    return buffer.getvalue()


def _persist(action: str, operation: Callable[[], T]) -> T:
    try:
        return operation()
    except Exception as exc:
        logger.exception("Failed to %s", action)
        raise PersistenceFailure(str(exc) or exc.__class__.__name__) from exc
