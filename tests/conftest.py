"""Shared test fixtures."""

from dataclasses import dataclass, field, replace

import pytest

from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.meals import Ingredient, Meal, QuickAddItem
from calorie_tracker.domain.nutrition import NutrientProfile
from calorie_tracker.services.analysis import AiClient, MealAnalysisService
from calorie_tracker.services.editor_sessions import EditorSessionStore
from calorie_tracker.services.meals import ImageStorage, MealRepository, MealService
from calorie_tracker.services.search import IngredientSearchService

SALAD_PAYLOAD: dict[str, object] = {
    "dishName": "Salad",
    "ingredients": [
        {"name": "Lettuce", "quantity": "50g", "calories": 10, "protein": 1},
        {"name": "Tomato", "quantity": "80g", "calories": 20, "protein": 0.5},
    ],
}

APPLE_PAYLOAD: dict[str, object] = {
    "dishName": "Apple",
    "ingredients": [
        {
            "name": "Apple",
            "quantity": "1 medium",
            "calories": 95,
            "protein": 0.5,
            "carbs": 25,
            "fat": 0.3,
            "fiber": 4.4,
            "sugar": 19,
        }
    ],
}

PASTA_PAYLOAD: dict[str, object] = {
    "dishName": "Pasta Bolognese",
    "image_classification": "food",
    "confidence": 0.82,
    "aiEvaluation": "Balanced, but heavy on refined carbs.",
    "isHighlyProcessed": "no",
    "ingredients": [
        {
            "name": "Spaghetti",
            "quantity": "200g",
            "calories": 300,
            "protein": 11,
            "carbs": 60,
            "fat": 2,
            "fiber": 3,
            "sugar": 2,
            "saturatedFat": 0.4,
            "unsaturatedFat": 1.2,
        },
        {
            "name": "Beef ragu",
            "quantity": "150 g",
            "calories": 250,
            "protein": 20,
            "carbs": 8,
            "fat": 15,
            "fiber": 2,
            "sugar": 5,
            "saturatedFat": 6,
            "unsaturatedFat": 8,
            "sodium": 400,
        },
    ],
}


def make_ingredient(
    name: str = "Rice",
    amount: float = 100.0,
    calories: float = 130.0,
    protein: float = 2.5,
    carbs: float = 28.0,
    fat: float = 0.3,
    **micronutrients: float,
) -> Ingredient:
    return Ingredient(
        name=name,
        amount=amount,
        base_nutrients=NutrientProfile(
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            fiber=0.4,
            sugar=0.1,
            saturated_fat=0.1,
            unsaturated_fat=0.2,
        ),
        base_micronutrients=dict(micronutrients),
    )


def make_meal(*ingredients: Ingredient, name: str = "Lunch") -> Meal:
    return Meal(id="meal-1", name=name, ingredients=list(ingredients))


@dataclass
class FakeAiClient(AiClient):
    """Fake AI client returning a fixed payload and recording calls."""

    payload: dict[str, object] | None = field(default_factory=lambda: PASTA_PAYLOAD)
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "prompt": prompt,
                "schema": schema,
                "images": images,
                "audio": audio,
                "audio_format": audio_format,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[str, Meal] = field(default_factory=dict)
    quick_adds: dict[str, QuickAddItem] = field(default_factory=dict)
    fail_with: Exception | None = None

    def save_meal(self, meal: Meal) -> str:
        self._maybe_fail()
        self.meals[meal.id] = meal.copy()
        return meal.id

    def update_meal(self, meal_id: str, meal: Meal) -> None:
        self._maybe_fail()
        self.meals[meal_id] = meal.copy()

    def get_meal(self, meal_id: str) -> Meal | None:
        meal = self.meals.get(meal_id)
        return meal.copy() if meal else None

    def delete_meal(self, meal_id: str) -> None:
        self.meals.pop(meal_id, None)

    def list_meals(self) -> list[Meal]:
        return sorted(
            self.meals.values(), key=lambda meal: meal.scanned_at, reverse=True
        )

    def save_quick_add_item(self, item: QuickAddItem) -> None:
        self._maybe_fail()
        self.quick_adds[item.id] = item

    def get_quick_add_item(self, item_id: str) -> QuickAddItem | None:
        return self.quick_adds.get(item_id)

    def list_quick_add_items(self) -> list[QuickAddItem]:
        return list(self.quick_adds.values())

    def increment_quick_add_usage(self, item_id: str) -> None:
        item = self.quick_adds[item_id]
        self.quick_adds[item_id] = replace(item, usage_count=item.usage_count + 1)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


@dataclass
class InMemoryImageStorage(ImageStorage):
    """In-memory image storage for tests."""

    images: dict[str, bytes] = field(default_factory=dict)

    def store_image(self, image_bytes: bytes, meal_id: str) -> str:
        self.images[meal_id] = image_bytes
        return f"https://images.test/meals/{meal_id}.jpg"

    def delete_image(self, meal_id: str) -> None:
        self.images.pop(meal_id, None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        api_token="api-token",
        gemini_api_key="gemini-key",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def image_storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
def meal_service(
    meal_repository: InMemoryMealRepository, image_storage: InMemoryImageStorage
) -> MealService:
    return MealService(repository=meal_repository, image_storage=image_storage)


@pytest.fixture
def ai_client() -> FakeAiClient:
    return FakeAiClient()


@pytest.fixture
def search_service(ai_client: FakeAiClient) -> IngredientSearchService:
    return IngredientSearchService(client=ai_client, model="gemini-2.5-flash-lite")


@pytest.fixture
def container(
    settings: Settings,
    ai_client: FakeAiClient,
    meal_service: MealService,
    search_service: IngredientSearchService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        analysis_service=MealAnalysisService(
            client=ai_client, model=settings.gemini_analysis_model
        ),
        search_service=search_service,
        meal_service=meal_service,
        editor_sessions=EditorSessionStore(settings.editor_session_ttl_seconds),
        close_resources=close_resources,
    )
