"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.gemini_client import GeminiClient
from calorie_tracker.adapters.supabase_image_storage import SupabaseImageStorage
from calorie_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from calorie_tracker.config import Settings
from calorie_tracker.domain.meals import Meal
from calorie_tracker.services.analysis import MealAnalysisService
from calorie_tracker.services.editor import FoodDetailsEditor
from calorie_tracker.services.editor_sessions import EditorSessionStore
from calorie_tracker.services.meals import MealService
from calorie_tracker.services.search import IngredientSearchService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analysis_service: MealAnalysisService
    search_service: IngredientSearchService
    meal_service: MealService
    editor_sessions: EditorSessionStore
    close_resources: Callable[[], Awaitable[None]]

    def new_editor(self, meal: Meal, *, is_new_meal: bool) -> FoodDetailsEditor:
        """Create an editor bound to this container's services."""
        return FoodDetailsEditor(
            original=meal,
            meal_service=self.meal_service,
            search_service=self.search_service,
            is_new_meal=is_new_meal,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_service = MealService(
        repository=SupabaseMealRepository(supabase_client),
        image_storage=SupabaseImageStorage(
            supabase_client, resolved_settings.supabase_images_bucket
        ),
    )
    gemini_client = GeminiClient.create(
        api_key=resolved_settings.gemini_api_key,
        base_url=resolved_settings.gemini_base_url,
        timeout_seconds=resolved_settings.gemini_timeout_seconds,
    )
    analysis_service = MealAnalysisService(
        client=gemini_client,
        model=resolved_settings.gemini_analysis_model,
    )
    search_service = IngredientSearchService(
        client=gemini_client,
        model=resolved_settings.gemini_search_model,
    )

    async def close_resources() -> None:
        await gemini_client.close()

    return AppContainer(
        settings=resolved_settings,
        analysis_service=analysis_service,
        search_service=search_service,
        meal_service=meal_service,
        editor_sessions=EditorSessionStore(
            resolved_settings.editor_session_ttl_seconds
        ),
        close_resources=close_resources,
    )
