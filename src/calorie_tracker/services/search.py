"""Ingredient lookup through the AI search model."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from calorie_tracker.domain.errors import SearchFailure
from calorie_tracker.domain.search import SearchResult
from calorie_tracker.services.analysis import AiClient, nutrition_schema

logger = logging.getLogger(__name__)

SEARCH_SYSTEM_PROMPT = """\
You help users look up nutritional information for any ingredient or food.
Provide complete nutritional values per standard serving (100g unless the
user gives a quantity): macros, fatty acids, minerals and vitamins.
If the ingredient is ambiguous (e.g. "chicken"), use its most common form
(e.g. "chicken breast, cooked"). Answer with a dish containing the looked up
item as its ingredient.
"""


@dataclass
class IngredientSearchService:
    """Service that looks up nutrition data for free-text ingredients."""

    client: AiClient
    model: str

    async def search(
        self, query: str, quantity: str | None = None
    ) -> SearchResult | None:
        """Return nutrition data for ``query`` or None for an empty answer.

        Raises ``SearchFailure`` for transport, decoding or validation errors.
        """
        cleaned = query.strip()
        if not cleaned:
            return None
        if quantity:
            prompt = (
                f"Look up the complete nutritional information for {quantity} of "
                f"{cleaned}. Return as a single ingredient in a dish."
            )
        else:
            prompt = (
                f"Look up the complete nutritional information for {cleaned} "
                "(per 100g standard serving). Return as a single ingredient in a dish."
            )
        try:
            raw = await self.client.generate_json(
                model=self.model,
                system_prompt=SEARCH_SYSTEM_PROMPT,
                prompt=prompt,
                schema=nutrition_schema(comprehensive=True),
            )
        except Exception as exc:
            logger.warning("Ingredient search failed", extra={"query": cleaned})
            raise SearchFailure(str(exc) or exc.__class__.__name__) from exc
        if raw is None:
            return None
        try:
            return SearchResult.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Invalid search payload", extra={"query": cleaned})
            raise SearchFailure("Unexpected search response") from exc
