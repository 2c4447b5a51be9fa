"""Domain errors raised by the calorie tracker."""


class CalorieTrackerError(Exception):
    """Base class for application errors."""


class IngredientIndexError(CalorieTrackerError, IndexError):
    """Raised when an ingredient position does not exist in a meal."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Ingredient index {index} out of range for {size} items")
        self.index = index
        self.size = size


class IngredientNotFoundError(CalorieTrackerError, KeyError):
    """Raised when an ingredient id does not exist in a meal."""

    def __init__(self, ingredient_id: str) -> None:
        super().__init__(f"Ingredient not found: {ingredient_id}")
        self.ingredient_id = ingredient_id

    def __str__(self) -> str:
        return str(self.args[0])


class SearchFailure(CalorieTrackerError):
    """Ingredient search could not be completed."""


class PersistenceFailure(CalorieTrackerError):
    """A meal or quick add item could not be stored."""


class NotFoodError(CalorieTrackerError):
    """The analyzed image does not contain food."""

    def __init__(
        self,
        message: str = "No food was recognized in this image",
        *,
        classification: str | None = None,
    ) -> None:
        super().__init__(message)
        self.classification = classification
