"""Display formatting for nutrition values."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_calories(value: float) -> str:
    return f"{round_half_up(value)}kcal"


def format_grams(value: float) -> str:
    """Gram quantities keep one decimal place, e.g. ``12.5g``."""
    return f"{value:.1f}g"


def format_amount(amount: float, unit: str) -> str:
    return f"{round_half_up(amount)}{unit}"


def format_per_quantity(quantity: str) -> str:
    return f"per {quantity}"
