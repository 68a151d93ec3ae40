"""
Input validation utilities
"""
import re
from typing import Optional

MAX_DISH_PRICE = 10000
MAX_CALORIES = 5000
MAX_SPICE_LEVEL = 4


def normalize_canonical_name(name: str) -> str:
    """Normalize to lowercase_snake_case ("Ground Beef" -> "ground_beef")"""
    normalized = re.sub(r"[\s\-]+", "_", name.strip().lower())
    normalized = re.sub(r"_+", "_", normalized).strip("_")
    if not normalized:
        raise ValueError("Canonical name cannot be empty")
    return normalized


def validate_dish_name(name: Optional[str]) -> Optional[str]:
    if name is None or len(name.strip()) < 2:
        return "Dish name must be at least 2 characters"
    return None


def validate_price(price: Optional[float]) -> Optional[str]:
    if price is None or price <= 0:
        return "Price must be greater than 0"
    if price > MAX_DISH_PRICE:
        return "Price seems unreasonably high"
    return None


def validate_calories(calories: Optional[int]) -> Optional[str]:
    if calories is not None and not 0 <= calories <= MAX_CALORIES:
        return f"Calories must be between 0 and {MAX_CALORIES}"
    return None


def validate_spice_level(level: Optional[int]) -> Optional[str]:
    if level is not None and not 0 <= level <= MAX_SPICE_LEVEL:
        return f"Spice level must be between 0 and {MAX_SPICE_LEVEL}"
    return None
