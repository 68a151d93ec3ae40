from eatme.models.ingredient import (
    Allergen,
    DietaryTag,
    CanonicalIngredient,
    IngredientAlias,
    canonical_ingredient_allergens,
    canonical_ingredient_dietary_tags,
)
from eatme.models.restaurant import Restaurant, MenuCategory, MenuType
from eatme.models.dish import Dish, DishIngredient, DishCategory

__all__ = [
    "Allergen",
    "DietaryTag",
    "CanonicalIngredient",
    "IngredientAlias",
    "canonical_ingredient_allergens",
    "canonical_ingredient_dietary_tags",
    "Restaurant",
    "MenuCategory",
    "MenuType",
    "Dish",
    "DishIngredient",
    "DishCategory",
]
