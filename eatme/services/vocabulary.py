"""
Shared vocabularies: allergens, dietary tags, canonical dish categories.

Seeded on startup when the tables are empty; the rows are referenced by
code everywhere else.
"""
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from eatme.models import Allergen, DietaryTag, DishCategory
from eatme.utils.helpers import slugify

logger = logging.getLogger(__name__)


# (code, name, icon)
ALLERGENS = [
    ("milk", "Milk", "🥛"),
    ("eggs", "Eggs", "🥚"),
    ("fish", "Fish", "🐟"),
    ("shellfish", "Shellfish", "🦐"),
    ("tree_nuts", "Tree Nuts", "🌰"),
    ("peanuts", "Peanuts", "🥜"),
    ("wheat", "Wheat", "🌾"),
    ("soybeans", "Soybeans", "🫘"),
    ("sesame", "Sesame", None),
    ("gluten", "Gluten", "🍞"),
    ("lactose", "Lactose", None),
    ("sulfites", "Sulfites", "🍷"),
    ("mustard", "Mustard", None),
    ("celery", "Celery", "🥬"),
]

# (code, name, category)
DIETARY_TAGS = [
    ("vegetarian", "Vegetarian", "diet"),
    ("vegan", "Vegan", "diet"),
    ("pescatarian", "Pescatarian", "diet"),
    ("keto", "Keto", "diet"),
    ("paleo", "Paleo", "diet"),
    ("low_carb", "Low Carb", "diet"),
    ("gluten_free", "Gluten Free", "health"),
    ("dairy_free", "Dairy Free", "health"),
    ("diabetic_friendly", "Diabetic Friendly", "health"),
    ("heart_healthy", "Heart Healthy", "health"),
    ("halal", "Halal", "religious"),
    ("kosher", "Kosher", "religious"),
    ("hindu", "Hindu", "religious"),
    ("jain", "Jain", "religious"),
    ("organic", "Organic", "lifestyle"),
    ("raw", "Raw", "lifestyle"),
]

# Tags whose presence on an ingredient is governed by its is_vegetarian / is_vegan flags
FLAG_DIETARY_TAGS = {"vegetarian", "vegan"}

FOOD_DISH_CATEGORIES = [
    "Pizza", "Pasta", "Burger", "Sandwich", "Salad", "Soup", "Sushi", "Ramen",
    "Curry", "Tacos", "Burrito", "Noodles", "Fried rice", "Dumplings", "Steak",
    "Seafood", "BBQ", "Dessert", "Pastries", "Breakfast",
]
DRINK_DISH_CATEGORIES = [
    "Coffee", "Tea", "Juice", "Smoothie", "Soft drink", "Beer", "Wine", "Cocktail",
]


async def seed_vocabularies(db: AsyncSession) -> dict[str, int]:
    """Insert the allergen, dietary tag and dish category vocabularies into empty tables."""
    created = {"allergens": 0, "dietary_tags": 0, "dish_categories": 0}

    if not (await db.execute(select(func.count(Allergen.id)))).scalar():
        db.add_all(Allergen(code=code, name=name, icon=icon) for code, name, icon in ALLERGENS)
        created["allergens"] = len(ALLERGENS)

    if not (await db.execute(select(func.count(DietaryTag.id)))).scalar():
        db.add_all(
            DietaryTag(code=code, name=name, category=category)
            for code, name, category in DIETARY_TAGS
        )
        created["dietary_tags"] = len(DIETARY_TAGS)

    if not (await db.execute(select(func.count(DishCategory.id)))).scalar():
        db.add_all(DishCategory(name=n, slug=slugify(n), is_drink=False) for n in FOOD_DISH_CATEGORIES)
        db.add_all(DishCategory(name=n, slug=slugify(n), is_drink=True) for n in DRINK_DISH_CATEGORIES)
        created["dish_categories"] = len(FOOD_DISH_CATEGORIES) + len(DRINK_DISH_CATEGORIES)

    await db.commit()
    if any(created.values()):
        logger.info(f"Seeded vocabularies: {created}")
    return created
