"""
Dish category suggestions and canonical dish-category administration.
"""
import logging
from typing import Optional, Sequence

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from eatme.exceptions import ConflictError, DishCategoryNotFoundError, ServiceValidationError
from eatme.models import DishCategory
from eatme.utils.helpers import slugify

logger = logging.getLogger(__name__)


# Typical menu categories per cuisine, most common first
CUISINE_CATEGORIES: dict[str, list[str]] = {
    "Mexican": ["Tacos", "Burrito", "Quesadilla", "Enchiladas", "Nachos"],
    "Italian": ["Pizza", "Pasta", "Risotto", "Lasagna", "Antipasti"],
    "Chinese": ["Fried rice", "Noodles", "Dumplings", "Stir fry", "Dim sum"],
    "Japanese": ["Sushi", "Ramen", "Udon", "Tempura", "Donburi"],
    "Indian": ["Curry", "Naan", "Biryani", "Tandoori", "Samosas"],
    "Thai": ["Pad Thai", "Curry", "Tom Yum", "Stir fry", "Noodles"],
    "American": ["Burger", "Steak", "Fried chicken", "BBQ", "Sandwich"],
    "French": ["Crepes", "Pastries", "Steak", "Salad", "Dessert"],
    "Greek": ["Gyro", "Salad", "Souvlaki", "Moussaka", "Mezze"],
    "Korean": ["Korean BBQ", "Bibimbap", "Kimchi", "Stir fry", "Hot pot"],
    "Vietnamese": ["Pho", "Banh Mi", "Spring Rolls", "Noodle soup", "Rice dish"],
    "Spanish": ["Tapas", "Paella", "Churros", "Tortilla", "Gazpacho"],
    "Middle Eastern": ["Shawarma", "Falafel", "Hummus", "Kebab", "Mezze"],
}


def _cuisine_key(cuisine: str) -> str:
    return " ".join(cuisine.replace("_", " ").split()).lower()


_CUISINE_LOOKUP = {_cuisine_key(name): categories for name, categories in CUISINE_CATEGORIES.items()}


def suggest_categories(cuisine: Optional[str]) -> list[str]:
    """Suggested dish categories for a cuisine; unknown or missing cuisine gives []."""
    if not cuisine:
        return []
    return list(_CUISINE_LOOKUP.get(_cuisine_key(cuisine), []))


async def list_dish_categories(
    db: AsyncSession, kind: Optional[str] = None, include_inactive: bool = False
) -> Sequence[DishCategory]:
    query = select(DishCategory).order_by(DishCategory.name)
    if not include_inactive:
        query = query.where(DishCategory.is_active == True)  # noqa: E712
    if kind == "food":
        query = query.where(DishCategory.is_drink == False)  # noqa: E712
    elif kind == "drink":
        query = query.where(DishCategory.is_drink == True)  # noqa: E712
    elif kind is not None:
        raise ServiceValidationError("kind must be 'food' or 'drink'")
    result = await db.execute(query)
    return result.scalars().all()


async def get_dish_category(db: AsyncSession, category_id: int) -> DishCategory:
    category = await db.get(DishCategory, category_id)
    if not category:
        raise DishCategoryNotFoundError(f"Dish category {category_id} not found")
    return category


async def _check_unique(db: AsyncSession, name: str, slug: str, exclude_id: Optional[int] = None) -> None:
    query = select(DishCategory.id).where(or_(DishCategory.name == name, DishCategory.slug == slug))
    if exclude_id is not None:
        query = query.where(DishCategory.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Dish category '{name}' already exists")


async def _check_parent(db: AsyncSession, parent_id: Optional[int], category_id: Optional[int] = None) -> None:
    if parent_id is None:
        return
    if parent_id == category_id:
        raise ServiceValidationError("A dish category cannot be its own parent")
    await get_dish_category(db, parent_id)


async def create_dish_category(
    db: AsyncSession,
    name: str,
    slug: Optional[str] = None,
    parent_category_id: Optional[int] = None,
    is_drink: bool = False,
) -> DishCategory:
    name = name.strip()
    if not name:
        raise ServiceValidationError("Dish category name cannot be empty")
    slug = slugify(slug or name)

    await _check_unique(db, name, slug)
    await _check_parent(db, parent_category_id)

    category = DishCategory(
        name=name,
        slug=slug,
        parent_category_id=parent_category_id,
        is_drink=is_drink,
        is_active=True,
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)
    logger.info(f"Created dish category '{name}' ({slug})")
    return category


async def update_dish_category(db: AsyncSession, category_id: int, **changes) -> DishCategory:
    category = await get_dish_category(db, category_id)

    name = (changes.get("name") or category.name).strip()
    if changes.get("slug"):
        slug = slugify(changes["slug"])
    elif changes.get("name"):
        slug = slugify(name)
    else:
        slug = category.slug
    await _check_unique(db, name, slug, exclude_id=category_id)
    if "parent_category_id" in changes:
        await _check_parent(db, changes["parent_category_id"], category_id)
        category.parent_category_id = changes["parent_category_id"]

    category.name = name
    category.slug = slug
    for key in ("is_drink", "is_active"):
        if changes.get(key) is not None:
            setattr(category, key, changes[key])

    await db.commit()
    await db.refresh(category)
    return category


async def deactivate_dish_category(db: AsyncSession, category_id: int) -> DishCategory:
    category = await get_dish_category(db, category_id)
    category.is_active = False
    await db.commit()
    await db.refresh(category)
    logger.info(f"Deactivated dish category {category_id}")
    return category


async def delete_dish_category(db: AsyncSession, category_id: int) -> None:
    category = await get_dish_category(db, category_id)
    await db.delete(category)
    await db.commit()
    logger.info(f"Deleted dish category {category_id}")
