"""
Dish allergen and dietary-tag derivation.

``dishes.allergens`` / ``dishes.dietary_tags`` are a materialized view of the
dish's linked canonical ingredients, recomputed inside the same transaction
as every change to the dish's ingredient links.

- allergens: union of every linked ingredient's allergen codes
- dietary tags: tags carried by *all* linked ingredients; an ingredient's
  vegetarian/vegan tags come from its flags, not from tag links
"""
import logging
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eatme.exceptions import DishNotFoundError
from eatme.models import CanonicalIngredient, Dish, DishIngredient
from eatme.services.vocabulary import FLAG_DIETARY_TAGS
from eatme.utils.helpers import sorted_unique

logger = logging.getLogger(__name__)


def ingredient_dietary_codes(ingredient: CanonicalIngredient) -> set[str]:
    codes = {tag.code for tag in ingredient.dietary_tags} - FLAG_DIETARY_TAGS
    if ingredient.is_vegan:
        codes.update(("vegan", "vegetarian"))
    elif ingredient.is_vegetarian:
        codes.add("vegetarian")
    return codes


def calculate_dish_allergens(ingredients: Iterable[CanonicalIngredient]) -> list[str]:
    return sorted_unique(allergen.code for ingredient in ingredients for allergen in ingredient.allergens)


def calculate_dish_dietary_tags(ingredients: Sequence[CanonicalIngredient]) -> list[str]:
    if not ingredients:
        return []
    shared = set.intersection(*(ingredient_dietary_codes(i) for i in ingredients))
    return sorted(shared)


async def load_linked_ingredients(db: AsyncSession, dish_id: int) -> Sequence[CanonicalIngredient]:
    result = await db.execute(
        select(CanonicalIngredient)
        .join(DishIngredient, DishIngredient.canonical_ingredient_id == CanonicalIngredient.id)
        .where(DishIngredient.dish_id == dish_id)
        .options(
            selectinload(CanonicalIngredient.allergens),
            selectinload(CanonicalIngredient.dietary_tags),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalars().unique().all()


async def refresh_dish_attributes(db: AsyncSession, dish: Dish) -> Dish:
    """Recompute the derived columns from the current links. Flushes, does not commit."""
    ingredients = await load_linked_ingredients(db, dish.id)
    dish.allergens = calculate_dish_allergens(ingredients)
    dish.dietary_tags = calculate_dish_dietary_tags(ingredients)
    await db.flush()

    logger.debug(
        f"Dish {dish.id}: {len(ingredients)} ingredient(s) -> "
        f"allergens={dish.allergens} dietary_tags={dish.dietary_tags}"
    )
    return dish


async def recalculate_dish(db: AsyncSession, dish_id: int) -> Dish:
    dish = await db.get(Dish, dish_id)
    if not dish:
        raise DishNotFoundError(f"Dish {dish_id} not found")

    await refresh_dish_attributes(db, dish)
    await db.commit()
    logger.info(f"Recalculated attributes for dish {dish_id}")
    return dish
