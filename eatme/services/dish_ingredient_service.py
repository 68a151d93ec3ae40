"""
Dish-ingredient linking.

A dish's ingredient list is always written as a whole: ``set_dish_ingredients``
replaces every link row for the dish and recomputes the derived attributes in
one transaction. There are no per-ingredient add/remove writes.
"""
import logging
from typing import Optional, Sequence, Union

from pydantic import BaseModel, field_validator
from sqlalchemy import select, delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eatme.exceptions import DishNotFoundError, IngredientNotFoundError
from eatme.models import CanonicalIngredient, Dish, DishIngredient, IngredientAlias
from eatme.services.attribute_derivation import refresh_dish_attributes

logger = logging.getLogger(__name__)


class IngredientSelection(BaseModel):
    canonical_ingredient_id: int
    quantity: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def blank_quantity_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class LinkedIngredient(BaseModel):
    """A current link resolved to one display alias"""
    canonical_ingredient_id: int
    canonical_name: str
    display_name: str
    ingredient_family: str
    is_vegetarian: bool
    is_vegan: bool
    quantity: Optional[str] = None


def _collapse(selection: Sequence[Union[IngredientSelection, dict]]) -> dict[int, Optional[str]]:
    """canonical id -> quantity; a repeated id keeps the last quantity given"""
    collapsed: dict[int, Optional[str]] = {}
    for item in selection:
        if not isinstance(item, IngredientSelection):
            item = IngredientSelection.model_validate(item)
        collapsed[item.canonical_ingredient_id] = item.quantity
    return collapsed


async def _require_dish(db: AsyncSession, dish_id: int) -> Dish:
    dish = await db.get(Dish, dish_id)
    if not dish:
        raise DishNotFoundError(f"Dish {dish_id} not found")
    return dish


async def set_dish_ingredients(
    db: AsyncSession,
    dish_id: int,
    selection: Sequence[Union[IngredientSelection, dict]],
) -> list[LinkedIngredient]:
    """
    Replace the dish's ingredient links with ``selection`` and recompute its
    allergens / dietary tags.

    Every referenced id is checked before any row is touched. An empty
    selection clears the links (and with them the derived attributes).
    Returns the stored links; callers re-read the dish for derived values.
    """
    dish = await _require_dish(db, dish_id)
    links = _collapse(selection)

    if links:
        result = await db.execute(
            select(CanonicalIngredient.id).where(CanonicalIngredient.id.in_(list(links)))
        )
        missing = sorted(set(links) - set(result.scalars().all()))
        if missing:
            raise IngredientNotFoundError(
                f"Unknown canonical ingredient id(s): {', '.join(str(m) for m in missing)}",
                details={"canonical_ingredient_ids": missing},
            )

    try:
        await db.execute(delete(DishIngredient).where(DishIngredient.dish_id == dish_id))
        if links:
            await db.execute(
                insert(DishIngredient),
                [
                    {"dish_id": dish_id, "canonical_ingredient_id": canonical_id, "quantity": quantity}
                    for canonical_id, quantity in links.items()
                ],
            )
        await refresh_dish_attributes(db, dish)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(f"Replacing ingredient links for dish {dish_id} failed")
        raise

    logger.info(f"Dish {dish_id}: ingredient links replaced ({len(links)} ingredient(s))")
    return await get_dish_ingredients(db, dish_id)


async def get_dish_ingredients(db: AsyncSession, dish_id: int) -> list[LinkedIngredient]:
    await _require_dish(db, dish_id)

    result = await db.execute(
        select(DishIngredient.quantity, CanonicalIngredient)
        .join(CanonicalIngredient, DishIngredient.canonical_ingredient_id == CanonicalIngredient.id)
        .where(DishIngredient.dish_id == dish_id)
    )
    rows = result.all()
    if not rows:
        return []

    alias_result = await db.execute(
        select(IngredientAlias.canonical_ingredient_id, IngredientAlias.display_name).where(
            IngredientAlias.canonical_ingredient_id.in_([ing.id for _, ing in rows])
        )
    )
    preferred: dict[int, str] = {}
    for canonical_id, display_name in alias_result.all():
        current = preferred.get(canonical_id)
        if current is None or (display_name.lower(), display_name) < (current.lower(), current):
            preferred[canonical_id] = display_name

    linked = [
        LinkedIngredient(
            canonical_ingredient_id=ingredient.id,
            canonical_name=ingredient.canonical_name,
            display_name=preferred.get(ingredient.id, ingredient.canonical_name),
            ingredient_family=ingredient.ingredient_family,
            is_vegetarian=ingredient.is_vegetarian,
            is_vegan=ingredient.is_vegan,
            quantity=quantity,
        )
        for quantity, ingredient in rows
    ]
    linked.sort(key=lambda item: (item.display_name.lower(), item.canonical_ingredient_id))
    return linked
