"""
Dishes API - direct-mode dish editor, ingredient link replacement and the
derived allergen / dietary-tag reads.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from typing import Optional

from eatme.database import get_db
from eatme.exceptions import DishNotFoundError
from eatme.models import Dish, DishIngredient
from eatme.models.dish import DescriptionVisibility, IngredientsVisibility
from eatme.services.attribute_derivation import recalculate_dish
from eatme.services.dish_authoring import (
    DirectPersister,
    DishAuthoringSession,
    DishSaveOutcome,
    SelectedIngredient,
)
from eatme.services.dish_ingredient_service import (
    IngredientSelection,
    LinkedIngredient,
    get_dish_ingredients,
    set_dish_ingredients,
)
from eatme.services.restaurant_service import get_restaurant
from eatme.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DishResponse(BaseModel):
    id: int
    restaurant_id: int
    menu_category_id: int
    dish_category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    price: float
    calories: Optional[int] = None
    spice_level: Optional[int] = None
    photo_url: Optional[str] = None
    is_available: bool
    display_order: int
    description_visibility: DescriptionVisibility
    ingredients_visibility: IngredientsVisibility
    allergens: list[str] = []
    dietary_tags: list[str] = []

    class Config:
        from_attributes = True


# allergens / dietary_tags are derived and deliberately absent here
class DishFields(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    calories: Optional[int] = None
    spice_level: Optional[int] = None
    photo_url: Optional[str] = None
    is_available: Optional[bool] = None
    display_order: Optional[int] = None
    menu_category_id: Optional[int] = None
    dish_category_id: Optional[int] = None
    description_visibility: Optional[DescriptionVisibility] = None
    ingredients_visibility: Optional[IngredientsVisibility] = None


class DishCreate(DishFields):
    restaurant_id: int
    ingredients: list[SelectedIngredient] = []


class DishUpdate(DishFields):
    ingredients: Optional[list[SelectedIngredient]] = None  # None keeps current links


class DishSaveResponse(DishSaveOutcome):
    dish: DishResponse


class DishAllergensResponse(BaseModel):
    dish_id: int
    allergens: list[str]


class DishDietaryTagsResponse(BaseModel):
    dish_id: int
    dietary_tags: list[str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _load_dish(db: AsyncSession, dish_id: int) -> Dish:
    result = await db.execute(
        select(Dish).where(Dish.id == dish_id).execution_options(populate_existing=True)
    )
    dish = result.scalar_one_or_none()
    if not dish:
        raise DishNotFoundError(f"Dish {dish_id} not found")
    return dish


# Columns a PUT may explicitly clear with null
CLEARABLE_FIELDS = {"description", "calories", "spice_level", "photo_url", "dish_category_id"}


def _apply_fields(session: DishAuthoringSession, data: DishFields) -> None:
    fields = data.model_dump(exclude_unset=True, exclude={"restaurant_id", "ingredients"})
    fields = {k: v for k, v in fields.items() if v is not None or k in CLEARABLE_FIELDS}
    session.update_draft(**fields)


def _apply_selection(session: DishAuthoringSession, ingredients: list[SelectedIngredient]) -> None:
    session.selection = []
    for item in ingredients:
        # later duplicates only update the quantity
        if not session.add_ingredient(item):
            session.set_quantity(item.canonical_ingredient_id, item.quantity)


async def _save_response(db: AsyncSession, outcome: DishSaveOutcome) -> DishSaveResponse:
    dish = await _load_dish(db, outcome.dish_id)
    return DishSaveResponse(**outcome.model_dump(), dish=DishResponse.model_validate(dish))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[DishResponse])
async def list_dishes(
    restaurant_id: Optional[int] = Query(None),
    menu_category_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Dish).order_by(Dish.display_order, Dish.id).execution_options(populate_existing=True)
    if restaurant_id is not None:
        query = query.where(Dish.restaurant_id == restaurant_id)
    if menu_category_id is not None:
        query = query.where(Dish.menu_category_id == menu_category_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("", response_model=DishSaveResponse)
async def create_dish(data: DishCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a dish and link its ingredients.

    ``status`` is ``saved_with_warning`` when the dish was stored but its
    ingredient links were not.
    """
    await get_restaurant(db, data.restaurant_id)
    session = DishAuthoringSession(DirectPersister(db, data.restaurant_id))
    _apply_fields(session, data)
    _apply_selection(session, data.ingredients)
    outcome = await session.save()
    return await _save_response(db, outcome)


@router.get("/{dish_id}", response_model=DishResponse)
async def get_dish(dish_id: int, db: AsyncSession = Depends(get_db)):
    return await _load_dish(db, dish_id)


@router.put("/{dish_id}", response_model=DishSaveResponse)
async def update_dish(dish_id: int, data: DishUpdate, db: AsyncSession = Depends(get_db)):
    dish = await _load_dish(db, dish_id)
    session = DishAuthoringSession(DirectPersister(db, dish.restaurant_id))
    await session.open(db, dish_id)
    _apply_fields(session, data)
    if data.ingredients is not None:
        _apply_selection(session, data.ingredients)
    outcome = await session.save()
    return await _save_response(db, outcome)


@router.delete("/{dish_id}")
async def delete_dish(dish_id: int, db: AsyncSession = Depends(get_db)):
    await _load_dish(db, dish_id)
    await db.execute(delete(DishIngredient).where(DishIngredient.dish_id == dish_id))
    await db.execute(delete(Dish).where(Dish.id == dish_id))
    await db.commit()
    logger.info(f"Deleted dish {dish_id}")
    return {"message": "Dish deleted"}


@router.get("/{dish_id}/ingredients", response_model=list[LinkedIngredient])
async def list_dish_ingredients(dish_id: int, db: AsyncSession = Depends(get_db)):
    return await get_dish_ingredients(db, dish_id)


@router.put("/{dish_id}/ingredients", response_model=list[LinkedIngredient])
async def replace_dish_ingredients(
    dish_id: int,
    selection: list[IngredientSelection],
    db: AsyncSession = Depends(get_db),
):
    """Replace the whole ingredient list. Re-read the dish for its derived attributes."""
    return await set_dish_ingredients(db, dish_id, selection)


@router.post("/{dish_id}/recalculate", response_model=DishResponse)
async def recalculate_dish_attributes(dish_id: int, db: AsyncSession = Depends(get_db)):
    return await recalculate_dish(db, dish_id)


@router.get("/{dish_id}/allergens", response_model=DishAllergensResponse)
async def get_dish_allergens(dish_id: int, db: AsyncSession = Depends(get_db)):
    dish = await _load_dish(db, dish_id)
    return DishAllergensResponse(dish_id=dish.id, allergens=dish.allergens or [])


@router.get("/{dish_id}/dietary-tags", response_model=DishDietaryTagsResponse)
async def get_dish_dietary_tags(dish_id: int, db: AsyncSession = Depends(get_db)):
    dish = await _load_dish(db, dish_id)
    return DishDietaryTagsResponse(dish_id=dish.id, dietary_tags=dish.dietary_tags or [])
