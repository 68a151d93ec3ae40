"""
Dish Categories API - canonical dish categories and per-cuisine suggestions.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import Literal, Optional

from eatme.database import get_db
from eatme.services import category_service

router = APIRouter()


class DishCategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    parent_category_id: Optional[int] = None
    is_drink: bool
    is_active: bool

    class Config:
        from_attributes = True


class DishCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    parent_category_id: Optional[int] = None
    is_drink: bool = False


class DishCategoryUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    parent_category_id: Optional[int] = None
    is_drink: Optional[bool] = None
    is_active: Optional[bool] = None


class CategorySuggestions(BaseModel):
    cuisine: Optional[str] = None
    suggestions: list[str]


@router.get("", response_model=list[DishCategoryResponse])
async def list_dish_categories(
    kind: Optional[Literal["food", "drink"]] = Query(None),
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.list_dish_categories(db, kind, include_inactive)


@router.get("/suggestions", response_model=CategorySuggestions)
async def suggest_categories(cuisine: Optional[str] = Query(None)):
    """Typical categories for a cuisine; empty for cuisines we have no table for."""
    return CategorySuggestions(cuisine=cuisine, suggestions=category_service.suggest_categories(cuisine))


@router.post("", response_model=DishCategoryResponse)
async def create_dish_category(data: DishCategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_dish_category(
        db,
        name=data.name,
        slug=data.slug,
        parent_category_id=data.parent_category_id,
        is_drink=data.is_drink,
    )


@router.get("/{category_id}", response_model=DishCategoryResponse)
async def get_dish_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_dish_category(db, category_id)


@router.put("/{category_id}", response_model=DishCategoryResponse)
async def update_dish_category(
    category_id: int, data: DishCategoryUpdate, db: AsyncSession = Depends(get_db)
):
    return await category_service.update_dish_category(
        db, category_id, **data.model_dump(exclude_unset=True)
    )


@router.post("/{category_id}/deactivate", response_model=DishCategoryResponse)
async def deactivate_dish_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.deactivate_dish_category(db, category_id)


@router.delete("/{category_id}")
async def delete_dish_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await category_service.delete_dish_category(db, category_id)
    return {"message": "Dish category deleted"}
