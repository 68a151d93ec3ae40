"""
Restaurants API - restaurant records, menu categories and the onboarding
wizard's final submit.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import Optional

from eatme.database import get_db
from eatme.models import MenuType
from eatme.services import restaurant_service
from eatme.services.dish_authoring import (
    DishAuthoringSession,
    DishDraft,
    DishSaveOutcome,
    SelectedIngredient,
    WizardPersister,
)
from eatme.services.restaurant_service import MenuSection

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RestaurantBase(BaseModel):
    name: str = Field(..., min_length=1)
    restaurant_type: str = "restaurant"
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    phone: Optional[str] = None
    website: Optional[str] = None
    cuisines: list[str] = []
    price_range: Optional[str] = None
    delivery_available: bool = False
    takeout_available: bool = False
    dine_in_available: bool = True


class RestaurantCreate(RestaurantBase):
    pass


class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    restaurant_type: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    phone: Optional[str] = None
    website: Optional[str] = None
    cuisines: Optional[list[str]] = None
    price_range: Optional[str] = None
    delivery_available: Optional[bool] = None
    takeout_available: Optional[bool] = None
    dine_in_available: Optional[bool] = None
    is_active: Optional[bool] = None


class RestaurantResponse(RestaurantBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True


class MenuCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    menu_type: MenuType = MenuType.FOOD
    display_order: int = 0


class MenuCategoryResponse(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: Optional[str] = None
    menu_type: MenuType
    display_order: int
    is_active: bool

    class Config:
        from_attributes = True


class OnboardingDish(DishDraft):
    """A dish staged by the wizard, carrying its selected ingredients"""
    ingredients: list[SelectedIngredient] = []


class OnboardingMenu(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    menu_type: MenuType = MenuType.FOOD
    dishes: list[OnboardingDish] = []


class OnboardingRequest(BaseModel):
    restaurant: RestaurantCreate
    menus: list[OnboardingMenu] = []


class OnboardingResponse(BaseModel):
    restaurant: RestaurantResponse
    menu_categories: list[MenuCategoryResponse]
    dishes: list[DishSaveOutcome]
    warnings: list[str] = []


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[RestaurantResponse])
async def list_restaurants(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await restaurant_service.list_restaurants(db, active_only=not include_inactive)


@router.post("", response_model=RestaurantResponse)
async def create_restaurant(data: RestaurantCreate, db: AsyncSession = Depends(get_db)):
    return await restaurant_service.create_restaurant(db, **data.model_dump())


@router.post("/onboard", response_model=OnboardingResponse)
async def onboard_restaurant(data: OnboardingRequest, db: AsyncSession = Depends(get_db)):
    """
    Wizard final submit: restaurant, menu categories, then dishes.

    Every dish is validated before anything is written. Ingredient links are
    applied once each dish exists; failures come back as warnings.
    """
    sections = []
    for menu in data.menus:
        wizard = WizardPersister()
        for staged in menu.dishes:
            # dishes land in the menu they were staged under
            draft = DishDraft(**staged.model_dump(exclude={"ingredients", "menu_category_id"}))
            session = DishAuthoringSession(wizard, draft)
            for ingredient in staged.ingredients:
                session.add_ingredient(ingredient)
            await session.save()
        sections.append(
            MenuSection(name=menu.name, description=menu.description, menu_type=menu.menu_type, wizard=wizard)
        )

    result = await restaurant_service.onboard_restaurant(db, data.restaurant.model_dump(), sections)
    return OnboardingResponse(
        restaurant=RestaurantResponse.model_validate(result.restaurant),
        menu_categories=[MenuCategoryResponse.model_validate(c) for c in result.menu_categories],
        dishes=result.dishes,
        warnings=result.warnings,
    )


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await restaurant_service.get_restaurant(db, restaurant_id)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: int, data: RestaurantUpdate, db: AsyncSession = Depends(get_db)
):
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    return await restaurant_service.update_restaurant(db, restaurant_id, **changes)


@router.get("/{restaurant_id}/menu-categories", response_model=list[MenuCategoryResponse])
async def list_menu_categories(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await restaurant_service.list_menu_categories(db, restaurant_id)


@router.post("/{restaurant_id}/menu-categories", response_model=MenuCategoryResponse)
async def create_menu_category(
    restaurant_id: int, data: MenuCategoryCreate, db: AsyncSession = Depends(get_db)
):
    return await restaurant_service.create_menu_category(db, restaurant_id, **data.model_dump())
