"""
Restaurants, menu categories and the onboarding submit.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eatme.exceptions import RestaurantNotFoundError
from eatme.models import MenuCategory, MenuType, Restaurant
from eatme.services.dish_authoring import DishSaveOutcome, WizardPersister

logger = logging.getLogger(__name__)


async def list_restaurants(db: AsyncSession, active_only: bool = True) -> Sequence[Restaurant]:
    query = select(Restaurant).order_by(Restaurant.name)
    if active_only:
        query = query.where(Restaurant.is_active == True)  # noqa: E712
    result = await db.execute(query)
    return result.scalars().all()


async def get_restaurant(db: AsyncSession, restaurant_id: int) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise RestaurantNotFoundError(f"Restaurant {restaurant_id} not found")
    return restaurant


async def create_restaurant(db: AsyncSession, **values) -> Restaurant:
    restaurant = Restaurant(**values)
    db.add(restaurant)
    await db.commit()
    await db.refresh(restaurant)
    logger.info(f"Created restaurant {restaurant.id} ('{restaurant.name}')")
    return restaurant


async def update_restaurant(db: AsyncSession, restaurant_id: int, **changes) -> Restaurant:
    restaurant = await get_restaurant(db, restaurant_id)
    for key, value in changes.items():
        setattr(restaurant, key, value)
    await db.commit()
    await db.refresh(restaurant)
    return restaurant


async def list_menu_categories(db: AsyncSession, restaurant_id: int) -> Sequence[MenuCategory]:
    await get_restaurant(db, restaurant_id)
    result = await db.execute(
        select(MenuCategory)
        .where(MenuCategory.restaurant_id == restaurant_id)
        .order_by(MenuCategory.display_order, MenuCategory.id)
    )
    return result.scalars().all()


async def create_menu_category(db: AsyncSession, restaurant_id: int, **values) -> MenuCategory:
    await get_restaurant(db, restaurant_id)
    category = MenuCategory(restaurant_id=restaurant_id, **values)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


@dataclass
class MenuSection:
    """A menu category collected by the onboarding wizard, with its staged dishes"""
    name: str
    description: Optional[str] = None
    menu_type: MenuType = MenuType.FOOD
    wizard: WizardPersister = field(default_factory=WizardPersister)


@dataclass
class OnboardingResult:
    restaurant: Restaurant
    menu_categories: list[MenuCategory]
    dishes: list[DishSaveOutcome]

    @property
    def warnings(self) -> list[str]:
        return [f"{d.name}: {d.warning}" for d in self.dishes if d.warning]


async def onboard_restaurant(
    db: AsyncSession, restaurant_values: dict, sections: list[MenuSection]
) -> OnboardingResult:
    """
    Create the restaurant and its menu categories, then the staged dishes.

    Dish category references are checked for every staged dish first, so a
    bad one leaves nothing written. Ingredient links are written only after
    each dish id exists; a failed link shows up as a warning on that dish.
    """
    for section in sections:
        await section.wizard.check_references(db)

    restaurant = Restaurant(**restaurant_values)
    db.add(restaurant)
    await db.flush()

    categories = []
    for order, section in enumerate(sections):
        category = MenuCategory(
            restaurant_id=restaurant.id,
            name=section.name,
            description=section.description,
            menu_type=section.menu_type,
            display_order=order,
        )
        db.add(category)
        categories.append(category)
    await db.commit()
    restaurant_id = restaurant.id
    category_ids = [c.id for c in categories]
    logger.info(f"Onboarding restaurant {restaurant_id}: {len(categories)} menu categories")

    outcomes: list[DishSaveOutcome] = []
    for category_id, section in zip(category_ids, sections):
        outcomes.extend(await section.wizard.commit(db, restaurant_id, menu_category_id=category_id))

    result = OnboardingResult(
        restaurant=await get_restaurant(db, restaurant_id),
        menu_categories=list(await list_menu_categories(db, restaurant_id)),
        dishes=outcomes,
    )
    if result.warnings:
        logger.warning(f"Onboarding restaurant {restaurant_id} finished with warnings: {result.warnings}")
    return result
