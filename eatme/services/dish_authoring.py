"""
Dish authoring: one editing session, two ways of persisting it.

The session holds the dish draft and the ingredient selection. Where the
result goes is decided by the persister it is given:

- ``DirectPersister`` (menu editor): the dish already has, or immediately
  gets, a database id. Scalars are written first, then the selection is
  handed to the linker. A linker failure after the scalar write is reported
  as ``saved_with_warning``; the dish row stays.
- ``WizardPersister`` (onboarding): nothing exists in the database yet.
  Drafts are staged in memory together with their selection and only
  written by ``commit`` once the restaurant and menu categories have ids.
  Each staged entry has a local key; saving the same session again
  replaces that entry instead of staging a second copy.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eatme.exceptions import DishNotFoundError, DishValidationError, IngredientNotFoundError
from eatme.models import Dish, DishCategory, MenuCategory
from eatme.models.dish import DescriptionVisibility, IngredientsVisibility
from eatme.services.dish_ingredient_service import (
    IngredientSelection,
    LinkedIngredient,
    get_dish_ingredients,
    set_dish_ingredients,
)
from eatme.services.ingredient_service import IngredientSearchResult
from eatme.utils.validators import (
    validate_calories,
    validate_dish_name,
    validate_price,
    validate_spice_level,
)

logger = logging.getLogger(__name__)

LINK_WARNING = "Dish saved, but its ingredients could not be saved. Please try again."


class DishDraft(BaseModel):
    name: str = ""
    description: Optional[str] = None
    price: Optional[float] = None
    calories: Optional[int] = None
    spice_level: Optional[int] = None
    photo_url: Optional[str] = None
    is_available: bool = True
    display_order: int = 0
    menu_category_id: Optional[int] = None
    dish_category_id: Optional[int] = None
    description_visibility: DescriptionVisibility = DescriptionVisibility.MENU
    ingredients_visibility: IngredientsVisibility = IngredientsVisibility.DETAIL

    def column_values(self) -> dict:
        return self.model_dump()


class SelectedIngredient(BaseModel):
    canonical_ingredient_id: int
    display_name: str = ""
    canonical_name: Optional[str] = None
    quantity: Optional[str] = None


class DishSaveOutcome(BaseModel):
    status: Literal["saved", "saved_with_warning", "staged"]
    dish_id: Optional[int] = None
    staged_key: Optional[str] = None
    name: Optional[str] = None
    warning: Optional[str] = None


def validate_draft(draft: DishDraft, require_menu_category: bool = True) -> None:
    """Raise DishValidationError listing every failing field."""
    errors = {
        "name": validate_dish_name(draft.name),
        "price": validate_price(draft.price),
        "calories": validate_calories(draft.calories),
        "spice_level": validate_spice_level(draft.spice_level),
    }
    if require_menu_category and draft.menu_category_id is None:
        errors["menu_category_id"] = "Menu category is required"

    errors = {k: v for k, v in errors.items() if v}
    if errors:
        raise DishValidationError("Dish is invalid", details=errors)


def _to_link_selection(selection: list[SelectedIngredient]) -> list[IngredientSelection]:
    return [
        IngredientSelection(canonical_ingredient_id=s.canonical_ingredient_id, quantity=s.quantity)
        for s in selection
    ]


async def _link_or_warn(db: AsyncSession, dish_id: int, dish_name: str, selection: list[SelectedIngredient]) -> Optional[str]:
    """Run the linker; a failure is logged and returned as warning text."""
    try:
        await set_dish_ingredients(db, dish_id, _to_link_selection(selection))
    except (IngredientNotFoundError, SQLAlchemyError) as e:
        logger.warning(f"Ingredient links for dish {dish_id} ('{dish_name}') failed: {e}")
        return LINK_WARNING
    return None


async def check_dish_category(db: AsyncSession, dish_category_id: Optional[int]) -> None:
    """A dish may only point at an existing, active dish category."""
    if dish_category_id is None:
        return
    result = await db.execute(
        select(DishCategory.id).where(
            DishCategory.id == dish_category_id,
            DishCategory.is_active == True,  # noqa: E712
        )
    )
    if result.first() is None:
        raise DishValidationError(
            "Dish is invalid",
            details={"dish_category_id": f"Dish category {dish_category_id} not found or inactive"},
        )


class DishPersister(Protocol):
    async def save(
        self,
        draft: DishDraft,
        selection: list[SelectedIngredient],
        dish_id: Optional[int] = None,
        staged_key: Optional[str] = None,
    ) -> DishSaveOutcome:
        ...


class DirectPersister:
    """Writes straight to the database; used once the restaurant exists."""

    def __init__(self, db: AsyncSession, restaurant_id: int):
        self.db = db
        self.restaurant_id = restaurant_id

    async def _check_menu_category(self, menu_category_id: int) -> None:
        result = await self.db.execute(
            select(MenuCategory.id).where(
                MenuCategory.id == menu_category_id,
                MenuCategory.restaurant_id == self.restaurant_id,
            )
        )
        if result.first() is None:
            raise DishValidationError(
                "Dish is invalid",
                details={"menu_category_id": "Menu category not found for this restaurant"},
            )

    async def save(
        self,
        draft: DishDraft,
        selection: list[SelectedIngredient],
        dish_id: Optional[int] = None,
        staged_key: Optional[str] = None,
    ) -> DishSaveOutcome:
        validate_draft(draft, require_menu_category=True)
        await self._check_menu_category(draft.menu_category_id)

        dish = None
        if dish_id is not None:
            dish = await self.db.get(Dish, dish_id)
            if not dish or dish.restaurant_id != self.restaurant_id:
                raise DishNotFoundError(f"Dish {dish_id} not found")
        # a category deactivated after the dish was filed under it stays valid for that dish
        if dish is None or dish.dish_category_id != draft.dish_category_id:
            await check_dish_category(self.db, draft.dish_category_id)

        if dish is None:
            dish = Dish(restaurant_id=self.restaurant_id, **draft.column_values())
            self.db.add(dish)
        else:
            for key, value in draft.column_values().items():
                setattr(dish, key, value)

        await self.db.commit()
        saved_id = dish.id
        logger.info(f"Saved dish {saved_id} ('{draft.name}') for restaurant {self.restaurant_id}")

        warning = await _link_or_warn(self.db, saved_id, draft.name, selection)
        return DishSaveOutcome(
            status="saved_with_warning" if warning else "saved",
            dish_id=saved_id,
            name=draft.name,
            warning=warning,
        )


@dataclass
class StagedDish:
    draft: DishDraft
    selection: list[SelectedIngredient] = field(default_factory=list)
    key: str = field(default_factory=lambda: uuid.uuid4().hex)


class WizardPersister:
    """Keeps drafts in memory until the onboarding submit creates the restaurant."""

    def __init__(self):
        self.staged: list[StagedDish] = []

    def _index(self, staged_key: str) -> int:
        for i, staged in enumerate(self.staged):
            if staged.key == staged_key:
                return i
        raise KeyError(staged_key)

    async def save(
        self,
        draft: DishDraft,
        selection: list[SelectedIngredient],
        dish_id: Optional[int] = None,
        staged_key: Optional[str] = None,
    ) -> DishSaveOutcome:
        """Stage a draft, or replace the staged entry ``staged_key`` in place."""
        # menu categories may not exist yet; checked again at commit
        validate_draft(draft, require_menu_category=False)
        staged = StagedDish(
            draft=draft.model_copy(deep=True),
            selection=[s.model_copy() for s in selection],
        )
        if staged_key is None:
            self.staged.append(staged)
        else:
            staged.key = staged_key
            self.staged[self._index(staged_key)] = staged
        return DishSaveOutcome(status="staged", staged_key=staged.key, name=draft.name)

    def remove(self, staged_key: str) -> bool:
        before = len(self.staged)
        self.staged = [s for s in self.staged if s.key != staged_key]
        return len(self.staged) != before

    async def check_references(self, db: AsyncSession) -> None:
        """Check every staged dish category; raises before anything is written."""
        for staged in self.staged:
            await check_dish_category(db, staged.draft.dish_category_id)

    async def commit(
        self, db: AsyncSession, restaurant_id: int, menu_category_id: Optional[int] = None
    ) -> list[DishSaveOutcome]:
        """
        Create every staged dish, then link its ingredients.

        ``menu_category_id`` is used for drafts that do not name their own.
        A link failure on one dish is a warning on that dish only.
        """
        for staged in self.staged:
            if staged.draft.menu_category_id is None and menu_category_id is None:
                raise DishValidationError(
                    "Dish is invalid",
                    details={"menu_category_id": f"Menu category is required for '{staged.draft.name}'"},
                )
        await self.check_references(db)

        dishes = []
        for staged in self.staged:
            values = staged.draft.column_values()
            values["menu_category_id"] = staged.draft.menu_category_id or menu_category_id
            dish = Dish(restaurant_id=restaurant_id, **values)
            db.add(dish)
            dishes.append(dish)
        await db.commit()
        dish_ids = [dish.id for dish in dishes]
        logger.info(f"Wizard created {len(dish_ids)} dish(es) for restaurant {restaurant_id}")

        outcomes = []
        for dish_id, staged in zip(dish_ids, self.staged):
            warning = None
            if staged.selection:
                warning = await _link_or_warn(db, dish_id, staged.draft.name, staged.selection)
            outcomes.append(
                DishSaveOutcome(
                    status="saved_with_warning" if warning else "saved",
                    dish_id=dish_id,
                    name=staged.draft.name,
                    warning=warning,
                )
            )

        self.staged = []
        return outcomes


class DishAuthoringSession:
    """Draft + ingredient selection for one dish being created or edited."""

    def __init__(self, persister: Union[DirectPersister, WizardPersister], draft: Optional[DishDraft] = None):
        self.persister = persister
        self.draft = draft or DishDraft()
        self.selection: list[SelectedIngredient] = []
        self.dish_id: Optional[int] = None
        self.staged_key: Optional[str] = None

    async def open(self, db: AsyncSession, dish_id: int) -> "DishAuthoringSession":
        """Seed the draft and selection from a stored dish."""
        dish = await db.get(Dish, dish_id, populate_existing=True)
        if not dish:
            raise DishNotFoundError(f"Dish {dish_id} not found")

        self.dish_id = dish.id
        self.draft = DishDraft.model_validate(
            {name: getattr(dish, name) for name in DishDraft.model_fields}
        )
        linked = await get_dish_ingredients(db, dish_id)
        self.selection = [self._from_linked(item) for item in linked]
        return self

    @staticmethod
    def _from_linked(item: LinkedIngredient) -> SelectedIngredient:
        return SelectedIngredient(
            canonical_ingredient_id=item.canonical_ingredient_id,
            display_name=item.display_name,
            canonical_name=item.canonical_name,
            quantity=item.quantity,
        )

    def update_draft(self, **fields) -> DishDraft:
        self.draft = self.draft.model_copy(update=fields)
        return self.draft

    def selected_ids(self) -> list[int]:
        return [s.canonical_ingredient_id for s in self.selection]

    def add_ingredient(
        self, ingredient: Union[IngredientSearchResult, SelectedIngredient], quantity: Optional[str] = None
    ) -> bool:
        """Add a search result to the selection. Already-selected canonical ids are ignored."""
        if ingredient.canonical_ingredient_id in self.selected_ids():
            return False

        if isinstance(ingredient, IngredientSearchResult):
            ingredient = SelectedIngredient(
                canonical_ingredient_id=ingredient.canonical_ingredient_id,
                display_name=ingredient.display_name,
                canonical_name=ingredient.canonical_name,
                quantity=quantity,
            )
        elif quantity is not None:
            ingredient = ingredient.model_copy(update={"quantity": quantity})
        self.selection.append(ingredient)
        return True

    def remove_ingredient(self, canonical_ingredient_id: int) -> bool:
        before = len(self.selection)
        self.selection = [s for s in self.selection if s.canonical_ingredient_id != canonical_ingredient_id]
        return len(self.selection) != before

    def set_quantity(self, canonical_ingredient_id: int, quantity: Optional[str]) -> None:
        for i, selected in enumerate(self.selection):
            if selected.canonical_ingredient_id == canonical_ingredient_id:
                self.selection[i] = selected.model_copy(update={"quantity": quantity})
                return
        raise KeyError(canonical_ingredient_id)

    async def save(self) -> DishSaveOutcome:
        outcome = await self.persister.save(self.draft, self.selection, self.dish_id, self.staged_key)
        if outcome.dish_id is not None:
            self.dish_id = outcome.dish_id
        if outcome.staged_key is not None:
            self.staged_key = outcome.staged_key
        return outcome
