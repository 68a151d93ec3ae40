"""
Ingredient alias resolution and canonical ingredient administration.

Operators type free text; ``search_ingredients`` resolves it to alias rows,
each carrying the canonical ingredient it points at. Everything downstream
(linking, derivation) works with canonical ids only.
"""
import logging
from typing import Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eatme.config import get_settings
from eatme.exceptions import (
    AliasNotFoundError,
    DuplicateIngredientError,
    IngredientInUseError,
    IngredientNotFoundError,
    ServiceValidationError,
)
from eatme.models import (
    Allergen,
    CanonicalIngredient,
    DietaryTag,
    DishIngredient,
    IngredientAlias,
    canonical_ingredient_allergens,
    canonical_ingredient_dietary_tags,
)
from eatme.models.ingredient import FAMILY_DEFAULT_ALLERGENS, INGREDIENT_FAMILIES
from eatme.services.vocabulary import FLAG_DIETARY_TAGS
from eatme.utils.db_compat import starts_with_ci
from eatme.utils.validators import normalize_canonical_name

settings = get_settings()
logger = logging.getLogger(__name__)


class IngredientSearchResult(BaseModel):
    alias_id: int
    display_name: str
    canonical_ingredient_id: int
    canonical_name: str
    ingredient_family: str
    is_vegetarian: bool
    is_vegan: bool


def _clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.INGREDIENT_SEARCH_LIMIT
    return max(1, min(limit, settings.INGREDIENT_SEARCH_MAX_LIMIT))


async def search_ingredients(
    db: AsyncSession, query: Optional[str], limit: Optional[int] = None
) -> list[IngredientSearchResult]:
    """
    Case-insensitive prefix search over alias display names.

    A blank query returns [] without touching the database. Results are
    ordered by display name and capped at ``limit``.
    """
    term = (query or "").lstrip()
    if not term.strip():
        return []

    stmt = (
        select(
            IngredientAlias.id,
            IngredientAlias.display_name,
            CanonicalIngredient.id,
            CanonicalIngredient.canonical_name,
            CanonicalIngredient.ingredient_family,
            CanonicalIngredient.is_vegetarian,
            CanonicalIngredient.is_vegan,
        )
        .join(CanonicalIngredient, IngredientAlias.canonical_ingredient_id == CanonicalIngredient.id)
        .where(starts_with_ci(IngredientAlias.display_name, term))
        .order_by(func.lower(IngredientAlias.display_name), IngredientAlias.display_name)
        .limit(_clamp_limit(limit))
    )
    result = await db.execute(stmt)

    return [
        IngredientSearchResult(
            alias_id=alias_id,
            display_name=display_name,
            canonical_ingredient_id=canonical_id,
            canonical_name=canonical_name,
            ingredient_family=family,
            is_vegetarian=bool(is_vegetarian),
            is_vegan=bool(is_vegan),
        )
        for alias_id, display_name, canonical_id, canonical_name, family, is_vegetarian, is_vegan in result.all()
    ]


async def get_ingredient_details(db: AsyncSession, canonical_id: int) -> CanonicalIngredient:
    """Canonical ingredient with aliases, allergens and dietary tags loaded."""
    result = await db.execute(
        select(CanonicalIngredient)
        .where(CanonicalIngredient.id == canonical_id)
        .options(
            selectinload(CanonicalIngredient.aliases),
            selectinload(CanonicalIngredient.allergens),
            selectinload(CanonicalIngredient.dietary_tags),
        )
        .execution_options(populate_existing=True)
    )
    ingredient = result.scalar_one_or_none()
    if not ingredient:
        raise IngredientNotFoundError(f"Canonical ingredient {canonical_id} not found")
    return ingredient


async def list_canonical_ingredients(
    db: AsyncSession, family: Optional[str] = None
) -> Sequence[CanonicalIngredient]:
    query = (
        select(CanonicalIngredient)
        .options(selectinload(CanonicalIngredient.aliases))
        .order_by(CanonicalIngredient.canonical_name)
        .execution_options(populate_existing=True)
    )
    if family:
        query = query.where(CanonicalIngredient.ingredient_family == family)
    result = await db.execute(query)
    return result.scalars().all()


async def list_allergens(db: AsyncSession) -> Sequence[Allergen]:
    result = await db.execute(select(Allergen).order_by(Allergen.name))
    return result.scalars().all()


async def list_dietary_tags(db: AsyncSession) -> Sequence[DietaryTag]:
    result = await db.execute(select(DietaryTag).order_by(DietaryTag.name))
    return result.scalars().all()


async def _alias_taken(db: AsyncSession, display_name: str) -> bool:
    result = await db.execute(
        select(IngredientAlias.id).where(func.lower(IngredientAlias.display_name) == display_name.lower())
    )
    return result.first() is not None


async def _vocab_rows(db: AsyncSession, model, codes: list[str], label: str):
    if not codes:
        return []
    result = await db.execute(select(model).where(model.code.in_(codes)))
    rows = result.scalars().all()
    missing = sorted(set(codes) - {row.code for row in rows})
    if missing:
        raise ServiceValidationError(
            f"Unknown {label} codes: {', '.join(missing)}", details={label: missing}
        )
    return rows


async def create_canonical_ingredient(
    db: AsyncSession,
    canonical_name: str,
    ingredient_family: str = "other",
    is_vegetarian: bool = True,
    is_vegan: bool = False,
    allergen_codes: Optional[list[str]] = None,
    dietary_tag_codes: Optional[list[str]] = None,
    aliases: Optional[list[str]] = None,
) -> CanonicalIngredient:
    """
    Create a canonical ingredient with its vocabulary links and aliases.

    ``allergen_codes=None`` takes the family defaults (eggs -> eggs,
    dairy -> milk); pass ``[]`` for an explicitly allergen-free ingredient.
    Without aliases, one alias is created from the title-cased name.
    """
    try:
        name = normalize_canonical_name(canonical_name)
    except ValueError as e:
        raise ServiceValidationError(str(e))

    if ingredient_family not in INGREDIENT_FAMILIES:
        raise ServiceValidationError(
            f"Unknown ingredient family '{ingredient_family}'",
            details={"ingredient_family": INGREDIENT_FAMILIES},
        )

    existing = await db.execute(
        select(CanonicalIngredient.id).where(CanonicalIngredient.canonical_name == name)
    )
    if existing.first():
        raise DuplicateIngredientError(f"Canonical ingredient '{name}' already exists")

    if allergen_codes is None:
        allergen_codes = FAMILY_DEFAULT_ALLERGENS.get(ingredient_family, [])
    tag_codes = [c for c in (dietary_tag_codes or []) if c not in FLAG_DIETARY_TAGS]

    allergen_rows = await _vocab_rows(db, Allergen, list(dict.fromkeys(allergen_codes)), "allergen")
    tag_rows = await _vocab_rows(db, DietaryTag, list(dict.fromkeys(tag_codes)), "dietary_tag")

    display_names = [a.strip() for a in (aliases or []) if a and a.strip()]
    if not display_names:
        display_names = [name.replace("_", " ").title()]
    display_names = list(dict.fromkeys(display_names))
    for display_name in display_names:
        if await _alias_taken(db, display_name):
            raise DuplicateIngredientError(f"Alias '{display_name}' already exists")

    ingredient = CanonicalIngredient(
        canonical_name=name,
        ingredient_family=ingredient_family,
        # vegan implies vegetarian
        is_vegetarian=is_vegetarian or is_vegan,
        is_vegan=is_vegan,
    )
    ingredient.allergens = list(allergen_rows)
    ingredient.dietary_tags = list(tag_rows)
    ingredient.aliases = [IngredientAlias(display_name=n) for n in display_names]
    db.add(ingredient)
    await db.commit()

    logger.info(
        f"Created canonical ingredient '{name}' (family={ingredient_family}, "
        f"allergens={[a.code for a in allergen_rows]}, aliases={display_names})"
    )
    return await get_ingredient_details(db, ingredient.id)


async def add_alias(db: AsyncSession, canonical_id: int, display_name: str) -> IngredientAlias:
    display_name = (display_name or "").strip()
    if not display_name:
        raise ServiceValidationError("Alias display name cannot be empty")

    if not await db.get(CanonicalIngredient, canonical_id):
        raise IngredientNotFoundError(f"Canonical ingredient {canonical_id} not found")
    if await _alias_taken(db, display_name):
        raise DuplicateIngredientError(f"Alias '{display_name}' already exists")

    alias = IngredientAlias(display_name=display_name, canonical_ingredient_id=canonical_id)
    db.add(alias)
    await db.commit()
    logger.info(f"Added alias '{display_name}' -> canonical ingredient {canonical_id}")
    return alias


async def delete_alias(db: AsyncSession, alias_id: int) -> None:
    alias = await db.get(IngredientAlias, alias_id)
    if not alias:
        raise AliasNotFoundError(f"Alias {alias_id} not found")

    await db.execute(delete(IngredientAlias).where(IngredientAlias.id == alias_id))
    await db.commit()
    logger.info(f"Deleted alias {alias_id}")


async def delete_canonical_ingredient(db: AsyncSession, canonical_id: int) -> None:
    """Delete a canonical ingredient and its aliases. Refused while any dish links it."""
    if not await db.get(CanonicalIngredient, canonical_id):
        raise IngredientNotFoundError(f"Canonical ingredient {canonical_id} not found")

    linked = await db.execute(
        select(func.count()).select_from(DishIngredient).where(
            DishIngredient.canonical_ingredient_id == canonical_id
        )
    )
    dish_count = linked.scalar() or 0
    if dish_count:
        raise IngredientInUseError(
            f"Canonical ingredient {canonical_id} is used by {dish_count} dish(es)",
            details={"dish_count": dish_count},
        )

    await db.execute(
        delete(canonical_ingredient_allergens).where(
            canonical_ingredient_allergens.c.canonical_ingredient_id == canonical_id
        )
    )
    await db.execute(
        delete(canonical_ingredient_dietary_tags).where(
            canonical_ingredient_dietary_tags.c.canonical_ingredient_id == canonical_id
        )
    )
    await db.execute(delete(IngredientAlias).where(IngredientAlias.canonical_ingredient_id == canonical_id))
    await db.execute(delete(CanonicalIngredient).where(CanonicalIngredient.id == canonical_id))
    await db.commit()
    logger.info(f"Deleted canonical ingredient {canonical_id}")
