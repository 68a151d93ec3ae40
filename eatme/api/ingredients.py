"""
Ingredients API - alias search-as-you-type, canonical ingredient admin,
allergen and dietary-tag vocabularies.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import Optional

from eatme.database import get_db
from eatme.services import ingredient_service
from eatme.services.ingredient_service import IngredientSearchResult

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class AllergenResponse(BaseModel):
    id: int
    code: str
    name: str
    icon: Optional[str] = None

    class Config:
        from_attributes = True


class DietaryTagResponse(BaseModel):
    id: int
    code: str
    name: str
    icon: Optional[str] = None
    category: str

    class Config:
        from_attributes = True


class AliasResponse(BaseModel):
    id: int
    display_name: str
    canonical_ingredient_id: int

    class Config:
        from_attributes = True


class CanonicalIngredientSummary(BaseModel):
    id: int
    canonical_name: str
    ingredient_family: str
    is_vegetarian: bool
    is_vegan: bool
    aliases: list[AliasResponse] = []

    class Config:
        from_attributes = True


class CanonicalIngredientResponse(CanonicalIngredientSummary):
    allergens: list[AllergenResponse] = []
    dietary_tags: list[DietaryTagResponse] = []


class CanonicalIngredientCreate(BaseModel):
    canonical_name: str = Field(..., min_length=1)
    ingredient_family: str = "other"
    is_vegetarian: bool = True
    is_vegan: bool = False
    allergen_codes: Optional[list[str]] = None  # None -> family defaults
    dietary_tag_codes: list[str] = []
    aliases: list[str] = []


class AliasCreate(BaseModel):
    display_name: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/search", response_model=list[IngredientSearchResult])
async def search_ingredients(
    q: str = Query("", description="What the operator has typed so far"),
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Prefix search over ingredient aliases."""
    return await ingredient_service.search_ingredients(db, q, limit)


@router.get("/allergens", response_model=list[AllergenResponse])
async def list_allergens(db: AsyncSession = Depends(get_db)):
    return await ingredient_service.list_allergens(db)


@router.get("/dietary-tags", response_model=list[DietaryTagResponse])
async def list_dietary_tags(db: AsyncSession = Depends(get_db)):
    return await ingredient_service.list_dietary_tags(db)


@router.get("", response_model=list[CanonicalIngredientSummary])
async def list_canonical_ingredients(
    family: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await ingredient_service.list_canonical_ingredients(db, family)


@router.post("", response_model=CanonicalIngredientResponse)
async def create_canonical_ingredient(
    data: CanonicalIngredientCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a canonical ingredient with its aliases and vocabulary links."""
    return await ingredient_service.create_canonical_ingredient(
        db,
        canonical_name=data.canonical_name,
        ingredient_family=data.ingredient_family,
        is_vegetarian=data.is_vegetarian,
        is_vegan=data.is_vegan,
        allergen_codes=data.allergen_codes,
        dietary_tag_codes=data.dietary_tag_codes,
        aliases=data.aliases,
    )


@router.delete("/aliases/{alias_id}")
async def delete_alias(alias_id: int, db: AsyncSession = Depends(get_db)):
    await ingredient_service.delete_alias(db, alias_id)
    return {"message": "Alias deleted"}


@router.get("/{ingredient_id}", response_model=CanonicalIngredientResponse)
async def get_canonical_ingredient(ingredient_id: int, db: AsyncSession = Depends(get_db)):
    return await ingredient_service.get_ingredient_details(db, ingredient_id)


@router.delete("/{ingredient_id}")
async def delete_canonical_ingredient(ingredient_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a canonical ingredient; 409 while dishes still link it."""
    await ingredient_service.delete_canonical_ingredient(db, ingredient_id)
    return {"message": "Ingredient deleted"}


@router.post("/{ingredient_id}/aliases", response_model=AliasResponse)
async def add_alias(ingredient_id: int, data: AliasCreate, db: AsyncSession = Depends(get_db)):
    return await ingredient_service.add_alias(db, ingredient_id, data.display_name)
