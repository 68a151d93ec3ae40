"""
Canonical ingredient system.

A canonical ingredient is the de-duplicated identity used by all diet and
allergen logic ("beef"); aliases are the names operators actually type
("Ground Beef", "Beef Mince"). Allergen and dietary-tag vocabularies are
shared code lists linked to canonical ingredients.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from eatme.database import Base


# Families used to group variants (fresh/smoked salmon -> fish)
INGREDIENT_FAMILIES = [
    "meat",
    "poultry",
    "fish",
    "shellfish",
    "dairy",
    "eggs",
    "plant_milk",
    "plant_protein",
    "vegetable",
    "fruit",
    "grain",
    "nut_seed",
    "oil_fat",
    "spice_herb",
    "condiment",
    "sweetener",
    "baking",
    "beverage",
    "alcohol",
    "other",
]

# Allergens implied by a family when an admin creates an ingredient
# without listing allergens explicitly
FAMILY_DEFAULT_ALLERGENS = {
    "dairy": ["milk"],
    "eggs": ["eggs"],
    "fish": ["fish"],
    "shellfish": ["shellfish"],
    "nut_seed": ["tree_nuts"],
}


canonical_ingredient_allergens = Table(
    "canonical_ingredient_allergens",
    Base.metadata,
    Column(
        "canonical_ingredient_id",
        Integer,
        ForeignKey("canonical_ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("allergen_id", Integer, ForeignKey("allergens.id", ondelete="CASCADE"), primary_key=True),
)

canonical_ingredient_dietary_tags = Table(
    "canonical_ingredient_dietary_tags",
    Base.metadata,
    Column(
        "canonical_ingredient_id",
        Integer,
        ForeignKey("canonical_ingredients.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("dietary_tag_id", Integer, ForeignKey("dietary_tags.id", ondelete="CASCADE"), primary_key=True),
)


class Allergen(Base):
    """Allergen vocabulary entry ("milk", "eggs", "gluten")"""
    __tablename__ = "allergens"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)


class DietaryTag(Base):
    """Dietary tag vocabulary entry ("vegan", "halal", "gluten_free")"""
    __tablename__ = "dietary_tags"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    category = Column(String, nullable=False, default="diet")  # diet | health | religious | lifestyle


class CanonicalIngredient(Base):
    __tablename__ = "canonical_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    canonical_name = Column(String, unique=True, nullable=False, index=True)  # lowercase_snake_case
    ingredient_family = Column(String, nullable=False, default="other")  # one of INGREDIENT_FAMILIES
    is_vegetarian = Column(Boolean, nullable=False, default=True)
    is_vegan = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships (always loaded explicitly with selectinload)
    aliases = relationship(
        "IngredientAlias",
        back_populates="canonical_ingredient",
        order_by="IngredientAlias.display_name",
        passive_deletes=True,
        lazy="raise",
    )
    allergens = relationship(
        "Allergen",
        secondary=canonical_ingredient_allergens,
        order_by="Allergen.code",
        passive_deletes=True,
        lazy="raise",
    )
    dietary_tags = relationship(
        "DietaryTag",
        secondary=canonical_ingredient_dietary_tags,
        order_by="DietaryTag.code",
        passive_deletes=True,
        lazy="raise",
    )


class IngredientAlias(Base):
    """Human-facing display name resolving to exactly one canonical ingredient"""
    __tablename__ = "ingredient_aliases"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String, unique=True, nullable=False, index=True)
    canonical_ingredient_id = Column(
        Integer,
        ForeignKey("canonical_ingredients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    canonical_ingredient = relationship("CanonicalIngredient", back_populates="aliases", lazy="raise")
