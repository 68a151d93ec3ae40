"""
Dishes, their ingredient links, and the canonical dish categories.

``Dish.allergens`` and ``Dish.dietary_tags`` are derived columns: only the
attribute derivation service writes them, after every change to the dish's
``dish_ingredients`` rows.
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship
from eatme.database import Base
from eatme.utils.db_compat import StringList


class DescriptionVisibility(str, Enum):
    MENU = "menu"
    DETAIL = "detail"


class IngredientsVisibility(str, Enum):
    MENU = "menu"
    DETAIL = "detail"
    NONE = "none"


class DishCategory(Base):
    """Canonical dish category ("Pizza", "Ramen", "Cocktail")"""
    __tablename__ = "dish_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    parent_category_id = Column(
        Integer, ForeignKey("dish_categories.id", ondelete="SET NULL"), nullable=True
    )
    is_drink = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Dish(Base):
    __tablename__ = "dishes"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_category_id = Column(
        Integer, ForeignKey("menu_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dish_category_id = Column(
        Integer, ForeignKey("dish_categories.id", ondelete="SET NULL"), nullable=True
    )

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    calories = Column(Integer, nullable=True)
    spice_level = Column(Integer, nullable=True)  # 0-4
    photo_url = Column(String, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    description_visibility = Column(
        SQLEnum(DescriptionVisibility, native_enum=False),
        nullable=False,
        default=DescriptionVisibility.MENU,
    )
    ingredients_visibility = Column(
        SQLEnum(IngredientsVisibility, native_enum=False),
        nullable=False,
        default=IngredientsVisibility.DETAIL,
    )

    # Derived from dish_ingredients
    allergens = Column(StringList, nullable=False, default=list)
    dietary_tags = Column(StringList, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ingredient_links = relationship("DishIngredient", back_populates="dish", passive_deletes=True, lazy="raise")


class DishIngredient(Base):
    """Join row: dish contains canonical ingredient (optional free-text quantity)"""
    __tablename__ = "dish_ingredients"

    dish_id = Column(Integer, ForeignKey("dishes.id", ondelete="CASCADE"), primary_key=True)
    canonical_ingredient_id = Column(
        Integer, ForeignKey("canonical_ingredients.id"), primary_key=True, index=True
    )
    quantity = Column(String, nullable=True)  # "2 cups", "100g"

    dish = relationship("Dish", back_populates="ingredient_links", lazy="raise")
    canonical_ingredient = relationship("CanonicalIngredient", lazy="raise")
