"""
Restaurant and its menu categories (the menu sections dishes live in)
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship
from eatme.database import Base
from eatme.utils.db_compat import StringList


class MenuType(str, Enum):
    FOOD = "food"
    DRINK = "drink"


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    restaurant_type = Column(String, nullable=False, default="restaurant")
    description = Column(Text, nullable=True)

    # Location
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    cuisines = Column(StringList, nullable=False, default=list)  # ["Italian", "Pizza"]
    price_range = Column(String, nullable=True)  # $ .. $$$$

    # Service
    delivery_available = Column(Boolean, nullable=False, default=False)
    takeout_available = Column(Boolean, nullable=False, default=False)
    dine_in_available = Column(Boolean, nullable=False, default=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    menu_categories = relationship(
        "MenuCategory",
        back_populates="restaurant",
        order_by="MenuCategory.display_order",
        passive_deletes=True,
        lazy="raise",
    )


class MenuCategory(Base):
    """A menu section ("Lunch", "Drinks") belonging to one restaurant"""
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    menu_type = Column(SQLEnum(MenuType, native_enum=False), nullable=False, default=MenuType.FOOD)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    restaurant = relationship("Restaurant", back_populates="menu_categories", lazy="raise")
