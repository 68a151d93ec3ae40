"""
Database setup script: tables, vocabularies and a starter set of canonical
ingredients with their common aliases.
"""
import asyncio
from sqlalchemy import select

from eatme.database import AsyncSessionLocal, create_tables, engine
from eatme.exceptions import DuplicateIngredientError
from eatme.models import Restaurant, MenuCategory
from eatme.services.ingredient_service import create_canonical_ingredient
from eatme.services.vocabulary import seed_vocabularies

# canonical_name, family, vegetarian, vegan, allergens (None = family defaults), tags, aliases
STARTER_INGREDIENTS = [
    ("beef", "meat", False, False, [], ["gluten_free", "dairy_free"], ["Beef", "Ground Beef", "Beef Mince", "Steak"]),
    ("chicken", "poultry", False, False, [], ["gluten_free", "dairy_free", "halal"], ["Chicken", "Chicken Breast", "Chicken Thigh"]),
    ("salmon", "fish", False, False, None, ["gluten_free", "dairy_free", "pescatarian"], ["Salmon", "Smoked Salmon", "Salmon Fillet"]),
    ("shrimp", "shellfish", False, False, None, ["gluten_free", "dairy_free", "pescatarian"], ["Shrimp", "Prawns"]),
    ("egg", "eggs", True, False, None, ["gluten_free", "dairy_free"], ["Egg", "Eggs", "Fried Egg", "Egg Yolk"]),
    ("milk", "dairy", True, False, ["milk", "lactose"], ["gluten_free"], ["Milk", "Whole Milk"]),
    ("butter", "dairy", True, False, ["milk", "lactose"], ["gluten_free", "keto"], ["Butter"]),
    ("parmesan", "dairy", True, False, None, ["gluten_free"], ["Parmesan", "Parmigiano Reggiano"]),
    ("mozzarella", "dairy", True, False, None, ["gluten_free"], ["Mozzarella", "Buffalo Mozzarella"]),
    ("tofu", "plant_protein", True, True, ["soybeans"], ["gluten_free", "dairy_free"], ["Tofu", "Silken Tofu"]),
    ("oat_milk", "plant_milk", True, True, [], ["dairy_free"], ["Oat Milk"]),
    ("lettuce", "vegetable", True, True, [], ["gluten_free", "dairy_free", "raw"], ["Lettuce", "Romaine Lettuce"]),
    ("tomato", "vegetable", True, True, [], ["gluten_free", "dairy_free"], ["Tomato", "Cherry Tomatoes", "Tomato Sauce"]),
    ("onion", "vegetable", True, True, [], ["gluten_free", "dairy_free"], ["Onion", "Red Onion", "Shallot"]),
    ("basil", "spice_herb", True, True, [], ["gluten_free", "dairy_free"], ["Basil", "Fresh Basil"]),
    ("wheat_flour", "grain", True, True, ["wheat", "gluten"], ["dairy_free"], ["Flour", "Wheat Flour", "Pizza Dough"]),
    ("rice", "grain", True, True, [], ["gluten_free", "dairy_free"], ["Rice", "Jasmine Rice", "Sushi Rice"]),
    ("croutons", "grain", True, True, ["wheat", "gluten"], ["dairy_free"], ["Croutons"]),
    ("peanut", "nut_seed", True, True, ["peanuts"], ["gluten_free", "dairy_free"], ["Peanuts", "Peanut Butter"]),
    ("almond", "nut_seed", True, True, None, ["gluten_free", "dairy_free"], ["Almonds", "Almond Flakes"]),
    ("sesame_seeds", "nut_seed", True, True, ["sesame"], ["gluten_free", "dairy_free"], ["Sesame Seeds", "Tahini"]),
    ("soy_sauce", "condiment", True, True, ["soybeans", "wheat", "gluten"], ["dairy_free"], ["Soy Sauce"]),
    ("mustard", "condiment", True, True, ["mustard"], ["gluten_free", "dairy_free"], ["Mustard", "Dijon Mustard"]),
    ("olive_oil", "oil_fat", True, True, [], ["gluten_free", "dairy_free"], ["Olive Oil", "Extra Virgin Olive Oil"]),
    ("honey", "sweetener", True, False, [], ["gluten_free", "dairy_free"], ["Honey"]),
    ("white_wine", "alcohol", True, True, ["sulfites"], ["gluten_free", "dairy_free"], ["White Wine"]),
]


async def seed_starter_data(session) -> int:
    """Vocabularies, starter ingredients and a demo restaurant. Safe to re-run."""
    created = await seed_vocabularies(session)
    print(f"Vocabularies: {created}")

    added = 0
    for name, family, vegetarian, vegan, allergens, tags, aliases in STARTER_INGREDIENTS:
        try:
            await create_canonical_ingredient(
                session,
                canonical_name=name,
                ingredient_family=family,
                is_vegetarian=vegetarian,
                is_vegan=vegan,
                allergen_codes=allergens,
                dietary_tag_codes=tags,
                aliases=aliases,
            )
            added += 1
        except DuplicateIngredientError:
            continue
    print(f"Canonical ingredients added: {added}")

    existing = await session.execute(select(Restaurant).where(Restaurant.name == "Demo Trattoria"))
    if not existing.scalar_one_or_none():
        demo = Restaurant(
            name="Demo Trattoria",
            city="Berlin",
            country="DE",
            latitude=52.52,
            longitude=13.405,
            cuisines=["Italian"],
            price_range="$$",
            takeout_available=True,
        )
        session.add(demo)
        await session.flush()
        session.add(MenuCategory(restaurant_id=demo.id, name="Mains"))
        await session.commit()
        print("Demo restaurant created")

    return added


async def setup_database():
    """Create tables and seed initial data"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        await seed_starter_data(session)

    await engine.dispose()
    print("\nDatabase setup complete!")


if __name__ == "__main__":
    asyncio.run(setup_database())
