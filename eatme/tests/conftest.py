"""
Test fixtures - in-memory SQLite database + HTTP client bound to the app
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eatme.database import Base, build_engine, get_db
from eatme.main import app
from eatme.models import MenuCategory, Restaurant
from eatme.services.ingredient_service import create_canonical_ingredient
from eatme.services.vocabulary import seed_vocabularies


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = build_engine("sqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# (canonical_name, family, is_vegetarian, is_vegan, allergen codes or None for family defaults, tags, aliases)
SEED_INGREDIENTS = [
    ("egg", "eggs", True, False, None, ["gluten_free", "dairy_free"], ["Eggs", "Egg", "Fried Egg"]),
    ("lettuce", "vegetable", True, True, [], ["gluten_free", "dairy_free", "raw"], ["Lettuce", "Romaine Lettuce"]),
    ("parmesan", "dairy", True, False, None, ["gluten_free"], ["Parmesan", "Parmigiano Reggiano"]),
    ("cheddar", "dairy", True, False, None, ["gluten_free"], ["Cheddar", "Cheese"]),
    ("cream_cheese", "dairy", True, False, None, ["gluten_free"], ["Cream Cheese", "Cheese Spread"]),
    ("beef", "meat", False, False, [], ["gluten_free", "dairy_free"], ["Beef", "Ground Beef", "Beef Mince"]),
    ("croutons", "grain", True, True, ["wheat", "gluten"], ["dairy_free"], ["Croutons"]),
]


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Vocabularies, one restaurant with a menu category, and a handful of ingredients"""
    await seed_vocabularies(db_session)

    restaurant = Restaurant(
        name="Trattoria Verde",
        city="Berlin",
        country="DE",
        latitude=52.52,
        longitude=13.405,
        cuisines=["Italian"],
    )
    db_session.add(restaurant)
    await db_session.flush()
    mains = MenuCategory(restaurant_id=restaurant.id, name="Mains")
    db_session.add(mains)
    await db_session.commit()

    ingredients = {}
    for name, family, vegetarian, vegan, allergens, tags, aliases in SEED_INGREDIENTS:
        ingredient = await create_canonical_ingredient(
            db_session,
            canonical_name=name,
            ingredient_family=family,
            is_vegetarian=vegetarian,
            is_vegan=vegan,
            allergen_codes=allergens,
            dietary_tag_codes=tags,
            aliases=aliases,
        )
        ingredients[name] = ingredient.id

    return {
        "restaurant_id": restaurant.id,
        "menu_category_id": mains.id,
        "ingredients": ingredients,
    }


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
