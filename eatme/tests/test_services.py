"""
Service-level tests: alias search, ingredient admin, link replacement,
attribute derivation, dish authoring and category suggestions.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import InvalidRequestError, OperationalError

from eatme.exceptions import (
    ConflictError,
    DishCategoryNotFoundError,
    DishNotFoundError,
    DishValidationError,
    DuplicateIngredientError,
    IngredientInUseError,
    IngredientNotFoundError,
    ServiceValidationError,
)
from eatme.models import Dish, DishIngredient
from eatme.services import category_service, ingredient_service
from eatme.services.attribute_derivation import (
    calculate_dish_allergens,
    calculate_dish_dietary_tags,
    ingredient_dietary_codes,
    recalculate_dish,
)
from eatme.services.dish_authoring import (
    DirectPersister,
    DishAuthoringSession,
    DishDraft,
    SelectedIngredient,
    WizardPersister,
)
from eatme.services.dish_ingredient_service import get_dish_ingredients, set_dish_ingredients


async def _make_dish(db, seed_data, name="Caesar Salad", price=12.5) -> int:
    dish = Dish(
        restaurant_id=seed_data["restaurant_id"],
        menu_category_id=seed_data["menu_category_id"],
        name=name,
        price=price,
    )
    db.add(dish)
    await db.commit()
    return dish.id


async def _fresh_dish(db, dish_id) -> Dish:
    result = await db.execute(
        select(Dish).where(Dish.id == dish_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


# ===================== ALIAS SEARCH =====================


async def test_search_prefix_is_case_insensitive(db_session, seed_data):
    results = await ingredient_service.search_ingredients(db_session, "chee")
    assert [r.display_name for r in results] == ["Cheese", "Cheese Spread"]
    assert [r.canonical_name for r in results] == ["cheddar", "cream_cheese"]

    upper = await ingredient_service.search_ingredients(db_session, "CHE")
    assert [r.display_name for r in upper] == ["Cheddar", "Cheese", "Cheese Spread"]


async def test_search_result_carries_canonical_flags(db_session, seed_data):
    results = await ingredient_service.search_ingredients(db_session, "Ground")
    assert len(results) == 1
    beef = results[0]
    assert beef.canonical_ingredient_id == seed_data["ingredients"]["beef"]
    assert beef.ingredient_family == "meat"
    assert beef.is_vegetarian is False
    assert beef.is_vegan is False


async def test_search_matches_prefix_only(db_session, seed_data):
    results = await ingredient_service.search_ingredients(db_session, "lettuce")
    # "Romaine Lettuce" contains the term but does not start with it
    assert [r.display_name for r in results] == ["Lettuce"]


async def test_search_blank_query_skips_database():
    db = AsyncMock()
    assert await ingredient_service.search_ingredients(db, "") == []
    assert await ingredient_service.search_ingredients(db, "   ") == []
    assert await ingredient_service.search_ingredients(db, None) == []
    db.execute.assert_not_called()


async def test_search_respects_limit(db_session, seed_data):
    results = await ingredient_service.search_ingredients(db_session, "e", limit=1)
    assert [r.display_name for r in results] == ["Egg"]

    capped = await ingredient_service.search_ingredients(db_session, "e", limit=1000)
    assert [r.display_name for r in capped] == ["Egg", "Eggs"]


async def test_search_escapes_like_wildcards(db_session, seed_data):
    assert await ingredient_service.search_ingredients(db_session, "%") == []
    assert await ingredient_service.search_ingredients(db_session, "_") == []


async def test_search_ignores_leading_whitespace(db_session, seed_data):
    results = await ingredient_service.search_ingredients(db_session, "  parm")
    assert [r.display_name for r in results] == ["Parmesan", "Parmigiano Reggiano"]


# ===================== INGREDIENT ADMIN =====================


async def test_family_default_allergens(db_session, seed_data):
    egg = await ingredient_service.get_ingredient_details(db_session, seed_data["ingredients"]["egg"])
    parmesan = await ingredient_service.get_ingredient_details(db_session, seed_data["ingredients"]["parmesan"])
    lettuce = await ingredient_service.get_ingredient_details(db_session, seed_data["ingredients"]["lettuce"])

    assert [a.code for a in egg.allergens] == ["eggs"]
    assert [a.code for a in parmesan.allergens] == ["milk"]
    assert lettuce.allergens == []


async def test_create_ingredient_normalizes_name_and_adds_default_alias(db_session, seed_data):
    ingredient = await ingredient_service.create_canonical_ingredient(
        db_session, canonical_name="  Olive  Oil ", ingredient_family="oil_fat", is_vegan=True
    )
    assert ingredient.canonical_name == "olive_oil"
    assert [a.display_name for a in ingredient.aliases] == ["Olive Oil"]
    # vegan implies vegetarian
    assert ingredient.is_vegetarian is True


async def test_create_ingredient_drops_flag_governed_tags(db_session, seed_data):
    ingredient = await ingredient_service.create_canonical_ingredient(
        db_session,
        canonical_name="bacon",
        ingredient_family="meat",
        is_vegetarian=False,
        dietary_tag_codes=["vegan", "gluten_free"],
    )
    assert [t.code for t in ingredient.dietary_tags] == ["gluten_free"]


async def test_create_ingredient_rejects_duplicates(db_session, seed_data):
    with pytest.raises(DuplicateIngredientError):
        await ingredient_service.create_canonical_ingredient(db_session, canonical_name="Egg")

    with pytest.raises(DuplicateIngredientError):
        await ingredient_service.create_canonical_ingredient(
            db_session, canonical_name="duck_egg", ingredient_family="eggs", aliases=["eggs"]
        )


async def test_create_ingredient_rejects_unknown_codes(db_session, seed_data):
    with pytest.raises(ServiceValidationError) as exc:
        await ingredient_service.create_canonical_ingredient(
            db_session, canonical_name="mystery", allergen_codes=["kryptonite"]
        )
    assert exc.value.details == {"allergen": ["kryptonite"]}

    with pytest.raises(ServiceValidationError):
        await ingredient_service.create_canonical_ingredient(
            db_session, canonical_name="mystery", ingredient_family="minerals"
        )


async def test_add_and_delete_alias(db_session, seed_data):
    egg_id = seed_data["ingredients"]["egg"]
    alias = await ingredient_service.add_alias(db_session, egg_id, "Huevo")

    results = await ingredient_service.search_ingredients(db_session, "huev")
    assert [r.canonical_ingredient_id for r in results] == [egg_id]

    await ingredient_service.delete_alias(db_session, alias.id)
    assert await ingredient_service.search_ingredients(db_session, "huev") == []


async def test_add_alias_requires_existing_ingredient(db_session, seed_data):
    with pytest.raises(IngredientNotFoundError):
        await ingredient_service.add_alias(db_session, 99999, "Ghost Pepper")


async def test_delete_ingredient_blocked_while_linked(db_session, seed_data):
    egg_id = seed_data["ingredients"]["egg"]
    dish_id = await _make_dish(db_session, seed_data)
    await set_dish_ingredients(db_session, dish_id, [{"canonical_ingredient_id": egg_id}])

    with pytest.raises(IngredientInUseError) as exc:
        await ingredient_service.delete_canonical_ingredient(db_session, egg_id)
    assert exc.value.details == {"dish_count": 1}

    await set_dish_ingredients(db_session, dish_id, [])
    await ingredient_service.delete_canonical_ingredient(db_session, egg_id)

    assert await ingredient_service.search_ingredients(db_session, "egg") == []
    with pytest.raises(IngredientNotFoundError):
        await ingredient_service.get_ingredient_details(db_session, egg_id)


# ===================== DERIVATION =====================


def _ingredient(vegetarian, vegan, tags=(), allergens=()):
    return SimpleNamespace(
        is_vegetarian=vegetarian,
        is_vegan=vegan,
        dietary_tags=[SimpleNamespace(code=c) for c in tags],
        allergens=[SimpleNamespace(code=c) for c in allergens],
    )


def test_dietary_codes_follow_flags_not_tag_links():
    assert ingredient_dietary_codes(_ingredient(False, False, tags=["vegan", "halal"])) == {"halal"}
    assert ingredient_dietary_codes(_ingredient(True, True)) == {"vegan", "vegetarian"}
    assert ingredient_dietary_codes(_ingredient(True, False)) == {"vegetarian"}


def test_dish_tags_require_every_ingredient():
    tofu = _ingredient(True, True, tags=["gluten_free", "kosher"])
    bread = _ingredient(True, True, tags=["kosher"], allergens=["wheat", "gluten"])
    cheese = _ingredient(True, False, tags=["gluten_free"], allergens=["milk"])

    assert calculate_dish_dietary_tags([tofu, bread]) == ["kosher", "vegan", "vegetarian"]
    assert calculate_dish_dietary_tags([tofu, bread, cheese]) == ["vegetarian"]
    assert calculate_dish_dietary_tags([]) == []
    assert calculate_dish_allergens([tofu, bread, cheese]) == ["gluten", "milk", "wheat"]
    assert calculate_dish_allergens([]) == []


# ===================== LINKER =====================


async def test_caesar_salad_derives_eggs_and_vegetarian(db_session, seed_data):
    ids = seed_data["ingredients"]
    egg = (await ingredient_service.search_ingredients(db_session, "Eggs"))[0]
    dish_id = await _make_dish(db_session, seed_data, "Caesar Salad")

    await set_dish_ingredients(
        db_session,
        dish_id,
        [
            {"canonical_ingredient_id": egg.canonical_ingredient_id, "quantity": "2"},
            {"canonical_ingredient_id": ids["lettuce"], "quantity": "1 head"},
        ],
    )

    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == ["eggs"]
    assert dish.dietary_tags == ["dairy_free", "gluten_free", "vegetarian"]
    assert "vegan" not in dish.dietary_tags


async def test_links_resolve_to_first_alias(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    await set_dish_ingredients(
        db_session,
        dish_id,
        [{"canonical_ingredient_id": ids["lettuce"]}, {"canonical_ingredient_id": ids["egg"], "quantity": " 2 "}],
    )

    linked = await get_dish_ingredients(db_session, dish_id)
    assert [(l.display_name, l.quantity) for l in linked] == [("Egg", "2"), ("Lettuce", None)]


async def test_replacing_links_recomputes_attributes(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data, "Steak Salad")
    await set_dish_ingredients(
        db_session, dish_id, [{"canonical_ingredient_id": ids["egg"]}, {"canonical_ingredient_id": ids["lettuce"]}]
    )
    await set_dish_ingredients(
        db_session, dish_id, [{"canonical_ingredient_id": ids["beef"]}, {"canonical_ingredient_id": ids["croutons"]}]
    )

    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == ["gluten", "wheat"]
    assert dish.dietary_tags == ["dairy_free"]
    linked = await get_dish_ingredients(db_session, dish_id)
    assert {l.canonical_ingredient_id for l in linked} == {ids["beef"], ids["croutons"]}


async def test_empty_selection_clears_links_and_attributes(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    await set_dish_ingredients(db_session, dish_id, [{"canonical_ingredient_id": ids["parmesan"]}])

    result = await set_dish_ingredients(db_session, dish_id, [])

    assert result == []
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == []
    assert dish.dietary_tags == []
    assert await _count(db_session, DishIngredient) == 0


async def test_set_dish_ingredients_is_idempotent(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    selection = [{"canonical_ingredient_id": ids["egg"]}, {"canonical_ingredient_id": ids["parmesan"]}]

    first = await set_dish_ingredients(db_session, dish_id, selection)
    second = await set_dish_ingredients(db_session, dish_id, selection)

    assert first == second
    assert await _count(db_session, DishIngredient) == 2
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == ["eggs", "milk"]


async def test_duplicate_ids_collapse_last_quantity_wins(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    linked = await set_dish_ingredients(
        db_session,
        dish_id,
        [
            {"canonical_ingredient_id": ids["egg"], "quantity": "1"},
            {"canonical_ingredient_id": ids["egg"], "quantity": "3"},
        ],
    )
    assert [(l.canonical_ingredient_id, l.quantity) for l in linked] == [(ids["egg"], "3")]


async def test_unknown_ingredient_leaves_links_untouched(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    await set_dish_ingredients(db_session, dish_id, [{"canonical_ingredient_id": ids["egg"]}])

    with pytest.raises(IngredientNotFoundError) as exc:
        await set_dish_ingredients(
            db_session, dish_id, [{"canonical_ingredient_id": ids["lettuce"]}, {"canonical_ingredient_id": 424242}]
        )
    assert exc.value.details == {"canonical_ingredient_ids": [424242]}

    linked = await get_dish_ingredients(db_session, dish_id)
    assert [l.canonical_ingredient_id for l in linked] == [ids["egg"]]
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == ["eggs"]


async def test_linking_unknown_dish(db_session, seed_data):
    with pytest.raises(DishNotFoundError):
        await set_dish_ingredients(db_session, 31337, [])
    with pytest.raises(DishNotFoundError):
        await get_dish_ingredients(db_session, 31337)


async def test_recalculate_dish(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data)
    await set_dish_ingredients(db_session, dish_id, [{"canonical_ingredient_id": ids["cheddar"]}])

    dish = await _fresh_dish(db_session, dish_id)
    dish.allergens = []
    await db_session.commit()

    dish = await recalculate_dish(db_session, dish_id)
    assert dish.allergens == ["milk"]

    with pytest.raises(DishNotFoundError):
        await recalculate_dish(db_session, 31337)


# ===================== DISH AUTHORING =====================


async def test_direct_session_saves_dish_then_links(db_session, seed_data):
    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    session.update_draft(name="Caesar Salad", price=11.0, menu_category_id=seed_data["menu_category_id"])
    for term in ("Eggs", "Romaine"):
        assert session.add_ingredient((await ingredient_service.search_ingredients(db_session, term))[0])

    outcome = await session.save()

    assert outcome.status == "saved"
    assert outcome.warning is None
    assert session.dish_id == outcome.dish_id
    dish = await _fresh_dish(db_session, outcome.dish_id)
    assert dish.allergens == ["eggs"]
    assert "vegetarian" in dish.dietary_tags


async def test_add_ingredient_ignores_same_canonical(db_session, seed_data):
    session = DishAuthoringSession(WizardPersister())
    egg, eggs = await ingredient_service.search_ingredients(db_session, "egg")

    assert session.add_ingredient(egg) is True
    assert session.add_ingredient(eggs) is False
    assert [s.display_name for s in session.selection] == ["Egg"]

    session.set_quantity(egg.canonical_ingredient_id, "2")
    assert session.selection[0].quantity == "2"
    assert session.remove_ingredient(egg.canonical_ingredient_id) is True
    assert session.selection == []
    with pytest.raises(KeyError):
        session.set_quantity(egg.canonical_ingredient_id, "1")


async def test_invalid_draft_writes_nothing(db_session, seed_data):
    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    session.update_draft(name="A", price=0, spice_level=7)

    with pytest.raises(DishValidationError) as exc:
        await session.save()

    assert set(exc.value.details) == {"name", "price", "spice_level", "menu_category_id"}
    assert await _count(db_session, Dish) == 0


async def test_menu_category_must_belong_to_restaurant(db_session, seed_data):
    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    session.update_draft(name="Tiramisu", price=7.0, menu_category_id=98765)

    with pytest.raises(DishValidationError):
        await session.save()
    assert await _count(db_session, Dish) == 0


async def test_link_failure_after_save_is_a_warning(db_session, seed_data):
    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    session.update_draft(name="Mystery Stew", price=9.0, menu_category_id=seed_data["menu_category_id"])
    session.add_ingredient(SelectedIngredient(canonical_ingredient_id=555555, display_name="Unobtainium"))

    outcome = await session.save()

    assert outcome.status == "saved_with_warning"
    assert outcome.warning
    dish = await _fresh_dish(db_session, outcome.dish_id)
    assert dish.name == "Mystery Stew"
    assert dish.allergens == []
    assert await _count(db_session, DishIngredient) == 0


async def test_link_write_error_keeps_dish_and_previous_links(db_session, seed_data, monkeypatch):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data, "Omelette", 7.0)
    await set_dish_ingredients(db_session, dish_id, [{"canonical_ingredient_id": ids["egg"]}])

    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    await session.open(db_session, dish_id)
    session.update_draft(name="Cheese Omelette")
    session.add_ingredient(SelectedIngredient(canonical_ingredient_id=ids["cheddar"], display_name="Cheddar"))

    # delete + insert have run when the derivation step fails
    monkeypatch.setattr(
        "eatme.services.dish_ingredient_service.refresh_dish_attributes",
        AsyncMock(side_effect=OperationalError("UPDATE dishes", {}, Exception("database is locked"))),
    )
    outcome = await session.save()
    monkeypatch.undo()

    assert outcome.status == "saved_with_warning"
    assert outcome.dish_id == dish_id
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.name == "Cheese Omelette"
    assert dish.allergens == ["eggs"]
    assert [i.canonical_name for i in await get_dish_ingredients(db_session, dish_id)] == ["egg"]

    # session still usable after the rollback
    await set_dish_ingredients(
        db_session, dish_id, [{"canonical_ingredient_id": ids["egg"]}, {"canonical_ingredient_id": ids["cheddar"]}]
    )
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.allergens == ["eggs", "milk"]


async def test_dish_category_must_exist_and_be_active(db_session, seed_data):
    salads = await category_service.create_dish_category(db_session, "Salads")
    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    session.update_draft(name="Caesar Salad", price=11.0, menu_category_id=seed_data["menu_category_id"])

    session.update_draft(dish_category_id=424242)
    with pytest.raises(DishValidationError) as exc:
        await session.save()
    assert set(exc.value.details) == {"dish_category_id"}
    assert await _count(db_session, Dish) == 0

    session.update_draft(dish_category_id=salads.id)
    outcome = await session.save()
    assert outcome.status == "saved"

    # existing dish keeps a category deactivated later
    await category_service.deactivate_dish_category(db_session, salads.id)
    session.update_draft(price=12.0)
    assert (await session.save()).status == "saved"

    other = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    other.update_draft(
        name="Greek Salad", price=9.0, menu_category_id=seed_data["menu_category_id"], dish_category_id=salads.id
    )
    with pytest.raises(DishValidationError):
        await other.save()
    assert await _count(db_session, Dish) == 1


async def test_unloaded_relationships_raise(db_session, seed_data):
    dish_id = await _make_dish(db_session, seed_data)
    dish = await _fresh_dish(db_session, dish_id)

    with pytest.raises(InvalidRequestError):
        dish.ingredient_links


async def test_open_seeds_draft_and_selection(db_session, seed_data):
    ids = seed_data["ingredients"]
    dish_id = await _make_dish(db_session, seed_data, "Cheese Omelette", 8.0)
    await set_dish_ingredients(
        db_session,
        dish_id,
        [{"canonical_ingredient_id": ids["egg"], "quantity": "3"}, {"canonical_ingredient_id": ids["cheddar"]}],
    )

    session = DishAuthoringSession(DirectPersister(db_session, seed_data["restaurant_id"]))
    await session.open(db_session, dish_id)

    assert session.dish_id == dish_id
    assert session.draft.name == "Cheese Omelette"
    assert session.draft.menu_category_id == seed_data["menu_category_id"]
    assert [(s.display_name, s.quantity) for s in session.selection] == [("Cheddar", None), ("Egg", "3")]

    session.remove_ingredient(ids["cheddar"])
    session.update_draft(price=7.5)
    outcome = await session.save()

    assert outcome.status == "saved"
    assert outcome.dish_id == dish_id
    dish = await _fresh_dish(db_session, dish_id)
    assert dish.price == 7.5
    assert dish.allergens == ["eggs"]


async def test_wizard_stages_without_writing(db_session, seed_data):
    ids = seed_data["ingredients"]
    wizard = WizardPersister()

    salad = DishAuthoringSession(wizard, DishDraft(name="Caesar Salad", price=12.0))
    salad.add_ingredient(SelectedIngredient(canonical_ingredient_id=ids["egg"], display_name="Eggs"))
    salad.add_ingredient(SelectedIngredient(canonical_ingredient_id=ids["lettuce"], display_name="Lettuce"))
    outcome = await salad.save()

    assert outcome.status == "staged"
    assert outcome.dish_id is None
    assert await _count(db_session, Dish) == 0
    assert await _count(db_session, DishIngredient) == 0

    broken = DishAuthoringSession(wizard, DishDraft(name="Ghost Soup", price=6.0))
    broken.add_ingredient(SelectedIngredient(canonical_ingredient_id=777777, display_name="Ectoplasm"))
    await broken.save()

    outcomes = await wizard.commit(db_session, seed_data["restaurant_id"], seed_data["menu_category_id"])

    assert [o.status for o in outcomes] == ["saved", "saved_with_warning"]
    assert wizard.staged == []
    salad_dish = await _fresh_dish(db_session, outcomes[0].dish_id)
    assert salad_dish.allergens == ["eggs"]
    ghost = await _fresh_dish(db_session, outcomes[1].dish_id)
    assert ghost.name == "Ghost Soup"


async def test_wizard_resave_replaces_staged_dish(db_session, seed_data):
    wizard = WizardPersister()
    pho = DishAuthoringSession(wizard, DishDraft(name="Pho", price=10.0))

    first = await pho.save()
    pho.update_draft(price=11.0)
    second = await pho.save()

    assert first.staged_key == second.staged_key == pho.staged_key
    assert [(s.draft.name, s.draft.price) for s in wizard.staged] == [("Pho", 11.0)]

    outcomes = await wizard.commit(db_session, seed_data["restaurant_id"], seed_data["menu_category_id"])
    assert len(outcomes) == 1
    assert await _count(db_session, Dish) == 1
    assert (await _fresh_dish(db_session, outcomes[0].dish_id)).price == 11.0


async def test_wizard_remove_staged_dish(db_session, seed_data):
    wizard = WizardPersister()
    pho = DishAuthoringSession(wizard, DishDraft(name="Pho", price=10.0))
    await pho.save()
    await DishAuthoringSession(wizard, DishDraft(name="Banh Mi", price=7.0)).save()

    assert wizard.remove(pho.staged_key) is True
    assert wizard.remove(pho.staged_key) is False
    assert [s.draft.name for s in wizard.staged] == ["Banh Mi"]
    # a removed entry cannot be re-saved under its old key
    with pytest.raises(KeyError):
        await pho.save()


async def test_wizard_commit_checks_dish_category_first(db_session, seed_data):
    wizard = WizardPersister()
    await DishAuthoringSession(wizard, DishDraft(name="Pho", price=10.0)).save()
    await DishAuthoringSession(wizard, DishDraft(name="Ramen", price=12.0, dish_category_id=515151)).save()

    with pytest.raises(DishValidationError) as exc:
        await wizard.commit(db_session, seed_data["restaurant_id"], seed_data["menu_category_id"])
    assert "dish_category_id" in exc.value.details
    assert await _count(db_session, Dish) == 0


async def test_wizard_commit_needs_menu_category(db_session, seed_data):
    wizard = WizardPersister()
    await DishAuthoringSession(wizard, DishDraft(name="Pho", price=10.0)).save()

    with pytest.raises(DishValidationError):
        await wizard.commit(db_session, seed_data["restaurant_id"])
    assert await _count(db_session, Dish) == 0


async def test_wizard_validates_on_stage(db_session, seed_data):
    wizard = WizardPersister()
    with pytest.raises(DishValidationError) as exc:
        await DishAuthoringSession(wizard, DishDraft(name="Pho", price=20000)).save()
    assert "price" in exc.value.details
    assert wizard.staged == []


# ===================== CATEGORIES =====================


def test_suggest_categories():
    assert category_service.suggest_categories("Italian") == ["Pizza", "Pasta", "Risotto", "Lasagna", "Antipasti"]
    assert category_service.suggest_categories("  japanese ") == ["Sushi", "Ramen", "Udon", "Tempura", "Donburi"]
    assert category_service.suggest_categories("middle_eastern")[0] == "Shawarma"
    assert category_service.suggest_categories("Klingon") == []
    assert category_service.suggest_categories("") == []
    assert category_service.suggest_categories(None) == []


def test_suggestions_are_copies():
    category_service.suggest_categories("Thai").append("Mango Sticky Rice")
    assert "Mango Sticky Rice" not in category_service.suggest_categories("Thai")


async def test_dish_category_lifecycle(db_session, seed_data):
    created = await category_service.create_dish_category(db_session, "Bánh xèo", is_drink=False)
    assert created.slug == "banh-xeo"

    with pytest.raises(ConflictError):
        await category_service.create_dish_category(db_session, "Bánh xèo")

    drinks = await category_service.list_dish_categories(db_session, kind="drink")
    assert drinks and all(c.is_drink for c in drinks)

    await category_service.deactivate_dish_category(db_session, created.id)
    active = await category_service.list_dish_categories(db_session, kind="food")
    assert created.id not in [c.id for c in active]

    everything = await category_service.list_dish_categories(db_session, include_inactive=True)
    assert created.id in [c.id for c in everything]

    await category_service.delete_dish_category(db_session, created.id)
    with pytest.raises(DishCategoryNotFoundError):
        await category_service.get_dish_category(db_session, created.id)
