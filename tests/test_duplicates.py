# tests/test_duplicates.py
"""Case-insensitive name uniqueness per owner and collection"""

import pytest

from pantry.errors import DuplicateNameError
from pantry.schemas.pantry import ItemCreate, ItemUpdate, RecipeCreate, RecipeUpdate
from pantry.services.duplicates import exists_by_name
from pantry.services.inference import InferenceOrchestrator, PantryAI
from pantry.services.pantry import PantryService
from fakes import ScriptedProvider


@pytest.fixture
def pantry(repo, assets, engine):
    ai = PantryAI(InferenceOrchestrator(ScriptedProvider()), [], [], configured=True)
    return PantryService(repo, assets, engine, ai)


@pytest.mark.asyncio
async def test_milk_then_lowercase_milk_is_rejected(db_setup, pantry):
    await pantry.add_item("u1", ItemCreate(name="Milk"))
    with pytest.raises(DuplicateNameError) as exc:
        await pantry.add_item("u1", ItemCreate(name="milk"))
    assert '"milk"' in str(exc.value)
    assert "already exists in your kitchen" in str(exc.value)


@pytest.mark.asyncio
async def test_update_keeping_own_name_succeeds(db_setup, pantry):
    milk = await pantry.add_item("u1", ItemCreate(name="Milk"))
    updated = await pantry.update_item("u1", str(milk.id), ItemUpdate(name="Milk", quantity=3))
    assert updated.quantity == 3
    # changing only the case of its own name is fine too
    updated = await pantry.update_item("u1", str(milk.id), ItemUpdate(name="MILK"))
    assert updated.name == "MILK"
    assert updated.name_lower == "milk"


@pytest.mark.asyncio
async def test_update_to_another_records_name_is_rejected(db_setup, pantry):
    await pantry.add_recipe("u1", RecipeCreate(name="Pancakes"))
    waffles = await pantry.add_recipe("u1", RecipeCreate(name="Waffles"))
    with pytest.raises(DuplicateNameError) as exc:
        await pantry.update_recipe("u1", str(waffles.id), RecipeUpdate(name="pancakes"))
    assert str(exc.value) == 'A recipe named "pancakes" already exists.'


@pytest.mark.asyncio
async def test_scope_is_owner_and_collection(db_setup, pantry):
    await pantry.add_item("u1", ItemCreate(name="Eggs"))
    # same name in another collection and for another owner is allowed
    await pantry.add_recipe("u1", RecipeCreate(name="Eggs"))
    await pantry.add_item("u2", ItemCreate(name="eggs"))


@pytest.mark.asyncio
async def test_exists_by_name_exclude_id(db_setup, repo, pantry):
    butter = await pantry.add_item("u1", ItemCreate(name="Butter"))
    assert await exists_by_name(repo, "u1", "items", "BUTTER") is True
    assert await exists_by_name(repo, "u1", "items", "butter", exclude_id=str(butter.id)) is False
    assert await exists_by_name(repo, "u1", "items", "margarine") is False


@pytest.mark.asyncio
async def test_existing_duplicates_still_block_updates(db_setup, repo, pantry):
    # two records that raced past the check both hold the name
    a = await repo.create("u1", "items", name="Jam", name_lower="jam")
    await repo.create("u1", "items", name="jam", name_lower="jam")
    assert await exists_by_name(repo, "u1", "items", "Jam", exclude_id=str(a.id)) is True
