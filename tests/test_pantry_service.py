"""Record write paths: photos, consumption, deletion, profile and rewrite"""

from pathlib import Path

import pytest

from pantry.errors import RecordNotFoundError
from pantry.schemas.pantry import Ingredient, ItemCreate, ProfileUpdate, RecipeCreate
from pantry.services.inference import InferenceOrchestrator, PantryAI
from pantry.services.pantry import PantryService, build_rewrite_prompt
from fakes import ScriptedProvider, gemini_body


def make_service(repo, assets, engine, provider=None, local_only=True):
    ai = PantryAI(InferenceOrchestrator(provider or ScriptedProvider()), ["models/v"], ["models/t"])
    return PantryService(repo, assets, engine, ai, local_only_media=local_only)


@pytest.fixture
def pantry(repo, assets, engine):
    return make_service(repo, assets, engine)


@pytest.mark.asyncio
async def test_add_item_with_photo_stays_local(db_setup, pantry, assets, store, photo):
    item = await pantry.add_item("u1", ItemCreate(name="Tomato", quantity=4, photo_uri=str(photo)))

    assert item.photo_url is None
    assert Path(item.local_path).parent == assets.uploads / "items" / "u1"
    assert Path(item.local_path).exists()
    assert photo.exists()
    assert store.puts == []


@pytest.mark.asyncio
async def test_photo_save_failure_still_creates_record(db_setup, pantry, tmp_path):
    item = await pantry.add_item("u1", ItemCreate(name="Basil", photo_uri=str(tmp_path / "missing.jpg")))
    assert item.local_path is None
    assert item.photo_url is None
    assert (await pantry.get_item("u1", str(item.id))).name == "Basil"


@pytest.mark.asyncio
async def test_online_mode_uploads_immediately(db_setup, repo, assets, engine, store, photo):
    pantry = make_service(repo, assets, engine, local_only=False)
    recipe = await pantry.add_recipe("u1", RecipeCreate(name="Soup", photo_uri=str(photo)))

    assert recipe.photo_url == f"https://cdn.test/users/u1/recipes/{recipe.id}.jpg"
    assert recipe.local_path is None


@pytest.mark.asyncio
async def test_online_mode_defers_when_store_is_down(db_setup, repo, assets, engine, store, photo):
    store.fail_all = True
    pantry = make_service(repo, assets, engine, local_only=False)
    item = await pantry.add_item("u1", ItemCreate(name="Rice", photo_uri=str(photo)))

    assert item.photo_url is None
    assert item.local_path and Path(item.local_path).exists()

    store.fail_all = False
    report = await engine.reconcile("u1")
    assert report.succeeded == 1


@pytest.mark.asyncio
async def test_consume_records_usage_and_floors_at_zero(db_setup, pantry):
    item = await pantry.add_item("u1", ItemCreate(name="Eggs", quantity=5))

    item, usage = await pantry.consume_item("u1", str(item.id), 2)
    assert item.quantity == 3
    assert usage.previous_quantity == 5
    assert usage.new_quantity == 3
    assert usage.unit == "pcs"
    assert usage.item_id == str(item.id)

    item, usage = await pantry.consume_item("u1", str(item.id), 10, unit="dozen")
    assert item.quantity == 0
    assert usage.unit == "dozen"

    history = await pantry.list_usage("u1")
    assert sorted(u.new_quantity for u in history) == [0, 3]


@pytest.mark.asyncio
async def test_delete_item_removes_local_photo(db_setup, pantry, photo):
    item = await pantry.add_item("u1", ItemCreate(name="Leek", photo_uri=str(photo)))
    local = item.local_path

    await pantry.delete_item("u1", str(item.id))

    assert not Path(local).exists()
    with pytest.raises(RecordNotFoundError):
        await pantry.get_item("u1", str(item.id))


@pytest.mark.asyncio
async def test_delete_synced_recipe_removes_remote_object(db_setup, pantry, engine, store, photo):
    recipe = await pantry.add_recipe("u1", RecipeCreate(name="Stew", photo_uri=str(photo)))
    await engine.reconcile("u1")
    key = f"users/u1/recipes/{recipe.id}.jpg"
    assert key in store.objects

    await pantry.delete_recipe("u1", str(recipe.id))
    assert key in store.deletes
    assert key not in store.objects


@pytest.mark.asyncio
async def test_other_owner_cannot_see_record(db_setup, pantry):
    item = await pantry.add_item("u1", ItemCreate(name="Salt"))
    with pytest.raises(RecordNotFoundError):
        await pantry.get_item("u2", str(item.id))
    with pytest.raises(RecordNotFoundError):
        await pantry.get_item("u1", "not-a-uuid")


@pytest.mark.asyncio
async def test_profile_photo_replacement(db_setup, pantry, engine, photo):
    first = await pantry.update_profile("u1", ProfileUpdate(username="sam", photo_uri=str(photo)))
    old_local = first.local_path
    assert first.username == "sam"

    await engine.reconcile("u1")
    synced = await pantry.get_profile("u1")
    assert synced.photo_url and synced.local_path is None

    second = await pantry.update_profile("u1", ProfileUpdate(photo_uri=str(photo)))
    # a new local photo clears the synced URL
    assert second.photo_url is None
    assert second.local_path and second.local_path != old_local
    assert second.username == "sam"

    third = await pantry.update_profile("u1", ProfileUpdate(photo_uri=str(photo)))
    assert not Path(second.local_path).exists()
    assert Path(third.local_path).exists()


@pytest.mark.asyncio
async def test_theme_only_update_keeps_photo(db_setup, pantry, photo):
    await pantry.update_profile("u1", ProfileUpdate(photo_uri=str(photo)))
    profile = await pantry.update_profile("u1", ProfileUpdate(theme="dark"))
    assert profile.theme == "dark"
    assert profile.local_path is not None


@pytest.mark.asyncio
async def test_rewrite_steps_splits_lines(db_setup, repo, assets, engine):
    provider = ScriptedProvider([gemini_body("Boil the water.\n\n  Add the pasta.  \nServe.")])
    pantry = make_service(repo, assets, engine, provider=provider)
    recipe = await pantry.add_recipe(
        "u1",
        RecipeCreate(name="Pasta", ingredients=[Ingredient(name="pasta"), Ingredient(name="salt")], steps=["cook"]),
    )

    steps = await pantry.rewrite_recipe_steps("u1", str(recipe.id))

    assert steps == ["Boil the water.", "Add the pasta.", "Serve."]
    prompt = provider.calls[0]["prompt"]
    assert "Recipe Name: Pasta" in prompt
    assert "Ingredients: pasta, salt" in prompt
    # nothing is persisted
    assert (await pantry.get_recipe("u1", str(recipe.id))).steps == ["cook"]


@pytest.mark.asyncio
async def test_rewrite_prompt_without_steps(db_setup, pantry):
    recipe = await pantry.add_recipe("u1", RecipeCreate(name="Toast"))
    assert "No existing steps, generate new ones." in build_rewrite_prompt(recipe)


@pytest.mark.asyncio
async def test_toggle_favorite(db_setup, pantry):
    recipe = await pantry.add_recipe("u1", RecipeCreate(name="Curry"))
    assert (await pantry.toggle_favorite("u1", str(recipe.id))).is_favorite is True
    assert (await pantry.toggle_favorite("u1", str(recipe.id))).is_favorite is False
