import logging
from typing import List, Optional, Tuple

from pantry.errors import AssetWriteError, PantryError, UploadError
from pantry.models import Item, Profile, Recipe, UsageEntry
from pantry.schemas.pantry import (
    ItemCreate,
    ItemUpdate,
    ProfileUpdate,
    RecipeCreate,
    RecipeUpdate,
    UsageCreate,
)
from pantry.services.duplicates import ensure_unique_name, normalize_name
from pantry.services.inference import LabelResult, PantryAI
from pantry.services.local_assets import AssetCategory, LocalAssetStore
from pantry.services.repository import PROFILE, RecordRepository
from pantry.services.sync import SyncEngine

log = logging.getLogger("pantry.records")

REWRITE_TEMPLATE = """Rewrite the steps for the following recipe, making them clear, concise, and easy to follow. Only provide the steps, separated by newlines, nothing else. Focus on the core instructions.
Recipe Name: {name}
Ingredients: {ingredients}
Notes (optional context): {notes}
Current Steps (if any, use as a base or inspiration):
{steps}"""


def build_rewrite_prompt(recipe: Recipe) -> str:
    ingredients = ", ".join(i.get("name", "") for i in (recipe.ingredients or []) if isinstance(i, dict))
    steps = "\n".join(recipe.steps or []) or "No existing steps, generate new ones."
    return REWRITE_TEMPLATE.format(
        name=recipe.name,
        ingredients=ingredients,
        notes=recipe.notes or "",
        steps=steps,
    )


class PantryService:
    """Record write paths for items, recipes, usage and the profile.

    Photos are always saved locally first. When ``local_only_media`` is off the
    new asset is promoted right away on a best-effort basis; anything left
    unsynced is picked up by the next reconcile.
    """

    def __init__(
        self,
        repo: RecordRepository,
        assets: LocalAssetStore,
        sync: SyncEngine,
        ai: PantryAI,
        local_only_media: bool = True,
    ):
        self.repo = repo
        self.assets = assets
        self.sync = sync
        self.ai = ai
        self.local_only_media = local_only_media

    # --- photos ---------------------------------------------------------------

    async def _save_photo(self, owner_id: str, photo_uri: Optional[str], category: AssetCategory) -> Optional[str]:
        if not photo_uri:
            return None
        try:
            return await self.assets.save(owner_id, photo_uri, category.value)
        except AssetWriteError as exc:
            log.error("Local photo save failed for %s; no image will be attached: %s", category.value, exc)
            return None

    async def _promote(self, owner_id: str, collection: str, record):
        if self.local_only_media or not record.local_path:
            return record
        try:
            await self.sync.sync_record(owner_id, collection, record)
        except PantryError as exc:
            log.warning("Immediate upload for %s/%s deferred to next sync: %s", collection, record.id, exc)
            return record
        if collection == PROFILE:
            return await self.repo.get_profile(owner_id)
        return await self.repo.get(owner_id, collection, record.id)

    async def _discard_media(self, owner_id: str, collection: str, record) -> None:
        if record.local_path:
            try:
                await self.assets.delete(record.local_path)
            except AssetWriteError as exc:
                log.warning("Could not remove local photo %s: %s", record.local_path, exc)
        if record.photo_url:
            key = self.sync.key_for(owner_id, collection, record)
            try:
                await self.sync.store.delete(key)
            except UploadError as exc:
                log.warning("Could not remove remote photo %s: %s", key, exc)

    # --- items ----------------------------------------------------------------

    async def list_items(self, owner_id: str) -> List[Item]:
        return await self.repo.list_all(owner_id, "items")

    async def get_item(self, owner_id: str, item_id: str) -> Item:
        return await self.repo.get(owner_id, "items", item_id)

    async def add_item(self, owner_id: str, data: ItemCreate) -> Item:
        await ensure_unique_name(self.repo, owner_id, "items", data.name)
        local_path = await self._save_photo(owner_id, data.photo_uri, AssetCategory.ITEMS)
        item = await self.repo.create(
            owner_id,
            "items",
            name=data.name,
            name_lower=normalize_name(data.name),
            quantity=data.quantity,
            unit=data.unit,
            notes=data.notes,
            expiry=data.expiry,
            photo_url=None,
            local_path=local_path,
        )
        return await self._promote(owner_id, "items", item)

    async def update_item(self, owner_id: str, item_id: str, data: ItemUpdate) -> Item:
        fields = data.model_dump(exclude_unset=True)
        if "name" in fields:
            await ensure_unique_name(self.repo, owner_id, "items", fields["name"], exclude_id=item_id)
            fields["name_lower"] = normalize_name(fields["name"])
        if fields:
            await self.repo.update(owner_id, "items", item_id, **fields)
        return await self.repo.get(owner_id, "items", item_id)

    async def consume_item(
        self, owner_id: str, item_id: str, qty: float, unit: Optional[str] = None
    ) -> Tuple[Item, UsageEntry]:
        item = await self.repo.get(owner_id, "items", item_id)
        previous = item.quantity
        new_qty = max(previous - qty, 0)
        await self.repo.update(owner_id, "items", item_id, quantity=new_qty)
        usage = await self.add_usage(
            owner_id,
            UsageCreate(
                item_id=str(item.id),
                name=item.name,
                qty=qty,
                unit=unit or item.unit or "pcs",
                type="consumption",
                previous_quantity=previous,
                new_quantity=new_qty,
            ),
        )
        return await self.repo.get(owner_id, "items", item_id), usage

    async def delete_item(self, owner_id: str, item_id: str) -> None:
        item = await self.repo.delete(owner_id, "items", item_id)
        await self._discard_media(owner_id, "items", item)

    # --- recipes --------------------------------------------------------------

    async def list_recipes(self, owner_id: str) -> List[Recipe]:
        return await self.repo.list_all(owner_id, "recipes")

    async def get_recipe(self, owner_id: str, recipe_id: str) -> Recipe:
        return await self.repo.get(owner_id, "recipes", recipe_id)

    async def add_recipe(self, owner_id: str, data: RecipeCreate) -> Recipe:
        await ensure_unique_name(self.repo, owner_id, "recipes", data.name)
        local_path = await self._save_photo(owner_id, data.photo_uri, AssetCategory.RECIPES)
        recipe = await self.repo.create(
            owner_id,
            "recipes",
            name=data.name,
            name_lower=normalize_name(data.name),
            notes=data.notes,
            ingredients=[i.model_dump() for i in data.ingredients],
            steps=data.steps,
            servings=data.servings,
            is_favorite=data.is_favorite,
            photo_url=None,
            local_path=local_path,
        )
        return await self._promote(owner_id, "recipes", recipe)

    async def update_recipe(self, owner_id: str, recipe_id: str, data: RecipeUpdate) -> Recipe:
        fields = data.model_dump(exclude_unset=True)
        if "name" in fields:
            await ensure_unique_name(self.repo, owner_id, "recipes", fields["name"], exclude_id=recipe_id)
            fields["name_lower"] = normalize_name(fields["name"])
        if fields:
            await self.repo.update(owner_id, "recipes", recipe_id, **fields)
        return await self.repo.get(owner_id, "recipes", recipe_id)

    async def toggle_favorite(self, owner_id: str, recipe_id: str) -> Recipe:
        recipe = await self.repo.get(owner_id, "recipes", recipe_id)
        await self.repo.update(owner_id, "recipes", recipe_id, is_favorite=not recipe.is_favorite)
        return await self.repo.get(owner_id, "recipes", recipe_id)

    async def delete_recipe(self, owner_id: str, recipe_id: str) -> None:
        recipe = await self.repo.delete(owner_id, "recipes", recipe_id)
        await self._discard_media(owner_id, "recipes", recipe)

    # --- usage ----------------------------------------------------------------

    async def add_usage(self, owner_id: str, data: UsageCreate) -> UsageEntry:
        return await self.repo.create(owner_id, "usage", **data.model_dump())

    async def list_usage(self, owner_id: str) -> List[UsageEntry]:
        return await self.repo.list_all(owner_id, "usage")

    # --- profile --------------------------------------------------------------

    async def get_profile(self, owner_id: str) -> Optional[Profile]:
        return await self.repo.get_profile(owner_id)

    async def update_profile(self, owner_id: str, data: ProfileUpdate) -> Profile:
        fields = data.model_dump(exclude_unset=True, exclude={"photo_uri"})
        previous = await self.repo.get_profile(owner_id)
        local_path = await self._save_photo(owner_id, data.photo_uri, AssetCategory.PROFILE)
        if local_path:
            # a new local photo supersedes whatever was there before
            fields.update(local_path=local_path, photo_url=None)
        profile = await self.repo.merge_profile(owner_id, **fields)
        if local_path and previous is not None and previous.local_path:
            try:
                await self.assets.delete(previous.local_path)
            except AssetWriteError as exc:
                log.warning("Could not remove replaced profile photo: %s", exc)
        return await self._promote(owner_id, PROFILE, profile)

    # --- AI -------------------------------------------------------------------

    async def identify_ingredient(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Optional[LabelResult]:
        return await self.ai.identify_main_ingredient(image_bytes, mime_type)

    async def rewrite_recipe_steps(self, owner_id: str, recipe_id: str) -> List[str]:
        """Ask the text models for cleaner steps. Nothing is saved here."""
        recipe = await self.repo.get(owner_id, "recipes", recipe_id)
        text = await self.ai.rewrite(build_rewrite_prompt(recipe))
        if not text:
            return []
        return [line.strip() for line in text.split("\n") if line.strip()]
