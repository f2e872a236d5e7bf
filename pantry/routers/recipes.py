from typing import List

from fastapi import APIRouter, Depends

from pantry.core.container import Container, get_container, require_owner
from pantry.schemas.pantry import RecipeCreate, RecipeOut, RecipeUpdate, RewriteOut, recipe_out

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("/", response_model=List[RecipeOut])
async def list_recipes(owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return [recipe_out(r) for r in await c.pantry.list_recipes(owner_id)]


@router.post("/", response_model=RecipeOut, status_code=201)
async def create_recipe(
    payload: RecipeCreate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return recipe_out(await c.pantry.add_recipe(owner_id, payload))


@router.get("/{recipe_id}", response_model=RecipeOut)
async def get_recipe(recipe_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return recipe_out(await c.pantry.get_recipe(owner_id, recipe_id))


@router.patch("/{recipe_id}", response_model=RecipeOut)
async def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return recipe_out(await c.pantry.update_recipe(owner_id, recipe_id, payload))


@router.post("/{recipe_id}/favorite", response_model=RecipeOut)
async def toggle_favorite(recipe_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return recipe_out(await c.pantry.toggle_favorite(owner_id, recipe_id))


@router.post("/{recipe_id}/rewrite", response_model=RewriteOut)
async def rewrite_steps(recipe_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    # Suggested steps only; the client PATCHes them back if accepted
    steps = await c.pantry.rewrite_recipe_steps(owner_id, recipe_id)
    return RewriteOut(recipe_id=recipe_id, steps=steps)


@router.delete("/{recipe_id}")
async def delete_recipe(recipe_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    await c.pantry.delete_recipe(owner_id, recipe_id)
    return {"ok": True}
