from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pantry.core.container import Container, get_container, require_owner
from pantry.schemas.pantry import ConsumeIn, ItemCreate, ItemOut, ItemUpdate, UsageOut, item_out, usage_out

router = APIRouter(prefix="/items", tags=["items"])


class ConsumeOut(BaseModel):
    item: ItemOut
    usage: UsageOut


@router.get("/", response_model=List[ItemOut])
async def list_items(owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return [item_out(i) for i in await c.pantry.list_items(owner_id)]


@router.post("/", response_model=ItemOut, status_code=201)
async def create_item(
    payload: ItemCreate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return item_out(await c.pantry.add_item(owner_id, payload))


@router.get("/{item_id}", response_model=ItemOut)
async def get_item(item_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return item_out(await c.pantry.get_item(owner_id, item_id))


@router.patch("/{item_id}", response_model=ItemOut)
async def update_item(
    item_id: str,
    payload: ItemUpdate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return item_out(await c.pantry.update_item(owner_id, item_id, payload))


@router.post("/{item_id}/consume", response_model=ConsumeOut)
async def consume_item(
    item_id: str,
    payload: ConsumeIn,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    item, usage = await c.pantry.consume_item(owner_id, item_id, payload.qty, payload.unit)
    return ConsumeOut(item=item_out(item), usage=usage_out(usage))


@router.delete("/{item_id}")
async def delete_item(item_id: str, owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    await c.pantry.delete_item(owner_id, item_id)
    return {"ok": True}
