from typing import List

from fastapi import APIRouter, Depends

from pantry.core.container import Container, get_container, require_owner
from pantry.schemas.pantry import UsageCreate, UsageOut, usage_out

router = APIRouter(prefix="/usage", tags=["usage"])


@router.get("/", response_model=List[UsageOut])
async def list_usage(owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    return [usage_out(u) for u in await c.pantry.list_usage(owner_id)]


@router.post("/", response_model=UsageOut, status_code=201)
async def add_usage(
    payload: UsageCreate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return usage_out(await c.pantry.add_usage(owner_id, payload))
