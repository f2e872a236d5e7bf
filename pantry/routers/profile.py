from fastapi import APIRouter, Depends, HTTPException

from pantry.core.container import Container, get_container, require_owner
from pantry.schemas.pantry import ProfileOut, ProfileUpdate, profile_out

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/", response_model=ProfileOut)
async def get_profile(owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    profile = await c.pantry.get_profile(owner_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile_out(profile)


@router.put("/", response_model=ProfileOut)
async def update_profile(
    payload: ProfileUpdate,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    return profile_out(await c.pantry.update_profile(owner_id, payload))
