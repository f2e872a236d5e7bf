from fastapi import APIRouter, Depends

from pantry.core.container import Container, get_container, require_owner
from pantry.services.sync import SyncReport

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/", response_model=SyncReport)
async def reconcile(owner_id: str = Depends(require_owner), c: Container = Depends(get_container)):
    """Promote every locally stored photo of the caller to the object store."""
    return await c.sync.reconcile(owner_id)
