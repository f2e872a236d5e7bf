import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException

from pantry.core.container import Container, get_container, require_owner
from pantry.schemas.pantry import LabelRequest, LabelResultOut, label_result_out

router = APIRouter(prefix="/inference", tags=["inference"])


@router.post("/label", response_model=LabelResultOut)
async def label_image(
    payload: LabelRequest,
    owner_id: str = Depends(require_owner),
    c: Container = Depends(get_container),
):
    try:
        image_bytes = base64.b64decode(payload.image_b64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="image_b64 is not valid base64") from None
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Empty image")
    result = await c.pantry.identify_ingredient(image_bytes, payload.mime_type)
    return label_result_out(result)
