import time

from fastapi import APIRouter, Request
from tortoise import Tortoise

router = APIRouter(prefix="/ops", tags=["ops"])

# Store startup time for uptime calculation
startup_time = time.time()


@router.get("/db-health")
async def db_health():
    """Simple database health check using Tortoise ORM"""
    try:
        await Tortoise.get_connection("default").execute_query("SELECT 1")
        return {"db_ok": True}
    except Exception as e:
        return {"db_ok": False, "error": str(e)}


@router.get("/status")
async def status(request: Request):
    settings = request.app.state.container.settings
    return {
        "status": "healthy",
        "uptime_seconds": round(time.time() - startup_time, 2),
        "storage_driver": settings.STORAGE_DRIVER,
        "local_only_media": settings.LOCAL_ONLY_MEDIA,
        "inference_configured": request.app.state.container.ai.configured,
    }
