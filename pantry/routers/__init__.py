from fastapi import APIRouter
import logging

from . import health, inference, items, profile, recipes, sync, usage


def build_router() -> APIRouter:
    router = APIRouter()
    log = logging.getLogger("pantry.routers")
    for module in (items, recipes, usage, profile, sync, inference, health):
        router.include_router(module.router)
        log.debug("Loaded router: %s", module.__name__.rsplit(".", 1)[-1])
    return router


# Export module-level router so pantry.main can import it
router = build_router()
