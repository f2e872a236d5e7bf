from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

from pantry.config import Settings
from pantry.services.gemini import GeminiClient
from pantry.services.inference import InferenceOrchestrator, PantryAI
from pantry.services.local_assets import LocalAssetStore
from pantry.services.object_store import ObjectStore, build_object_store
from pantry.services.pantry import PantryService
from pantry.services.repository import RecordRepository
from pantry.services.sync import SyncEngine


@dataclass
class Container:
    """Every long-lived component, built once at startup and passed by reference."""

    settings: Settings
    repo: RecordRepository
    assets: LocalAssetStore
    store: ObjectStore
    sync: SyncEngine
    ai: PantryAI
    pantry: PantryService


def build_container(
    settings: Settings,
    store: Optional[ObjectStore] = None,
    provider=None,
) -> Container:
    repo = RecordRepository()
    assets = LocalAssetStore(settings.ASSETS_DIR)
    store = store or build_object_store(settings)
    sync = SyncEngine(repo, assets, store)

    gemini = GeminiClient(settings.GEMINI_API_KEY, settings.GEMINI_BASE_URL, settings.GEMINI_TIMEOUT)
    ai = PantryAI(
        InferenceOrchestrator(provider or gemini, max_attempts=settings.MAX_MODEL_TRIES),
        settings.VISION_MODELS,
        settings.TEXT_MODELS,
        configured=provider is not None or gemini.is_available(),
    )
    pantry = PantryService(repo, assets, sync, ai, local_only_media=settings.LOCAL_ONLY_MEDIA)
    return Container(settings, repo, assets, store, sync, ai, pantry)


def get_container(request: Request) -> Container:
    return request.app.state.container


def require_owner(request: Request) -> str:
    """Owner id from the X-Owner-Id header; authentication happens upstream."""
    owner_id = (request.headers.get("x-owner-id") or "").strip()
    if not owner_id:
        raise HTTPException(status_code=401, detail="X-Owner-Id header required")
    return owner_id
