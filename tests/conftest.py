"""
Pytest configuration and fixtures for pantry tests
"""

import pytest

from pantry.config import Settings
from pantry.db import init_db, close_db
from pantry.services.local_assets import LocalAssetStore
from pantry.services.repository import RecordRepository
from pantry.services.sync import SyncEngine
from fakes import MemoryObjectStore


@pytest.fixture(scope="function")
async def db_setup():
    """Fresh in-memory SQLite database for each test."""
    await init_db(db_url="sqlite://:memory:")
    try:
        yield
    finally:
        await close_db()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://:memory:",
        ASSETS_DIR=str(tmp_path / "assets"),
        STORAGE_DIR=str(tmp_path / "bucket"),
        GEMINI_API_KEY="",
        LOCAL_ONLY_MEDIA=True,
        METRICS_ENABLED=False,
    )


@pytest.fixture
def photo(tmp_path):
    """A source photo as the camera/picker would hand it over."""
    src = tmp_path / "camera" / "IMG_0001.JPG"
    src.parent.mkdir(parents=True)
    src.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-bytes")
    return src


@pytest.fixture
def assets(settings):
    return LocalAssetStore(settings.ASSETS_DIR)


@pytest.fixture
def store():
    return MemoryObjectStore()


@pytest.fixture
def repo():
    return RecordRepository()


@pytest.fixture
def engine(repo, assets, store):
    return SyncEngine(repo, assets, store)
