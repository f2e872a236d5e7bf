import asyncio
import logging
import re
import secrets
import shutil
import string
import threading
import time
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from slugify import slugify

from pantry.errors import AssetReadError, AssetWriteError

log = logging.getLogger("pantry.assets")

DEFAULT_EXTENSION = "jpg"
_EXT_RE = re.compile(r"\.([^./?#]+)(?:[?#].*)?$")
_BASE36 = string.digits + string.ascii_lowercase


class AssetCategory(str, Enum):
    ITEMS = "items"
    RECIPES = "recipes"
    PROFILE = "profile"


def _source_path(uri: str) -> Path:
    if uri.startswith("file://"):
        return Path(url2pathname(urlparse(uri).path))
    return Path(uri)


def extension_for(uri: str) -> str:
    m = _EXT_RE.search(uri or "")
    if not m:
        return DEFAULT_EXTENSION
    ext = m.group(1).lower()
    if not ext.isalnum() or len(ext) > 5:
        return DEFAULT_EXTENSION
    return ext


class LocalAssetStore:
    """Private on-device photo storage laid out as uploads/<category>/<owner>/<file>."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()
        self.uploads = self.root / "uploads"
        self._stamp_lock = threading.Lock()
        self._last_stamp = 0

    def _next_stamp(self) -> int:
        # strictly increasing even when the clock does not move between calls
        with self._stamp_lock:
            now = time.time_ns()
            self._last_stamp = now if now > self._last_stamp else self._last_stamp + 1
            return self._last_stamp

    def folder_for(self, owner_id: str, category: AssetCategory) -> Path:
        return self.uploads / category.value / slugify(owner_id)

    def new_filename(self, category: AssetCategory, ext: str) -> str:
        suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
        return f"{category.value}_{self._next_stamp()}_{suffix}.{ext}"

    async def save(self, owner_id: str, source_uri: str, category: str) -> str:
        try:
            cat = AssetCategory(category)
        except ValueError:
            raise AssetWriteError(f"Unknown asset category: {category!r}") from None
        if not owner_id:
            raise AssetWriteError("owner_id is required")

        folder = self.folder_for(owner_id, cat)
        dest = folder / self.new_filename(cat, extension_for(source_uri))
        src = _source_path(source_uri)
        try:
            await asyncio.to_thread(folder.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, src, dest)
        except OSError as exc:
            log.error("Saving %s for owner %s failed: %s", source_uri, owner_id, exc)
            raise AssetWriteError(f"Could not save photo locally: {exc}") from exc

        log.debug("Saved local asset %s", dest)
        return str(dest)

    async def read(self, local_path: str) -> bytes:
        path = _source_path(local_path)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise AssetReadError(f"Local asset unreadable: {local_path}: {exc}") from exc

    def owns(self, local_path: str) -> bool:
        try:
            _source_path(local_path).resolve().relative_to(self.uploads)
            return True
        except ValueError:
            return False

    async def delete(self, local_path: str) -> bool:
        """Remove an asset this store created. Returns False if it was already gone."""
        if not self.owns(local_path):
            raise AssetWriteError(f"Refusing to delete a file outside the asset store: {local_path}")
        path = _source_path(local_path)
        try:
            existed = await asyncio.to_thread(path.exists)
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise AssetWriteError(f"Could not delete local asset {local_path}: {exc}") from exc
        return existed

    async def exists(self, local_path: str) -> bool:
        return await asyncio.to_thread(_source_path(local_path).exists)
