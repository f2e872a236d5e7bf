"""
Remote object store clients.

Keys follow ``users/{owner_id}/{category}/{record_id}.jpg`` and are stable per
record, so re-uploading simply overwrites the previous object.
"""

import asyncio
import logging
from io import BytesIO
from pathlib import Path

import cloudinary.uploader

from pantry.config import Settings
from pantry.errors import UploadError

log = logging.getLogger("pantry.object_store")


def object_key(owner_id: str, category: str, record_id: str) -> str:
    return f"users/{owner_id}/{category}/{record_id}.jpg"


class ObjectStore:
    """Interface shared by the remote stores."""

    async def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError


class FilesystemObjectStore(ObjectStore):
    """Bucket emulated on disk and served under PUBLIC_BASE_URL, for development."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise UploadError(f"Invalid object key: {key}")
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".part")
        tmp.write_bytes(data)
        tmp.replace(path)

    async def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            raise UploadError(f"Upload of {key} failed: {exc}") from exc
        return f"{self.public_base_url}/{key}"

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise UploadError(f"Delete of {key} failed: {exc}") from exc


class CloudinaryObjectStore(ObjectStore):
    """Cloudinary-backed bucket. Credentials are passed per call, not via global config."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self._options = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "secure": True,
        }

    @staticmethod
    def public_id(key: str) -> str:
        # Cloudinary public ids carry no extension
        return key.rsplit(".", 1)[0] if "." in key.rsplit("/", 1)[-1] else key

    async def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                BytesIO(data),
                public_id=self.public_id(key),
                resource_type="image",
                overwrite=True,
                invalidate=True,
                **self._options,
            )
        except Exception as exc:
            raise UploadError(f"Cloudinary upload of {key} failed: {exc}") from exc

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise UploadError(f"Cloudinary upload of {key} returned no URL")
        return url

    async def delete(self, key: str) -> None:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                self.public_id(key),
                invalidate=True,
                **self._options,
            )
        except Exception as exc:
            raise UploadError(f"Cloudinary delete of {key} failed: {exc}") from exc
        # "not found" means already deleted
        if result.get("result") not in ("ok", "not found"):
            raise UploadError(f"Cloudinary delete of {key} failed: {result}")


def build_object_store(settings: Settings) -> ObjectStore:
    driver = (settings.STORAGE_DRIVER or "local").strip().lower()
    if driver == "cloudinary":
        if not (settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY):
            raise ValueError("STORAGE_DRIVER=cloudinary requires CLOUDINARY_* settings")
        log.info("Object store: Cloudinary (%s)", settings.CLOUDINARY_CLOUD_NAME)
        return CloudinaryObjectStore(
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY,
            settings.CLOUDINARY_API_SECRET,
        )
    if driver == "local":
        log.info("Object store: filesystem at %s", settings.STORAGE_DIR)
        return FilesystemObjectStore(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)
    raise ValueError(f"Unknown STORAGE_DRIVER: {settings.STORAGE_DRIVER}")
