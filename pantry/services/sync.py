"""
Local-to-remote photo promotion.

Per asset: Unsynced(local_path) -> Uploading -> Synced(remote_url) -> LocalCopyPurged.
Only Unsynced and Synced are persisted; an interrupted upload leaves the record
Unsynced and the next reconcile retries it against the same object key.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, computed_field

from pantry.errors import AssetReadError, PantryError, RecordNotFoundError, UploadError
from pantry.schemas.media import MediaReference
from pantry.services import metrics
from pantry.services.local_assets import LocalAssetStore
from pantry.services.object_store import ObjectStore, object_key
from pantry.services.repository import MEDIA_COLLECTIONS, PROFILE, RecordRepository

log = logging.getLogger("pantry.sync")


class SyncStage(str, Enum):
    LIST = "list"
    READ = "read"
    UPLOAD = "upload"
    UPDATE = "update"


class SyncStatus(str, Enum):
    CLEAN = "clean"
    PARTIAL = "partial"
    REMOTE_UNAVAILABLE = "remote_unavailable"


class SyncStepError(PantryError):
    def __init__(self, stage: SyncStage, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage.value} failed: {cause}")


class SyncFailure(BaseModel):
    collection: str
    record_id: Optional[str] = None
    stage: SyncStage
    error: str


class SyncReport(BaseModel):
    owner_id: str
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    upload_attempts: int = 0
    upload_failures: int = 0
    failures: List[SyncFailure] = []
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @computed_field
    @property
    def status(self) -> SyncStatus:
        if self.upload_attempts and self.upload_failures == self.upload_attempts:
            return SyncStatus.REMOTE_UNAVAILABLE
        if self.failures:
            return SyncStatus.PARTIAL
        return SyncStatus.CLEAN

    def add_failure(self, collection: str, record_id: Optional[str], stage: SyncStage, error: Any):
        self.failures.append(
            SyncFailure(collection=collection, record_id=record_id, stage=stage, error=str(error))
        )
        if record_id is not None:
            self.failed += 1


class SyncEngine:
    def __init__(self, repo: RecordRepository, assets: LocalAssetStore, store: ObjectStore):
        self.repo = repo
        self.assets = assets
        self.store = store

    @staticmethod
    def key_for(owner_id: str, collection: str, record: Any) -> str:
        record_id = owner_id if collection == PROFILE else str(record.id)
        return object_key(owner_id, collection, record_id)

    async def sync_record(self, owner_id: str, collection: str, record: Any) -> Optional[str]:
        """Promote one record's local photo; returns the remote URL.

        Returns None when the record's photo changed while uploading: the
        record and its new local file are left for the next reconcile.
        Raises SyncStepError naming the stage that failed. The local file is
        removed only after the record update is confirmed; a failed removal is
        logged and otherwise ignored.
        """
        local_path = record.local_path
        try:
            data = await self.assets.read(local_path)
        except AssetReadError as exc:
            raise SyncStepError(SyncStage.READ, exc) from exc

        key = self.key_for(owner_id, collection, record)
        try:
            url = await self.store.put(key, data)
        except UploadError as exc:
            raise SyncStepError(SyncStage.UPLOAD, exc) from exc

        try:
            swapped = await self.repo.set_media(
                owner_id, collection, record.id, MediaReference.synced(url), expected_local_path=local_path
            )
        except RecordNotFoundError as exc:
            # record deleted mid-upload; drop the object written for it
            await self._discard_object(key)
            raise SyncStepError(SyncStage.UPDATE, exc) from exc
        except Exception as exc:
            raise SyncStepError(SyncStage.UPDATE, exc) from exc
        if not swapped:
            return None

        try:
            await self.assets.delete(local_path)
        except PantryError as exc:
            log.warning("Synced %s/%s but could not remove %s: %s", collection, record.id, local_path, exc)
        return url

    async def _discard_object(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except UploadError as exc:
            log.warning("Could not remove orphaned object %s: %s", key, exc)

    async def _is_synced_now(self, owner_id: str, collection: str, record: Any) -> bool:
        try:
            if collection == PROFILE:
                fresh = await self.repo.get_profile(owner_id)
            else:
                fresh = await self.repo.get(owner_id, collection, record.id)
        except RecordNotFoundError:
            return False
        return fresh is not None and not fresh.local_path and bool(fresh.photo_url)

    async def _reconcile_one(self, report: SyncReport, owner_id: str, collection: str, record: Any):
        if not record.local_path:
            report.skipped += 1
            return
        record_id = str(record.id)
        try:
            url = await self.sync_record(owner_id, collection, record)
        except SyncStepError as exc:
            if exc.stage is SyncStage.READ and await self._is_synced_now(owner_id, collection, record):
                # another reconcile promoted it after we listed
                report.skipped += 1
                return
            if exc.stage is not SyncStage.READ:
                report.upload_attempts += 1
            if exc.stage is SyncStage.UPLOAD:
                report.upload_failures += 1
            log.error("Failed to sync local image for %s/%s: %s", collection, record_id, exc)
            report.add_failure(collection, record_id, exc.stage, exc.cause)
            metrics.record_sync(collection, "failed")
            return
        except Exception as exc:
            log.exception("Unexpected error syncing %s/%s", collection, record_id)
            report.add_failure(collection, record_id, SyncStage.UPDATE, exc)
            metrics.record_sync(collection, "failed")
            return
        report.upload_attempts += 1
        if url is None:
            report.skipped += 1
            metrics.record_sync(collection, "changed")
            return
        report.succeeded += 1
        metrics.record_sync(collection, "synced")

    async def reconcile(self, owner_id: str) -> SyncReport:
        """Upload every unsynced local photo for the owner, record by record."""
        report = SyncReport(owner_id=owner_id)

        for collection in MEDIA_COLLECTIONS:
            try:
                records = await self.repo.list_all(owner_id, collection)
            except Exception as exc:
                log.error("Listing %s for owner %s failed: %s", collection, owner_id, exc)
                report.add_failure(collection, None, SyncStage.LIST, exc)
                continue
            for record in records:
                await self._reconcile_one(report, owner_id, collection, record)

        try:
            profile = await self.repo.get_profile(owner_id)
        except Exception as exc:
            log.error("Loading profile for owner %s failed: %s", owner_id, exc)
            report.add_failure(PROFILE, None, SyncStage.LIST, exc)
        else:
            if profile is not None:
                await self._reconcile_one(report, owner_id, PROFILE, profile)

        report.finished_at = datetime.now(timezone.utc)
        log.info(
            "Reconcile for %s: status=%s succeeded=%s failed=%s skipped=%s",
            owner_id,
            report.status.value,
            report.succeeded,
            report.failed,
            report.skipped,
        )
        return report
