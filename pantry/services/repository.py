import logging
import uuid
from typing import Any, Dict, List, Optional, Type

from tortoise import timezone
from tortoise.models import Model

from pantry.errors import RecordNotFoundError
from pantry.models import Item, Profile, Recipe, UsageEntry
from pantry.schemas.media import MediaReference

log = logging.getLogger("pantry.repository")

PROFILE = "profile"

COLLECTIONS: Dict[str, Type[Model]] = {
    "items": Item,
    "recipes": Recipe,
    "usage": UsageEntry,
}

# collections whose records carry a MediaReference, in reconcile order
MEDIA_COLLECTIONS = ("items", "recipes")


def _coerce_id(collection: str, record_id: Any) -> uuid.UUID:
    if isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        raise RecordNotFoundError(collection, str(record_id)) from None


class RecordRepository:
    """Owner-scoped document access over Tortoise models.

    Collections live under ``users/{owner_id}/{collection}``; the profile is a
    singleton document keyed by the owner id.
    """

    def model_for(self, collection: str) -> Type[Model]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    async def create(self, owner_id: str, collection: str, **fields) -> Model:
        model = self.model_for(collection)
        return await model.create(owner_id=owner_id, **fields)

    async def get(self, owner_id: str, collection: str, record_id: Any) -> Model:
        model = self.model_for(collection)
        rid = _coerce_id(collection, record_id)
        record = await model.get_or_none(id=rid, owner_id=owner_id)
        if record is None:
            raise RecordNotFoundError(collection, str(record_id))
        return record

    async def update(self, owner_id: str, collection: str, record_id: Any, **fields) -> None:
        """Partial update in a single statement."""
        model = self.model_for(collection)
        rid = _coerce_id(collection, record_id)
        if "updated_at" in model._meta.fields_map:
            fields.setdefault("updated_at", timezone.now())
        count = await model.filter(id=rid, owner_id=owner_id).update(**fields)
        if not count:
            raise RecordNotFoundError(collection, str(record_id))

    async def find_by(self, owner_id: str, collection: str, **equals) -> List[Model]:
        model = self.model_for(collection)
        return await model.filter(owner_id=owner_id, **equals).all()

    async def list_all(self, owner_id: str, collection: str) -> List[Model]:
        model = self.model_for(collection)
        order = "-at" if collection == "usage" else "added_at"
        return await model.filter(owner_id=owner_id).order_by(order).all()

    async def delete(self, owner_id: str, collection: str, record_id: Any) -> Model:
        record = await self.get(owner_id, collection, record_id)
        await record.delete()
        return record

    async def get_profile(self, owner_id: str) -> Optional[Profile]:
        return await Profile.get_or_none(id=owner_id)

    async def merge_profile(self, owner_id: str, **fields) -> Profile:
        """Create the singleton if missing, otherwise patch the given fields."""
        profile, created = await Profile.get_or_create(id=owner_id, defaults=fields)
        if created:
            log.info("Created profile for owner %s", owner_id)
        elif fields:
            fields["updated_at"] = timezone.now()
            await Profile.filter(id=owner_id).update(**fields)
            await profile.refresh_from_db()
        return profile

    async def set_media(
        self,
        owner_id: str,
        collection: str,
        record_id: Any,
        media: MediaReference,
        expected_local_path: Optional[str] = None,
    ) -> bool:
        """Swap a record's photo pointer atomically (one UPDATE for both fields).

        With ``expected_local_path`` the swap only applies while the record
        still holds that local path. Returns False when it no longer does;
        raises RecordNotFoundError when the record is gone.
        """
        if collection == PROFILE:
            query = Profile.filter(id=owner_id)
        else:
            query = self.model_for(collection).filter(
                id=_coerce_id(collection, record_id), owner_id=owner_id
            )
        guarded = query if expected_local_path is None else query.filter(local_path=expected_local_path)

        count = await guarded.update(**media.as_fields(), updated_at=timezone.now())
        if count:
            return True
        if not await query.exists():
            raise RecordNotFoundError(collection, str(owner_id if collection == PROFILE else record_id))
        log.info("Photo of %s/%s changed before the swap; left as is", collection, record_id)
        return False
