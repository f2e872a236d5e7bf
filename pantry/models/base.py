from tortoise import fields
from tortoise.models import Model


class TimestampMixin:
    added_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)


class MediaMixin:
    # MediaReference: photo_url is canonical once set; local_path means unsynced
    photo_url = fields.CharField(max_length=1024, null=True)
    local_path = fields.CharField(max_length=1024, null=True)


class BaseModel(Model, TimestampMixin):
    id = fields.UUIDField(primary_key=True)

    class Meta:
        abstract = True


class OwnedRecord(BaseModel):
    owner_id = fields.CharField(max_length=128, index=True)

    class Meta:
        abstract = True
