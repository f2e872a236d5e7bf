from tortoise import fields
from .base import OwnedRecord, MediaMixin


class Item(OwnedRecord, MediaMixin):
    name = fields.CharField(max_length=255)
    # lowercase copy used by the duplicate-name guard
    name_lower = fields.CharField(max_length=255, index=True)
    quantity = fields.FloatField(default=1)
    unit = fields.CharField(max_length=32, default="pcs")
    notes = fields.TextField(default="")
    expiry = fields.DatetimeField(null=True)

    class Meta:
        table = "items"
