from tortoise import fields
from tortoise.models import Model


class UsageEntry(Model):
    id = fields.UUIDField(primary_key=True)
    owner_id = fields.CharField(max_length=128, index=True)
    item_id = fields.CharField(max_length=64, null=True)
    name = fields.CharField(max_length=255)
    qty = fields.FloatField()
    unit = fields.CharField(max_length=32, null=True)
    type = fields.CharField(max_length=16, default="consumption")
    note = fields.TextField(null=True)
    previous_quantity = fields.FloatField(null=True)
    new_quantity = fields.FloatField(null=True)
    at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "usage"
        ordering = ["-at"]
