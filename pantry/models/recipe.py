from tortoise import fields
from .base import OwnedRecord, MediaMixin


class Recipe(OwnedRecord, MediaMixin):
    name = fields.CharField(max_length=255)
    name_lower = fields.CharField(max_length=255, index=True)
    notes = fields.TextField(default="")
    ingredients = fields.JSONField(default=list)
    steps = fields.JSONField(default=list)
    servings = fields.IntField(null=True)
    is_favorite = fields.BooleanField(default=False)

    class Meta:
        table = "recipes"
