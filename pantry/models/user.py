from tortoise import fields
from tortoise.models import Model
from .base import TimestampMixin, MediaMixin


class Profile(Model, TimestampMixin, MediaMixin):
    """Singleton per owner; the primary key is the owner id itself."""

    id = fields.CharField(max_length=128, primary_key=True)
    username = fields.CharField(max_length=255, null=True)
    theme = fields.CharField(max_length=16, null=True)

    @property
    def owner_id(self) -> str:
        return self.id

    class Meta:
        table = "profiles"
