# Import all models for Tortoise ORM registration
from .base import BaseModel, OwnedRecord
from .user import Profile
from .item import Item
from .recipe import Recipe
from .usage import UsageEntry

__all__ = [
    "BaseModel",
    "OwnedRecord",
    "Profile",
    "Item",
    "Recipe",
    "UsageEntry",
]
