from enum import Enum
from typing import Any

from pydantic import BaseModel, model_validator


class MediaState(str, Enum):
    NONE = "none"
    UNSYNCED = "unsynced"
    SYNCED = "synced"


class MediaReference(BaseModel):
    """Photo pointer carried by items, recipes and the profile."""

    remote_url: str | None = None
    local_path: str | None = None

    @model_validator(mode="after")
    def _one_authoritative_source(self):
        if self.remote_url and self.local_path:
            raise ValueError("remote_url and local_path cannot both be set")
        return self

    @property
    def state(self) -> MediaState:
        if self.remote_url:
            return MediaState.SYNCED
        if self.local_path:
            return MediaState.UNSYNCED
        return MediaState.NONE

    @classmethod
    def from_record(cls, record: Any) -> "MediaReference":
        remote = getattr(record, "photo_url", None) or None
        local = getattr(record, "local_path", None) or None
        # A stale local path next to a remote URL is leftover clutter; the URL wins
        if remote:
            local = None
        return cls(remote_url=remote, local_path=local)

    @classmethod
    def synced(cls, url: str) -> "MediaReference":
        return cls(remote_url=url, local_path=None)

    def as_fields(self) -> dict:
        return {"photo_url": self.remote_url, "local_path": self.local_path}
