"""In-memory stand-ins for the object store and the inference provider."""

from typing import Dict, List, Optional, Set

from pantry.errors import UploadError
from pantry.services.object_store import ObjectStore


class MemoryObjectStore(ObjectStore):
    """Bucket kept in a dict; keys listed in fail_keys (or all, with fail_all) reject writes."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.puts: List[str] = []
        self.deletes: List[str] = []
        self.fail_keys: Set[str] = set()
        self.fail_all = False

    async def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        self.puts.append(key)
        if self.fail_all or key in self.fail_keys:
            raise UploadError(f"simulated outage for {key}")
        self.objects[key] = data
        return f"https://cdn.test/{key}"

    async def delete(self, key: str) -> None:
        self.deletes.append(key)
        self.objects.pop(key, None)


class ScriptedProvider:
    """Returns canned response bodies in order; an Exception entry is raised instead."""

    def __init__(self, responses: Optional[list] = None):
        self.responses = list(responses or [])
        self.calls: List[dict] = []

    async def generate(self, model, prompt, image_bytes=None, mime_type="image/jpeg"):
        self.calls.append({"model": model, "prompt": prompt, "image_bytes": image_bytes})
        if not self.responses:
            return {"error": {"message": "no scripted response"}}
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def gemini_error(message: str, code: int = 429) -> dict:
    return {"error": {"code": code, "message": message, "status": "RESOURCE_EXHAUSTED"}}


