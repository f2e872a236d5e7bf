"""
Gemini API client
=================

Async REST client for the Gemini ``generateContent`` endpoint. Authentication
is via the ``x-goog-api-key`` header. The client returns the decoded response
body as-is; interpreting it (errors, empty replies, embedded JSON) belongs to
the inference orchestrator.
"""

import asyncio
import base64
import logging
from typing import Any, Dict, Optional

import aiohttp

from pantry.errors import TransportError

logger = logging.getLogger("pantry.gemini")


class GeminiClient:
    def __init__(self, api_key: str, base_url: str, timeout: float = 60.0):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def is_available(self) -> bool:
        """Return True when an API key has been configured."""
        return bool(self.api_key)

    def url_for(self, model: str) -> str:
        # Candidates are written as "models/<name>"; accept bare names too
        if not model.startswith("models/"):
            model = f"models/{model}"
        return f"{self.base_url}/{model}:generateContent"

    @staticmethod
    def build_payload(prompt: str, image_bytes: Optional[bytes] = None, mime_type: str = "image/jpeg") -> dict:
        parts: list = [{"text": prompt}]
        if image_bytes is not None:
            parts.append({
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(image_bytes).decode(),
                }
            })
        return {"contents": [{"parts": parts}]}

    async def generate(
        self,
        model: str,
        prompt: str,
        image_bytes: Optional[bytes] = None,
        mime_type: str = "image/jpeg",
    ) -> Dict[str, Any]:
        """POST one generateContent request and return the JSON body.

        Raises:
            TransportError: network failure or timeout.
        """
        payload = self.build_payload(prompt, image_bytes, mime_type)
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url_for(model), json=payload, headers=headers) as response:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        text = await response.text()
                        body = {"error": {"code": response.status, "message": f"HTTP {response.status}: {text[:200]}"}}
                    if not isinstance(body, dict):
                        body = {"error": {"code": response.status, "message": "Unexpected response body"}}
                    if response.status >= 400 and "error" not in body:
                        body["error"] = {"code": response.status, "message": f"HTTP {response.status}"}
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"Gemini request to {model} failed: {exc!r}") from exc

        logger.debug("Gemini raw response (model=%s): %s", model, body)
        return body
