"""
Multi-candidate inference with per-model fallback.

Each attempt is classified into a tagged outcome. Only exhausting every
candidate raises; a missing candidate list yields None.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

from pantry.errors import (
    InferenceConfigError,
    InferenceExhaustedError,
    ParseError,
    ProviderError,
    TransportError,
)
from pantry.services import metrics

log = logging.getLogger("pantry.inference")

LABEL_PROMPT = (
    "You are an image understanding assistant. Given an inline base64 JPEG, return a JSON "
    "object with the following shape:\n"
    '{ "primary": "<one-word primary ingredient or null>", '
    '"labels": [{"name":"label","confidence":0.0}, ...] }\n'
    "Only return the JSON object, nothing else."
)


@dataclass(frozen=True)
class Label:
    name: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class LabelResult:
    primary: Optional[str]
    labels: List[Label] = field(default_factory=list)

    @property
    def best_name(self) -> Optional[str]:
        if self.primary:
            return self.primary
        return self.labels[0].name if self.labels else None


# --- attempt outcomes ---------------------------------------------------------

@dataclass(frozen=True)
class Success:
    value: Any
    kind = "success"


@dataclass(frozen=True)
class TransportFailure:
    message: str
    kind = "transport"

    def describe(self) -> str:
        return self.message

    def as_error(self) -> Exception:
        return TransportError(self.describe())


@dataclass(frozen=True)
class ProviderFailure:
    message: str
    kind = "provider_error"

    def describe(self) -> str:
        return f"Provider error: {self.message}"

    def as_error(self) -> Exception:
        return ProviderError(self.describe())


@dataclass(frozen=True)
class EmptyResponse:
    kind = "empty"

    def describe(self) -> str:
        return "No textual content returned from model"

    def as_error(self) -> Exception:
        return ProviderError(self.describe())


@dataclass(frozen=True)
class Unparseable:
    text: str
    kind = "unparseable"

    def describe(self) -> str:
        return "No JSON object found in model output"

    def as_error(self) -> Exception:
        return ParseError(self.describe())


@dataclass(frozen=True)
class ParseFailure:
    message: str
    kind = "parse_error"

    def describe(self) -> str:
        return f"Failed to parse model JSON: {self.message}"

    def as_error(self) -> Exception:
        return ParseError(self.describe())


Outcome = Union[Success, TransportFailure, ProviderFailure, EmptyResponse, Unparseable, ParseFailure]


# --- response helpers ---------------------------------------------------------

_decoder = json.JSONDecoder()


def provider_error(body: dict) -> Optional[str]:
    err = body.get("error") if isinstance(body, dict) else None
    if not err:
        return None
    if isinstance(err, dict):
        return err.get("message") or json.dumps(err)
    return str(err)


def response_text(body: dict) -> Optional[str]:
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text.strip() else None


def _span_end(text: str, start: int) -> int:
    """Index just past the brace that closes the one at ``start``, or -1."""
    depth = 0
    in_string = escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return pos + 1
    return -1


def extract_json_object(text: str) -> Outcome:
    """Find the first decodable top-level JSON object embedded in free text.

    A brace span that fails to decode is skipped as a whole, so an object
    nested inside a malformed one is never returned on its own.
    """
    idx = text.find("{")
    if idx < 0:
        return Unparseable(text)
    last_err: Optional[str] = None
    while idx >= 0:
        try:
            obj, _ = _decoder.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            last_err = str(exc)
        else:
            return Success(obj)
        end = _span_end(text, idx)
        if end < 0:
            break
        idx = text.find("{", end)
    return ParseFailure(last_err or "malformed object")


def _confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def normalize_label_result(obj: Any) -> Outcome:
    if not isinstance(obj, dict):
        return ParseFailure("expected a JSON object")
    if "primary" not in obj and "labels" not in obj:
        return ParseFailure("object has neither 'primary' nor 'labels'")
    raw_primary = obj.get("primary")
    primary = str(raw_primary).strip().lower() if raw_primary not in (None, "") else None
    primary = primary or None

    raw_labels = obj.get("labels")
    if not isinstance(raw_labels, list):
        labels = [Label(primary)] if primary else []
        return Success(LabelResult(primary=primary, labels=labels))

    labels: List[Label] = []
    for entry in raw_labels:
        if isinstance(entry, dict):
            name, conf = entry.get("name"), entry.get("confidence")
        elif isinstance(entry, str):
            name, conf = entry, None
        else:
            continue
        if name is None or not str(name).strip():
            continue
        labels.append(Label(str(name).strip().lower(), _confidence(conf)))
    return Success(LabelResult(primary=primary, labels=labels))


# --- tasks --------------------------------------------------------------------

class InferenceTask:
    """A payload plus the rules for reading the provider's reply."""

    def request(self) -> Tuple[str, Optional[bytes], str]:
        raise NotImplementedError

    def parse_text(self, text: str) -> Outcome:
        raise NotImplementedError

    def interpret(self, body: dict) -> Outcome:
        message = provider_error(body)
        if message:
            return ProviderFailure(message)
        text = response_text(body)
        if text is None:
            return EmptyResponse()
        return self.parse_text(text)


class ImageLabelTask(InferenceTask):
    def __init__(self, image_bytes: bytes, mime_type: str = "image/jpeg", prompt: str = LABEL_PROMPT):
        self.image_bytes = image_bytes
        self.mime_type = mime_type
        self.prompt = prompt

    def request(self):
        return self.prompt, self.image_bytes, self.mime_type

    def parse_text(self, text: str) -> Outcome:
        extracted = extract_json_object(text)
        if not isinstance(extracted, Success):
            return extracted
        return normalize_label_result(extracted.value)


class TextRewriteTask(InferenceTask):
    def __init__(self, prompt: str):
        self.prompt = prompt

    def request(self):
        return self.prompt, None, "text/plain"

    def parse_text(self, text: str) -> Outcome:
        cleaned = text.replace("\r\n", "\n").strip()
        return Success(cleaned) if cleaned else EmptyResponse()


# --- orchestrator -------------------------------------------------------------

class InferenceOrchestrator:
    def __init__(self, provider, max_attempts: int = 3):
        self.provider = provider
        self.max_attempts = max_attempts

    async def attempt(self, task: InferenceTask, model: str) -> Outcome:
        prompt, image_bytes, mime_type = task.request()
        try:
            body = await self.provider.generate(model, prompt, image_bytes=image_bytes, mime_type=mime_type)
        except TransportError as exc:
            return TransportFailure(str(exc))
        except Exception as exc:
            log.exception("Inference request for model %s raised", model)
            return TransportFailure(f"{type(exc).__name__}: {exc}")
        return task.interpret(body)

    async def infer(
        self,
        task: InferenceTask,
        candidates: Sequence[str],
        max_attempts: Optional[int] = None,
    ) -> Any:
        limit = self.max_attempts if max_attempts is None else max_attempts
        tries = min(len(candidates), max(limit, 0))
        if tries == 0:
            log.warning("No inference candidates configured")
            return None

        last_failure = None
        for model in list(candidates)[:tries]:
            outcome = await self.attempt(task, model)
            metrics.record_inference_attempt(outcome.kind)
            if isinstance(outcome, Success):
                log.info("Inference succeeded with %s", model)
                return outcome.value
            last_failure = outcome
            log.warning("Model %s failed (%s): %s", model, outcome.kind, outcome.describe())

        raise InferenceExhaustedError(tries, last_failure.describe()) from last_failure.as_error()


class PantryAI:
    """Ingredient labeling and text rewriting over ranked Gemini candidates."""

    def __init__(
        self,
        orchestrator: InferenceOrchestrator,
        vision_models: Sequence[str],
        text_models: Sequence[str],
        configured: bool = True,
    ):
        self.orchestrator = orchestrator
        self.vision_models = list(vision_models)
        self.text_models = list(text_models)
        self.configured = configured

    def _require_key(self):
        if not self.configured:
            raise InferenceConfigError("Gemini API key missing; set GEMINI_API_KEY")

    async def identify_main_ingredient(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> Optional[LabelResult]:
        self._require_key()
        return await self.orchestrator.infer(ImageLabelTask(image_bytes, mime_type), self.vision_models)

    async def rewrite(self, prompt: str) -> Optional[str]:
        self._require_key()
        return await self.orchestrator.infer(TextRewriteTask(prompt), self.text_models)
