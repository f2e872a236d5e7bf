"""
Error taxonomy for the pantry core.

Local and per-candidate failures are absorbed by the component that sees them;
only DuplicateNameError and InferenceExhaustedError are meant to reach users.
"""

from typing import Optional


class PantryError(Exception):
    """Base class for every error raised by the pantry core."""


class AssetWriteError(PantryError):
    """Saving a photo to local storage failed. Callers degrade to no photo."""


class AssetReadError(PantryError):
    """A local asset could not be read back (missing or unreadable file)."""


class UploadError(PantryError):
    """The remote object store rejected a write/delete or was unreachable."""


class RecordNotFoundError(PantryError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found")


class DuplicateNameError(PantryError):
    def __init__(self, collection: str, name: str):
        self.collection = collection
        self.name = name
        if collection == "items":
            msg = f'An item named "{name}" already exists in your kitchen.'
        elif collection == "recipes":
            msg = f'A recipe named "{name}" already exists.'
        else:
            msg = f'A record named "{name}" already exists in {collection}.'
        super().__init__(msg)


class TransportError(PantryError):
    """The inference endpoint could not be reached (network error or timeout)."""


class ProviderError(PantryError):
    """The inference service returned an explicit error payload."""


class ParseError(PantryError):
    """A model reply carried a structured object that could not be used."""


class InferenceConfigError(PantryError):
    """Inference was requested without credentials configured."""


class InferenceExhaustedError(PantryError):
    def __init__(self, attempts: int, last_error: Optional[str]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Inference failed after trying {attempts} models: {last_error or 'unknown error'}"
        )
