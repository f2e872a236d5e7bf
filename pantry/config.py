from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Union

from dotenv import load_dotenv

load_dotenv()


def _split_csv(v):
    if isinstance(v, str):
        return [part.strip() for part in v.split(",") if part.strip()]
    return v


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite://./pantry.db"
    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"

    # Local asset store (device private storage)
    ASSETS_DIR: str = "./assets"

    # Remote object store
    STORAGE_DRIVER: str = "local"
    STORAGE_DIR: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000/files"
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Photos are kept local at write time and promoted later by /sync
    LOCAL_ONLY_MEDIA: bool = True

    # AI/ML
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT: float = 60.0
    MAX_MODEL_TRIES: int = 3
    VISION_MODELS: Union[str, List[str]] = (
        "models/gemini-pro-vision,models/gemini-flash-latest,"
        "models/gemini-2.5-flash,models/gemini-2.0-flash"
    )
    TEXT_MODELS: Union[str, List[str]] = (
        "models/gemini-flash-latest,models/gemini-pro-latest,models/gemini-2.5-flash"
    )

    # Observability
    METRICS_ENABLED: bool = False
    SENTRY_DSN: str = ""

    @field_validator("CORS_ORIGINS", "VISION_MODELS", "TEXT_MODELS", mode="before")
    @classmethod
    def parse_csv_lists(cls, v):
        return _split_csv(v)

    # Pydantic v2 config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def load_settings(**overrides) -> Settings:
    """Build the process-wide settings once at startup; pass the result explicitly."""
    return Settings(**overrides)


TORTOISE_MODELS = [
    "pantry.models.user",
    "pantry.models.item",
    "pantry.models.recipe",
    "pantry.models.usage",
]
