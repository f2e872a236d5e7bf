import asyncio
import logging
from typing import Optional

from tortoise import Tortoise
from pantry.config import Settings, TORTOISE_MODELS

_logger = logging.getLogger("pantry.db")


def tortoise_url(settings: Settings) -> str:
    """Normalize the configured database URL for Tortoise ORM."""
    url = settings.DATABASE_URL.strip().strip('"').strip("'")
    # Normalize to tortoise "postgres://" style
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    if not (url.startswith("postgres://") or url.startswith("sqlite://")):
        raise ValueError("Unsupported DATABASE_URL; use postgres://... or sqlite://...")
    return url


def build_tortoise_config(db_url: str) -> dict:
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": TORTOISE_MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


async def init_db(
    settings: Optional[Settings] = None,
    db_url: Optional[str] = None,
    max_retries: int = 3,
    delay_seconds: float = 0.5,
) -> None:
    """Initialize Tortoise in the current event loop, retrying transient failures."""
    url = db_url or tortoise_url(settings or Settings())
    config = build_tortoise_config(url)
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except Exception as exc:
            if attempt == max_retries:
                _logger.error("Database unavailable after %s attempts: %s", attempt, exc)
                raise
            _logger.info(
                "DB init failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)


async def close_db() -> None:
    """Close database connections in the current event loop."""
    try:
        await Tortoise.close_connections()
    except Exception as exc:
        _logger.warning("Error closing database connections: %s", exc)
