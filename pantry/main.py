# Top imports
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from pantry.config import Settings, load_settings
from pantry.core.container import build_container
from pantry.core.middleware import ErrorEnvelopeMiddleware, install_exception_handlers
from pantry.db import close_db, init_db
from pantry.routers import router
from pantry.services import metrics

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def create_app(settings: Optional[Settings] = None, store=None, provider=None) -> FastAPI:
    settings = settings or load_settings()

    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.1, environment=settings.APP_ENV)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logging.info("Starting pantry service (env=%s)...", settings.APP_ENV)
        await init_db(settings)
        yield
        # Shutdown
        logging.info("Shutting down pantry service...")
        await close_db()

    app = FastAPI(
        title="Pantry API",
        description="Pantry tracker backend with local-first photo sync and AI ingredient labeling",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = build_container(settings, store=store, provider=provider)

    install_exception_handlers(app)
    app.include_router(router)

    # Middleware setup
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(ErrorEnvelopeMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Enable Prometheus metrics if METRICS_ENABLED=1
    metrics.configure(settings.METRICS_ENABLED)
    metrics.metrics_middleware(app)

    if settings.STORAGE_DRIVER == "local":
        # development bucket, served at PUBLIC_BASE_URL
        app.mount("/files", StaticFiles(directory=settings.STORAGE_DIR, check_dir=False), name="files")

    @app.get("/metrics")
    async def prometheus_metrics():
        return await metrics.metrics_endpoint()

    # Universal health endpoint (always present)
    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    return app


app = create_app()
