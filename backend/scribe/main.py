"""ASGI entry-point for the FastAPI application.

This module
1. builds every long-lived collaborator (database, stores, auth gateway,
   blob store, transcription client, job orchestrator) and hangs them on
   ``app.state`` so routes receive them through dependencies;
2. wires the API routers located in ``scribe.api`` under ``/api``;
3. registers global exception handlers and middleware; and
4. refuses to start when the configuration is unusable (no ``JWT_SECRET``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scribe import __version__
from scribe.api import api_router
from scribe.config import Settings
from scribe.db.database import Database
from scribe.db.stores import TranscriptStore, UserStore
from scribe.errors import ScribeError
from scribe.logging_config import setup_logging
from scribe.services.auth import AuthGateway
from scribe.services.orchestrator import JobOrchestrator
from scribe.services.transcription import TranscriptionClient
from scribe.utils.storage import LocalBlobStore, build_blob_store, ensure_dir_exists
from scribe.workers.tasks import TaskRegistry

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:  # noqa: D401 – factory nomenclature is fine
    """Wire and return the FastAPI application instance."""

    settings = (settings or Settings()).validate()
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)

    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    try:
        database.create_tables()
    except Exception as exc:  # pragma: no cover
        logger.exception("Failed to create DB schema: %s", exc)

    registry = TaskRegistry()
    transcripts = TranscriptStore(database)
    transcriber = TranscriptionClient.from_settings(settings)
    blobs = build_blob_store(settings)
    logger.info(
        "Blob backend: %s, transcription providers: %s",
        settings.BLOB_BACKEND,
        [p.name for p in transcriber.providers] or "none (demo mode)",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        if isinstance(blobs, LocalBlobStore):
            ensure_dir_exists(blobs.upload_dir)
            logger.info("Uploads are written to %s", blobs.upload_dir)
        yield
        await registry.shutdown()
        database.dispose()
        logger.info("Scribe API stopped")

    app = FastAPI(
        title="Scribe API",
        version=__version__,
        docs_url="/api/docs",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database
    app.state.users = UserStore(database)
    app.state.transcripts = transcripts
    app.state.auth = AuthGateway(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.TOKEN_EXPIRE_DAYS)
    app.state.blobs = blobs
    app.state.orchestrator = JobOrchestrator(
        transcripts,
        transcriber,
        registry=registry,
        cancel_on_delete=settings.CANCEL_ON_DELETE,
    )

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(  # noqa: D401
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.error("Request validation error: %s", exc.errors())
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(  # noqa: D401
        _request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        logger.error("HTTP exception %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(ScribeError)
    async def _app_error_handler(  # noqa: D401
        _request: Request,
        exc: ScribeError,
    ) -> JSONResponse:
        logger.error("Application exception %s: %s", exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def _generic_error_handler(  # noqa: D401
        _request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    # ------------------------------------------------------------------
    # Middleware & routers
    # ------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/api/health")
    async def _health() -> dict[str, str]:  # noqa: D401
        return {"status": "ok"}

    return app


# Instantiate at import time so `uvicorn scribe.main:app` works.
app: FastAPI = create_app()
