"""
FastAPI Application Entry Point

create_app() builds the application and wires its lifecycle:
- startup: open the key-value store, start the click counter worker and
  create the services (kept on app.state)
- shutdown: drain and stop the worker, then close the store

A store that cannot be opened aborts startup; the service never runs
without its storage.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortener import __version__
from shortener.api import endpoints
from shortener.core.exceptions import StorageError
from shortener.core.logging_config import configure_logging
from shortener.core.setting import Settings, settings
from shortener.db.store import KeyValueStore
from shortener.middleware.logging import add_logging_middleware
from shortener.services.background_tasks import ClickCounterWorker
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLShorteningService

logger = logging.getLogger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def add_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"error": "<message>"}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _format_validation_error(exc)},
        )


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use (module-level settings by default)

    Returns:
        Configured FastAPI app; the store is opened when its lifespan starts
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = KeyValueStore(app_settings.db_path, open_timeout=app_settings.db_open_timeout)
        try:
            await store.open()
        except StorageError as e:
            logger.critical(f"Failed to initialize store: {e}")
            raise

        click_counter = ClickCounterWorker(store)
        await click_counter.start()

        app.state.store = store
        app.state.click_counter = click_counter
        app.state.url_service = URLShorteningService(
            store,
            base_url=app_settings.base_url,
            code_length=app_settings.short_code_length,
            max_attempts=app_settings.max_code_attempts,
            click_counter=click_counter,
        )
        app.state.stats_service = StatsService(store, base_url=app_settings.base_url)
        logger.info(f"Base URL: {app_settings.normalized_base_url}")

        try:
            yield
        finally:
            await click_counter.stop()
            await store.close()

    app = FastAPI(
        title="URL Shortener Service",
        description="URL shortening service with click counting on an embedded key-value store",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    add_exception_handlers(app)
    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Declared before the router so the catch-all redirect route never shadows it
    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Liveness probe."""
        return {"status": "ok", "base_url": request.app.state.settings.normalized_base_url}

    app.include_router(endpoints.router, tags=["URL Shortener"])
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    configure_logging(settings.log_level)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
