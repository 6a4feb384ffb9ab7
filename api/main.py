"""
Application entry point.

`create_app()` wires settings, logging, the asyncpg pool, middleware, error
handlers and the feature routers. `python -m main` serves it with uvicorn.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contacts.router import router as contacts_router
from content_types.router import router as content_types_router
from core import responses
from core.config import Settings, settings as default_settings
from core.db import Database, create_pool
from core.error_handlers import register_error_handlers
from core.logging import configure_logging
from core.middleware import REQUEST_ID_HEADER, RequestLoggingMiddleware
from media.router import router as media_router
from posts.router import router as posts_router
from site_settings.router import router as settings_router
from tags.router import router as tags_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


async def health() -> JSONResponse:
    return responses.ok({"status": "healthy"})


def create_app(settings: Settings | None = None, *, database: Database | None = None) -> FastAPI:
    """
    Build the application.

    `database` replaces the pool the lifespan would otherwise open; it is
    left open on shutdown.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if database is not None:
            app.state.db = database
            yield
            return

        # One pool per process, shared by every request.
        app.state.db = Database(await create_pool(settings))
        logger.info(
            "database_pool_ready min=%s max=%s",
            settings.database_min_conns,
            settings.database_max_conns,
        )
        try:
            yield
        finally:
            await app.state.db.close()
            logger.info("database_pool_closed")

    docs_enabled = settings.debug or settings.is_development
    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    if database is not None:
        app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=300,
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    api = APIRouter(prefix=API_PREFIX)
    api.add_api_route("/health", health, methods=["GET"], tags=["health"])
    api.include_router(content_types_router, tags=["content-types"])
    api.include_router(posts_router, tags=["posts"])
    api.include_router(media_router, tags=["media"])
    api.include_router(tags_router, tags=["tags"])
    api.include_router(contacts_router, tags=["contacts"])
    api.include_router(settings_router, tags=["settings"])

    app.add_api_route("/health", health, methods=["GET"], tags=["health"])
    app.include_router(api)
    return app


app = create_app()


def main() -> None:
    uvicorn.run(
        app,
        host=default_settings.server_host,
        port=default_settings.server_port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
