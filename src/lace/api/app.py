"""
FastAPI Application Factory & Configuration.

This module initializes the Lace API application. It is responsible for:
1.  **Middleware Setup**: CORS for the web UI.
2.  **Exception Handling**: Global handlers so all errors return structured JSON.
3.  **Routing**: Mounting the thread timeline router and the health probe.
4.  **Lifecycle**: Initializing the per-thread projector store.

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`) so tests can spin
up separate app instances.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lace import __version__
from lace.api.projector_store import ProjectorStore
from lace.api.routers import threads
from lace.core.errors import TimelineError
from lace.core.settings import get_logger, load_settings

logger = get_logger("lace.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    ASGI Lifespan context manager.

    - **Startup**: Initialize the projector store singleton.
    - **Shutdown**: Nothing to release; projectors live in memory only.
    """
    ProjectorStore.get_instance()
    logger.info("Projector store initialized")
    yield
    logger.info("Lace API shutting down")


def create_app() -> FastAPI:
    """
    Construct and configure the Lace FastAPI application.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="Lace API",
        description="Thread event timelines for agent sessions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this to the web UI origin.
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Global Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(TimelineError)
    async def timeline_error_handler(request: Request, exc: TimelineError) -> JSONResponse:
        """Internal projector failures are bugs; report them as 500 with context."""
        logger.error("Timeline error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map Python ValueErrors to HTTP 400 Bad Request."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(threads.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
