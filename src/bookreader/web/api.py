"""FastAPI application factory.

Main entry point for the book reader Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookreader import __version__
from bookreader.config.app_config import load_app_config
from bookreader.web.routes import health_router, reader_router
from bookreader.web.sessions import get_session_manager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    logger.info(
        "api_startup",
        api_url=config.api.base_url,
        zoom_levels=config.reader.zoom_levels,
        flip_phase_ms=config.reader.flip_phase_ms,
    )
    yield
    await get_session_manager().close_all()
    logger.info("api_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Book Reader API",
        description="Paginated PDF book reader for the school digital library",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(reader_router)

    return app


# Default app instance for uvicorn
app = create_app()
