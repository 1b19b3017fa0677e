from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI

from arcadesim.api import router as api_router
from arcadesim.api.routes.sessions import close_all_sessions
from arcadesim.core.config.settings import settings
from arcadesim.core.logging.setup import configure_logging

log = structlog.get_logger()


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    log.info(
        "app.startup",
        environment=settings.env,
    )
    yield
    log.info("app.shutdown", sessions_closed=close_all_sessions())


def create_app() -> FastAPI:
    """
    Application factory.

    This function is the single place where the FastAPI app
    is created and configured.
    """
    # Initialize structured logging
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title="Arcade Simulation Host",
        version="0.1.0",
        lifespan=_lifespan,
    )

    # Mount API
    app.include_router(api_router, prefix="/api")

    return app


# ASGI entrypoint
app = create_app()
