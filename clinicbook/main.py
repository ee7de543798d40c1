"""
clinicbook FastAPI application.

Run with: uvicorn clinicbook.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.api.exception_handlers import register_exception_handlers
from clinicbook.api.router import api_router
from clinicbook.config.settings import Settings, get_settings
from clinicbook.core.shared.logger import configure_logging
from clinicbook.database.async_db import check_async_db_connection, close_async_db, get_async_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Verify the database on startup and dispose the engine on shutdown."""
    if await check_async_db_connection():
        logger.info("Database reachable, accepting bookings")
    else:
        logger.warning("Database not reachable at startup, requests will fail until it is")
    yield
    await close_async_db()
    logger.info("Database engine disposed")


class AppFactory:
    """
    Builds the FastAPI application from Settings.

    Logging is configured first so router and handler registration is logged
    with the final format.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def create_app(self) -> FastAPI:
        settings = self._settings
        configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

        docs_prefix = settings.API_V1_STR if settings.DEBUG else None
        app = FastAPI(
            title=settings.PROJECT_NAME,
            description=settings.PROJECT_DESCRIPTION,
            version=settings.VERSION,
            docs_url=f"{docs_prefix}/docs" if docs_prefix else None,
            redoc_url=f"{docs_prefix}/redoc" if docs_prefix else None,
            lifespan=lifespan,
        )
        register_exception_handlers(app)
        app.include_router(api_router, prefix=settings.API_V1_STR)
        self._add_health_routes(app)

        logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} created ({settings.ENVIRONMENT})")
        return app

    def _add_health_routes(self, app: FastAPI) -> None:
        environment = self._settings.ENVIRONMENT

        @app.get("/health", tags=["health"])
        async def health_check() -> dict[str, str]:
            """Liveness: the process is serving requests."""
            return {"status": "ok", "environment": environment}

        @app.get("/health/ready", tags=["health"])
        async def readiness_check(db: Annotated[AsyncSession, Depends(get_async_db)]) -> JSONResponse:
            """Readiness: the scheduling database answers queries."""
            try:
                await db.execute(text("SELECT 1"))
            except Exception as e:
                logger.error(f"Readiness check failed: {e}")
                return JSONResponse(status_code=503, content={"status": "unavailable", "database": "down"})
            return JSONResponse(status_code=200, content={"status": "ok", "database": "up"})


def create_app(settings: Settings | None = None) -> FastAPI:
    return AppFactory(settings).create_app()


app = create_app()
