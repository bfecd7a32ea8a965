"""Notification service: REST endpoints plus the live SSE stream."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from tripnotify import __version__
from tripnotify.core.config import settings
from tripnotify.core.errors import global_exception_handler, http_exception_handler
from tripnotify.core.sentry import init_sentry
from tripnotify.server.router import router as notifications_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting notification service", env=settings.APP_ENV)
    yield
    logger.info("Shutting down notification service")


def create_app() -> FastAPI:
    # Sentry must be initialised before the FastAPI app is created
    init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

    application = FastAPI(
        title="Trip Notifications",
        description="Notification list, read acknowledgements and a server-push stream.",
        version=__version__,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    application.include_router(notifications_router, prefix="/api")

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "notifications", "version": __version__}

    return application


app = create_app()
