"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.core.app_state import state
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import system, webhooks


def create_app(testing: bool = False) -> FastAPI:
    """
    Build the application.

    With testing=True the lifespan leaves the global AppState alone; tests
    open their own state and override the get_app_state dependency.
    """
    settings = get_settings()
    LoggingConfig(settings.log_level)
    logger = get_logger()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if not testing:
            state.open(settings)
            logger.info("%s started (%s)", settings.app_name, settings.environment)
        try:
            yield
        finally:
            if not testing:
                await state.close()
                logger.info("%s stopped", settings.app_name)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(webhooks.router)
    app.include_router(system.router)
    return app


app = create_app()
