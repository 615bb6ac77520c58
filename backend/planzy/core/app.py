from fastapi import FastAPI
from planzy.api import health, planner, vacations
from planzy.core.logging import setup_logging
from planzy.core.settings import settings


def create_app() -> FastAPI:
    """Application factory registering routers and config."""

    setup_logging()
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )
    application.include_router(health.router)
    application.include_router(planner.router)
    application.include_router(vacations.router)
    return application
