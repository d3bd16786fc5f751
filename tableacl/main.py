"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, routers. No business logic here
(SRP). See tableacl.core.lifespan and tableacl.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
clear the get_settings cache) before calling create_app().
"""

from fastapi import FastAPI

from tableacl.api.v1 import api_router
from tableacl.core.config import get_settings
from tableacl.core.exception_handlers import register_exception_handlers
from tableacl.core.lifespan import create_lifespan
from tableacl.shared.telemetry import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")
    logger.debug("Application %s created", settings.app_name)
    return app


app = create_app()
