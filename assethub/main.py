from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assethub.db.init_db import init_db
from assethub.logging_config import configure_app_logging
from assethub.routers import admin, auth, categories, dashboard, digital_assets, health, permissions
from assethub.security.config import load_security_config
from assethub.security.dependencies import enforce_security
from assethub.settings import get_settings

logger = logging.getLogger(__name__)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Request validation failed path=%s method=%s", request.url.path, request.method)
    return JSONResponse(
        {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Detail stays in the server log.
    logger.exception("Unhandled error path=%s method=%s", request.url.path, request.method)
    return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        # Fail fast on a missing/short secret rather than on the first request.
        settings.resolved_jwt_secret()

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route goes through the security gate.
    app = FastAPI(title="assethub", dependencies=[Depends(enforce_security)], lifespan=lifespan)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(digital_assets.router)
    app.include_router(categories.router)
    app.include_router(permissions.router)
    app.include_router(dashboard.router)
    app.include_router(admin.router)

    return app


app = create_app()
