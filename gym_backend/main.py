from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gym_backend.core.config import Settings, get_settings
from gym_backend.core.errors import ServiceError
from gym_backend.core.logging import configure_logging
from gym_backend.db.init_db import init_db
from gym_backend.db.session import build_engine
from gym_backend.routers.auth import router as auth_router
from gym_backend.routers.dashboard import router as dashboard_router
from gym_backend.routers.members import router as members_router
from gym_backend.routers.operations import router as operations_router
from gym_backend.scheduler import start_auto_expire_scheduler, stop_scheduler
from gym_backend.services.photo_storage import (
    LOCAL_PHOTO_WEB_PATH,
    LocalPhotoStorage,
    PhotoStorage,
    build_photo_storage,
)

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, **headers: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers or None,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        location = ".".join(str(part) for part in errors[0]["loc"]) if errors else "request"
        return _error_response(status.HTTP_400_BAD_REQUEST, f"Invalid value for {location}")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _error_response(exc.status_code, "Route not found")
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(PoolTimeoutError)
    async def pool_timeout_handler(request: Request, exc: PoolTimeoutError):
        logger.warning("Database pool exhausted on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service temporarily unavailable",
            **{"Retry-After": "5"},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    photo_storage: PhotoStorage | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = engine or build_engine(settings)
    photo_storage = photo_storage or build_photo_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_db(engine, settings)
        scheduler = None
        if settings.auto_expire_enabled:
            scheduler = start_auto_expire_scheduler(engine, settings.auto_expire_interval_minutes)
        try:
            yield
        finally:
            if scheduler is not None:
                stop_scheduler(scheduler)
            engine.dispose()
            logger.info("Database pool closed")

    app = FastAPI(title=settings.app_name, debug=settings.app_debug, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.photo_storage = photo_storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            "%s %s - Origin: %s",
            request.method,
            request.url.path,
            request.headers.get("origin", "none"),
        )
        return await call_next(request)

    _register_exception_handlers(app)

    if isinstance(photo_storage, LocalPhotoStorage):
        photo_storage.directory.mkdir(parents=True, exist_ok=True)
        app.mount(
            LOCAL_PHOTO_WEB_PATH,
            StaticFiles(directory=str(photo_storage.directory)),
            name="uploads",
        )

    app.include_router(operations_router)
    app.include_router(auth_router)
    app.include_router(members_router)
    app.include_router(dashboard_router)
    return app


def run() -> None:
    """Serve the application with uvicorn."""

    uvicorn.run("gym_backend.main:create_app", factory=True, host="0.0.0.0", port=5000)
