from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
import json
import logging
import time

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from hackportal.config import LoggingSettings, Settings, get_settings
from hackportal.dependencies.auth import IdentityServiceClient
from hackportal.dependencies.database import DatabaseSessionManager, build_sessionmanager, initialize_db
from hackportal.dependencies.services import build_services
from hackportal.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from hackportal.routers import admin, applications, reviews
from hackportal.services.storage.base import StorageBackend
from hackportal.services.storage.factory import get_storage_backend

SENSITIVE_KEYS = {"password", "token", "authorization"}


class CustomFormatter(logging.Formatter):
    def __init__(self, use_json: bool = False, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.use_json = use_json

        self.default_attrs = set(vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys())
        # Set by Formatter.format itself
        self.default_attrs.update({"message", "asctime"})

    def format(self, record: logging.LogRecord) -> str:
        extra = {
            k: ("***" if k.lower() in SENSITIVE_KEYS else v)
            for k, v in record.__dict__.items()
            if k not in self.default_attrs
        }

        if self.use_json:
            payload = {
                "timestamp": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **extra,
            }

            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)

            return json.dumps(payload, default=str)

        # ---- TEXT FORMAT ----
        base = super().format(record)
        if extra:
            extra_info = " ".join(f"{k}={v}" for k, v in extra.items())
            return f"{base} | {extra_info}"

        return base


def setup_logging(logging_settings: LoggingSettings) -> None:
    """Install one stream handler on the root logger. Later calls are no-ops."""
    root = logging.getLogger()

    if getattr(root, "_configured", False):
        return

    root._configured = True

    root.setLevel(logging_settings.LOG_LEVEL)

    handler = logging.StreamHandler()

    formatter = CustomFormatter(
        use_json=logging_settings.LOG_FORMAT == "json",
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    handler.setFormatter(formatter)
    handler.setLevel(logging.NOTSET)

    root.handlers.clear()
    root.addHandler(handler)


def _request_context(request: Request) -> dict[str, Any]:
    """Fields logged for every request: the matched route template and, once resolved, the caller."""
    route = request.scope.get("route")
    return {
        "method": request.method,
        "path": request.url.path,
        "route": getattr(route, "path", None),
        "auth_id": getattr(request.state, "auth_id", None),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("http")

    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/health":
            return await call_next(request)

        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.monotonic() - start_time) * 1000
            self.logger.exception(
                "request failed",
                extra={**_request_context(request), "duration_ms": round(duration_ms, 2)},
            )
            raise

        duration_ms = (time.monotonic() - start_time) * 1000
        self.logger.info(
            "request completed",
            extra={
                **_request_context(request),
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


def register_exception_handlers(app: FastAPI) -> None:
    logger = logging.getLogger(__name__)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": True, "message": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": True, "message": str(exc), "violations": exc.violations},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": True, "message": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": True, "message": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": True, "message": "Something went wrong, please try again later"},
        )


def create_app(
    settings: Settings | None = None,
    sessionmanager: DatabaseSessionManager | None = None,
    storage: StorageBackend | None = None,
    identity_client: IdentityServiceClient | None = None,
    logging_settings: LoggingSettings | None = None,
) -> FastAPI:
    """Build the application; every collaborator can be replaced for tests."""
    settings = settings or get_settings()
    sessionmanager = sessionmanager or build_sessionmanager(settings)
    storage = storage or get_storage_backend(settings)
    logging_settings = logging_settings or LoggingSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Lifespan context for application startup and shutdown."""
        setup_logging(logging_settings)

        # Local development creates tables directly; production runs alembic migrations
        async with initialize_db(sessionmanager, create_tables=settings.environment == "dev"):
            yield
        # Shutdown handled by context manager

    app = FastAPI(title=f"{settings.hackathon_full_name} Applications", lifespan=lifespan)
    app.state.settings = settings
    app.state.sessionmanager = sessionmanager
    app.state.services = build_services(settings, sessionmanager, storage)
    app.state.identity_client = identity_client or IdentityServiceClient(settings)

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(applications.router)
    app.include_router(reviews.router)
    app.include_router(admin.router)

    @app.get("/health", status_code=status.HTTP_200_OK)
    def health() -> dict[str, Any]:
        return {"success": True}

    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
