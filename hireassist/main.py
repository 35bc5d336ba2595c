"""
HireAssist Backend - FastAPI Application Entry Point.

Serves the user registration and session endpoints used by the HireAssist
browser extension.

Architecture: Clean Architecture
- Domain: records, validation, user directory
- Infrastructure: crypto primitives, tokens, field encryption, storage
- Presentation: REST API
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api import router as api_router
from .config import HireAssistSettings, ServiceConfig
from .domain.service import UserDirectory
from .exceptions import HireAssistError
from .infrastructure.crypto import CryptoProvider, create_crypto_provider
from .infrastructure.encryption_service import FieldEncryptionService, create_encryption_service
from .infrastructure.repository import InMemoryKeyValueStore, KeyValueStore
from .infrastructure.token_service import SessionTokenService, create_token_service

logger = structlog.get_logger(__name__)


def configure_logging(settings: HireAssistSettings) -> None:
    """Configure structlog processors for the service environment."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.service.is_development():
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.service.log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ServiceState:
    """Container for service dependencies."""

    def __init__(self) -> None:
        # Configuration
        self.settings: HireAssistSettings | None = None

        # Infrastructure Layer
        self.crypto: CryptoProvider | None = None
        self.token_service: SessionTokenService | None = None
        self.encryption_service: FieldEncryptionService | None = None
        self.store: KeyValueStore | None = None

        # Domain Services
        self.user_directory: UserDirectory | None = None

        # State tracking
        self.initialized: bool = False
        self.start_time: datetime = datetime.now(timezone.utc)

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the dependency graph leaves first:
    1. Configuration
    2. Infrastructure Layer (crypto, tokens, field encryption, storage)
    3. Domain Layer (user directory)
    """
    # --- 1. Configuration ---
    settings = HireAssistSettings.load()
    configure_logging(settings)

    logger.info("hireassist_backend_starting", env=settings.service.env)

    # --- 2. Infrastructure Layer ---
    crypto = create_crypto_provider(
        server_secret=settings.security.server_secret,
        encryption_passphrase=settings.security.encryption_passphrase,
        encryption_salt=settings.security.encryption_salt,
        fallback_salt=settings.security.fallback_salt,
    )
    token_service = create_token_service(crypto)
    encryption_service = create_encryption_service(crypto)
    store = InMemoryKeyValueStore()

    # --- 3. Domain Layer ---
    user_directory = UserDirectory(
        store=store,
        crypto=crypto,
        token_service=token_service,
        encryption_service=encryption_service,
    )

    # --- Store in App State ---
    state = ServiceState()
    state.settings = settings
    state.crypto = crypto
    state.token_service = token_service
    state.encryption_service = encryption_service
    state.store = store
    state.user_directory = user_directory
    state.initialized = True
    app.state.service = state

    logger.info(
        "hireassist_backend_initialized",
        weak_encryption_default=crypto.using_weak_default,
        session_lifetime_hours=int(token_service.lifetime_ms / 3_600_000),
    )

    yield

    # --- Cleanup ---
    logger.info("hireassist_backend_shutting_down", uptime_seconds=state.uptime_seconds)
    state.initialized = False


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    # Load service settings early for CORS configuration; secrets are only
    # required once the lifespan runs.
    service_config = ServiceConfig()

    app = FastAPI(
        title="HireAssist Backend",
        description="User registration, session tokens and encrypted profile storage",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=service_config.get_cors_origins(),
        allow_origin_regex=service_config.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    # Exception handlers
    @app.exception_handler(HireAssistError)
    async def hireassist_error_handler(request: Request, exc: HireAssistError) -> JSONResponse:
        """Map typed errors to the extension's error body."""
        if exc.http_status >= 500:
            logger.error("request_failed", error_code=exc.error_code, path=request.url.path)
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error("unhandled_exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
        )

    # Health endpoints
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "healthy", "service": service_config.name}

    @app.get("/health/detailed", tags=["Health"])
    async def detailed_health(request: Request) -> Any:
        """Service status with user and session statistics."""
        state: ServiceState = request.app.state.service
        if not state.initialized or state.user_directory is None:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "reason": "Service not initialized"},
            )
        return {
            "status": "healthy",
            "service": service_config.name,
            "version": "1.0.0",
            "uptime_seconds": state.uptime_seconds,
            "users": await state.user_directory.get_stats(),
            "security": {
                "weak_encryption_default": state.crypto.using_weak_default if state.crypto else None,
            },
        }

    @app.get("/health/storage", tags=["Health"])
    async def storage_health(request: Request) -> Any:
        """Storage backend health."""
        state: ServiceState = request.app.state.service
        if not state.initialized or state.store is None:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "reason": "Service not initialized"},
            )
        return {"success": True, "storage": await state.store.health()}

    # Include API router
    app.include_router(api_router, prefix="/api/users")

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _service = ServiceConfig()
    uvicorn.run(
        "hireassist.main:app",
        host=_service.host,
        port=_service.port,
        log_level=_service.log_level.lower(),
    )
