"""Inkwell Backend - FastAPI Application Factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from inkwell.api import api_router
from inkwell.api.error_handling import register_exception_handlers
from inkwell.api.health import router as health_router
from inkwell.core import settings, setup_logging
from inkwell.core.config import Settings
from inkwell.core.logging import get_logger
from inkwell.middleware import (
    AuthenticationMiddleware,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    rate_limit_cleanup_loop,
)
from inkwell.services.covers import COVER_URL_PREFIX, CoverStore
from inkwell.services.revocation import RevocationRegistry, revocation_sweep_loop
from inkwell.services.tokens import TokenService

logger = get_logger("main")


def task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from background tasks."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    app_settings: Settings = app.state.settings
    setup_logging(
        level=app_settings.log_level,
        format_type="structured" if not app_settings.debug else "dev",
    )
    logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")

    # A missing signing secret is a deployment defect: refuse to start
    if not app.state.token_service.is_configured:
        logger.critical("JWT_SECRET_KEY is not configured - refusing to start")
        raise RuntimeError("JWT_SECRET_KEY environment variable is required")

    for warning in app_settings.check_security_configuration():
        logger.warning(f"Security configuration: {warning}")

    app.state.covers.directory.mkdir(parents=True, exist_ok=True)

    tasks = [
        asyncio.create_task(
            revocation_sweep_loop(
                app.state.revocations, app_settings.revocation_sweep_interval_seconds
            ),
            name="revocation-sweep",
        ),
        asyncio.create_task(
            rate_limit_cleanup_loop([app.state.general_rate_limiter, app.state.auth_rate_limiter]),
            name="rate-limit-cleanup",
        ),
    ]
    for task in tasks:
        task.add_done_callback(task_done_callback)

    yield

    logger.info("Shutting down...")
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    app.state.revocations.clear()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The token service, revocation registry and rate limiters are created here
    and owned by the app instance (``app.state``), not module globals.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title=app_settings.app_name,
        description="Blogging API with token-based authentication",
        version=app_settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        openapi_url="/openapi.json" if app_settings.debug else None,
    )

    app.state.settings = app_settings
    app.state.token_service = TokenService.from_settings(app_settings)
    app.state.revocations = RevocationRegistry(
        window_seconds=app_settings.token_revocation_window_seconds
    )
    app.state.general_rate_limiter = FixedWindowRateLimiter(
        limit=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.state.auth_rate_limiter = FixedWindowRateLimiter(
        limit=app_settings.auth_rate_limit_attempts,
        window_seconds=app_settings.auth_rate_limit_window_seconds,
    )
    app.state.covers = CoverStore.from_settings(app_settings)

    register_exception_handlers(app)

    # Starlette runs middleware LIFO: the last added is outermost.
    # Request order: CORS -> security headers -> rate limit -> authentication -> route
    app.add_middleware(
        AuthenticationMiddleware,
        tokens=app.state.token_service,
        revocations=app.state.revocations,
    )
    app.add_middleware(
        RateLimitMiddleware,
        general_limiter=app.state.general_rate_limiter,
        auth_limiter=app.state.auth_rate_limiter,
        trusted_proxies=app_settings.trusted_proxy_ips_set,
        enabled=app_settings.rate_limit_enabled,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    # CORS MUST be outermost so 401/429 responses still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
        max_age=86400,
    )

    app.include_router(health_router)  # Health at root level
    app.include_router(api_router)  # API at /api
    # Stored covers, read-only; the lifespan creates the directory
    app.mount(
        COVER_URL_PREFIX,
        StaticFiles(directory=app.state.covers.directory, check_dir=False),
        name="uploads",
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": app_settings.app_name,
            "version": app_settings.app_version,
        }

    return app


# Application instance
app = create_app()
