"""FastAPI application factory for the RACI platform."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.config import settings
from app.core.auth import IdentityContextMiddleware, RequestIdMiddleware
from app.core.database import async_engine
from app.core.errors import register_exception_handlers
from app.core.logging import RequestLoggingMiddleware, configure_logging


configure_logging(settings.log_level, json_output=settings.is_production)

logger = structlog.get_logger()

LOCAL_FRONTENDS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        default_assignment_workload=settings.default_assignment_workload,
        overload_threshold=settings.overload_threshold,
    )
    yield
    await async_engine.dispose()
    logger.info("application_shutdown")


def _cors_origins() -> list[str]:
    if settings.cors_origins:
        return settings.cors_origins
    return LOCAL_FRONTENDS if settings.environment == "development" else []


def create_app() -> FastAPI:
    """Build the application.

    Middleware order, outermost first: request id, identity, access
    logging, CORS. Starlette runs the last-added middleware first, so
    they are added in reverse.

    Returns:
        The configured application
    """
    docs_enabled = not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant RACI matrices with validation and workload analytics",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(IdentityContextMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)
    return app
