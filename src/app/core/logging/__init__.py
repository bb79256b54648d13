"""Structured logging: structlog setup and access logging."""

from app.core.logging.middleware import RequestLoggingMiddleware
from app.core.logging.setup import configure_logging


__all__ = ["RequestLoggingMiddleware", "configure_logging"]
