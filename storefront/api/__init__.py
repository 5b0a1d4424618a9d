"""API package."""

from storefront.api.dependencies import get_request_context
from storefront.api.middleware import LoggingMiddleware
from storefront.api.routes import router

__all__ = [
    "router",
    "LoggingMiddleware",
    "get_request_context",
]
