"""Shared FastAPI dependencies for API routes.

Components are built once in create_app() and stored on app.state; these
providers hand them to routes so tests can swap them by building their own app.
"""

from fastapi import Request

from fpl_wrapped.services.rate_limiter import RateLimiter
from fpl_wrapped.services.wrapped import WrappedService


def get_wrapped_service(request: Request) -> WrappedService:
    return request.app.state.wrapped_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_key(request: Request) -> str:
    """Identify the caller for rate limiting: first X-Forwarded-For hop, else peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"
