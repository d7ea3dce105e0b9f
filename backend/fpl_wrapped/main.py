"""Main FastAPI application entry point."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fpl_wrapped.api.routes import router
from fpl_wrapped.config import Settings, get_settings
from fpl_wrapped.errors import FplApiError
from fpl_wrapped.services.aggregator import SeasonDataAggregator
from fpl_wrapped.services.bootstrap_cache import BootstrapCache
from fpl_wrapped.services.cache import SummaryCache
from fpl_wrapped.services.fpl_client import FplApiClient
from fpl_wrapped.services.rate_limiter import RateLimiter
from fpl_wrapped.services.wrapped import WrappedService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and its process-wide components.

    The HTTP client, caches and rate limiter are created once here and kept on
    app.state for the lifetime of the app.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="FPL Wrapped Backend",
        description="Season wrapped summaries for Fantasy Premier League managers",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Cache", "X-Data-Source", "X-Data-Quality", "Retry-After"],
    )

    bootstrap_cache = BootstrapCache(ttl=settings.cache_ttl_bootstrap)
    client = FplApiClient(settings=settings, bootstrap_cache=bootstrap_cache)
    summary_cache = SummaryCache(
        maxsize=settings.summary_cache_size, default_ttl=settings.cache_ttl_summary
    )

    app.state.settings = settings
    app.state.fpl_client = client
    app.state.bootstrap_cache = bootstrap_cache
    app.state.summary_cache = summary_cache
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests, window=settings.rate_limit_window
    )
    app.state.wrapped_service = WrappedService(
        aggregator=SeasonDataAggregator(client, settings),
        cache=summary_cache,
        settings=settings,
    )

    app.include_router(router)

    @app.exception_handler(FplApiError)
    async def fpl_error_handler(request: Request, exc: FplApiError) -> JSONResponse:
        logger.info(f"{request.url.path} -> {exc.http_status} ({exc.error_type.value})")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response_body())

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint with cache and rate limiter statistics."""
        return {
            "status": "healthy",
            "bootstrap_cache": app.state.bootstrap_cache.stats(),
            "summary_cache": app.state.summary_cache.stats(),
            "rate_limiter": app.state.rate_limiter.stats(),
        }

    @app.on_event("startup")
    async def startup_event() -> None:
        """Log startup information."""
        logger.info("Starting FPL Wrapped Backend")
        logger.info(f"CORS origins: {settings.cors_origins_list}")
        logger.info(f"FPL API base: {settings.fpl_api_base_url}")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Close the outbound HTTP client."""
        logger.info("Shutting down FPL Wrapped Backend")
        await app.state.fpl_client.close()

    return app


configure_logging(get_settings())
app = create_app()
