"""API route definitions - season wrapped summary."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse

from fpl_wrapped.dependencies import client_key, get_rate_limiter, get_wrapped_service
from fpl_wrapped.errors import FplApiError, FplErrorType
from fpl_wrapped.services.aggregator import validate_manager_id
from fpl_wrapped.services.demo import DEMO_CACHE_CONTROL
from fpl_wrapped.services.rate_limiter import RateLimiter
from fpl_wrapped.services.wrapped import WrappedService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["wrapped"])

LIVE_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=600"

ManagerIdPath = Annotated[
    str, Path(description="FPL manager id (1-99999999) or 'demo'")
]


@router.get("/fpl-data/{manager_id}")
async def get_fpl_data(
    manager_id: ManagerIdPath,
    request: Request,
    service: WrappedService = Depends(get_wrapped_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    """
    Get the season wrapped summary for a manager.

    Response headers:
    - X-Cache: HIT when served from the summary cache, else MISS
    - X-Data-Source: DEMO for the demo fixture, else LIVE
    - X-Data-Quality: advisory 0-100 validation score
    """
    key = client_key(request)
    if not limiter.is_allowed(key):
        retry_after = limiter.retry_after(key)
        error = FplApiError(
            FplErrorType.RATE_LIMITED, "Too many requests. Please try again later."
        )
        return JSONResponse(
            status_code=error.http_status,
            content=error.to_response_body(),
            headers={"Retry-After": str(retry_after)},
        )

    manager = validate_manager_id(manager_id)

    try:
        result = await service.get_summary(manager)
    except FplApiError:
        raise
    except Exception as e:
        logger.exception(f"Failed to build summary for {manager.raw}: {e}")
        raise FplApiError(
            FplErrorType.PROCESSING,
            "Unable to process FPL data. Please try again later.",
        ) from e

    headers = {
        "X-Cache": "HIT" if result.cache_hit else "MISS",
        "X-Data-Source": "DEMO" if result.is_demo else "LIVE",
        "X-Data-Quality": str(result.quality_score),
        "Cache-Control": DEMO_CACHE_CONTROL if result.is_demo else LIVE_CACHE_CONTROL,
    }
    return JSONResponse(content=result.summary.to_response(), headers=headers)
