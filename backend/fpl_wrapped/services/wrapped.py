"""Season wrapped service - the full pipeline behind GET /api/fpl-data/{id}.

cache -> aggregator -> summary builder -> validate (sanitize + re-validate on
errors) -> cache. Expects an already validated ManagerIdRequest.
"""

import logging
from dataclasses import dataclass

from fpl_wrapped.config import Settings, get_settings
from fpl_wrapped.errors import FplApiError, FplErrorType
from fpl_wrapped.schemas.summary import SeasonSummary
from fpl_wrapped.services.aggregator import ManagerIdRequest, SeasonDataAggregator
from fpl_wrapped.services.cache import SummaryCache
from fpl_wrapped.services.demo import demo_summary
from fpl_wrapped.services.summary import SummaryBuilder
from fpl_wrapped.services.validation import sanitize, validate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WrappedResult:
    """A summary plus the metadata the route turns into headers."""

    summary: SeasonSummary
    quality_score: int
    cache_hit: bool = False
    is_demo: bool = False


@dataclass(frozen=True, slots=True)
class _CachedSummary:
    summary: SeasonSummary
    quality_score: int


class WrappedService:
    """Builds (or serves from cache) one manager's season summary."""

    def __init__(
        self,
        aggregator: SeasonDataAggregator,
        cache: SummaryCache,
        builder: SummaryBuilder | None = None,
        settings: Settings | None = None,
    ):
        self.aggregator = aggregator
        self.cache = cache
        self.builder = builder or SummaryBuilder()
        self.settings = settings or get_settings()

    async def get_summary(self, request: ManagerIdRequest) -> WrappedResult:
        """
        Get the season summary for a validated manager id.

        Raises:
            FplApiError: essential upstream failure, or processing when the
                summary is still invalid after sanitization
        """
        if request.is_demo:
            summary = demo_summary()
            return WrappedResult(
                summary=summary, quality_score=validate(summary).score, is_demo=True
            )

        manager_id = request.manager_id
        cache_key = f"summary:{manager_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return WrappedResult(
                summary=cached.summary, quality_score=cached.quality_score, cache_hit=True
            )

        bundle = await self.aggregator.collect(manager_id)

        try:
            summary = self.builder.build(bundle)
        except Exception as e:
            logger.exception(f"Failed to build summary for manager {manager_id}")
            raise FplApiError(
                FplErrorType.PROCESSING,
                "Unable to process FPL data. Please try again later.",
            ) from e

        report = validate(summary)
        if not report.is_valid:
            logger.warning(
                f"Summary for manager {manager_id} failed validation, sanitizing: "
                f"{report.errors}"
            )
            summary = sanitize(summary)
            report = validate(summary)
            if not report.is_valid:
                logger.error(
                    f"Summary for manager {manager_id} still invalid after sanitizing: "
                    f"{report.errors}"
                )
                raise FplApiError(
                    FplErrorType.PROCESSING,
                    "Unable to process FPL data. Please try again later.",
                )

        self.cache.set(
            cache_key,
            _CachedSummary(summary=summary, quality_score=report.score),
            ttl=self.settings.cache_ttl_summary,
        )
        logger.info(f"Summary for manager {manager_id} ready (quality {report.score})")
        return WrappedResult(summary=summary, quality_score=report.score)
