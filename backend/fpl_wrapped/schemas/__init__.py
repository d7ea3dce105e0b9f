"""API response schemas."""

from fpl_wrapped.schemas.summary import (
    BenchAnalysis,
    CaptainPerformance,
    SeasonSummary,
    TransferActivity,
)

__all__ = [
    "BenchAnalysis",
    "CaptainPerformance",
    "SeasonSummary",
    "TransferActivity",
]
