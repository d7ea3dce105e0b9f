"""Summary validation and sanitization.

validate() reports problems without changing anything:
- errors: structural or arithmetic inconsistencies the response must not carry
- warnings: values outside season heuristics, and sections built from fallbacks

sanitize() repairs a summary that has errors by clamping ranges and recomputing
derived values from their totals. The caller re-validates the result.
"""

import logging
from dataclasses import dataclass, field

from fpl_wrapped.schemas.summary import SeasonSummary
from fpl_wrapped.services.calculations import average_points

logger = logging.getLogger(__name__)

SEASON_GAMEWEEKS = 38
MAX_RANK_CHANGES = SEASON_GAMEWEEKS - 1

TOTAL_POINTS_RANGE = (100, 4000)
OVERALL_RANK_RANGE = (1, 12_000_000)
BEST_GW_POINTS_RANGE = (5, 200)
CAPTAIN_SHARE_RANGE = (10.0, 40.0)  # % of points scored in analyzed gameweeks

# Averages are rounded to one decimal, so small drift is expected
AVERAGE_WARNING_TOLERANCE = 1.0
AVERAGE_ERROR_TOLERANCE = 2.0

ERROR_PENALTY = 20
WARNING_PENALTY = 5
COMPLETENESS_BONUS = 5

DEFAULT_MANAGER_NAME = "FPL Manager"
DEFAULT_TEAM_NAME = "Unknown Team"
DEFAULT_TITLE = "⚽ THE MANAGER"


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    score: int = 100

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_average(
    report: ValidationReport, label: str, reported: float, total: float, count: int
) -> None:
    if count <= 0:
        return
    expected = total / count
    diff = abs(reported - expected)
    if diff > AVERAGE_ERROR_TOLERANCE:
        report.errors.append(
            f"{label} {reported} inconsistent with {total}/{count} = {expected:.1f}"
        )
    elif diff > AVERAGE_WARNING_TOLERANCE:
        report.warnings.append(
            f"{label} {reported} drifts from {total}/{count} = {expected:.1f}"
        )


def _check_structure(summary: SeasonSummary, report: ValidationReport) -> None:
    if not summary.manager_name.strip():
        report.errors.append("Manager name is empty")
    if not summary.team_name.strip():
        report.errors.append("Team name is empty")
    if summary.total_points < 0:
        report.errors.append(f"Total points negative: {summary.total_points}")
    if summary.overall_rank is not None and summary.overall_rank < 1:
        report.errors.append(f"Overall rank must be positive: {summary.overall_rank}")
    if summary.best_rank is not None and summary.best_rank < 1:
        report.errors.append(f"Best rank must be positive: {summary.best_rank}")

    counters = {
        "gameweeksPlayed": summary.gameweeks_played,
        "greenArrows": summary.green_arrows,
        "redArrows": summary.red_arrows,
        "totalTransfers": summary.transfer_activity.total_transfers,
        "totalHits": summary.transfer_activity.total_hits,
        "totalBenchPoints": summary.bench_analysis.total_bench_points,
        "gameweeksAnalyzed": summary.captain_performance.gameweeks_analyzed,
    }
    for name, value in counters.items():
        if value < 0:
            report.errors.append(f"{name} negative: {value}")


def _check_ranges(summary: SeasonSummary, report: ValidationReport) -> None:
    low, high = TOTAL_POINTS_RANGE
    if not low <= summary.total_points <= high:
        report.warnings.append(
            f"Total points {summary.total_points} outside typical range [{low}, {high}]"
        )

    low, high = OVERALL_RANK_RANGE
    if summary.overall_rank is not None and summary.overall_rank > high:
        report.warnings.append(f"Overall rank {summary.overall_rank} above {high}")

    low, high = BEST_GW_POINTS_RANGE
    if not low <= summary.best_gw.points <= high:
        report.warnings.append(
            f"Best gameweek points {summary.best_gw.points} outside [{low}, {high}]"
        )

    for label, gameweek in (
        ("Best gameweek", summary.best_gw.gameweek),
        ("Worst gameweek", summary.worst_gw.gameweek),
    ):
        if not 1 <= gameweek <= SEASON_GAMEWEEKS:
            report.warnings.append(f"{label} number {gameweek} outside [1, {SEASON_GAMEWEEKS}]")

    arrows = summary.green_arrows + summary.red_arrows
    if arrows > MAX_RANK_CHANGES:
        report.warnings.append(
            f"Rank changes {arrows} exceed the {MAX_RANK_CHANGES} possible in a season"
        )

    captain = summary.captain_performance
    analyzed_points = summary.average_points_per_gw * captain.gameweeks_analyzed
    if analyzed_points > 0:
        share = captain.total_points / analyzed_points * 100
        low, high = CAPTAIN_SHARE_RANGE
        if not low <= share <= high:
            report.warnings.append(
                f"Captain share {share:.1f}% of points outside [{low:g}%, {high:g}%]"
            )


def _check_consistency(summary: SeasonSummary, report: ValidationReport) -> None:
    _check_average(
        report,
        "Average points per GW",
        summary.average_points_per_gw,
        summary.total_points,
        summary.gameweeks_played,
    )

    captain = summary.captain_performance
    _check_average(
        report,
        "Captain average",
        captain.average_points,
        captain.total_points,
        captain.gameweeks_analyzed,
    )

    transfers = summary.transfer_activity
    if transfers.total_hits > transfers.total_transfers:
        report.errors.append(
            f"Hits ({transfers.total_hits}) exceed transfers ({transfers.total_transfers})"
        )

    if (
        summary.best_rank is not None
        and summary.overall_rank is not None
        and summary.best_rank > summary.overall_rank
    ):
        report.errors.append(
            f"Best rank {summary.best_rank} worse than overall rank {summary.overall_rank}"
        )


def _completeness_bonuses(summary: SeasonSummary) -> int:
    estimated = set(summary.estimated_fields)
    present = [
        bool(summary.best_gw.top_contributors),
        bool(summary.chips_used),
        bool(summary.badges),
        "mvpPlayer" not in estimated,
        "captainPerformance" not in estimated,
        "oneGotAway" not in estimated,
    ]
    return sum(present)


def validate(summary: SeasonSummary) -> ValidationReport:
    """Check a summary for structural, range and consistency problems.

    Args:
        summary: Summary to check (not modified)

    Returns:
        ValidationReport with errors, warnings and a 0-100 quality score
    """
    report = ValidationReport()

    _check_structure(summary, report)
    _check_ranges(summary, report)
    _check_consistency(summary, report)

    for section in summary.estimated_fields:
        report.warnings.append(f"{section} estimated from fallback data")

    score = (
        100
        - ERROR_PENALTY * len(report.errors)
        - WARNING_PENALTY * len(report.warnings)
        + COMPLETENESS_BONUS * _completeness_bonuses(summary)
    )
    report.score = max(0, min(100, score))

    if report.errors:
        logger.warning(f"Summary validation errors: {report.errors}")
    if report.warnings:
        logger.debug(f"Summary validation warnings: {report.warnings}")
    return report


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def sanitize(summary: SeasonSummary) -> SeasonSummary:
    """Return a repaired copy of the summary.

    Clamps values into their valid intervals, recomputes averages from totals,
    caps hits at the transfer count and fills empty strings with defaults.
    """
    s = summary.model_copy(deep=True)

    s.manager_name = s.manager_name.strip() or DEFAULT_MANAGER_NAME
    s.team_name = s.team_name.strip() or DEFAULT_TEAM_NAME
    s.manager_title = s.manager_title.strip() or DEFAULT_TITLE
    if not s.personalized_intro.strip():
        s.personalized_intro = f"Welcome back, {s.manager_name}!"

    s.total_points = _clamp(s.total_points, 0, TOTAL_POINTS_RANGE[1])
    s.gameweeks_played = _clamp(s.gameweeks_played, 0, SEASON_GAMEWEEKS)
    s.average_points_per_gw = average_points(s.total_points, s.gameweeks_played)

    max_rank = OVERALL_RANK_RANGE[1]
    if s.overall_rank is not None:
        s.overall_rank = _clamp(s.overall_rank, 1, max_rank)
    if s.best_rank is not None:
        s.best_rank = _clamp(s.best_rank, 1, max_rank)
        if s.overall_rank is not None and s.best_rank > s.overall_rank:
            s.best_rank = s.overall_rank

    s.best_gw.gameweek = _clamp(s.best_gw.gameweek, 1, SEASON_GAMEWEEKS)
    s.best_gw.points = _clamp(s.best_gw.points, 0, BEST_GW_POINTS_RANGE[1])
    s.worst_gw.gameweek = _clamp(s.worst_gw.gameweek, 1, SEASON_GAMEWEEKS)

    s.green_arrows = max(0, s.green_arrows)
    s.red_arrows = max(0, s.red_arrows)

    captain = s.captain_performance
    captain.gameweeks_analyzed = max(0, captain.gameweeks_analyzed)
    captain.fail_rate = _clamp(captain.fail_rate, 0, 100)
    captain.average_points = average_points(
        captain.total_points, captain.gameweeks_analyzed
    )

    transfers = s.transfer_activity
    transfers.total_transfers = max(0, transfers.total_transfers)
    transfers.total_hits = _clamp(transfers.total_hits, 0, transfers.total_transfers)

    bench = s.bench_analysis
    bench.total_bench_points = max(0, bench.total_bench_points)
    bench.average_per_gw = average_points(bench.total_bench_points, s.gameweeks_played)

    s.chips_used = s.chips_used or []
    s.badges = s.badges or []

    logger.info(f"Sanitized summary for manager {s.manager_id}")
    return s
